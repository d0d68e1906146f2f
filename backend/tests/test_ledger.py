import pytest
from errors import NotFoundError, UsageLimitError
from helpers import make_discount
from schema import Discount
from services.ledger import record_usage

def usage(db, discount_id):
    db.expire_all()
    return db.get(Discount, discount_id).usage_count

def test_increments_capped_discount(db_session, repository):
    d = make_discount(db_session, "capped", max_usage=5)
    assert record_usage(repository, [d.id]) == 1
    assert usage(db_session, d.id) == 1

def test_unlimited_discount_is_skipped(db_session, repository):
    d = make_discount(db_session, "unlimited", max_usage=0)
    assert record_usage(repository, [d.id]) == 0
    assert usage(db_session, d.id) == 0

def test_empty_batch_is_noop(repository):
    assert record_usage(repository, []) == 0
    assert record_usage(repository, None) == 0

def test_unknown_id_rolls_back_whole_batch(db_session, repository):
    d = make_discount(db_session, "capped", max_usage=5)
    with pytest.raises(NotFoundError):
        record_usage(repository, [d.id, 9999])
    assert usage(db_session, d.id) == 0

def test_cap_is_never_exceeded(db_session, repository):
    d = make_discount(db_session, "capped", max_usage=2)
    record_usage(repository, [d.id])
    record_usage(repository, [d.id])
    with pytest.raises(UsageLimitError):
        record_usage(repository, [d.id])
    assert usage(db_session, d.id) == 2

def test_exhausted_member_rolls_back_batch(db_session, repository):
    full = make_discount(db_session, "full", max_usage=1, usage_count=1)
    other = make_discount(db_session, "other", max_usage=10)
    with pytest.raises(UsageLimitError):
        record_usage(repository, [other.id, full.id])
    assert usage(db_session, other.id) == 0
    assert usage(db_session, full.id) == 1

def test_duplicate_ids_consume_twice(db_session, repository):
    d = make_discount(db_session, "capped", max_usage=3)
    assert record_usage(repository, [d.id, d.id]) == 2
    assert usage(db_session, d.id) == 2

def test_n_calls_add_n(db_session, repository):
    d = make_discount(db_session, "capped", max_usage=100, usage_count=10)
    for _ in range(25):
        record_usage(repository, [d.id])
    assert usage(db_session, d.id) == 35
