from sqlalchemy import inspect
from helpers import make_discount

def test_all_tables_exist(engine):
    tables = inspect(engine).get_table_names()
    for t in ['discounts', 'discount_conditions', 'discount_products']:
        assert t in tables, f"Missing table {t}"

def test_to_dict_is_json_ready(db_session):
    d = make_discount(db_session, "dict", conditions=[("CART_TOTAL", "100")], product_ids=[7])
    data = d.to_dict()
    assert isinstance(data["start_date"], str)
    assert isinstance(data["created_at"], str)
    assert data["conditions"] == [{"id": d.conditions[0].id, "type": "CART_TOTAL", "value": "100"}]
    assert data["product_ids"] == [7]

def test_exhausted_flag(db_session):
    assert make_discount(db_session, "full", max_usage=2, usage_count=2).exhausted
    assert not make_discount(db_session, "room", max_usage=2, usage_count=1).exhausted
    assert not make_discount(db_session, "unlimited", max_usage=0, usage_count=50).exhausted
