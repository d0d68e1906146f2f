import pytest
from errors import ValidationError
from schema import ConditionType, DiscountCondition
from services.conditions import (
    parse_condition, parse_conditions,
    CartTotalCondition, MembershipCondition, CategoryCondition, MinQuantityCondition,
)

def test_cart_total_parses_number():
    cond = parse_condition("CART_TOTAL", "100")
    assert cond == CartTotalCondition(100.0)
    assert cond.kind is ConditionType.CART_TOTAL
    assert cond.encode() == "100"

def test_cart_total_keeps_fraction():
    assert parse_condition("CART_TOTAL", 99.5).encode() == "99.5"

def test_membership_is_upper_cased():
    assert parse_condition("membership_level", " gold ") == MembershipCondition("GOLD")

def test_category_and_min_quantity():
    assert parse_condition(ConditionType.PRODUCT_CATEGORY, "shoes") == CategoryCondition("shoes")
    assert parse_condition("MIN_QUANTITY", "2") == MinQuantityCondition(2)

@pytest.mark.parametrize("ctype,value", [
    ("CART_TOTAL", "abc"),
    ("CART_TOTAL", "-5"),
    ("CART_TOTAL", "nan"),
    ("MIN_QUANTITY", "2.5"),
    ("MIN_QUANTITY", "-1"),
    ("MEMBERSHIP_LEVEL", ""),
    ("PRODUCT_CATEGORY", None),
    ("LOYALTY_POINTS", "10"),
])
def test_invalid_conditions_rejected(ctype, value):
    with pytest.raises(ValidationError):
        parse_condition(ctype, value)

def test_parse_conditions_list():
    conds = parse_conditions([{"type": "CART_TOTAL", "value": "100"}, {"type": "MIN_QUANTITY", "value": 2}])
    assert conds == [CartTotalCondition(100.0), MinQuantityCondition(2)]
    assert parse_conditions(None) == []

def test_parse_conditions_requires_list_of_objects():
    with pytest.raises(ValidationError):
        parse_conditions({"type": "CART_TOTAL"})
    with pytest.raises(ValidationError):
        parse_conditions([{"value": "100"}])

def test_stored_condition_parses_to_typed_form():
    row = DiscountCondition(type="CART_TOTAL", value="1000")
    assert parse_condition(row.type, row.value) == CartTotalCondition(1000.0)
