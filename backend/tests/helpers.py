import schema
from datetime import timedelta
from utils import utcnow

def window(hours_before=1, hours_after=24):
    now = utcnow()
    return now - timedelta(hours=hours_before), now + timedelta(hours=hours_after)

def make_discount(db, name, type="PERCENTAGE", value=10.0, priority=1, stackable=False,
                  max_usage=0, usage_count=0, conditions=(), product_ids=(), start=None, end=None):
    """
    Inserts a discount straight through the ORM, bypassing the service.

    conditions is a sequence of (type, value) pairs.
    """
    default_start, default_end = window()
    discount = schema.Discount(
        name=name,
        type=type,
        value=value,
        start_date=start or default_start,
        end_date=end or default_end,
        priority=priority,
        stackable=stackable,
        max_usage=max_usage,
        usage_count=usage_count,
    )
    discount.conditions = [schema.DiscountCondition(type=t, value=v) for t, v in conditions]
    discount.products = [schema.DiscountProduct(product_id=p) for p in product_ids]
    db.add(discount)
    db.commit()
    return discount

def cart_total_discount(db, name, minimum="100", **kwargs):
    return make_discount(db, name, conditions=[("CART_TOTAL", minimum)], **kwargs)

def discount_payload(**overrides):
    start, end = window()
    payload = {
        "name": "Test Discount",
        "type": "PERCENTAGE",
        "value": 10.0,
        "start_date": start.isoformat() + "Z",
        "end_date": end.isoformat() + "Z",
        "priority": 1,
        "stackable": False,
        "max_usage": 0,
        "conditions": [{"type": "CART_TOTAL", "value": "100"}],
    }
    payload.update(overrides)
    return payload

def create(client, **overrides):
    return client.post("/api/v1/discounts", json=discount_payload(**overrides))

def names(discounts):
    return [d.name if hasattr(d, "name") else d["name"] for d in discounts]
