"""
Discount composition.

A reducer turns (amount, value, quantity, unit_price) into the next running
amount. Composition picks the highest-precedence non-stackable discount,
applies it, then applies every stackable discount in ranked order.
"""
from typing import Callable, Dict, List, Optional
from schema import DiscountType

Reducer = Callable[[float, float, int, float], float]


def percentage(amount: float, value: float, quantity: int, unit_price: float) -> float:
    return amount * (1 - value / 100)


def fixed(amount: float, value: float, quantity: int, unit_price: float) -> float:
    return amount - value


def threshold(amount: float, value: float, quantity: int, unit_price: float) -> float:
    # The minimum spend is enforced at eligibility time via a CART_TOTAL condition.
    return amount - value


def buy_one_get_one(amount: float, value: float, quantity: int, unit_price: float) -> float:
    # Pay for ceil(quantity / 2) units.
    return (quantity // 2 + quantity % 2) * unit_price


def multi_item(amount: float, value: float, quantity: int, unit_price: float) -> float:
    factor = value / 100
    total = 0.0
    for i in range(1, quantity + 1):
        total += unit_price * factor if i % 2 == 0 else unit_price
    return total


QUANTITY_BASED = frozenset({DiscountType.BOGO, DiscountType.MULTI_ITEM})

# Quantity-based reducers ignore the incoming amount and overwrite it.
LITERAL_REDUCERS: Dict[DiscountType, Reducer] = {
    DiscountType.PERCENTAGE: percentage,
    DiscountType.FIXED: fixed,
    DiscountType.THRESHOLD: threshold,
    DiscountType.BOGO: buy_one_get_one,
    DiscountType.MULTI_ITEM: multi_item,
}


def _scaled(reducer: Reducer) -> Reducer:
    def reduce(amount: float, value: float, quantity: int, unit_price: float) -> float:
        list_price = quantity * unit_price
        if list_price <= 0:
            return amount
        return amount * reducer(amount, value, quantity, unit_price) / list_price
    return reduce


def compounding_reducers() -> Dict[DiscountType, Reducer]:
    """
    Reducers where quantity-based discounts compound with earlier ones.

    The quantity-based price is expressed as a fraction of the list price
    (quantity * unit_price) and that fraction is applied to the running amount.
    """
    reducers = dict(LITERAL_REDUCERS)
    for discount_type in QUANTITY_BASED:
        reducers[discount_type] = _scaled(LITERAL_REDUCERS[discount_type])
    return reducers


def reducers_for_policy(policy: str) -> Dict[DiscountType, Reducer]:
    if policy == "literal":
        return LITERAL_REDUCERS
    if policy == "compound":
        return compounding_reducers()
    raise ValueError(f"Unknown composition policy: {policy!r}")


def select_applied(ranked) -> List:
    """
    Picks the discounts that take part in composition.

    Args:
        ranked: Discounts already ordered by services.ranking.rank.

    Returns:
        The first non-stackable discount (if any) followed by all stackable
        discounts, in ranked order.
    """
    applied = []
    exclusive = next((d for d in ranked if not d.stackable), None)
    if exclusive is not None:
        applied.append(exclusive)
    applied.extend(d for d in ranked if d.stackable)
    return applied


def apply_discounts(ranked, amount: float, quantity: int = 0, unit_price: float = 0.0,
                    reducers: Optional[Dict[DiscountType, Reducer]] = None) -> float:
    """
    Computes the final amount after composing a ranked list of discounts.

    Args:
        ranked: Discounts ordered by precedence.
        amount: Starting amount, usually the cart total.
        quantity: Unit count used by quantity-based discounts.
        unit_price: Unit price used by quantity-based discounts.
        reducers: Per-type formulas; defaults to LITERAL_REDUCERS.

    Returns:
        The running amount after every applied discount.
    """
    reducers = reducers or LITERAL_REDUCERS
    running = amount
    for discount in select_applied(ranked):
        reducer = reducers[DiscountType(discount.type)]
        running = reducer(running, discount.value, quantity, unit_price)
    return running
