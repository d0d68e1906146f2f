"""
Eligibility filtering.

Each optional criterion of a cart is an independent predicate that renders
to a SQLAlchemy clause. The repository ANDs every clause into a single
SELECT, so a discount has to satisfy all requested criteria at once.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy import and_, or_, cast, false, Float
from schema import Discount, DiscountCondition, DiscountProduct, ConditionType
from utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class CartContext:
    """
    What the shopper brings to an eligibility query.

    user_id and cart_total are treated as unspecified when zero (or
    negative, for the total). An explicit membership_tier overrides the
    configured tier resolver.
    """
    user_id: int = 0
    cart_total: float = 0.0
    product_ids: List[int] = field(default_factory=list)
    membership_tier: Optional[str] = None


class ActiveWindow:
    def __init__(self, now: datetime):
        self.now = now

    def clause(self):
        return and_(Discount.start_date <= self.now, Discount.end_date >= self.now)


class MembershipMatch:
    def __init__(self, tier: Optional[str]):
        self.tier = tier.upper() if tier else None

    def clause(self):
        if self.tier is None:
            return false()
        return Discount.conditions.any(and_(
            DiscountCondition.type == ConditionType.MEMBERSHIP_LEVEL.value,
            DiscountCondition.value == self.tier,
        ))


class MinimumSpendMet:
    def __init__(self, cart_total: float):
        self.cart_total = cart_total

    def clause(self):
        return Discount.conditions.any(and_(
            DiscountCondition.type == ConditionType.CART_TOTAL.value,
            cast(DiscountCondition.value, Float) <= self.cart_total,
        ))


class ProductScope:
    def __init__(self, product_ids: List[int]):
        self.product_ids = list(product_ids)

    def clause(self):
        return Discount.products.any(DiscountProduct.product_id.in_(self.product_ids))


class UsageAvailable:
    def clause(self):
        return or_(Discount.max_usage == 0, Discount.usage_count < Discount.max_usage)


def build_predicates(cart: CartContext, resolve_tier: Callable[[int], Optional[str]], now: Optional[datetime] = None) -> list:
    """
    Translates a cart into the list of predicates a discount must satisfy.

    Args:
        cart: The shopper's context.
        resolve_tier: Maps a user id to its membership tier.
        now: Instant the time window is checked against; defaults to now.

    Returns:
        Predicate objects, always including the time window and usage cap.
    """
    predicates = [ActiveWindow(now or utcnow())]

    if cart.user_id or cart.membership_tier:
        tier = cart.membership_tier or resolve_tier(cart.user_id)
        predicates.append(MembershipMatch(tier))

    if cart.cart_total and cart.cart_total > 0:
        predicates.append(MinimumSpendMet(cart.cart_total))

    if cart.product_ids:
        predicates.append(ProductScope(cart.product_ids))

    predicates.append(UsageAvailable())
    return predicates


def find_eligible(repository, cart: CartContext, resolve_tier, now: Optional[datetime] = None) -> list:
    """
    Returns the discounts a cart qualifies for, in store order.
    """
    logger.debug(
        f"Eligibility query: user_id={cart.user_id} cart_total={cart.cart_total} "
        f"product_ids={cart.product_ids} membership_tier={cart.membership_tier}"
    )
    discounts = repository.find(build_predicates(cart, resolve_tier, now))
    logger.debug(f"Eligibility query matched {len(discounts)} discounts")
    return discounts
