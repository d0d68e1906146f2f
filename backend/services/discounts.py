import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
from config import config
from errors import NotFoundError, ValidationError
from schema import Discount, DiscountType, DiscountPriority
from services.conditions import parse_conditions
from services.composition import QUANTITY_BASED, apply_discounts, reducers_for_policy, select_applied
from services.eligibility import CartContext, find_eligible
from services.ledger import record_usage
from services.ranking import rank
from services.repository import DiscountRepository, unit_of_work
from utils import parse_datetime

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "type", "value", "start_date", "end_date")


def _number(value, field_name: str) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be a number") from e
    if not math.isfinite(number) or number < 0:
        raise ValidationError(f"{field_name} must be a non-negative number")
    return number


def _integer(value, field_name: str, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be an integer") from e
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field_name} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum}")
    return number


def _boolean(value, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ValidationError(f"{field_name} must be a boolean")


def _product_ids(value) -> List[int]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError("product_ids must be a list of integers")
    ids = []
    for item in value:
        pid = _integer(item, "product_ids")
        if pid not in ids:
            ids.append(pid)
    return ids


def parse_discount_payload(payload: dict, partial: bool = False) -> Tuple[dict, Optional[list], Optional[list]]:
    """
    Validates a discount body coming from the request layer.

    Args:
        payload: Raw JSON object.
        partial: True for updates, where every field is optional.

    Returns:
        A tuple of (column values, typed conditions or None, product ids or None).
        None means the caller did not send that collection.

    Raises:
        ValidationError: On a missing required field or a malformed value.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    if not partial:
        missing = [f for f in REQUIRED_FIELDS if payload.get(f) is None]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    fields = {}
    if "name" in payload:
        name = str(payload["name"] or "").strip()
        if not name:
            raise ValidationError("name must not be empty")
        fields["name"] = name
    if "type" in payload:
        try:
            fields["type"] = DiscountType(str(payload["type"]).strip().upper()).value
        except ValueError as e:
            raise ValidationError(f"Unknown discount type: {payload['type']!r}") from e
    if "value" in payload:
        fields["value"] = _number(payload["value"], "value")
    if "start_date" in payload:
        fields["start_date"] = parse_datetime(payload["start_date"], "start_date")
    if "end_date" in payload:
        fields["end_date"] = parse_datetime(payload["end_date"], "end_date")
    if "priority" in payload:
        fields["priority"] = _integer(payload["priority"], "priority")
    if "stackable" in payload:
        fields["stackable"] = _boolean(payload["stackable"], "stackable")
    if "max_usage" in payload:
        fields["max_usage"] = _integer(payload["max_usage"], "max_usage", minimum=0)

    if not partial:
        fields.setdefault("priority", int(DiscountPriority.MEDIUM))
        fields.setdefault("stackable", False)
        fields.setdefault("max_usage", 0)

    conditions = parse_conditions(payload["conditions"]) if "conditions" in payload else None
    product_ids = _product_ids(payload["product_ids"]) if "product_ids" in payload else None
    return fields, conditions, product_ids


def _require_product_scope(discount_type: str, product_ids: List[int]) -> None:
    if DiscountType(discount_type) in QUANTITY_BASED and not product_ids:
        raise ValidationError(f"{discount_type} discounts must be scoped to at least one product")


@dataclass
class Quote:
    """Outcome of composing the eligible discounts for a cart."""
    original_amount: float
    final_amount: float
    applied: List[Discount] = field(default_factory=list)
    recorded: bool = False

    def to_dict(self):
        return {
            "original_amount": self.original_amount,
            "final_amount": self.final_amount,
            "applied_ids": [d.id for d in self.applied],
            "applied": [d.to_dict() for d in self.applied],
            "recorded": self.recorded,
        }


class DiscountService:
    """
    Entry point of the discount core for the request layer.

    Holds no state of its own beyond the injected repository, the tier
    resolver and the composition reducers.
    """
    def __init__(self, repository: DiscountRepository,
                 resolve_tier: Optional[Callable[[int], Optional[str]]] = None,
                 reducers: Optional[Dict] = None):
        self.repository = repository
        self.resolve_tier = resolve_tier or config.resolve_tier
        self.reducers = reducers or reducers_for_policy(config.COMPOSITION_POLICY)

    def _get_or_404(self, discount_id: int) -> Discount:
        discount = self.repository.get(discount_id)
        if discount is None:
            raise NotFoundError(f"Discount {discount_id} not found")
        return discount

    def create_discount(self, payload: dict) -> Discount:
        fields, conditions, product_ids = parse_discount_payload(payload)
        if fields["start_date"] > fields["end_date"]:
            raise ValidationError("start date cannot be after end date")
        _require_product_scope(fields["type"], product_ids)

        with unit_of_work(self.repository, "creating discount"):
            discount = Discount(usage_count=0, **fields)
            self.repository.replace_conditions(discount, conditions or [])
            self.repository.replace_products(discount, product_ids or [])
            self.repository.add(discount)

        logger.info(f"Created discount {discount.id} ({discount.type}, priority {discount.priority})")
        return discount

    def get_discount(self, discount_id: int) -> Discount:
        with unit_of_work(self.repository, "loading discount"):
            return self._get_or_404(discount_id)

    def update_discount(self, discount_id: int, payload: dict) -> Discount:
        """
        Applies a partial update, re-validating the merged time window and cap.

        Conditions and product ids are replaced wholesale when present in
        the payload and left untouched otherwise.
        """
        with unit_of_work(self.repository, "updating discount"):
            discount = self._get_or_404(discount_id)
            fields, conditions, product_ids = parse_discount_payload(payload, partial=True)

            start = fields.get("start_date", discount.start_date)
            end = fields.get("end_date", discount.end_date)
            if start > end:
                raise ValidationError("start date cannot be after end date")

            max_usage = fields.get("max_usage", discount.max_usage)
            if max_usage > 0 and discount.usage_count > max_usage:
                raise ValidationError(
                    f"max_usage {max_usage} is below the current usage count {discount.usage_count}"
                )
            _require_product_scope(
                fields.get("type", discount.type),
                discount.product_ids if product_ids is None else product_ids,
            )

            self.repository.update_fields(discount, fields)
            if conditions is not None:
                self.repository.replace_conditions(discount, conditions)
            if product_ids is not None:
                self.repository.replace_products(discount, product_ids)

        logger.info(f"Updated discount {discount_id}: {sorted(fields)}")
        return discount

    def delete_discount(self, discount_id: int) -> None:
        with unit_of_work(self.repository, "deleting discount"):
            self.repository.delete(self._get_or_404(discount_id))
        logger.info(f"Deleted discount {discount_id}")

    def get_available_discounts(self, user_id: int = 0, cart_total: float = 0.0,
                                product_ids: Optional[List[int]] = None,
                                membership_tier: Optional[str] = None) -> List[Discount]:
        """
        Lists the discounts a cart qualifies for, ranked by precedence.

        Args:
            user_id: Shopper id; 0 skips the membership check.
            cart_total: Cart total; 0 or less skips the minimum-spend check.
            product_ids: Products in the cart; empty skips product scoping.
            membership_tier: Explicit tier overriding the configured resolver.

        Returns:
            Eligible discounts ordered by priority, non-stackable first on ties.
        """
        cart = CartContext(
            user_id=user_id or 0,
            cart_total=cart_total or 0.0,
            product_ids=list(product_ids or []),
            membership_tier=membership_tier,
        )
        return self._ranked_for(cart)

    def _ranked_for(self, cart: CartContext) -> List[Discount]:
        with unit_of_work(self.repository, "listing available discounts"):
            return rank(find_eligible(self.repository, cart, self.resolve_tier))

    def record_usage(self, discount_ids) -> int:
        return record_usage(self.repository, discount_ids)

    def quote(self, cart: CartContext, amount: Optional[float] = None,
              quantity: int = 0, unit_price: float = 0.0) -> Quote:
        """
        Prices a cart with its eligible discounts without consuming them.

        Args:
            cart: Eligibility context.
            amount: Starting amount; defaults to the cart total.
            quantity: Units for quantity-based discounts.
            unit_price: Unit price for quantity-based discounts.
        """
        starting = cart.cart_total if amount is None else amount
        ranked = self._ranked_for(cart)
        final = apply_discounts(ranked, starting, quantity, unit_price, reducers=self.reducers)
        return Quote(original_amount=starting, final_amount=final, applied=select_applied(ranked))

    def checkout(self, cart: CartContext, amount: Optional[float] = None,
                 quantity: int = 0, unit_price: float = 0.0) -> Quote:
        """
        Prices a cart and records one use of every discount that was applied.

        If any applied discount ran out of uses in the meantime the usage
        batch is rolled back and UsageLimitError propagates.
        """
        result = self.quote(cart, amount, quantity, unit_price)
        record_usage(self.repository, [d.id for d in result.applied])
        result.recorded = True
        return result
