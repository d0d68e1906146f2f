"""
Typed discount conditions.

Conditions are persisted as (type, text) pairs. Everything above the
persistence layer works with the typed variants below, which are produced
by :func:`parse_condition` when a payload is accepted or a row is read.
"""
import math
from dataclasses import dataclass
from typing import ClassVar, Union
from errors import ValidationError
from schema import ConditionType


def _format_number(value: float) -> str:
    return str(int(value)) if value == int(value) else repr(value)


@dataclass(frozen=True)
class CartTotalCondition:
    """Minimum spend; the cart total must be at least ``minimum``."""
    minimum: float
    kind: ClassVar[ConditionType] = ConditionType.CART_TOTAL

    def encode(self) -> str:
        return _format_number(self.minimum)


@dataclass(frozen=True)
class MembershipCondition:
    tier: str
    kind: ClassVar[ConditionType] = ConditionType.MEMBERSHIP_LEVEL

    def encode(self) -> str:
        return self.tier


@dataclass(frozen=True)
class CategoryCondition:
    category: str
    kind: ClassVar[ConditionType] = ConditionType.PRODUCT_CATEGORY

    def encode(self) -> str:
        return self.category


@dataclass(frozen=True)
class MinQuantityCondition:
    quantity: int
    kind: ClassVar[ConditionType] = ConditionType.MIN_QUANTITY

    def encode(self) -> str:
        return str(self.quantity)


Condition = Union[CartTotalCondition, MembershipCondition, CategoryCondition, MinQuantityCondition]


def _text(raw, label: str) -> str:
    text = str(raw).strip() if raw is not None else ""
    if not text:
        raise ValidationError(f"{label} condition requires a value")
    return text


def parse_condition(condition_type, raw) -> Condition:
    """
    Builds the typed variant for a (type, value) pair.

    Args:
        condition_type: A ConditionType or its string name.
        raw: The value, either as stored text or as a JSON scalar.

    Returns:
        One of the condition dataclasses in this module.

    Raises:
        ValidationError: If the type is unknown or the value does not fit it.
    """
    try:
        kind = ConditionType(str(getattr(condition_type, "value", condition_type)).strip().upper())
    except ValueError as e:
        raise ValidationError(f"Unknown condition type: {condition_type!r}") from e

    if kind is ConditionType.CART_TOTAL:
        text = _text(raw, "CART_TOTAL")
        try:
            minimum = float(text)
        except ValueError as e:
            raise ValidationError(f"CART_TOTAL condition must be numeric, got {text!r}") from e
        if not math.isfinite(minimum) or minimum < 0:
            raise ValidationError("CART_TOTAL condition must be a non-negative amount")
        return CartTotalCondition(minimum)

    if kind is ConditionType.MEMBERSHIP_LEVEL:
        return MembershipCondition(_text(raw, "MEMBERSHIP_LEVEL").upper())

    if kind is ConditionType.PRODUCT_CATEGORY:
        return CategoryCondition(_text(raw, "PRODUCT_CATEGORY"))

    text = _text(raw, "MIN_QUANTITY")
    try:
        quantity = int(text)
    except ValueError as e:
        raise ValidationError(f"MIN_QUANTITY condition must be an integer, got {text!r}") from e
    if quantity < 0:
        raise ValidationError("MIN_QUANTITY condition must not be negative")
    return MinQuantityCondition(quantity)


def parse_conditions(items) -> list:
    """Parses a JSON list of ``{"type": ..., "value": ...}`` objects."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("conditions must be a list")
    conditions = []
    for item in items:
        if not isinstance(item, dict) or "type" not in item:
            raise ValidationError("each condition needs a type and a value")
        conditions.append(parse_condition(item["type"], item.get("value")))
    return conditions
