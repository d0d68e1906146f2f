import logging
from functools import wraps
from flask import Blueprint, request, jsonify
from db import get_db
from errors import DiscountError, ValidationError, NotFoundError, UsageLimitError, StoreError
from services.discounts import DiscountService
from services.eligibility import CartContext
from services.repository import DiscountRepository

logger = logging.getLogger(__name__)

discounts_bp = Blueprint("discounts", __name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (UsageLimitError, 409),
    (StoreError, 500),
)


def status_for(error: DiscountError) -> int:
    for error_class, status in ERROR_STATUS:
        if isinstance(error, error_class):
            return status
    return 500


def with_service(f):
    """
    Decorator that opens a database session and injects a DiscountService.

    Discount errors raised by the handler are turned into JSON error
    responses with the matching HTTP status.

    Args:
        f: The route handler function to wrap.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        db = next(get_db())
        try:
            return f(*args, service=DiscountService(DiscountRepository(db)), **kwargs)
        except DiscountError as e:
            status = status_for(e)
            if status >= 500:
                logger.error(f"{request.method} {request.path} failed: {e}")
            return jsonify({"error": str(e)}), status
        finally:
            db.close()
    return decorated


def _int_value(raw, name: str, default: int = 0) -> int:
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        raise ValidationError(f"invalid {name}")
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"invalid {name}") from e


def _float_value(raw, name: str, default: float = 0.0) -> float:
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        raise ValidationError(f"invalid {name}")
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"invalid {name}") from e


def _product_ids(raw_ids) -> list:
    if raw_ids is None:
        return []
    if not isinstance(raw_ids, list):
        raise ValidationError("product_ids must be a list")
    return [_int_value(pid, "product id") for pid in raw_ids]


def _tier_value(raw):
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise ValidationError("membership_tier must be a string")
    return raw


def _json_object() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _cart_from_json(data: dict) -> CartContext:
    return CartContext(
        user_id=_int_value(data.get("user_id"), "user_id"),
        cart_total=_float_value(data.get("cart_total"), "cart_total"),
        product_ids=_product_ids(data.get("product_ids")),
        membership_tier=_tier_value(data.get("membership_tier")),
    )


@discounts_bp.route("/discounts", methods=["POST"])
@with_service
def create_discount(service):
    """
    Creates a discount with its conditions and product scope.
    ---
    Input (JSON):
        - name (str), type (str), value (float)
        - start_date, end_date (ISO-8601)
        - priority (int, optional), stackable (bool, optional), max_usage (int, optional)
        - conditions (list, optional): [{"type": "CART_TOTAL", "value": "100"}]
        - product_ids (list[int], optional)
    Output (201):
        - The stored discount
    Errors:
        - 400: Missing/invalid field or start_date after end_date
    """
    discount = service.create_discount(request.get_json(silent=True))
    return jsonify(discount.to_dict()), 201


@discounts_bp.route("/discounts/<int:discount_id>", methods=["GET"])
@with_service
def get_discount(service, discount_id):
    return jsonify(service.get_discount(discount_id).to_dict()), 200


@discounts_bp.route("/discounts/<int:discount_id>", methods=["PUT"])
@with_service
def update_discount(service, discount_id):
    """
    Partially updates a discount.
    ---
    Input (JSON): any subset of the create fields.
    Output (200): the updated discount
    Errors:
        - 400: Invalid field or resulting window is inverted
        - 404: Unknown discount
    """
    discount = service.update_discount(discount_id, request.get_json(silent=True))
    return jsonify(discount.to_dict()), 200


@discounts_bp.route("/discounts/<int:discount_id>", methods=["DELETE"])
@with_service
def delete_discount(service, discount_id):
    service.delete_discount(discount_id)
    return "", 204


@discounts_bp.route("/discounts", methods=["GET"])
@with_service
def get_available_discounts(service):
    """
    Lists the discounts available to a cart, highest precedence first.
    ---
    Input (Query Params):
        - user_id (int, optional)
        - cart_total (float, optional)
        - product_ids (int, repeatable, optional)
        - membership_tier (str, optional): overrides the configured tier
    Output (200):
        - A ranked list of discounts
    Errors:
        - 400: Non-numeric user_id, cart_total or product id
    """
    args = request.args
    discounts = service.get_available_discounts(
        user_id=_int_value(args.get("user_id"), "user_id"),
        cart_total=_float_value(args.get("cart_total"), "cart_total"),
        product_ids=[_int_value(pid, "product id") for pid in args.getlist("product_ids")],
        membership_tier=_tier_value(args.get("membership_tier")),
    )
    return jsonify([d.to_dict() for d in discounts]), 200


@discounts_bp.route("/discounts/usage", methods=["POST"])
@with_service
def record_usage(service):
    """
    Records one use of each listed discount, all or nothing.
    ---
    Input (JSON):
        - discount_ids (list[int])
    Output (200):
        - recorded (int): capped counters incremented
    Errors:
        - 404: Unknown discount id (no counters changed)
        - 409: A discount is already at its usage cap (no counters changed)
    """
    discount_ids = _json_object().get("discount_ids", [])
    if not isinstance(discount_ids, list):
        return jsonify({"error": "discount_ids must be a list"}), 400
    ids = [_int_value(did, "discount id") for did in discount_ids]
    return jsonify({"recorded": service.record_usage(ids)}), 200


def _price(service, record: bool):
    data = _json_object()
    cart = _cart_from_json(data)
    amount = data.get("amount")
    kwargs = dict(
        amount=None if amount is None else _float_value(amount, "amount"),
        quantity=_int_value(data.get("quantity"), "quantity"),
        unit_price=_float_value(data.get("unit_price"), "unit_price"),
    )
    result = service.checkout(cart, **kwargs) if record else service.quote(cart, **kwargs)
    return jsonify(result.to_dict()), 200


@discounts_bp.route("/discounts/quote", methods=["POST"])
@with_service
def quote(service):
    """
    Prices a cart with its eligible discounts without consuming them.
    ---
    Input (JSON):
        - user_id, cart_total, product_ids, membership_tier: cart context
        - amount (float, optional): starting amount, defaults to cart_total
        - quantity (int, optional), unit_price (float, optional)
    Output (200):
        - original_amount, final_amount, applied_ids, applied
    """
    return _price(service, record=False)


@discounts_bp.route("/discounts/checkout", methods=["POST"])
@with_service
def checkout(service):
    """
    Same as /discounts/quote, then records usage of every applied discount.
    ---
    Errors:
        - 409: An applied discount hit its usage cap before it was recorded
    """
    return _price(service, record=True)
