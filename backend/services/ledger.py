import logging
from errors import NotFoundError, UsageLimitError
from services.repository import unit_of_work

logger = logging.getLogger(__name__)


def record_usage(repository, discount_ids) -> int:
    """
    Consumes one use of each listed discount in a single transaction.

    Uncapped discounts (max_usage == 0) are skipped. An id that appears
    twice is consumed twice.

    Args:
        repository: DiscountRepository bound to an open session.
        discount_ids: Ids of the discounts applied at checkout.

    Returns:
        The number of usage counters that were incremented.

    Raises:
        NotFoundError: If an id does not exist. Nothing is persisted.
        UsageLimitError: If a capped discount is already at its cap.
            Nothing is persisted.
    """
    discount_ids = list(discount_ids or [])
    if not discount_ids:
        return 0

    incremented = 0
    with unit_of_work(repository, "recording discount usage"):
        for discount_id in discount_ids:
            if repository.increment_usage(discount_id):
                incremented += 1
                continue

            discount = repository.get(discount_id)
            if discount is None:
                raise NotFoundError(f"Discount {discount_id} not found")
            if discount.max_usage > 0:
                raise UsageLimitError(
                    f"Discount {discount_id} has reached its usage limit of {discount.max_usage}"
                )

    logger.info(f"Recorded usage for discounts {discount_ids} ({incremented} capped counters incremented)")
    return incremented
