import logging
from contextlib import contextmanager
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from errors import DiscountError, StoreError
from schema import Discount, DiscountCondition, DiscountProduct
from utils import utcnow

logger = logging.getLogger(__name__)


class DiscountRepository:
    """
    Persistence for discounts on top of a SQLAlchemy session.

    The repository never commits on its own; callers group its calls with
    :func:`unit_of_work`.
    """
    def __init__(self, db):
        self.db = db

    def add(self, discount: Discount) -> Discount:
        self.db.add(discount)
        self.db.flush()
        return discount

    def get(self, discount_id: int):
        return self.db.get(Discount, discount_id)

    def update_fields(self, discount: Discount, fields: dict) -> Discount:
        for key, value in fields.items():
            setattr(discount, key, value)
        discount.updated_at = utcnow()
        self.db.flush()
        return discount

    def replace_conditions(self, discount: Discount, conditions) -> None:
        discount.conditions = [
            DiscountCondition(type=c.kind.value, value=c.encode()) for c in conditions
        ]

    def replace_products(self, discount: Discount, product_ids) -> None:
        discount.products = [DiscountProduct(product_id=pid) for pid in product_ids]

    def delete(self, discount: Discount) -> None:
        self.db.delete(discount)
        self.db.flush()

    def find(self, predicates) -> list:
        """
        Lists the discounts matching every predicate.

        Args:
            predicates: Objects exposing ``clause()``; combined with AND.

        Returns:
            Matching discounts in id order.
        """
        stmt = select(Discount).where(*[p.clause() for p in predicates]).order_by(Discount.id)
        return list(self.db.scalars(stmt).all())

    def increment_usage(self, discount_id: int) -> bool:
        """
        Adds one use to a capped discount that still has room under its cap.

        The check and the increment are a single UPDATE, so concurrent
        callers cannot push usage_count past max_usage.

        Returns:
            True if a row was incremented.
        """
        result = self.db.execute(
            update(Discount)
            .where(
                Discount.id == discount_id,
                Discount.max_usage > 0,
                Discount.usage_count < Discount.max_usage,
            )
            .values(usage_count=Discount.usage_count + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


@contextmanager
def unit_of_work(repository: DiscountRepository, action: str):
    """
    Commits the repository's session when the block succeeds.

    Any failure rolls the whole block back. SQLAlchemy errors are re-raised
    as StoreError; discount errors propagate unchanged.
    """
    try:
        yield repository
        repository.commit()
    except DiscountError:
        repository.rollback()
        raise
    except SQLAlchemyError as e:
        repository.rollback()
        logger.error(f"Store failure while {action}: {e}", exc_info=True)
        raise StoreError(f"{action} failed: {e.__class__.__name__}") from e
