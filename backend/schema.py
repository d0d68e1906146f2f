from enum import Enum, IntEnum
from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from base import Base, TimestampMixin


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"   # percent off the running amount
    FIXED = "FIXED"             # flat amount off
    THRESHOLD = "THRESHOLD"     # flat amount off once a minimum spend is met
    BOGO = "BOGO"               # buy one, get one free
    MULTI_ITEM = "MULTI_ITEM"   # every second unit at a reduced rate


class ConditionType(str, Enum):
    CART_TOTAL = "CART_TOTAL"
    MEMBERSHIP_LEVEL = "MEMBERSHIP_LEVEL"
    PRODUCT_CATEGORY = "PRODUCT_CATEGORY"
    MIN_QUANTITY = "MIN_QUANTITY"


class DiscountPriority(IntEnum):
    """Named precedence levels; lower numbers are applied first."""
    HIGH = 1
    MEDIUM = 2
    LOW = 3


class Discount(TimestampMixin, Base):
    __tablename__ = 'discounts'
    __table_args__ = (
        CheckConstraint('start_date <= end_date', name='ck_discounts_window'),
        CheckConstraint('max_usage >= 0 AND usage_count >= 0', name='ck_discounts_usage_non_negative'),
        CheckConstraint('max_usage = 0 OR usage_count <= max_usage', name='ck_discounts_usage_cap'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False)
    value = Column(Float, nullable=False, default=0.0)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    priority = Column(Integer, nullable=False, default=int(DiscountPriority.MEDIUM), index=True)
    stackable = Column(Boolean, nullable=False, default=False)
    max_usage = Column(Integer, nullable=False, default=0)  # 0 = unlimited
    usage_count = Column(Integer, nullable=False, default=0)

    conditions = relationship(
        'DiscountCondition',
        back_populates='discount',
        cascade='all, delete-orphan',
        order_by='DiscountCondition.id',
        lazy='selectin',
    )
    products = relationship(
        'DiscountProduct',
        back_populates='discount',
        cascade='all, delete-orphan',
        order_by='DiscountProduct.id',
        lazy='selectin',
    )

    @property
    def product_ids(self):
        return [p.product_id for p in self.products]

    @property
    def exhausted(self) -> bool:
        return self.max_usage > 0 and self.usage_count >= self.max_usage

    def to_dict(self):
        data = super().to_dict()
        data['conditions'] = [c.to_dict() for c in self.conditions]
        data['product_ids'] = self.product_ids
        return data

    def __repr__(self):
        return f"<Discount id={self.id} name={self.name!r} priority={self.priority} stackable={self.stackable}>"


class DiscountCondition(TimestampMixin, Base):
    __tablename__ = 'discount_conditions'
    id = Column(Integer, primary_key=True, autoincrement=True)
    discount_id = Column(Integer, ForeignKey('discounts.id', ondelete='CASCADE'), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    value = Column(String(255), nullable=False)

    discount = relationship('Discount', back_populates='conditions')

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'value': self.value,
        }


class DiscountProduct(TimestampMixin, Base):
    __tablename__ = 'discount_products'
    id = Column(Integer, primary_key=True, autoincrement=True)
    discount_id = Column(Integer, ForeignKey('discounts.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(Integer, nullable=False, index=True)

    discount = relationship('Discount', back_populates='products')
