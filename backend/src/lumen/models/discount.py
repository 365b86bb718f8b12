"""Discount and redemption models read by discount analytics."""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, Float, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship
import enum

from lumen.models.base import Base, enum_values


class DiscountType(enum.Enum):
    """How the discount value is applied."""

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_MONTHS = "free_months"


class Discount(Base):
    """
    Promotional discount.

    Managed by the main application; only the columns analytics reads are
    modelled here.
    """

    __tablename__ = "discounts"

    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=True, unique=True)
    discount_type = Column(SQLEnum(DiscountType, values_callable=enum_values), nullable=False)
    value = Column(Float, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    # Relationships
    redemptions = relationship("DiscountRedemption", back_populates="discount")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Discount(id={self.id}, name={self.name}, type={self.discount_type.value})>"


class DiscountRedemption(Base):
    """One use of a discount by a user, with the amount taken off."""

    __tablename__ = "discount_redemptions"

    discount_id = Column(Uuid(as_uuid=True), ForeignKey("discounts.id"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    subscription_id = Column(Uuid(as_uuid=True), ForeignKey("subscriptions.id"), nullable=True)
    used_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    discount_amount = Column(Float, nullable=False, default=0)

    # Relationships
    discount = relationship("Discount", back_populates="redemptions")

    def __repr__(self) -> str:
        """String representation."""
        return f"<DiscountRedemption(discount_id={self.discount_id}, amount={self.discount_amount})>"
