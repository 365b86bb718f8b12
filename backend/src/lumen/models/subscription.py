"""Subscription model for customer subscriptions to plans."""
from sqlalchemy import Column, Float, String, Enum as SQLEnum, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import enum

from lumen.models.base import Base, enum_values


class SubscriptionStatus(enum.Enum):
    """Subscription lifecycle status."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    TERMINATED = "terminated"
    PAUSED = "paused"


class Subscription(Base):
    """
    Customer subscription to a broadband plan.

    Pricing is denormalised onto the subscription at signup, after discounts.
    """

    __tablename__ = "subscriptions"

    user_id = Column(String, nullable=False, index=True)
    plan_id = Column(Uuid(as_uuid=True), ForeignKey("plans.id"), nullable=False, index=True)
    # Stored by value ("active"), as written by the subscription service
    status = Column(
        SQLEnum(SubscriptionStatus, values_callable=enum_values),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
        index=True,
    )
    final_price = Column(Float, nullable=False, default=0)  # Price actually charged
    discount_applied = Column(Float, nullable=False, default=0)

    # Relationships
    plan = relationship("Plan", back_populates="subscriptions")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Subscription(id={self.id}, user_id={self.user_id}, status={self.status.value})>"
