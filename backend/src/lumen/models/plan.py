"""Plan model for broadband subscription plans."""
from sqlalchemy import Column, String, Float, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from lumen.models.base import Base, enum_values


class PlanType(enum.Enum):
    """Access technology of the plan."""

    FIBERNET = "fibernet"
    BROADBAND_COPPER = "broadband-copper"


class Plan(Base):
    """
    Broadband subscription plan.

    Only the columns read by analytics are modelled here; plan management
    lives in the main application.
    """

    __tablename__ = "plans"

    name = Column(String(100), nullable=False)
    plan_type = Column(SQLEnum(PlanType, values_callable=enum_values), nullable=False, default=PlanType.FIBERNET)
    monthly_price = Column(Float, nullable=False, default=0)
    popularity_rating = Column(Float, nullable=True)  # 0-5 star average
    active = Column(Boolean, nullable=False, default=True, index=True)

    # Relationships
    subscriptions = relationship("Subscription", back_populates="plan")

    def __repr__(self) -> str:
        """String representation."""
        return f"<Plan(id={self.id}, name={self.name}, type={self.plan_type.value})>"
