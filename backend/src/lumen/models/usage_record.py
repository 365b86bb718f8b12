"""Usage record model for per-period data consumption."""
from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import relationship

from lumen.models.base import Base


class UsageRecord(Base):
    """
    Data usage of one user over one billing period.

    usage_percentage is the share of the plan's data quota consumed.
    """

    __tablename__ = "usage_records"

    user_id = Column(String, nullable=False, index=True)
    plan_id = Column(Uuid(as_uuid=True), ForeignKey("plans.id"), nullable=True, index=True)
    period_start = Column(DateTime, nullable=False)
    period_end = Column(DateTime, nullable=False)
    total_used_gb = Column(Float, nullable=False, default=0)
    usage_percentage = Column(Float, nullable=False, default=0)

    # Relationships
    plan = relationship("Plan")

    __table_args__ = (
        Index("ix_usage_records_period", "period_start", "period_end"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<UsageRecord(user_id={self.user_id}, used={self.total_used_gb}GB)>"
