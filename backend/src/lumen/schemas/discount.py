"""Pydantic schemas for discount performance analytics."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DiscountPerformance(BaseModel):
    """Redemptions of one discount within the window."""

    discount_id: UUID
    discount_name: str
    code: Optional[str] = None
    total_usage: int = Field(default=0, description="Redemptions in the window")
    total_discount_amount: float = 0
    average_discount_amount: float = 0


class DiscountAnalytics(BaseModel):
    """Discounts ranked by redemptions, most used first."""

    start_date: datetime
    end_date: datetime
    discounts: list[DiscountPerformance] = Field(default_factory=list)
