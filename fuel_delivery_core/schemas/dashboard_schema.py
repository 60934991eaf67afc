"""
Pydantic schemas for the tenant dashboard.
"""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from ..constants import DashboardPeriod
from .order_schema import OrderRead


class OrderStatistics(BaseModel):
    period: DashboardPeriod
    date_from: datetime
    total: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)


class FleetStatistics(BaseModel):
    total_trucks: int = 0
    active_trucks: int = 0
    trucks_in_use: int = 0
    total_capacity_l: int = 0
    used_capacity_l: int = 0
    utilization_percent: float = 0.0


class RecentActivity(BaseModel):
    orders: List[OrderRead] = Field(default_factory=list)
