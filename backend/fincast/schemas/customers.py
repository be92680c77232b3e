from __future__ import annotations

import datetime

from fincast.schemas.common import ORMModel


class CustomerMetricsOut(ORMModel):
    total_revenue: float
    avg_order_value: float
    purchase_frequency: int
    days_since_last_purchase: int
    days_since_first_purchase: int
    contact_frequency: int
    is_active: bool


class NextPurchaseOut(ORMModel):
    date: datetime.date
    amount: float
    confidence: float


class CustomerBehaviorResponse(ORMModel):
    customer_id: int | str
    churn_probability: float
    value_segment: str
    next_purchase: NextPurchaseOut
    recommended_actions: list[str]
    metrics: CustomerMetricsOut
    factors: list[dict[str, float | str]]
