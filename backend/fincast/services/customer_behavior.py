from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from math import ceil
from typing import Sequence


NEVER_PURCHASED_DAYS = 999
MAX_RECOMMENDATIONS = 4

FALLBACK_NEXT_PURCHASE_DAYS = 60
FALLBACK_NEXT_PURCHASE_AMOUNT = 5000.0
FALLBACK_NEXT_PURCHASE_CONFIDENCE = 0.5
MAX_NEXT_PURCHASE_CONFIDENCE = 0.9

CUSTOMER_FACTORS: tuple[dict[str, float | str], ...] = (
    {"feature": "Purchase Recency", "impact": 0.35},
    {"feature": "Order Frequency", "impact": 0.25},
    {"feature": "Average Order Value", "impact": 0.20},
    {"feature": "Customer Age", "impact": 0.15},
    {"feature": "Engagement Level", "impact": 0.05},
)


@dataclass(frozen=True)
class CustomerInvoice:
    issue_date: date
    total_amount: Decimal | float


@dataclass(frozen=True)
class ContactEvent:
    date: date
    channel: str = "other"


@dataclass(frozen=True)
class CustomerHistory:
    customer_id: int | str
    invoices: tuple[CustomerInvoice, ...] = ()
    contact_history: tuple[ContactEvent, ...] = ()


@dataclass(frozen=True)
class CustomerMetrics:
    total_revenue: float
    avg_order_value: float
    purchase_frequency: int
    days_since_last_purchase: int
    days_since_first_purchase: int
    contact_frequency: int

    @property
    def is_active(self) -> bool:
        return self.days_since_last_purchase < 90


@dataclass(frozen=True)
class NextPurchasePrediction:
    date: date
    amount: float
    confidence: float


@dataclass(frozen=True)
class ChurnResult:
    customer_id: int | str
    churn_probability: float
    value_segment: str
    next_purchase: NextPurchasePrediction
    recommended_actions: list[str]
    metrics: CustomerMetrics
    factors: list[dict[str, float | str]] = field(default_factory=list)


def customer_metrics(customer: CustomerHistory, *, as_of: date) -> CustomerMetrics:
    invoices = sorted(customer.invoices, key=lambda row: row.issue_date)
    total_revenue = sum(float(row.total_amount) for row in invoices)
    return CustomerMetrics(
        total_revenue=total_revenue,
        avg_order_value=total_revenue / len(invoices) if invoices else 0.0,
        purchase_frequency=len(invoices),
        days_since_last_purchase=(as_of - invoices[-1].issue_date).days if invoices else NEVER_PURCHASED_DAYS,
        days_since_first_purchase=(as_of - invoices[0].issue_date).days if invoices else 0,
        contact_frequency=len(customer.contact_history),
    )


def churn_probability(metrics: CustomerMetrics) -> float:
    score = 0.0
    # Recency and frequency each contribute through a single branch.
    if metrics.days_since_last_purchase > 180:
        score += 0.4
    elif metrics.days_since_last_purchase > 90:
        score += 0.2

    if metrics.purchase_frequency == 1:
        score += 0.3
    elif metrics.purchase_frequency < 3:
        score += 0.1

    if metrics.avg_order_value < 1000:
        score += 0.2
    if metrics.contact_frequency == 0:
        score += 0.1
    return min(1.0, score)


def value_segment(metrics: CustomerMetrics) -> str:
    if metrics.total_revenue > 50_000 and metrics.purchase_frequency > 10:
        return "Champion"
    if metrics.total_revenue > 25_000 and metrics.purchase_frequency > 5:
        return "Loyal Customer"
    if metrics.total_revenue > 10_000:
        return "Potential Loyalist"
    if metrics.purchase_frequency > 3:
        return "New Customer"
    return "At Risk"


def predict_next_purchase(invoices: Sequence[CustomerInvoice], *, as_of: date) -> NextPurchasePrediction:
    if len(invoices) < 2:
        return NextPurchasePrediction(
            date=as_of + timedelta(days=FALLBACK_NEXT_PURCHASE_DAYS),
            amount=FALLBACK_NEXT_PURCHASE_AMOUNT,
            confidence=FALLBACK_NEXT_PURCHASE_CONFIDENCE,
        )

    ordered = sorted(invoices, key=lambda row: row.issue_date)
    intervals = [(later.issue_date - earlier.issue_date).days for earlier, later in zip(ordered, ordered[1:])]
    avg_interval = sum(intervals) / len(intervals)
    avg_amount = sum(float(row.total_amount) for row in ordered) / len(ordered)
    return NextPurchasePrediction(
        date=ordered[-1].issue_date + timedelta(days=ceil(avg_interval)),
        amount=avg_amount,
        confidence=min(MAX_NEXT_PURCHASE_CONFIDENCE, len(intervals) / 10),
    )


def recommended_actions(probability: float, segment: str, metrics: CustomerMetrics) -> list[str]:
    actions: list[str] = []
    if probability > 0.7:
        actions.extend(
            [
                "High churn risk - initiate retention campaign",
                "Schedule personal consultation call",
                "Offer loyalty discount or special promotion",
            ]
        )
    elif probability > 0.4:
        actions.extend(
            [
                "Medium churn risk - increase engagement",
                "Send personalized product recommendations",
            ]
        )

    if segment == "Champion":
        actions.extend(["VIP treatment and exclusive offers", "Request referrals and testimonials"])
    elif segment == "At Risk":
        actions.extend(["Re-engagement campaign", "Survey to understand concerns"])

    if metrics.days_since_last_purchase > 90:
        actions.append("Win-back campaign with special offer")
    return actions[:MAX_RECOMMENDATIONS]


def score(customer: CustomerHistory, *, as_of: date | None = None) -> ChurnResult:
    """RFM-style churn, segment and next-purchase analysis for one customer."""
    as_of = as_of or date.today()
    metrics = customer_metrics(customer, as_of=as_of)
    probability = churn_probability(metrics)
    segment = value_segment(metrics)
    return ChurnResult(
        customer_id=customer.customer_id,
        churn_probability=probability,
        value_segment=segment,
        next_purchase=predict_next_purchase(customer.invoices, as_of=as_of),
        recommended_actions=recommended_actions(probability, segment, metrics),
        metrics=metrics,
        factors=[dict(row) for row in CUSTOMER_FACTORS],
    )
