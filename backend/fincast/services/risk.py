from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
import json
import logging
from typing import Any, Sequence

from fincast.models.enums import RiskType, Severity
from fincast.services.text_generation import TextGenerator


logger = logging.getLogger("fincast.risk")

MAX_PROBABILITY = 0.95
CREDIT_REVIEW_DAYS = 30
LIQUIDITY_REVIEW_DAYS = 14
FALLBACK_MITIGATION = "Review risk indicators and implement appropriate controls."

# Strict ">" comparisons, highest tier first.
SEVERITY_THRESHOLDS: tuple[tuple[float, Severity], ...] = (
    (70, Severity.critical),
    (50, Severity.high),
    (30, Severity.medium),
)


@dataclass(frozen=True)
class RiskRule:
    code: str
    condition: Callable[[dict[str, Any]], bool]
    points: int


CREDIT_RISK_RULES: tuple[RiskRule, ...] = (
    RiskRule("overdue_ratio_above_30pct", lambda ind: ind["overdue_ratio"] > 0.3, 40),
    RiskRule("slow_payments_over_45_days", lambda ind: ind["average_payment_days"] > 45, 30),
    RiskRule("outstanding_above_100k", lambda ind: ind["total_outstanding"] > 100_000, 20),
    RiskRule("fewer_than_5_customers", lambda ind: ind["customer_count"] < 5, 10),
)

# Both day thresholds fire below 30 days; kept for parity with the scoring in production.
LIQUIDITY_RISK_RULES: tuple[RiskRule, ...] = (
    RiskRule("under_30_days_of_liquidity", lambda ind: ind["days_of_liquidity"] < 30, 50),
    RiskRule("under_60_days_of_liquidity", lambda ind: ind["days_of_liquidity"] < 60, 30),
    RiskRule("current_ratio_below_1_2", lambda ind: ind["liquidity_ratio"] < 1.2, 20),
)


@dataclass(frozen=True)
class OutstandingInvoice:
    due_date: date
    total_amount: Decimal | float
    customer_id: int | str | None


@dataclass(frozen=True)
class PaymentRecord:
    paid_date: date
    amount: Decimal | float
    invoice_issue_date: date | None = None


@dataclass(frozen=True)
class LiquidityRatios:
    current_ratio: float = 1.5
    quick_ratio: float = 1.2
    operating_cash_flow: float = 10_000
    cash_burn_rate: float = 5_000


@dataclass(frozen=True)
class RiskAssessment:
    type: RiskType
    severity: Severity
    probability: float
    impact: float
    risk_score: int
    description: str
    indicators: dict[str, Any]
    mitigation: str
    review_date: date
    triggered_rules: tuple[str, ...] = ()


def severity_for(risk_score: float) -> Severity:
    for threshold, severity in SEVERITY_THRESHOLDS:
        if risk_score > threshold:
            return severity
    return Severity.low


def score_rules(rules: Sequence[RiskRule], indicators: dict[str, Any]) -> tuple[int, tuple[str, ...]]:
    """Sum the points of every rule whose condition holds. The total is not capped."""
    fired = [rule for rule in rules if rule.condition(indicators)]
    return sum(rule.points for rule in fired), tuple(rule.code for rule in fired)


def average_payment_days(payments: Sequence[PaymentRecord]) -> float:
    days = [
        (payment.paid_date - payment.invoice_issue_date).days
        for payment in payments
        if payment.invoice_issue_date is not None
    ]
    if not days:
        return 0.0
    return sum(days) / len(days)


class RiskScorer:
    def __init__(self, text_generator: TextGenerator | None = None) -> None:
        self._text_generator = text_generator

    def assess_credit_risk(
        self,
        outstanding_invoices: Sequence[OutstandingInvoice],
        payment_history: Sequence[PaymentRecord],
        *,
        as_of: date,
    ) -> RiskAssessment:
        total_outstanding = sum(float(invoice.total_amount) for invoice in outstanding_invoices)
        overdue_amount = sum(
            float(invoice.total_amount) for invoice in outstanding_invoices if invoice.due_date < as_of
        )
        indicators: dict[str, Any] = {
            "total_outstanding": total_outstanding,
            "overdue_amount": overdue_amount,
            "overdue_ratio": overdue_amount / total_outstanding if total_outstanding > 0 else 0.0,
            "average_payment_days": average_payment_days(payment_history),
            "customer_count": len({invoice.customer_id for invoice in outstanding_invoices}),
        }
        risk_score, fired = score_rules(CREDIT_RISK_RULES, indicators)
        return RiskAssessment(
            type=RiskType.credit,
            severity=severity_for(risk_score),
            probability=min(risk_score / 100, MAX_PROBABILITY),
            impact=overdue_amount,
            risk_score=risk_score,
            description=f"Credit risk assessment based on {len(outstanding_invoices)} outstanding invoices",
            indicators=indicators,
            mitigation=self._mitigation(RiskType.credit, indicators),
            review_date=as_of + timedelta(days=CREDIT_REVIEW_DAYS),
            triggered_rules=fired,
        )

    def assess_liquidity_risk(
        self,
        current_cash: float,
        projected_outflows_90d: float,
        liquidity_ratios: LiquidityRatios,
        *,
        as_of: date,
    ) -> RiskAssessment:
        days_of_liquidity = current_cash / max(liquidity_ratios.cash_burn_rate, 1)
        indicators: dict[str, Any] = {
            "current_cash": current_cash,
            "projected_outflows": projected_outflows_90d,
            "liquidity_ratio": liquidity_ratios.current_ratio,
            "quick_ratio": liquidity_ratios.quick_ratio,
            "operating_cash_flow": liquidity_ratios.operating_cash_flow,
            "cash_burn_rate": liquidity_ratios.cash_burn_rate,
            "days_of_liquidity": days_of_liquidity,
        }
        risk_score, fired = score_rules(LIQUIDITY_RISK_RULES, indicators)
        return RiskAssessment(
            type=RiskType.liquidity,
            severity=severity_for(risk_score),
            probability=min(risk_score / 100, MAX_PROBABILITY),
            impact=max(projected_outflows_90d - current_cash, 0.0),
            risk_score=risk_score,
            description=f"Liquidity risk based on {round(days_of_liquidity)} days of remaining liquidity",
            indicators=indicators,
            mitigation=self._mitigation(RiskType.liquidity, indicators),
            review_date=as_of + timedelta(days=LIQUIDITY_REVIEW_DAYS),
            triggered_rules=fired,
        )

    def _mitigation(self, risk_type: RiskType, indicators: dict[str, Any]) -> str:
        if self._text_generator is None:
            return FALLBACK_MITIGATION
        prompt = (
            f"Generate risk mitigation strategies for {risk_type.value} "
            f"with these indicators: {json.dumps(indicators, default=str, sort_keys=True)}"
        )
        try:
            text = self._text_generator.complete(prompt)
        except Exception:
            logger.warning("Mitigation text generation failed for %s; using fallback.", risk_type.value, exc_info=True)
            return FALLBACK_MITIGATION
        if not text or not text.strip():
            return FALLBACK_MITIGATION
        return text.strip()
