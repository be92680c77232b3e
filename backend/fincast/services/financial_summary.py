from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Literal, Sequence

from fincast.models.enums import ExpenseStatus, TransactionKind
from fincast.services.aggregation import TransactionRecord, add_months, bucket_key
from fincast.services.data_reader import BudgetRecord, ExpenseRecord, InvoiceRecord
from fincast.utils.decimal_math import money, pct, safe_pct


BudgetStatus = Literal["ON_TRACK", "NEAR_LIMIT", "OVER_BUDGET"]

NEAR_LIMIT_PCT = 80
OVER_BUDGET_PCT = 100
SETTLED_EXPENSE_STATUSES = (ExpenseStatus.approved, ExpenseStatus.paid)

OUTLOOK_MAX_CONFIDENCE = 0.9
OUTLOOK_MIN_CONFIDENCE = 0.3
OUTLOOK_CONFIDENCE_DECAY = 0.1


@dataclass(frozen=True)
class FinancialSummary:
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal
    cash_flow: Decimal
    outstanding_invoices: Decimal
    budget_utilization: Decimal


@dataclass(frozen=True)
class ExpenseSummary:
    total_amount: Decimal
    total_count: int
    average_amount: Decimal
    by_category: list[dict[str, Any]] = field(default_factory=list)
    by_status: list[dict[str, Any]] = field(default_factory=list)
    monthly_trend: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class BudgetPerformance:
    budget_id: int | None
    budget_name: str
    budget_amount: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal
    utilization_percentage: Decimal
    status: BudgetStatus


@dataclass(frozen=True)
class CashFlowOutlookPoint:
    month: str
    predicted_inflow: Decimal
    predicted_outflow: Decimal
    net_cash_flow: Decimal
    confidence: float


def _is_settled(expense: ExpenseRecord) -> bool:
    return ExpenseStatus(expense.status) in SETTLED_EXPENSE_STATUSES


def _income_total(transactions: Sequence[TransactionRecord]) -> Decimal:
    return money(
        sum((money(tx.amount) for tx in transactions if TransactionKind(tx.kind) == TransactionKind.income), Decimal("0"))
    )


def _expense_total(transactions: Sequence[TransactionRecord]) -> Decimal:
    return money(
        sum(
            (abs(money(tx.amount)) for tx in transactions if TransactionKind(tx.kind) == TransactionKind.expense),
            Decimal("0"),
        )
    )


def financial_summary(
    transactions: Sequence[TransactionRecord],
    expenses: Sequence[ExpenseRecord],
    outstanding_invoices: Sequence[InvoiceRecord],
    budgets: Sequence[BudgetRecord],
) -> FinancialSummary:
    """Revenue, expenses and profitability over whatever window the inputs cover.

    Expenses combine expense-kind transactions with approved or paid expense
    claims. Cash flow is reported as net profit.
    """
    total_revenue = _income_total(transactions)
    settled = sum((money(row.amount) for row in expenses if _is_settled(row)), Decimal("0"))
    total_expenses = money(_expense_total(transactions) + settled)
    net_profit = money(total_revenue - total_expenses)
    total_budget = sum((money(row.budget_amount) for row in budgets), Decimal("0"))
    total_budget_spent = sum((money(row.spent_amount) for row in budgets), Decimal("0"))
    return FinancialSummary(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_profit=net_profit,
        profit_margin=pct(safe_pct(net_profit, total_revenue)) if total_revenue > 0 else pct(0),
        cash_flow=net_profit,
        outstanding_invoices=money(sum((money(row.total_amount) for row in outstanding_invoices), Decimal("0"))),
        budget_utilization=pct(safe_pct(total_budget_spent, total_budget)),
    )


def expense_summary(expenses: Sequence[ExpenseRecord]) -> ExpenseSummary:
    settled = [row for row in expenses if _is_settled(row)]
    total_amount = money(sum((money(row.amount) for row in settled), Decimal("0")))
    total_count = len(settled)

    by_category: dict[str, list[Decimal]] = defaultdict(list)
    by_month: dict[str, list[Decimal]] = defaultdict(list)
    for row in settled:
        by_category[row.category or "Uncategorized"].append(money(row.amount))
        by_month[bucket_key(row.date, "month")].append(money(row.amount))

    # Status breakdown covers every status, not only settled claims.
    by_status: dict[str, list[Decimal]] = defaultdict(list)
    for row in expenses:
        by_status[ExpenseStatus(row.status).value].append(money(row.amount))

    def _rows(groups: dict[str, list[Decimal]], label: str) -> list[dict[str, Any]]:
        return [
            {label: key, "amount": money(sum(amounts, Decimal("0"))), "count": len(amounts)}
            for key, amounts in sorted(groups.items())
        ]

    return ExpenseSummary(
        total_amount=total_amount,
        total_count=total_count,
        average_amount=money(total_amount / total_count) if total_count else money(0),
        by_category=_rows(by_category, "category"),
        by_status=_rows(by_status, "status"),
        monthly_trend=_rows(by_month, "month"),
    )


def budget_status(utilization_pct: Decimal | float) -> BudgetStatus:
    if utilization_pct > OVER_BUDGET_PCT:
        return "OVER_BUDGET"
    if utilization_pct > NEAR_LIMIT_PCT:
        return "NEAR_LIMIT"
    return "ON_TRACK"


def budget_performance(
    budgets: Sequence[BudgetRecord],
    expenses: Sequence[ExpenseRecord],
) -> list[BudgetPerformance]:
    """Utilization per budget from the approved or paid expenses booked against it."""
    spent_by_budget: dict[int, Decimal] = defaultdict(lambda: Decimal("0"))
    for row in expenses:
        if row.budget_id is not None and _is_settled(row):
            spent_by_budget[row.budget_id] += money(row.amount)

    items: list[BudgetPerformance] = []
    for budget in budgets:
        budget_amount = money(budget.budget_amount)
        spent = money(spent_by_budget.get(budget.id, Decimal("0"))) if budget.id is not None else money(0)
        utilization = pct(safe_pct(spent, budget_amount))
        items.append(
            BudgetPerformance(
                budget_id=budget.id,
                budget_name=budget.name,
                budget_amount=budget_amount,
                spent_amount=spent,
                remaining_amount=money(budget_amount - spent),
                utilization_percentage=utilization,
                status=budget_status(utilization),
            )
        )
    return items


def current_cash_position(transactions: Sequence[TransactionRecord]) -> Decimal:
    """All-time income minus all-time expenses."""
    return money(_income_total(transactions) - _expense_total(transactions))


def projected_outflows(
    expenses: Sequence[ExpenseRecord],
    budgets: Sequence[BudgetRecord],
    *,
    as_of: date,
    days: int,
) -> Decimal:
    """Pending expenses due within ``days`` plus the prorated spend of every active budget.

    A budget's remaining amount is spread evenly over its remaining days;
    budgets ending today contribute nothing.
    """
    horizon_end = as_of + timedelta(days=days)
    pending = sum(
        (
            money(row.amount)
            for row in expenses
            if ExpenseStatus(row.status) == ExpenseStatus.pending and row.date <= horizon_end
        ),
        Decimal("0"),
    )

    budget_outflows = Decimal("0")
    for budget in budgets:
        if budget.end_date < as_of or budget.start_date > horizon_end:
            continue
        remaining_days = (budget.end_date - as_of).days
        daily_budget = money(budget.budget_amount) / Decimal(max(remaining_days, 1))
        budget_outflows += daily_budget * Decimal(min(days, remaining_days))

    return money(pending + budget_outflows)


def _growth_rate(monthly: list[tuple[Decimal, Decimal]]) -> Decimal:
    if len(monthly) < 2:
        return Decimal("0")
    first_in, first_out = monthly[0]
    last_in, last_out = monthly[-1]
    initial = first_in - first_out
    if initial == 0:
        return Decimal("0")
    return ((last_in - last_out) - initial) / abs(initial)


def cash_flow_outlook(
    transactions: Sequence[TransactionRecord],
    months: int,
    *,
    as_of: date,
) -> list[CashFlowOutlookPoint]:
    """Average monthly inflow and outflow projected forward with a first-to-last growth rate.

    Outflows grow at half the inflow rate. Confidence starts at 0.8 for the
    next month and decays by 0.1 per month down to 0.3.
    """
    flows: dict[str, list[Decimal]] = defaultdict(lambda: [Decimal("0"), Decimal("0")])
    for tx in transactions:
        bucket = flows[bucket_key(tx.date, "month")]
        if TransactionKind(tx.kind) == TransactionKind.income:
            bucket[0] += money(tx.amount)
        else:
            bucket[1] += abs(money(tx.amount))

    monthly = [(flows[key][0], flows[key][1]) for key in sorted(flows)]
    if monthly:
        avg_inflow = sum((row[0] for row in monthly), Decimal("0")) / len(monthly)
        avg_outflow = sum((row[1] for row in monthly), Decimal("0")) / len(monthly)
    else:
        avg_inflow = avg_outflow = Decimal("0")
    growth = _growth_rate(monthly)

    month_start = as_of.replace(day=1)
    points: list[CashFlowOutlookPoint] = []
    for step in range(1, months + 1):
        predicted_inflow = money(avg_inflow * (1 + growth * step / 12))
        predicted_outflow = money(avg_outflow * (1 + growth * Decimal("0.5") * step / 12))
        points.append(
            CashFlowOutlookPoint(
                month=bucket_key(add_months(month_start, step), "month"),
                predicted_inflow=predicted_inflow,
                predicted_outflow=predicted_outflow,
                net_cash_flow=money(predicted_inflow - predicted_outflow),
                confidence=round(
                    max(OUTLOOK_MAX_CONFIDENCE - step * OUTLOOK_CONFIDENCE_DECAY, OUTLOOK_MIN_CONFIDENCE), 2
                ),
            )
        )
    return points
