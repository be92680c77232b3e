from __future__ import annotations

from dataclasses import asdict, replace
from datetime import date, timedelta
import logging
from typing import Any, Literal

from fincast.core.config import Settings, get_settings
from fincast.core.errors import CustomerNotFoundError, InsufficientHistoryError, InvalidSimulationParamsError
from fincast.models.enums import (
    CashEventSource,
    ExpenseStatus,
    ForecastType,
    InvoiceStatus,
    QueryIntent,
    TransactionKind,
)
from fincast.services import customer_behavior, monte_carlo, scenarios, trend
from fincast.services.aggregation import TimeSeriesPoint, TransactionRecord, add_months, aggregate, period_start
from fincast.services.customer_behavior import ChurnResult
from fincast.services.data_reader import DateRange, FinancialDataReader
from fincast.services.financial_summary import (
    budget_performance,
    cash_flow_outlook,
    current_cash_position,
    expense_summary,
    financial_summary,
    projected_outflows,
)
from fincast.services.forecast import Forecast
from fincast.services.monte_carlo import CancelFlag, CashEvent, RandomSource
from fincast.services.query_router import QueryIntentRouter, QueryResult
from fincast.services.result_sink import NullResultSink, ResultSink
from fincast.services.risk import LiquidityRatios, OutstandingInvoice, RiskAssessment, RiskScorer
from fincast.services.text_generation import TextGenerator
from fincast.utils.decimal_math import format_money


logger = logging.getLogger("fincast.analytics")

ForecastPeriod = Literal["MONTHLY", "QUARTERLY"]

MONTHS_PER_STEP: dict[str, int] = {"MONTHLY": 1, "QUARTERLY": 3}
QUERY_LOOKBACK_MONTHS = 12
QUERY_FORECAST_PERIODS = 3
QUERY_OUTLOOK_MONTHS = 3


def _require_periods(periods: int) -> None:
    if periods < 1:
        raise InvalidSimulationParamsError(f"periods must be >= 1, got {periods}.")


class FinancialAnalyticsService:
    """Tenant-scoped entry point tying the data reader to the forecasting and scoring engine.

    Every produced forecast and risk assessment is handed to the result sink.
    Sink failures never fail the computation.
    """

    def __init__(
        self,
        tenant_id: int,
        *,
        reader: FinancialDataReader,
        text_generator: TextGenerator | None = None,
        sink: ResultSink | None = None,
        rng: RandomSource | None = None,
        settings: Settings | None = None,
        today: date | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.reader = reader
        self.sink = sink if sink is not None else NullResultSink()
        self.rng = rng
        self.settings = settings or get_settings()
        self.risk_scorer = RiskScorer(text_generator)
        self._today = today
        self.router = QueryIntentRouter(
            {
                QueryIntent.revenue_analysis: self._revenue_analysis,
                QueryIntent.expense_breakdown: self._expense_breakdown,
                QueryIntent.cash_flow_status: self._cash_flow_status,
                QueryIntent.budget_performance: self._budget_analysis,
                QueryIntent.financial_forecast: self._forecast_summary,
                QueryIntent.risk_assessment: self._risk_summary,
            },
            sink=self.sink,
        )

    @property
    def today(self) -> date:
        return self._today or date.today()

    # ---- forecasting ----

    def generate_revenue_forecast(self, periods: int = 6, period: ForecastPeriod = "MONTHLY") -> list[Forecast]:
        _require_periods(periods)
        if period not in MONTHS_PER_STEP:
            raise InvalidSimulationParamsError(f"Unsupported forecast period {period!r}.")
        history = DateRange.trailing_months(self.today, self.settings.revenue_history_months)
        records = self.reader.get_transactions(self.tenant_id, history, kind=TransactionKind.income)
        series = aggregate(records, "month")
        forecasts = self._trend_forecasts(series, periods, MONTHS_PER_STEP[period])
        for forecast in forecasts:
            self._persist_forecast(ForecastType.revenue, forecast, period=period)
        logger.info("Generated %s revenue forecasts for tenant %s.", len(forecasts), self.tenant_id)
        return forecasts

    def generate_expense_forecast(self, category: str | None = None, periods: int = 6) -> list[Forecast]:
        _require_periods(periods)
        history = DateRange.trailing_months(self.today, self.settings.expense_history_months)
        expenses = self.reader.get_expenses(
            self.tenant_id,
            history,
            statuses=(ExpenseStatus.approved, ExpenseStatus.paid),
        )
        # Expense magnitudes are forecast as positive values.
        records = [
            TransactionRecord(date=row.date, amount=row.amount, category=row.category)
            for row in expenses
            if category is None or row.category == category
        ]
        series = aggregate(records, "month")
        forecasts = self._trend_forecasts(series, periods, 1)
        for forecast in forecasts:
            self._persist_forecast(ForecastType.expense, forecast)
        logger.info(
            "Generated %s expense forecasts for tenant %s (category=%s).",
            len(forecasts),
            self.tenant_id,
            category or "all",
        )
        return forecasts

    def generate_cash_flow_prediction(
        self,
        periods: int = 12,
        *,
        cancel_event: CancelFlag | None = None,
    ) -> list[Forecast]:
        _require_periods(periods)
        today = self.today
        history = DateRange.trailing_months(today, self.settings.cash_flow_history_months)
        series = aggregate(self.reader.get_transactions(self.tenant_id, history), "month")
        upcoming = self.reader.get_invoices(self.tenant_id, statuses=(InvoiceStatus.sent,), due_after=today)
        planned = self.reader.get_expenses(self.tenant_id, None, statuses=(ExpenseStatus.pending,))
        inflows = [
            CashEvent(date=row.due_date, amount=row.total_amount, source=CashEventSource.invoice) for row in upcoming
        ]
        outflows = [
            CashEvent(date=row.date, amount=row.amount, source=CashEventSource.confirmed)
            for row in planned
            if row.date >= today
        ]

        forecasts: list[Forecast] = []
        for step in range(1, periods + 1):
            simulated = monte_carlo.simulate(
                series,
                inflows,
                outflows,
                add_months(today, step),
                self.settings.monte_carlo_trials,
                rng=self.rng,
                cancel_event=cancel_event,
            )
            forecast = replace(simulated, scenarios=scenarios.expand(simulated))
            self._persist_forecast(ForecastType.cash_flow, forecast)
            forecasts.append(forecast)
        logger.info("Generated %s cash flow predictions for tenant %s.", len(forecasts), self.tenant_id)
        return forecasts

    def _persist_forecast(self, forecast_type: ForecastType, forecast: Forecast, *, period: str = "MONTHLY") -> None:
        try:
            self.sink.persist_forecast(self.tenant_id, forecast_type, forecast, period=period)
        except Exception:
            logger.exception("Failed to persist %s forecast for tenant %s.", forecast_type.value, self.tenant_id)

    def _trend_forecasts(self, series: list[TimeSeriesPoint], periods: int, months_per_step: int) -> list[Forecast]:
        if len(series) < trend.MIN_HISTORY_POINTS:
            raise InsufficientHistoryError(trend.MIN_HISTORY_POINTS, len(series))
        last_period_date = period_start(series[-1].period_key)
        forecasts: list[Forecast] = []
        for step in range(1, periods + 1):
            target_date = add_months(self.today, step * months_per_step)
            target_index = trend.target_index_for(len(series), last_period_date, target_date)
            projected = trend.forecast(series, target_index, target_date=target_date)
            forecasts.append(replace(projected, scenarios=scenarios.expand(projected)))
        return forecasts

    # ---- risk ----

    def perform_risk_assessment(self) -> list[RiskAssessment]:
        today = self.today
        outstanding = self.reader.get_invoices(
            self.tenant_id,
            statuses=(InvoiceStatus.sent, InvoiceStatus.overdue),
        )
        credit = self.risk_scorer.assess_credit_risk(
            [
                OutstandingInvoice(due_date=row.due_date, total_amount=row.total_amount, customer_id=row.customer_id)
                for row in outstanding
            ],
            self.reader.get_payments(self.tenant_id),
            as_of=today,
        )

        horizon = self.settings.liquidity_horizon_days
        cash = current_cash_position(self.reader.get_transactions(self.tenant_id, None))
        outflows = projected_outflows(
            self.reader.get_expenses(self.tenant_id, None, statuses=(ExpenseStatus.pending,)),
            self.reader.get_budgets(self.tenant_id, DateRange(today, today + timedelta(days=horizon))),
            as_of=today,
            days=horizon,
        )
        liquidity = self.risk_scorer.assess_liquidity_risk(
            float(cash),
            float(outflows),
            LiquidityRatios(),
            as_of=today,
        )

        assessments = [credit, liquidity]
        for assessment in assessments:
            try:
                self.sink.persist_risk_assessment(self.tenant_id, assessment)
            except Exception:
                logger.exception(
                    "Failed to persist %s risk assessment for tenant %s.", assessment.type.value, self.tenant_id
                )
        logger.info(
            "Risk assessment for tenant %s: credit=%s liquidity=%s.",
            self.tenant_id,
            credit.severity.value,
            liquidity.severity.value,
        )
        return assessments

    # ---- customers ----

    def analyze_customer_behavior(self, customer_id: int) -> ChurnResult:
        history = self.reader.get_customer_history(self.tenant_id, customer_id)
        if history is None:
            raise CustomerNotFoundError(f"Customer {customer_id} not found.")
        return customer_behavior.score(history, as_of=self.today)

    # ---- natural language queries ----

    def process_query(self, query: str) -> QueryResult:
        return self.router.route(query)

    def _lookback(self) -> DateRange:
        return DateRange.trailing_months(self.today, QUERY_LOOKBACK_MONTHS)

    def _money(self, value: Any) -> str:
        return format_money(value, self.settings.currency)

    def _revenue_analysis(self, query: str) -> dict[str, Any]:
        window = self._lookback()
        summary = financial_summary(
            self.reader.get_transactions(self.tenant_id, window),
            self.reader.get_expenses(self.tenant_id, window),
            self.reader.get_invoices(self.tenant_id, statuses=(InvoiceStatus.sent, InvoiceStatus.overdue)),
            self.reader.get_budgets(self.tenant_id, window),
        )
        return {
            "type": QueryIntent.revenue_analysis.value,
            "data": asdict(summary),
            "message": (
                f"Current total revenue is {self._money(summary.total_revenue)} "
                f"with a profit margin of {summary.profit_margin:.1f}%."
            ),
        }

    def _expense_breakdown(self, query: str) -> dict[str, Any]:
        summary = expense_summary(self.reader.get_expenses(self.tenant_id, self._lookback()))
        return {
            "type": QueryIntent.expense_breakdown.value,
            "data": asdict(summary),
            "message": (
                f"Total expenses are {self._money(summary.total_amount)} "
                f"across {summary.total_count} transactions."
            ),
        }

    def _cash_flow_status(self, query: str) -> dict[str, Any]:
        history = DateRange.trailing_months(self.today, QUERY_LOOKBACK_MONTHS)
        outlook = cash_flow_outlook(
            self.reader.get_transactions(self.tenant_id, history),
            QUERY_OUTLOOK_MONTHS,
            as_of=self.today,
        )
        next_month = self._money(outlook[0].net_cash_flow) if outlook else "N/A"
        return {
            "type": QueryIntent.cash_flow_status.value,
            "data": [asdict(point) for point in outlook],
            "message": f"Next month's projected cash flow is {next_month}.",
        }

    def _budget_analysis(self, query: str) -> dict[str, Any]:
        performance = budget_performance(
            self.reader.get_budgets(self.tenant_id, None),
            self.reader.get_expenses(self.tenant_id, None),
        )
        utilization = f"{performance[0].utilization_percentage:.1f}" if performance else "N/A"
        return {
            "type": QueryIntent.budget_performance.value,
            "data": [asdict(item) for item in performance],
            "message": f"Budget utilization is {utilization}%.",
        }

    def _forecast_summary(self, query: str) -> dict[str, Any]:
        forecasts = self.generate_revenue_forecast(QUERY_FORECAST_PERIODS)
        return {
            "type": QueryIntent.financial_forecast.value,
            "data": [asdict(forecast) for forecast in forecasts],
            "message": f"Revenue forecast for next month: {self._money(forecasts[0].predicted_value)}.",
        }

    def _risk_summary(self, query: str) -> dict[str, Any]:
        risks = self.perform_risk_assessment()
        return {
            "type": QueryIntent.risk_assessment.value,
            "data": [asdict(risk) for risk in risks],
            "message": f"Found {len(risks)} financial risks requiring attention.",
        }
