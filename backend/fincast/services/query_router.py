from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
import logging
import time
from typing import Any

from fincast.models.enums import QueryIntent
from fincast.services.result_sink import ResultSink


logger = logging.getLogger("fincast.query_router")

QueryHandler = Callable[[str], dict[str, Any]]

# Evaluated top to bottom; the first intent with a matching keyword wins.
INTENT_KEYWORDS: tuple[tuple[QueryIntent, tuple[str, ...]], ...] = (
    (QueryIntent.revenue_analysis, ("revenue", "income", "sales")),
    (QueryIntent.expense_breakdown, ("expense", "cost", "spending")),
    (QueryIntent.cash_flow_status, ("cash flow", "liquidity")),
    (QueryIntent.budget_performance, ("budget",)),
    (QueryIntent.financial_forecast, ("forecast", "predict")),
    (QueryIntent.risk_assessment, ("risk",)),
)

GENERAL_HELP_MESSAGE = (
    "I can help you with revenue analysis, expense breakdowns, cash flow status, "
    "budget performance, forecasting, and risk assessments. What would you like to know?"
)


@dataclass(frozen=True)
class QueryResult:
    query: str
    intent: str
    response: dict[str, Any]
    processing_time_ms: float
    is_successful: bool


def classify_intent(query: str) -> QueryIntent:
    lowered = query.lower()
    for intent, keywords in INTENT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return QueryIntent.general


def general_response(query: str) -> dict[str, Any]:
    return {"type": QueryIntent.general.value, "message": GENERAL_HELP_MESSAGE, "data": None}


class QueryIntentRouter:
    """Keyword intent classification plus dispatch to one handler per intent.

    ``route`` is a boundary: handler failures come back as an unsuccessful
    ``QueryResult`` instead of an exception, and a failing sink is only logged.
    """

    def __init__(
        self,
        handlers: Mapping[QueryIntent, QueryHandler],
        *,
        sink: ResultSink | None = None,
    ) -> None:
        self._handlers = dict(handlers)
        self._handlers.setdefault(QueryIntent.general, general_response)
        self._sink = sink

    def route(self, query: str) -> QueryResult:
        started = time.monotonic()
        try:
            intent = classify_intent(query)
            handler = self._handlers.get(intent)
            if handler is None:
                raise LookupError(f"No handler registered for intent {intent.value}.")
            response = handler(query)
            result = QueryResult(
                query=query,
                intent=intent.value,
                response=response,
                processing_time_ms=(time.monotonic() - started) * 1000,
                is_successful=True,
            )
        except Exception as exc:
            logger.exception("Failed to process financial query %r", query)
            result = QueryResult(
                query=query,
                intent="error",
                response={"error": "Failed to process query", "message": str(exc)},
                processing_time_ms=(time.monotonic() - started) * 1000,
                is_successful=False,
            )

        if self._sink is not None:
            try:
                self._sink.persist_query_log(result)
            except Exception:
                logger.exception("Failed to record financial query %r", query)
        return result
