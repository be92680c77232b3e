import pytest

from fakes import BrokenSink, RecordingSink
from fincast.models.enums import QueryIntent
from fincast.services.query_router import GENERAL_HELP_MESSAGE, QueryIntentRouter, classify_intent


@pytest.mark.parametrize(
    ("query", "intent"),
    [
        ("What is our revenue this quarter?", QueryIntent.revenue_analysis),
        ("Show me the COST breakdown", QueryIntent.expense_breakdown),
        ("How is our liquidity looking?", QueryIntent.cash_flow_status),
        ("Cash flow next month", QueryIntent.cash_flow_status),
        ("Are we within budget?", QueryIntent.budget_performance),
        ("Predict next month", QueryIntent.financial_forecast),
        ("Any risk I should know about?", QueryIntent.risk_assessment),
        ("Hello there", QueryIntent.general),
        # Earlier table rows win when several keywords match.
        ("revenue risk forecast", QueryIntent.revenue_analysis),
    ],
)
def test_classify_intent(query: str, intent: QueryIntent) -> None:
    assert classify_intent(query) == intent


def test_route_dispatches_to_the_matching_handler_and_logs() -> None:
    sink = RecordingSink()
    seen: list[str] = []

    def revenue(query: str) -> dict:
        seen.append(query)
        return {"type": "revenue_analysis", "message": "ok", "data": None}

    router = QueryIntentRouter({QueryIntent.revenue_analysis: revenue}, sink=sink)
    result = router.route("What is our revenue this quarter?")

    assert result.is_successful is True
    assert result.intent == "revenue_analysis"
    assert result.response["message"] == "ok"
    assert result.processing_time_ms >= 0
    assert seen == ["What is our revenue this quarter?"]
    assert sink.queries == [result]


def test_route_turns_handler_failures_into_error_results() -> None:
    sink = RecordingSink()

    def broken(query: str) -> dict:
        raise RuntimeError("boom")

    router = QueryIntentRouter({QueryIntent.risk_assessment: broken}, sink=sink)
    result = router.route("what is the risk")

    assert result.is_successful is False
    assert result.intent == "error"
    assert result.response == {"error": "Failed to process query", "message": "boom"}
    assert result.processing_time_ms >= 0
    assert sink.queries == [result]


def test_unregistered_intent_is_reported_as_failure() -> None:
    result = QueryIntentRouter({}).route("budget please")

    assert result.is_successful is False
    assert "budget_performance" in result.response["message"]


def test_general_queries_get_static_help() -> None:
    result = QueryIntentRouter({}).route("hi")

    assert result.is_successful is True
    assert result.intent == "general"
    assert result.response["message"] == GENERAL_HELP_MESSAGE


def test_sink_failures_do_not_escape_route() -> None:
    sink = BrokenSink()

    result = QueryIntentRouter({}, sink=sink).route("hi")

    assert result.is_successful is True
    assert result.intent == "general"
    assert sink.attempts == 1
