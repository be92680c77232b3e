from datetime import date, datetime
import random
import threading

import pytest

from fincast.core.errors import InsufficientHistoryError, InvalidSimulationParamsError, SimulationCancelledError
from fincast.models.enums import CashEventSource
from fincast.services.aggregation import TimeSeriesPoint
from fincast.services.monte_carlo import CashEvent, simulate


TARGET = date(2026, 6, 30)


def _series(values: list[float]) -> list[TimeSeriesPoint]:
    return [TimeSeriesPoint(period_key=f"2025-{index + 1:02d}", value=value) for index, value in enumerate(values)]


def test_zero_stddev_collapses_percentiles_and_maxes_confidence() -> None:
    result = simulate(_series([500.0] * 6), [], [], TARGET, trials=200, rng=random.Random(1))

    assert result.features["p10"] == result.features["p50"] == result.features["p90"] == 500.0
    assert result.predicted_value == 500.0
    assert result.confidence == 0.95
    assert result.features["std_dev"] == 0.0
    assert result.features["trials"] == 200


def test_known_events_due_by_target_are_applied() -> None:
    inflows = [
        CashEvent(date=date(2026, 5, 1), amount=1000, source=CashEventSource.invoice),
        CashEvent(date=date(2026, 6, 1), amount=1000, source=CashEventSource.confirmed),
        CashEvent(date=date(2026, 7, 1), amount=9999, source=CashEventSource.confirmed),
    ]
    outflows = [
        CashEvent(date=date(2026, 6, 30), amount=300),
        CashEvent(date=date(2026, 8, 1), amount=5000),
    ]

    result = simulate(_series([500.0] * 3), inflows, outflows, TARGET, trials=100)

    # Invoice inflows collect at 80%.
    assert result.predicted_value == pytest.approx(500 + 800 + 1000 - 300)


def test_seeded_rng_reproduces_results() -> None:
    series = _series([1000, 1400, 900, 1250, 1100, 1600])

    first = simulate(series, [], [], TARGET, rng=random.Random(42))
    second = simulate(series, [], [], TARGET, rng=random.Random(42))

    assert first == second


def test_percentiles_are_ordered_and_stay_within_one_stddev() -> None:
    series = _series([1000, 1400, 900, 1250, 1100, 1600])

    result = simulate(series, [], [], TARGET, trials=1000, rng=random.Random(7))
    features = result.features

    assert features["p10"] <= features["p50"] <= features["p90"]
    assert features["mean"] - features["std_dev"] <= features["p10"]
    assert features["p90"] <= features["mean"] + features["std_dev"]
    assert 0.1 <= result.confidence <= 0.95


def test_too_few_trials_are_rejected() -> None:
    with pytest.raises(InvalidSimulationParamsError):
        simulate(_series([1.0, 2.0]), [], [], TARGET, trials=99)


def test_empty_history_is_rejected() -> None:
    with pytest.raises(InsufficientHistoryError):
        simulate([], [], [], TARGET)


def test_cancel_event_stops_the_trial_loop() -> None:
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(SimulationCancelledError):
        simulate(_series([1.0, 2.0, 3.0]), [], [], TARGET, trials=500, cancel_event=cancel)


def test_datetime_target_is_treated_as_its_calendar_day() -> None:
    series = _series([100.0, 200.0, 300.0])
    inflows = [CashEvent(date=date(2026, 6, 1), amount=100, source=CashEventSource.confirmed)]

    from_datetime = simulate(series, inflows, [], datetime(2026, 6, 1, 18, 30), trials=100, rng=random.Random(4))
    from_date = simulate(series, inflows, [], date(2026, 6, 1), trials=100, rng=random.Random(4))

    assert from_datetime.target_date == date(2026, 6, 1)
    assert from_datetime.predicted_value == from_date.predicted_value
