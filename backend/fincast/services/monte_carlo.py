from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
import logging
from math import floor, sqrt
import random
from typing import Protocol, Sequence

from fincast.core.errors import InsufficientHistoryError, InvalidSimulationParamsError, SimulationCancelledError
from fincast.models.enums import CashEventSource
from fincast.services.aggregation import TimeSeriesPoint
from fincast.services.forecast import MAX_CONFIDENCE, MIN_CONFIDENCE, Forecast, clamp_confidence


MIN_TRIALS = 100
DEFAULT_TRIALS = 1000
INVOICE_COLLECTION_RATE = 0.8
CANCEL_CHECK_INTERVAL = 100

logger = logging.getLogger("fincast.monte_carlo")


class RandomSource(Protocol):
    def random(self) -> float: ...


class CancelFlag(Protocol):
    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class CashEvent:
    date: date
    amount: Decimal | float
    source: CashEventSource = CashEventSource.invoice


def _collection_factor(event: CashEvent) -> float:
    if CashEventSource(event.source) == CashEventSource.invoice:
        return INVOICE_COLLECTION_RATE
    return 1.0


def _known_inflows(events: Sequence[CashEvent], target_date: date) -> float:
    return sum(float(event.amount) * _collection_factor(event) for event in events if event.date <= target_date)


def _known_outflows(events: Sequence[CashEvent], target_date: date) -> float:
    return sum(float(event.amount) for event in events if event.date <= target_date)


def _percentile(ordered: list[float], quantile: float) -> float:
    return ordered[floor(len(ordered) * quantile)]


def _band_confidence(p10: float, p50: float, p90: float) -> float:
    spread = p90 - p10
    if spread == 0:
        return MAX_CONFIDENCE
    if p50 == 0:
        return MIN_CONFIDENCE
    return clamp_confidence(1 - spread / abs(p50))


def simulate(
    series: Sequence[TimeSeriesPoint],
    known_inflows: Sequence[CashEvent],
    known_outflows: Sequence[CashEvent],
    target_date: date,
    trials: int = DEFAULT_TRIALS,
    *,
    rng: RandomSource | None = None,
    cancel_event: CancelFlag | None = None,
) -> Forecast:
    """Bounded random-walk simulation of the value at ``target_date``.

    Each trial draws uniformly within one historical standard deviation of
    the mean, then applies cash events due on or before the target date.
    Invoice inflows are expected to collect at 80%; confirmed cash is taken
    at face value.
    """
    if trials < MIN_TRIALS:
        raise InvalidSimulationParamsError(f"trials must be >= {MIN_TRIALS}, got {trials}.")
    if not isinstance(target_date, date):
        raise InvalidSimulationParamsError("target_date must be a date.")
    if isinstance(target_date, datetime):
        target_date = target_date.date()
    if not series:
        raise InsufficientHistoryError(1, 0)

    source = rng if rng is not None else random.Random()
    values = [point.value for point in series]
    mean = sum(values) / len(values)
    std_dev = sqrt(sum((value - mean) ** 2 for value in values) / len(values))
    net_events = _known_inflows(known_inflows, target_date) - _known_outflows(known_outflows, target_date)

    results: list[float] = []
    for trial in range(trials):
        if cancel_event is not None and trial % CANCEL_CHECK_INTERVAL == 0 and cancel_event.is_set():
            logger.info("Monte Carlo simulation cancelled after %s of %s trials.", trial, trials)
            raise SimulationCancelledError(f"Simulation cancelled after {trial} trials.")
        base_value = mean + source.random() * 2 * std_dev - std_dev
        results.append(base_value + net_events)

    results.sort()
    p10 = _percentile(results, 0.1)
    p50 = _percentile(results, 0.5)
    p90 = _percentile(results, 0.9)

    return Forecast(
        target_date=target_date,
        predicted_value=p50,
        confidence=_band_confidence(p10, p50, p90),
        features={
            "p10": p10,
            "p50": p50,
            "p90": p90,
            "mean": mean,
            "std_dev": std_dev,
            "trials": trials,
        },
    )
