from __future__ import annotations

from datetime import date
from math import sqrt
from typing import Sequence

from fincast.core.errors import InsufficientHistoryError
from fincast.services.aggregation import TimeSeriesPoint
from fincast.services.forecast import MIN_CONFIDENCE, Forecast, clamp_confidence


MIN_HISTORY_POINTS = 12
DAYS_PER_PERIOD = 30


def _linear_regression(values: Sequence[float]) -> tuple[float, float]:
    n = len(values)
    x_sum = float(sum(range(n)))
    y_sum = float(sum(values))
    xx_sum = float(sum(index * index for index in range(n)))
    xy_sum = float(sum(index * value for index, value in enumerate(values)))
    denom = n * xx_sum - x_sum * x_sum
    if denom == 0:
        return 0.0, y_sum / n
    slope = (n * xy_sum - x_sum * y_sum) / denom
    intercept = (y_sum - slope * x_sum) / n
    return slope, intercept


def _residual_variance(values: Sequence[float], slope: float, intercept: float) -> float:
    return sum((actual - (slope * index + intercept)) ** 2 for index, actual in enumerate(values)) / len(values)


def target_index_for(series_length: int, last_period_date: date, target_date: date) -> float:
    """Index of ``target_date`` on the fitted axis, treating 30 days as one step past the last point."""
    return series_length + (target_date - last_period_date).days / DAYS_PER_PERIOD


def forecast(
    series: Sequence[TimeSeriesPoint],
    target_index: float,
    *,
    target_date: date | None = None,
) -> Forecast:
    """Project ``series`` to ``target_index`` with an ordinary least-squares trend.

    Confidence decays with the residual standard deviation relative to the
    projected value and is clamped to [0.1, 0.95]. The same inputs always
    produce the same forecast.
    """
    if len(series) < MIN_HISTORY_POINTS:
        raise InsufficientHistoryError(MIN_HISTORY_POINTS, len(series))

    values = [point.value for point in series]
    slope, intercept = _linear_regression(values)
    predicted = max(0.0, slope * target_index + intercept)
    variance = _residual_variance(values, slope, intercept)

    if predicted == 0:
        confidence = MIN_CONFIDENCE
    else:
        confidence = clamp_confidence(1 - sqrt(variance) / abs(predicted))

    return Forecast(
        target_date=target_date,
        predicted_value=predicted,
        confidence=confidence,
        features={
            "slope": slope,
            "intercept": intercept,
            "variance": variance,
            "data_points": len(values),
            "target_index": target_index,
        },
    )
