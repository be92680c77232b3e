from dataclasses import replace
from datetime import date

import pytest

from fincast.services.forecast import Forecast
from fincast.services.scenarios import expand


def test_expand_produces_three_weighted_tiers() -> None:
    base = Forecast(target_date=date(2026, 7, 1), predicted_value=1000.0, confidence=0.8, features={})

    optimistic, likely, pessimistic = expand(base)

    assert [optimistic.name, likely.name, pessimistic.name] == ["Optimistic", "Most Likely", "Pessimistic"]
    assert optimistic.predicted_value == pytest.approx(1150.0)
    assert likely.predicted_value == pytest.approx(1000.0)
    assert pessimistic.predicted_value == pytest.approx(800.0)
    assert [optimistic.impact, likely.impact, pessimistic.impact] == ["POSITIVE", "NEUTRAL", "NEGATIVE"]
    assert optimistic.probability + likely.probability + pessimistic.probability == pytest.approx(1.0)
    assert likely.assumptions == {"growth_rate": 0.05, "retention_rate": 0.85, "acquisition_rate": 0.1}


def test_attaching_scenarios_leaves_the_base_forecast_untouched() -> None:
    base = Forecast(target_date=None, predicted_value=50.0, confidence=0.5, features={"p50": 50.0})

    expanded = replace(base, scenarios=expand(base))

    assert base.scenarios == ()
    assert len(expanded.scenarios) == 3
    assert expanded.predicted_value == base.predicted_value


@pytest.mark.parametrize("predicted", [0.0, 0.01, 1000.0, 2_500_000.0, -750.0])
@pytest.mark.parametrize("confidence", [0.1, 0.95])
def test_scenario_tiers_hold_for_any_forecast(predicted: float, confidence: float) -> None:
    base = Forecast(target_date=date(2026, 7, 1), predicted_value=predicted, confidence=confidence, features={})

    optimistic, likely, pessimistic = expand(base)

    assert optimistic.probability + likely.probability + pessimistic.probability == pytest.approx(1.0, abs=1e-9)
    assert likely.predicted_value == predicted
    assert optimistic.predicted_value == pytest.approx(predicted * 1.15)
    assert pessimistic.predicted_value == pytest.approx(predicted * 0.8)
