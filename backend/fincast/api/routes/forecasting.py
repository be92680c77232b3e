from typing import Literal

from fastapi import APIRouter, Depends, Query

from fincast.api.deps import engine_errors, get_analytics_service
from fincast.models.enums import ForecastType
from fincast.schemas.forecasting import ForecastListResponse, ForecastOut
from fincast.services.analytics import FinancialAnalyticsService
from fincast.services.forecast import Forecast


router = APIRouter(prefix="/forecasting", tags=["forecasting"])


def _response(
    service: FinancialAnalyticsService,
    forecast_type: ForecastType,
    period: str,
    forecasts: list[Forecast],
) -> ForecastListResponse:
    return ForecastListResponse(
        forecast_type=forecast_type.value,
        period=period,
        currency=service.settings.currency,
        items=[ForecastOut.model_validate(forecast) for forecast in forecasts],
    )


@router.get("/revenue", response_model=ForecastListResponse)
def revenue_forecast(
    periods: int = Query(default=6, ge=1, le=24),
    period: Literal["MONTHLY", "QUARTERLY"] = Query(default="MONTHLY"),
    service: FinancialAnalyticsService = Depends(get_analytics_service),
) -> ForecastListResponse:
    with engine_errors():
        forecasts = service.generate_revenue_forecast(periods, period)
    return _response(service, ForecastType.revenue, period, forecasts)


@router.get("/expenses", response_model=ForecastListResponse)
def expense_forecast(
    category: str | None = Query(default=None, max_length=100),
    periods: int = Query(default=6, ge=1, le=24),
    service: FinancialAnalyticsService = Depends(get_analytics_service),
) -> ForecastListResponse:
    with engine_errors():
        forecasts = service.generate_expense_forecast(category, periods)
    return _response(service, ForecastType.expense, "MONTHLY", forecasts)


@router.get("/cash-flow", response_model=ForecastListResponse)
def cash_flow_prediction(
    periods: int = Query(default=12, ge=1, le=24),
    service: FinancialAnalyticsService = Depends(get_analytics_service),
) -> ForecastListResponse:
    with engine_errors():
        forecasts = service.generate_cash_flow_prediction(periods)
    return _response(service, ForecastType.cash_flow, "MONTHLY", forecasts)
