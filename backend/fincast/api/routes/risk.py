from fastapi import APIRouter, Depends

from fincast.api.deps import engine_errors, get_analytics_service
from fincast.schemas.risk import RiskAnalysisResponse, RiskAssessmentOut
from fincast.services.analytics import FinancialAnalyticsService


router = APIRouter(tags=["risk"])


@router.get("/risk-analysis", response_model=RiskAnalysisResponse)
def risk_analysis(
    service: FinancialAnalyticsService = Depends(get_analytics_service),
) -> RiskAnalysisResponse:
    with engine_errors():
        assessments = service.perform_risk_assessment()
    return RiskAnalysisResponse(items=[RiskAssessmentOut.model_validate(item) for item in assessments])
