from fastapi import APIRouter, Depends

from fincast.api.deps import engine_errors, get_analytics_service
from fincast.schemas.customers import CustomerBehaviorResponse
from fincast.services.analytics import FinancialAnalyticsService


router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("/{customer_id}/behavior", response_model=CustomerBehaviorResponse)
def customer_behavior(
    customer_id: int,
    service: FinancialAnalyticsService = Depends(get_analytics_service),
) -> CustomerBehaviorResponse:
    with engine_errors():
        result = service.analyze_customer_behavior(customer_id)
    return CustomerBehaviorResponse.model_validate(result)
