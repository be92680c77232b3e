from fastapi import APIRouter

from fincast.api.routes import customers, forecasting, health, query, risk


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(forecasting.router)
api_router.include_router(risk.router)
api_router.include_router(customers.router)
api_router.include_router(query.router)
