from fastapi import APIRouter

from fincast.core.config import get_settings


router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    settings = get_settings()
    return {"ok": True, "service": settings.app_name, "currency": settings.currency}
