from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import fincast.models  # noqa: F401
from fincast.api.routes import api_router
from fincast.core.config import get_settings
from fincast.db.base import Base
from fincast.db.session import engine


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

settings = get_settings()
logger = logging.getLogger("fincast.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── startup ──
    if settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)
    logger.info("FinCast API ready.")
    yield
    # ── shutdown ──
    engine.dispose()
    logger.info("FinCast API shutdown complete.")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_log(request: Request, call_next):
    started = time.monotonic()
    try:
        response = await call_next(request)
    except Exception as exc:  # pragma: no cover
        logger.exception("Unhandled error for %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    elapsed_ms = (time.monotonic() - started) * 1000
    logger.info(
        "%s %s -> %s %.2fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.get("/healthz")
def healthz() -> dict:
    return {"ok": True, "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/", include_in_schema=False)
def root() -> dict[str, str]:
    return {
        "service": settings.app_name,
        "status": "ok",
        "health": "/healthz",
        "api_root": f"{settings.api_prefix}/health",
        "docs": "/docs",
    }


@app.get("/favicon.ico", include_in_schema=False)
def favicon() -> Response:
    return Response(status_code=204)


app.include_router(api_router, prefix=settings.api_prefix)
