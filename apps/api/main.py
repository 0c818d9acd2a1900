"""
Health Transformation API.

Wires logging, CORS, request timing, error envelopes and the
transformation router into one FastAPI app.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from routers import transformation
from core.config import settings
from core.database import check_db_connection, init_db
from core.logging import setup_logging
from core.exceptions import APIException, api_exception_handler, error_response
from typing import List
import logging
import time
import uuid

setup_logging()
logger = logging.getLogger(__name__)

DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

app = FastAPI(
    title="Health Transformation API",
    description="Long-term health plans, daily scoring, streaks, badges and certificates",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)


def cors_origins() -> List[str]:
    """DEBUG allows any origin; otherwise CORS_ORIGINS (comma-separated) or local dev hosts."""
    if settings.DEBUG:
        return ["*"]
    if settings.CORS_ORIGINS:
        return [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    return list(DEV_ORIGINS)


@app.on_event("startup")
def create_tables():
    init_db()
    logger.info(f"Health Transformation API started ({settings.ENVIRONMENT})")


app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag each request with an id and log its outcome and duration."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    context = {"request_id": request_id, "method": request.method, "path": request.url.path}
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.error("Request crashed", exc_info=True, extra={"extra_fields": context})
        raise

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} in {elapsed_ms}ms",
        extra={"extra_fields": {**context, "status_code": response.status_code, "elapsed_ms": elapsed_ms}},
    )
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(elapsed_ms / 1000)
    return response


app.add_exception_handler(APIException, api_exception_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error")


@app.get("/health")
async def health():
    """Liveness plus database reachability (503 when the database is down)."""
    if not check_db_connection():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unavailable"},
        )
    return {"status": "healthy", "database": "ok", "timestamp": time.time()}


app.include_router(transformation.router)
