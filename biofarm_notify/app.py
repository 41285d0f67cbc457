from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError

from biofarm_notify.api.callable_routes import router as callable_router
from biofarm_notify.api.notify_routes import router as notify_router
from biofarm_notify.api.routes import router
from biofarm_notify.auth import build_identity_provider
from biofarm_notify.config import settings
from biofarm_notify.models.db import init_db
from biofarm_notify.notifications.providers import build_provider
from biofarm_notify.triggers import default_registry
from biofarm_notify.utils.time import utc_now

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PATCH, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Trigger-Secret",
    "Access-Control-Max-Age": "600",
}

app = FastAPI(
    title="smartbiofarm_notifications",
    description="Push-notification fan-out for SmartBioFarm farmers, veterinarians and government users",
    version="0.1.0",
    debug=settings.app_debug,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def preflight_middleware(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)
    return await call_next(request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(part) for part in err["loc"][1:]) for err in exc.errors()]
    logger.info("Rejected invalid request", extra={"path": request.url.path, "fields": fields})
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "fields": fields})


@app.on_event("startup")
def startup_event() -> None:
    app.state.sender = build_provider(settings)
    app.state.triggers = default_registry()
    app.state.identity_provider = build_identity_provider(settings)

    max_attempts = 8
    delay_seconds = 3
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            init_db()
            logger.info(
                "Database initialization completed",
                extra={"attempt": attempt, "provider": app.state.sender.name},
            )
            return
        except SQLAlchemyError as exc:
            last_error = exc
            logger.exception(
                "Database initialization failed",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )
            if attempt < max_attempts:
                time.sleep(delay_seconds)
            continue

    raise RuntimeError("Database initialization failed after retries") from last_error


app.include_router(notify_router)
app.include_router(callable_router)
app.include_router(router)


@app.get("/")
def home() -> dict:
    return {"status": "Server is running", "timestamp": utc_now().isoformat()}


def main() -> None:
    import uvicorn

    uvicorn.run("biofarm_notify.app:app", host=settings.app_host, port=settings.app_port)
