"""FastAPI entrypoint for the school results portal."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import Engine
from sqlmodel import Session
from starlette.middleware.sessions import SessionMiddleware

from results_portal.auth_utils import seed_default_admin
from results_portal.config import get_settings
from results_portal.database import build_engine, create_db_and_tables
from results_portal.exceptions import ResultAccessError
from results_portal.logging_config import configure_logging
from results_portal.routers import admin as admin_router_module
from results_portal.routers import results as results_router_module
from results_portal.services.grants import sweep_expired

logger = logging.getLogger(__name__)


def _sweep_once(engine: Engine) -> int:
    with Session(engine) as session:
        return sweep_expired(session)


async def _grant_sweep_loop(engine: Engine, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(_sweep_once, engine)
        except Exception:
            logger.exception("Expired grant sweep task error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    configure_logging(settings.log_level)

    # Startup: connection pool, schema, default admin
    engine = build_engine(settings)
    app.state.engine = engine
    create_db_and_tables(engine)
    with Session(engine) as session:
        seed_default_admin(session, settings.admin_username, settings.admin_password)

    sweep_task = asyncio.create_task(
        _grant_sweep_loop(engine, settings.grant_sweep_interval_seconds)
    )
    logger.info("Results portal started")
    try:
        yield
    finally:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
        engine.dispose()
        logger.info("Results portal stopped")


app = FastAPI(title="School Results Portal", lifespan=lifespan)


@app.exception_handler(ResultAccessError)
async def result_access_exception_handler(request: Request, exc: ResultAccessError):
    """Map result-access failures to their status with a generic client message."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "detail": exc.detail},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400), not 422."""
    fields = [".".join(str(part) for part in error.get("loc", ())[1:]) for error in exc.errors()]
    logger.info("Rejected malformed request to %s: %s", request.url.path, fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "detail": "Invalid request"},
    )


_settings = get_settings()

# Session middleware for the admin cookie
app.add_middleware(
    SessionMiddleware,
    secret_key=_settings.session_secret,
    session_cookie=_settings.session_cookie,
    max_age=_settings.session_max_age_seconds,
    same_site="lax",
    https_only=False,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(admin_router_module.router, prefix="/api/admin", tags=["admin"])
app.include_router(results_router_module.router, tags=["results"])


@app.get("/", response_class=PlainTextResponse)
def home():
    return "School results portal API is running"
