# sitetracker/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sitetracker.api.v1.api import api_router
from sitetracker.core.config import Settings, get_settings
from sitetracker.core.errors import (
    DuplicateKeyError,
    NetworkError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from sitetracker.core.logging import configure_logging
from sitetracker.db.init_db import SEED_PROJECTS, init_db
from sitetracker.db.session import create_session_factory, create_storage_engine
from sitetracker.db.storage import KeyValueStorage
from sitetracker.services.auth_service import AuthService
from sitetracker.services.dashboard import Dashboard
from sitetracker.services.data_service import DataService
from sitetracker.services.ui_port import SessionViewState

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    auth: AuthService = app.state.auth
    # Re-verify a session left in storage by a previous run
    if auth.access_token:
        await auth.check_auth("/")
    yield
    await auth.aclose()


def create_application(
    settings: Optional[Settings] = None,
    auth_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the app and its services. Every service is created once here and
    reached by routes through ``app.state``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # ---------- SERVICES ----------
    engine = create_storage_engine(settings.database_url)
    init_db(engine)
    storage = KeyValueStorage(create_session_factory(engine))

    view_state = SessionViewState()
    data = DataService(storage, settings.projects_storage_key, seed=SEED_PROJECTS)
    data.init()

    client = auth_client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    app.state.settings = settings
    app.state.storage = storage
    app.state.view_state = view_state
    app.state.data = data
    app.state.auth = AuthService(storage, client, view_state, settings)
    app.state.dashboard = Dashboard(data, view_state, settings.error_display_limit)

    # ---------- CORS ----------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.backend_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- ERRORS ----------
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": {"errors": exc.errors}})

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
        return JSONResponse(status_code=409, content={"detail": {"errors": exc.errors}})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": {"errors": exc.errors}})

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(NetworkError)
    async def network_error_handler(request: Request, exc: NetworkError):
        logger.error("[AUTH] %s", exc)
        return JSONResponse(status_code=502, content={"detail": "Auth service unavailable"})

    # ---------- ROUTERS ----------
    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


app = create_application()
