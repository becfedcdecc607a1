"""
FastAPI application entry point for the portfolio site.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from portfolio import admin, pages
from portfolio.config import get_settings
from portfolio.dependencies import get_activity_log, get_auth_client, get_db_client
from portfolio.errors import (
    AdminRequired,
    AuthApiError,
    BackendError,
    GenerationError,
    InputError,
    LoginRequired,
)
from portfolio.health import check_backend, recheck_until_healthy
from portfolio.routes import router
from portfolio.session import flash, load_visitor
from portfolio.templating import STATIC_DIR, render
from shared.types import FlashLevel

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    auth = get_auth_client()
    db = get_db_client()
    activity = get_activity_log()
    activity.attach(auth)

    status = await run_in_threadpool(
        recheck_until_healthy,
        partial(check_backend, auth, db),
        attempts=settings.health_check_attempts,
        interval=settings.health_check_interval_seconds,
    )
    if status.healthy:
        logger.info("Backend reachable")
    else:
        logger.warning("Starting with degraded backend: %s", status.as_dict())

    yield

    activity.detach()


async def _load_visitor(request: Request) -> None:
    overrides = request.app.dependency_overrides
    auth = overrides.get(get_auth_client, get_auth_client)()
    db = overrides.get(get_db_client, get_db_client)()
    try:
        await run_in_threadpool(load_visitor, request, auth, db)
    except BackendError as exc:
        logger.warning("Could not load visitor for %s: %s", request.url.path, exc.message)


def _is_api_request(request: Request) -> bool:
    return request.url.path.startswith(get_settings().api_prefix + "/")


def _back(request: Request) -> RedirectResponse:
    return pages.redirect(pages.referer_path(request))


def _json_error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LoginRequired)
    async def login_required(request: Request, exc: LoginRequired):
        if _is_api_request(request):
            return _json_error(exc.message, 401)
        flash(request, exc.message, FlashLevel.ERROR)
        return pages.redirect("/login?" + urlencode({"next": exc.next_path}))

    @app.exception_handler(AdminRequired)
    async def admin_required(request: Request, exc: AdminRequired):
        if _is_api_request(request):
            return _json_error(exc.message, 403)
        flash(request, exc.message, FlashLevel.ERROR)
        return pages.redirect("/")

    @app.exception_handler(GenerationError)
    async def generation_error(request: Request, exc: GenerationError):
        return _json_error(exc.message, exc.status)

    @app.exception_handler(InputError)
    async def input_error(request: Request, exc: InputError):
        if _is_api_request(request):
            return _json_error(exc.message, 400)
        flash(request, exc.message, FlashLevel.ERROR)
        return _back(request)

    @app.exception_handler(AuthApiError)
    async def auth_api_error(request: Request, exc: AuthApiError):
        if _is_api_request(request):
            return _json_error(exc.message, exc.status)
        flash(request, exc.message, FlashLevel.ERROR)
        return _back(request)

    @app.exception_handler(BackendError)
    async def backend_error(request: Request, exc: BackendError):
        logger.error("Backend error on %s: %s", request.url.path, exc.message)
        if _is_api_request(request):
            return _json_error(exc.message, 503)
        return render(request, "error.html", {"message": exc.message}, status_code=503)

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        if exc.status_code != 404 or _is_api_request(request):
            return await http_exception_handler(request, exc)
        await _load_visitor(request)
        return render(request, "not_found.html", status_code=404)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        max_age=settings.session_max_age_seconds,
        same_site="lax",
    )
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(admin.router)
    app.include_router(pages.router)
    register_exception_handlers(app)
    return app


app = create_app()
