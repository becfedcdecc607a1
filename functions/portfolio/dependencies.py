"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from functools import partial
from typing import Callable

from models import gemini
from portfolio.activity import ActivityLog
from portfolio.auth import AuthClient, InMemoryAuthClient, SupabaseAuthClient
from portfolio.config import get_settings
from portfolio.db import DbClient, InMemoryDbClient, SqlDbClient
from portfolio.seed import seed_demo_data

_db_client: DbClient | None = None
_auth_client: AuthClient | None = None
_activity_log: ActivityLog | None = None

TextGenerator = Callable[..., str]


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so in-memory state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    if settings.seed_demo_data:
        seed_demo_data(_db_client)
    return _db_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.supabase_url:
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = SupabaseAuthClient(
            url=settings.supabase_url,
            anon_key=settings.supabase_anon_key or "",
            service_role_key=settings.supabase_service_role_key,
            timeout=settings.backend_timeout_seconds,
        )
    return _auth_client


def get_activity_log() -> ActivityLog:
    global _activity_log
    if _activity_log:
        return _activity_log
    _activity_log = ActivityLog()
    return _activity_log


def get_text_generator() -> TextGenerator:
    settings = get_settings()
    return partial(
        gemini.generate_text,
        model=settings.gemini_model,
        api_key=settings.gemini_api_key,
    )
