"""
Session mirroring: copies the backend's current session into the signed cookie.

Also provides flash messages (one-shot notifications shown on the next page)
and the request dependencies that gate private and admin routes.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request

from portfolio.auth import AuthClient, AuthSession, AuthUser
from portfolio.config import get_settings
from portfolio.db import DbClient, ProfileRecord
from portfolio.dependencies import get_auth_client, get_db_client
from portfolio.errors import (
    AdminRequired,
    AuthApiError,
    BackendError,
    InputError,
    LoginRequired,
)
from shared.types import AuthEvent, FlashLevel, UserRole

logger = logging.getLogger(__name__)

SESSION_KEY = "auth"
FLASH_KEY = "flashes"

EVENT_MESSAGES = {
    AuthEvent.SIGNED_IN: "Signed in successfully!",
    AuthEvent.SIGNED_OUT: "Signed out successfully!",
}


def flash(request: Request, message: str, level: FlashLevel = FlashLevel.SUCCESS) -> None:
    flashes = request.session.get(FLASH_KEY, [])
    flashes.append({"level": str(level), "message": message})
    request.session[FLASH_KEY] = flashes


def pop_flashes(request: Request) -> list[dict]:
    return request.session.pop(FLASH_KEY, [])


class SessionMirror:
    """Mirror of the backend session for one request."""

    def __init__(self, request: Request, auth: AuthClient):
        self.request = request
        self.auth = auth
        self.user: Optional[AuthUser] = None
        self._initial_load = True

    @property
    def access_token(self) -> Optional[str]:
        stored = self.request.session.get(SESSION_KEY)
        return stored.get("access_token") if stored else None

    def _store(self, session: AuthSession) -> None:
        stored = self.request.session.get(SESSION_KEY) or {}
        self.request.session[SESSION_KEY] = {
            "access_token": session.access_token,
            # Some events (USER_UPDATED) do not carry a refresh token.
            "refresh_token": session.refresh_token or stored.get("refresh_token", ""),
            "expires_at": session.expires_at or stored.get("expires_at", 0.0),
            "user_id": session.user.id,
        }
        self.user = session.user

    def clear(self) -> None:
        self.request.session.pop(SESSION_KEY, None)
        self.user = None

    def restore(self) -> Optional[AuthUser]:
        """Initial load: re-validate the stored session without notifying."""
        stored = self.request.session.get(SESSION_KEY)
        try:
            if not stored:
                return None
            try:
                self.user = self.auth.get_user(stored["access_token"])
            except AuthApiError:
                self._refresh(stored.get("refresh_token"))
        except BackendError as exc:
            logger.warning("Could not restore session: %s", exc.message)
            self.user = None
        finally:
            self._initial_load = False
        return self.user

    def _refresh(self, refresh_token: Optional[str]) -> None:
        if not refresh_token:
            self.clear()
            return
        try:
            session = self.auth.refresh_session(refresh_token)
        except AuthApiError as exc:
            logger.info("Session refresh rejected: %s", exc.message)
            self.clear()
            return
        self.apply(AuthEvent.TOKEN_REFRESHED, session)

    def apply(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        """Mirror a session-change notification into the cookie."""
        if session:
            self._store(session)
        elif event == AuthEvent.SIGNED_OUT:
            self.clear()

        if self._initial_load:
            return
        message = EVENT_MESSAGES.get(event)
        if message:
            flash(self.request, message)


def get_session_mirror(
    request: Request, auth: AuthClient = Depends(get_auth_client)
) -> SessionMirror:
    mirror = SessionMirror(request, auth)
    mirror.restore()
    return mirror


def get_current_user(
    request: Request, mirror: SessionMirror = Depends(get_session_mirror)
) -> Optional[AuthUser]:
    request.state.user = mirror.user
    return mirror.user


def ensure_profile(
    db: DbClient, user: AuthUser, admin_emails: set[str] | None = None
) -> ProfileRecord:
    """Return the user's profile, creating it from the auth metadata if missing."""
    profile = db.get_profile(user.id)
    if profile:
        return profile
    role = UserRole.ADMIN if user.email in (admin_emails or set()) else UserRole.USER
    metadata = user.user_metadata
    profile = ProfileRecord(
        id=user.id,
        email=user.email,
        username=metadata.get("username") or user.username,
        first_name=metadata.get("first_name") or "",
        last_name=metadata.get("last_name") or "",
        avatar_url=metadata.get("avatar_url"),
        role=role,
        created_at=user.created_at,
    )
    try:
        return db.create_profile(profile)
    except InputError:
        # Account created outside the site with a username someone already has.
        profile.username = f"{profile.username}_{user.id[:6]}"
        return db.create_profile(profile)


def get_current_profile(
    request: Request,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
) -> Optional[ProfileRecord]:
    profile = None
    if user:
        profile = ensure_profile(db, user, get_settings().admin_email_set)
    request.state.profile = profile
    return profile


def load_visitor(
    request: Request, auth: AuthClient, db: DbClient
) -> Optional[ProfileRecord]:
    """Resolve the signed-in visitor outside of route dependencies."""
    mirror = get_session_mirror(request, auth)
    user = get_current_user(request, mirror)
    return get_current_profile(request, user, db)


def _requested_path(request: Request) -> str:
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return path


def require_user(
    request: Request, user: Optional[AuthUser] = Depends(get_current_user)
) -> AuthUser:
    if not user:
        raise LoginRequired(next_path=_requested_path(request))
    return user


def require_profile(
    request: Request,
    profile: Optional[ProfileRecord] = Depends(get_current_profile),
) -> ProfileRecord:
    if not profile:
        raise LoginRequired(next_path=_requested_path(request))
    return profile


def require_admin(profile: ProfileRecord = Depends(require_profile)) -> ProfileRecord:
    if not profile.is_admin:
        raise AdminRequired()
    return profile
