"""
Authentication client for the hosted backend and an in-memory implementation.

Both implementations publish session-change notifications (``AuthEvent``) to
listeners registered with ``on_auth_state_change``.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, Optional, Protocol

import requests
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, VerifyMismatchError

from portfolio.errors import AuthApiError, BackendError, PortfolioError
from shared.types import AuthEvent

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TTL_SECONDS = 3600
RECOVERY_CODE_TTL_SECONDS = 3600
# Supabase bans are durations; this is the conventional "forever".
PERMANENT_BAN_DURATION = "876000h"

INVALID_CREDENTIALS = "Invalid login credentials"
USER_BANNED = "User is banned"


@dataclass
class AuthUser:
    id: str
    email: str
    user_metadata: dict = field(default_factory=dict)
    created_at: float = field(default_factory=lambda: time.time())
    banned_until: Optional[float] = None

    @property
    def username(self) -> str:
        return self.user_metadata.get("username") or self.email.split("@")[0]

    @property
    def is_banned(self) -> bool:
        return self.banned_until is not None and self.banned_until > time.time()


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: float
    user: AuthUser


AuthListener = Callable[[AuthEvent, Optional[AuthSession]], None]


@dataclass
class Subscription:
    """Handle returned by ``on_auth_state_change``."""

    id: str
    _unsubscribe: Callable[[str], None]

    def unsubscribe(self) -> None:
        self._unsubscribe(self.id)


class AuthListeners:
    """Registry of auth-state listeners shared by both client implementations."""

    def __init__(self):
        self._callbacks: Dict[str, AuthListener] = {}
        self._lock = threading.Lock()

    def subscribe(self, callback: AuthListener) -> Subscription:
        subscription_id = uuid.uuid4().hex
        with self._lock:
            self._callbacks[subscription_id] = callback
        return Subscription(id=subscription_id, _unsubscribe=self._remove)

    def _remove(self, subscription_id: str) -> None:
        with self._lock:
            self._callbacks.pop(subscription_id, None)

    def emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        with self._lock:
            callbacks = list(self._callbacks.values())
        for callback in callbacks:
            try:
                callback(event, session)
            except Exception:
                logger.exception("Auth listener failed for %s", event)


class AuthClient(Protocol):
    """Operations the site needs from the hosted authentication service."""

    def sign_up(self, email: str, password: str, metadata: dict) -> AuthUser:
        ...

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    def refresh_session(self, refresh_token: str) -> AuthSession:
        ...

    def get_user(self, access_token: str) -> AuthUser:
        ...

    def update_user(
        self,
        access_token: str,
        *,
        password: str | None = None,
        data: dict | None = None,
    ) -> AuthUser:
        ...

    def sign_out(self, access_token: str) -> None:
        ...

    def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        ...

    def verify_otp(self, email: str, token: str) -> AuthSession:
        ...

    def list_users(self) -> list[AuthUser]:
        ...

    def set_banned(self, user_id: str, banned: bool) -> AuthUser:
        ...

    def delete_user(self, user_id: str) -> None:
        ...

    def health(self) -> bool:
        ...

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        ...


def default_metadata(email: str, metadata: dict | None) -> dict:
    metadata = metadata or {}
    return {
        "username": metadata.get("username") or email.split("@")[0],
        "avatar_url": metadata.get("avatar_url") or None,
        "first_name": metadata.get("first_name") or "",
        "last_name": metadata.get("last_name") or "",
    }


_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError):
        return False


@dataclass
class _StoredUser:
    user: AuthUser
    password_hash: str


class InMemoryAuthClient:
    """Auth service double for development and tests.

    Recovery codes are not emailed; they are appended to ``outbox``.
    """

    def __init__(
        self,
        token_ttl_seconds: int = ACCESS_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.token_ttl_seconds = token_ttl_seconds
        self.clock = clock
        self.listeners = AuthListeners()
        self.users: Dict[str, _StoredUser] = {}
        self.sessions: Dict[str, AuthSession] = {}
        self.refresh_tokens: Dict[str, str] = {}
        self.recovery_codes: Dict[str, tuple[str, float]] = {}
        self.outbox: list[dict] = []
        self._lock = threading.RLock()

    def reset(self) -> None:
        with self._lock:
            self.users.clear()
            self.sessions.clear()
            self.refresh_tokens.clear()
            self.recovery_codes.clear()
            self.outbox.clear()

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        return self.listeners.subscribe(callback)

    def health(self) -> bool:
        return True

    def _find_by_email(self, email: str) -> Optional[_StoredUser]:
        wanted = email.strip().lower()
        for stored in self.users.values():
            if stored.user.email == wanted:
                return stored
        return None

    def _issue_session(self, user: AuthUser) -> AuthSession:
        session = AuthSession(
            access_token=secrets.token_urlsafe(32),
            refresh_token=secrets.token_urlsafe(32),
            expires_at=self.clock() + self.token_ttl_seconds,
            user=user,
        )
        self.sessions[session.access_token] = session
        self.refresh_tokens[session.refresh_token] = user.id
        return session

    def _revoke_user_sessions(self, user_id: str) -> None:
        for token in [t for t, s in self.sessions.items() if s.user.id == user_id]:
            del self.sessions[token]
        for token in [t for t, uid in self.refresh_tokens.items() if uid == user_id]:
            del self.refresh_tokens[token]

    def sign_up(self, email: str, password: str, metadata: dict) -> AuthUser:
        email = email.strip().lower()
        with self._lock:
            if self._find_by_email(email):
                raise AuthApiError("User already registered", 422)
            user = AuthUser(
                id=uuid.uuid4().hex,
                email=email,
                user_metadata=default_metadata(email, metadata),
                created_at=self.clock(),
            )
            self.users[user.id] = _StoredUser(
                user=user, password_hash=hash_password(password)
            )
        logger.info("Registered user %s", user.id)
        return user

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        with self._lock:
            stored = self._find_by_email(email)
            if not stored or not verify_password(password, stored.password_hash):
                raise AuthApiError(INVALID_CREDENTIALS, 400)
            if stored.user.is_banned:
                raise AuthApiError(USER_BANNED, 400)
            session = self._issue_session(stored.user)
        self.listeners.emit(AuthEvent.SIGNED_IN, session)
        return session

    def refresh_session(self, refresh_token: str) -> AuthSession:
        with self._lock:
            user_id = self.refresh_tokens.pop(refresh_token, None)
            stored = self.users.get(user_id) if user_id else None
            if not stored:
                raise AuthApiError("Invalid Refresh Token", 401)
            if stored.user.is_banned:
                raise AuthApiError(USER_BANNED, 400)
            session = self._issue_session(stored.user)
        self.listeners.emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    def _session_for(self, access_token: str) -> AuthSession:
        session = self.sessions.get(access_token)
        if not session:
            raise AuthApiError("Invalid JWT", 401)
        if session.expires_at <= self.clock():
            del self.sessions[access_token]
            raise AuthApiError("JWT expired", 401)
        stored = self.users.get(session.user.id)
        if not stored:
            raise AuthApiError("User not found", 401)
        return replace(session, user=stored.user)

    def get_user(self, access_token: str) -> AuthUser:
        with self._lock:
            return self._session_for(access_token).user

    def update_user(
        self,
        access_token: str,
        *,
        password: str | None = None,
        data: dict | None = None,
    ) -> AuthUser:
        with self._lock:
            session = self._session_for(access_token)
            stored = self.users[session.user.id]
            if password:
                stored.password_hash = hash_password(password)
            if data:
                stored.user = replace(
                    stored.user, user_metadata={**stored.user.user_metadata, **data}
                )
            session = replace(session, user=stored.user)
            self.sessions[access_token] = session
        self.listeners.emit(AuthEvent.USER_UPDATED, session)
        return stored.user

    def sign_out(self, access_token: str) -> None:
        with self._lock:
            session = self.sessions.pop(access_token, None)
            if session:
                self.refresh_tokens.pop(session.refresh_token, None)
        self.listeners.emit(AuthEvent.SIGNED_OUT, None)

    def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        email = email.strip().lower()
        with self._lock:
            if not self._find_by_email(email):
                return
            code = f"{secrets.randbelow(10**6):06d}"
            self.recovery_codes[email] = (code, self.clock() + RECOVERY_CODE_TTL_SECONDS)
            self.outbox.append({"to": email, "code": code, "redirect_to": redirect_to})
        logger.info("Recovery code issued for %s", email)

    def verify_otp(self, email: str, token: str) -> AuthSession:
        email = email.strip().lower()
        with self._lock:
            code, expires_at = self.recovery_codes.get(email, (None, 0.0))
            stored = self._find_by_email(email)
            if (
                not code
                or not stored
                or expires_at <= self.clock()
                or not hmac.compare_digest(code, token)
            ):
                raise AuthApiError("Token has expired or is invalid", 403)
            del self.recovery_codes[email]
            session = self._issue_session(stored.user)
        self.listeners.emit(AuthEvent.PASSWORD_RECOVERY, session)
        return session

    def list_users(self) -> list[AuthUser]:
        with self._lock:
            return sorted(
                (stored.user for stored in self.users.values()),
                key=lambda u: u.created_at,
                reverse=True,
            )

    def set_banned(self, user_id: str, banned: bool) -> AuthUser:
        with self._lock:
            stored = self.users.get(user_id)
            if not stored:
                raise AuthApiError("User not found", 404)
            stored.user = replace(
                stored.user, banned_until=float("inf") if banned else None
            )
            if banned:
                self._revoke_user_sessions(user_id)
            return stored.user

    def delete_user(self, user_id: str) -> None:
        with self._lock:
            if self.users.pop(user_id, None) is None:
                raise AuthApiError("User not found", 404)
            self._revoke_user_sessions(user_id)


def _parse_timestamp(value: str | None) -> Optional[float]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()


class SupabaseAuthClient:
    """
    Client for the hosted auth REST API (GoTrue, as served by Supabase).
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        service_role_key: str | None = None,
        timeout: float = 10.0,
        http: requests.Session | None = None,
    ):
        if not url or not anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required")
        self.base_url = url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.timeout = timeout
        self.http = http or requests.Session()
        self.listeners = AuthListeners()

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        return self.listeners.subscribe(callback)

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        admin: bool = False,
        params: dict | None = None,
        json: dict | None = None,
    ) -> dict:
        key = self.anon_key
        if admin:
            if not self.service_role_key:
                raise AuthApiError("Admin operations require a service role key", 403)
            key = self.service_role_key
            token = self.service_role_key
        headers = {"apikey": key, "Authorization": f"Bearer {token or key}"}
        try:
            response = self.http.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BackendError("Could not reach the authentication service") from exc

        if response.status_code >= 500:
            logger.error(
                "Auth service %s %s failed with %s", method, path, response.status_code
            )
            raise BackendError("The authentication service is unavailable")
        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            message = (
                payload.get("msg")
                or payload.get("error_description")
                or payload.get("message")
                or payload.get("error")
                or response.reason
            )
            raise AuthApiError(message, response.status_code)
        if not response.content:
            return {}
        return response.json()

    def _parse_user(self, payload: dict) -> AuthUser:
        return AuthUser(
            id=payload["id"],
            email=(payload.get("email") or "").lower(),
            user_metadata=payload.get("user_metadata") or {},
            created_at=_parse_timestamp(payload.get("created_at")) or time.time(),
            banned_until=_parse_timestamp(payload.get("banned_until")),
        )

    def _parse_session(self, payload: dict) -> AuthSession:
        expires_at = payload.get("expires_at") or (
            time.time() + payload.get("expires_in", ACCESS_TOKEN_TTL_SECONDS)
        )
        return AuthSession(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token", ""),
            expires_at=float(expires_at),
            user=self._parse_user(payload["user"]),
        )

    def sign_up(self, email: str, password: str, metadata: dict) -> AuthUser:
        email = email.strip().lower()
        payload = self._request(
            "POST",
            "/signup",
            json={
                "email": email,
                "password": password,
                "data": default_metadata(email, metadata),
            },
        )
        # With email confirmation enabled the user is returned bare.
        return self._parse_user(payload.get("user") or payload)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        payload = self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email.strip().lower(), "password": password},
        )
        session = self._parse_session(payload)
        self.listeners.emit(AuthEvent.SIGNED_IN, session)
        return session

    def refresh_session(self, refresh_token: str) -> AuthSession:
        payload = self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        session = self._parse_session(payload)
        self.listeners.emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    def get_user(self, access_token: str) -> AuthUser:
        return self._parse_user(self._request("GET", "/user", token=access_token))

    def update_user(
        self,
        access_token: str,
        *,
        password: str | None = None,
        data: dict | None = None,
    ) -> AuthUser:
        body: dict = {}
        if password:
            body["password"] = password
        if data:
            body["data"] = data
        user = self._parse_user(
            self._request("PUT", "/user", token=access_token, json=body)
        )
        self.listeners.emit(
            AuthEvent.USER_UPDATED,
            AuthSession(access_token=access_token, refresh_token="", expires_at=0.0, user=user),
        )
        return user

    def sign_out(self, access_token: str) -> None:
        try:
            self._request("POST", "/logout", token=access_token)
        except AuthApiError as exc:
            # An already-invalid token still means the visitor is signed out.
            logger.info("Sign-out with stale token: %s", exc.message)
        self.listeners.emit(AuthEvent.SIGNED_OUT, None)

    def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        self._request(
            "POST",
            "/recover",
            params={"redirect_to": redirect_to},
            json={"email": email.strip().lower()},
        )

    def verify_otp(self, email: str, token: str) -> AuthSession:
        payload = self._request(
            "POST",
            "/verify",
            json={"type": "recovery", "email": email.strip().lower(), "token": token},
        )
        session = self._parse_session(payload)
        self.listeners.emit(AuthEvent.PASSWORD_RECOVERY, session)
        return session

    def list_users(self) -> list[AuthUser]:
        payload = self._request("GET", "/admin/users", admin=True)
        return [self._parse_user(item) for item in payload.get("users", [])]

    def set_banned(self, user_id: str, banned: bool) -> AuthUser:
        payload = self._request(
            "PUT",
            f"/admin/users/{user_id}",
            admin=True,
            json={"ban_duration": PERMANENT_BAN_DURATION if banned else "none"},
        )
        return self._parse_user(payload)

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/admin/users/{user_id}", admin=True)

    def health(self) -> bool:
        try:
            self._request("GET", "/health")
        except PortfolioError as exc:
            logger.warning("Auth health check failed: %s", exc.message)
            return False
        return True
