"""
Account flows: sign-up, sign-in, sign-out, profile edits and password reset.

Each flow calls the auth service, mirrors the resulting session change and
keeps the ``profiles`` table in step with the account metadata.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Optional

from portfolio.auth import AuthClient, AuthUser
from portfolio.db import USERNAME_TAKEN, DbClient, ProfileRecord
from portfolio.errors import InputError
from portfolio.session import SessionMirror, ensure_profile
from shared import validation
from shared.types import AuthEvent

logger = logging.getLogger(__name__)

MAX_AVATAR_BYTES = 1024 * 1024
MIN_RESET_PASSWORD_LENGTH = 8


@dataclass
class SignUpForm:
    first_name: str
    last_name: str
    email: str
    password: str
    username: str = ""
    accept_terms: bool = True


def sign_up(
    auth: AuthClient,
    db: DbClient,
    form: SignUpForm,
    admin_emails: set[str] | None = None,
) -> AuthUser:
    if not form.first_name.strip() or not form.last_name.strip():
        raise InputError("Please enter your first and last name")
    if not form.accept_terms:
        raise InputError("Please accept the Terms of Service and Privacy Policy")
    email = validation.validate_email(form.email)
    username = validation.validate_username(form.username or email.split("@")[0])
    validation.validate_password(form.password)

    if db.get_profile_by_username(username):
        raise InputError(USERNAME_TAKEN, field="username")

    user = auth.sign_up(
        email,
        form.password,
        {
            "username": username,
            "first_name": form.first_name.strip(),
            "last_name": form.last_name.strip(),
        },
    )
    ensure_profile(db, user, admin_emails)
    logger.info("Created account %s", user.id)
    return user


def sign_in(mirror: SessionMirror, email: str, password: str) -> AuthUser:
    if not email or not password:
        raise InputError("Please enter your email and password")
    session = mirror.auth.sign_in_with_password(email, password)
    mirror.apply(AuthEvent.SIGNED_IN, session)
    return session.user


def sign_out(mirror: SessionMirror) -> None:
    token = mirror.access_token
    if token:
        mirror.auth.sign_out(token)
    mirror.apply(AuthEvent.SIGNED_OUT, None)


def avatar_data_url(content: bytes, content_type: Optional[str]) -> str:
    """Encodes an uploaded image as a data URL."""
    if not content_type or not content_type.startswith("image/"):
        raise InputError("Avatar must be an image", field="avatar")
    if len(content) > MAX_AVATAR_BYTES:
        raise InputError("Avatar must be smaller than 1 MB", field="avatar")
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def update_profile(
    mirror: SessionMirror,
    db: DbClient,
    profile: ProfileRecord,
    *,
    first_name: str,
    last_name: str,
    username: str,
    avatar_url: Optional[str] = None,
) -> ProfileRecord:
    username = validation.validate_username(username)
    owner = db.get_profile_by_username(username)
    if owner and owner.id != profile.id:
        raise InputError(USERNAME_TAKEN, field="username")

    changes = {
        "first_name": first_name.strip(),
        "last_name": last_name.strip(),
        "username": username,
    }
    # Auth metadata travels inside the access token; the avatar stays in profiles.
    mirror.auth.update_user(mirror.access_token, data=changes)
    if avatar_url is not None:
        changes["avatar_url"] = avatar_url
    updated = db.update_profile(profile.id, **changes)
    return updated or profile


def change_password(
    mirror: SessionMirror, new_password: str, confirmation: str
) -> None:
    validation.passwords_match(new_password, confirmation)
    validation.validate_password(new_password)
    mirror.auth.update_user(mirror.access_token, password=new_password)


def request_password_reset(auth: AuthClient, email: str, redirect_to: str) -> str:
    email = validation.validate_email(email)
    auth.reset_password_for_email(email, redirect_to)
    return email


def verify_reset_code(mirror: SessionMirror, email: str, code: str) -> None:
    code = validation.validate_otp(code)
    session = mirror.auth.verify_otp(email, code)
    mirror.apply(AuthEvent.PASSWORD_RECOVERY, session)


def reset_password(mirror: SessionMirror, password: str, confirmation: str) -> None:
    if not password:
        raise InputError("Please enter a new password", field="password")
    validation.passwords_match(password, confirmation)
    if len(password) < MIN_RESET_PASSWORD_LENGTH:
        raise InputError(
            f"Password must be at least {MIN_RESET_PASSWORD_LENGTH} characters",
            field="password",
        )
    if not mirror.access_token:
        raise InputError("Your reset code has expired. Please request a new one.")
    token = mirror.access_token
    mirror.auth.update_user(token, password=password)
    # The recovery session only exists to set the password; sign in again after.
    mirror.auth.sign_out(token)
    mirror.clear()
