# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Input checks shared by the HTML forms and the JSON API."""

import re

from portfolio.errors import InputError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
OTP_PATTERN = re.compile(r"^\d{6}$")

MIN_PASSWORD_LENGTH = 8
MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 20


def validate_email(email: str | None) -> str:
    value = (email or "").strip().lower()
    if not value:
        raise InputError("Please enter your email address", field="email")
    if not EMAIL_PATTERN.match(value):
        raise InputError("Please enter a valid email address", field="email")
    return value


def validate_password(password: str | None) -> str:
    """Checks length and character classes; returns the password unchanged."""
    value = password or ""
    if len(value) < MIN_PASSWORD_LENGTH:
        raise InputError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )
    if not re.search(r"[A-Z]", value):
        raise InputError("Password must contain an uppercase letter", field="password")
    if not re.search(r"[a-z]", value):
        raise InputError("Password must contain a lowercase letter", field="password")
    if not re.search(r"\d", value):
        raise InputError("Password must contain a number", field="password")
    return value


def passwords_match(password: str | None, confirmation: str | None) -> None:
    if (password or "") != (confirmation or ""):
        raise InputError("Passwords do not match", field="confirm_password")


def validate_username(username: str | None) -> str:
    value = (username or "").strip()
    if not MIN_USERNAME_LENGTH <= len(value) <= MAX_USERNAME_LENGTH:
        raise InputError(
            f"Username must be between {MIN_USERNAME_LENGTH} and "
            f"{MAX_USERNAME_LENGTH} characters",
            field="username",
        )
    if not USERNAME_PATTERN.match(value):
        raise InputError(
            "Username may only contain letters, numbers and underscores",
            field="username",
        )
    return value


def validate_otp(code: str | None) -> str:
    value = (code or "").strip()
    if not OTP_PATTERN.match(value):
        raise InputError("Please enter the 6-digit code from your email", field="otp")
    return value


def validate_contact(
    name: str | None, email: str | None, subject: str | None, message: str | None
) -> dict:
    fields = {
        "name": (name or "").strip(),
        "email": (email or "").strip(),
        "subject": (subject or "").strip(),
        "message": (message or "").strip(),
    }
    if not all(fields.values()):
        raise InputError("Please fill in all fields")
    fields["email"] = validate_email(fields["email"])
    return fields


def split_list(raw: str | None) -> list[str]:
    """Splits a comma or newline separated form field into trimmed items."""
    if not raw:
        return []
    return [item.strip() for item in re.split(r"[,\n]", raw) if item.strip()]
