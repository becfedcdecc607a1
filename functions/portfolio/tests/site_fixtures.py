"""Shared setup for the app-level tests."""

import os

os.environ["USE_IN_MEMORY_BACKENDS"] = "true"
os.environ["HEALTH_CHECK_INTERVAL_SECONDS"] = "0"
os.environ["GEMINI_API_KEY"] = ""

from portfolio import accounts
from portfolio.config import get_settings
from portfolio.dependencies import get_activity_log, get_auth_client, get_db_client
from portfolio.seed import seed_demo_data
from shared.types import UserRole

get_settings.cache_clear()

PASSWORD = "Secret123"


def reset_backends():
    """Empty the in-memory backends and re-seed the demo catalog."""
    db = get_db_client()
    auth = get_auth_client()
    db.reset()
    auth.reset()
    get_activity_log().clear()
    seed_demo_data(db)
    return db, auth


def create_user(
    auth,
    db,
    email="ada@example.com",
    username="ada",
    password=PASSWORD,
    admin=False,
):
    user = accounts.sign_up(
        auth,
        db,
        accounts.SignUpForm(
            first_name="Ada",
            last_name="Lovelace",
            email=email,
            password=password,
            username=username,
        ),
    )
    if admin:
        db.update_profile(user.id, role=UserRole.ADMIN)
    return user


def log_in(client, email="ada@example.com", password=PASSWORD):
    return client.post(
        "/login",
        data={"email": email, "password": password, "next": "/"},
        follow_redirects=False,
    )


def project_by_title(db, title):
    return next(p for p in db.list_projects() if p.title == title)
