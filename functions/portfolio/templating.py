"""
Jinja2 rendering for the HTML pages.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone

from fastapi import Request
from fastapi.templating import Jinja2Templates

from portfolio.config import get_settings
from portfolio.session import pop_flashes

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
STATIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")

THEME_KEY = "theme"
THEMES = ("dark", "light")

templates = Jinja2Templates(directory=TEMPLATE_DIR)


def format_date(timestamp: float | None) -> str:
    if not timestamp:
        return ""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%b %d, %Y")


def format_price(value: float) -> str:
    return f"${value:,.0f}" if float(value).is_integer() else f"${value:,.2f}"


templates.env.filters["date"] = format_date
templates.env.filters["price"] = format_price


def current_theme(request: Request) -> str:
    theme = request.session.get(THEME_KEY)
    return theme if theme in THEMES else THEMES[0]


def render(
    request: Request,
    name: str,
    context: dict | None = None,
    status_code: int = 200,
):
    """Render ``name`` with the layout context every page needs."""
    page_context = {
        "app_name": get_settings().app_name,
        "user": getattr(request.state, "user", None),
        "profile": getattr(request.state, "profile", None),
        "theme": current_theme(request),
        "flashes": pop_flashes(request),
    }
    page_context.update(context or {})
    return templates.TemplateResponse(
        request, name, page_context, status_code=status_code
    )
