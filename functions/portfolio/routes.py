"""
JSON API routes.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from portfolio.auth import AuthClient, AuthUser
from portfolio.catalog import ProjectFilters, filter_projects, list_categories
from portfolio.db import DbClient
from portfolio.dependencies import (
    TextGenerator,
    get_auth_client,
    get_db_client,
    get_text_generator,
)
from portfolio.errors import GenerationError, InputError
from portfolio.health import check_backend
from portfolio.outreach import subscribe_newsletter
from portfolio.schemas import (
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    ListProjectsResponse,
    NewsletterRequest,
    NewsletterResponse,
    ProjectSummary,
)
from portfolio.session import require_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health(
    auth: AuthClient = Depends(get_auth_client),
    db: DbClient = Depends(get_db_client),
):
    status = check_backend(auth, db)
    return JSONResponse(status.as_dict(), status_code=200 if status.healthy else 503)


@router.post("/generate-with-gemini", response_model=GenerateResponse)
def generate_with_gemini(
    payload: GenerateRequest,
    user: AuthUser = Depends(require_user),
    generate: TextGenerator = Depends(get_text_generator),
):
    """Forwards a prompt to the text generation model."""
    if not payload.prompt.strip():
        raise InputError("Please enter a prompt", field="prompt")
    try:
        text = generate(
            payload.prompt,
            max_tokens=payload.max_tokens,
            temperature=payload.temperature,
        )
    except GenerationError:
        logger.exception("Error in generate-with-gemini for user %s", user.id)
        raise
    return GenerateResponse(generated_text=text)


@router.get("/projects", response_model=ListProjectsResponse)
def list_projects(
    q: str | None = Query(None, max_length=200),
    category: list[str] = Query(default=[]),
    access: str | None = Query(None, pattern="^(premium|free)$"),
    db: DbClient = Depends(get_db_client),
):
    projects = db.list_projects()
    filters = ProjectFilters.from_query(q, category, access)
    visible = filter_projects(projects, filters)
    return ListProjectsResponse(
        projects=[
            ProjectSummary(
                id=p.id,
                title=p.title,
                description=p.description,
                image=p.image,
                tags=p.tags,
                category=p.category,
                is_premium=p.is_premium,
                created_at=p.created_at,
            )
            for p in visible
        ],
        categories=list_categories(projects),
        total=len(visible),
    )


@router.post("/newsletter", response_model=NewsletterResponse)
def newsletter(payload: NewsletterRequest, db: DbClient = Depends(get_db_client)):
    created, message = subscribe_newsletter(db, payload.email)
    return NewsletterResponse(
        status="subscribed" if created else "already_subscribed", message=message
    )
