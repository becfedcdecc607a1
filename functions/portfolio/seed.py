"""
Demo projects and subscription plans for fresh development backends.
"""

from __future__ import annotations

import logging
import time

from portfolio.db import DbClient, PlanRecord, ProjectRecord
from shared.types import PlanInterval

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 3600


def demo_projects(now: float | None = None) -> list[ProjectRecord]:
    now = now or time.time()
    return [
        ProjectRecord(
            title="E-commerce Dashboard",
            description="Admin dashboard for an online store with sales analytics.",
            long_description=(
                "A complete admin dashboard for e-commerce stores: order tracking, "
                "inventory management and revenue reports in one place."
            ),
            image="/static/img/project.svg",
            tags=["React", "TypeScript", "Charts"],
            category="Web App",
            is_premium=True,
            demo_url="https://example.com/demo/dashboard",
            features=["Sales analytics", "Inventory tracking", "Role-based access"],
            created_at=now - 1 * DAY_SECONDS,
        ),
        ProjectRecord(
            title="Landing Page Template",
            description="Responsive landing page with a hero section and pricing table.",
            long_description=(
                "A fast, accessible landing page template with sections for features, "
                "testimonials, pricing and a newsletter signup."
            ),
            image="/static/img/project.svg",
            tags=["HTML", "CSS", "Responsive"],
            category="Template",
            is_premium=False,
            repo_url="https://example.com/repo/landing",
            features=["Dark mode", "Pricing table", "Newsletter form"],
            created_at=now - 2 * DAY_SECONDS,
        ),
        ProjectRecord(
            title="Mobile Chat App",
            description="Real-time chat application with group conversations.",
            long_description=(
                "A cross-platform chat app with push notifications, read receipts "
                "and group channels."
            ),
            image="/static/img/project.svg",
            tags=["React Native", "WebSockets"],
            category="Mobile",
            is_premium=True,
            features=["Group channels", "Push notifications", "Read receipts"],
            created_at=now - 3 * DAY_SECONDS,
        ),
        ProjectRecord(
            title="Design System",
            description="Component library with tokens, typography and icons.",
            long_description=(
                "A themeable design system: color tokens, a type scale and forty "
                "documented components."
            ),
            image="/static/img/project.svg",
            tags=["Design", "Components", "Accessibility"],
            category="Design",
            is_premium=False,
            repo_url="https://example.com/repo/design-system",
            features=["Design tokens", "Icon set", "Usage guidelines"],
            created_at=now - 4 * DAY_SECONDS,
        ),
        ProjectRecord(
            title="Portfolio Starter",
            description="Personal portfolio site with a project gallery and blog.",
            long_description=(
                "Everything needed to publish a personal portfolio: project gallery, "
                "blog, about page and contact form."
            ),
            image="/static/img/project.svg",
            tags=["Python", "FastAPI", "Templates"],
            category="Template",
            is_premium=False,
            repo_url="https://example.com/repo/portfolio-starter",
            features=["Project gallery", "Markdown blog", "Contact form"],
            created_at=now - 5 * DAY_SECONDS,
        ),
        ProjectRecord(
            title="SaaS Analytics API",
            description="Event ingestion API with usage reports per customer.",
            long_description=(
                "A multi-tenant analytics API with event ingestion, daily rollups "
                "and per-customer usage reports."
            ),
            image="/static/img/project.svg",
            tags=["Python", "API", "Postgres"],
            category="Backend",
            is_premium=True,
            features=["Event ingestion", "Daily rollups", "Usage reports"],
            created_at=now - 6 * DAY_SECONDS,
        ),
    ]


def demo_plans() -> list[PlanRecord]:
    return [
        PlanRecord(
            name="Free",
            description="Perfect for getting started",
            price=0,
            interval=PlanInterval.MONTH,
            features=[
                "Access to free projects",
                "Basic templates",
                "Community support",
                "Limited downloads per month",
            ],
        ),
        PlanRecord(
            name="Pro",
            description="For serious developers",
            price=19,
            interval=PlanInterval.MONTH,
            features=[
                "All free features",
                "Access to premium projects",
                "Priority support",
                "Unlimited downloads",
                "Early access to new projects",
                "Source code with comments",
            ],
            is_popular=True,
        ),
        PlanRecord(
            name="Enterprise",
            description="For teams and organizations",
            price=49,
            interval=PlanInterval.MONTH,
            features=[
                "All Pro features",
                "Team collaboration tools",
                "Custom project requests",
                "White-label solutions",
                "Direct developer support",
                "Commercial usage rights",
            ],
        ),
    ]


def seed_demo_data(db: DbClient) -> tuple[int, int]:
    """Insert demo projects and plans into empty tables.

    Returns the number of projects and plans inserted.
    """
    projects_added = plans_added = 0
    if not db.list_projects():
        for project in demo_projects():
            db.create_project(project)
            projects_added += 1
    if not db.list_plans():
        for plan in demo_plans():
            db.create_plan(plan)
            plans_added += 1
    if projects_added or plans_added:
        logger.info(
            "Seeded %d demo projects and %d plans", projects_added, plans_added
        )
    return projects_added, plans_added
