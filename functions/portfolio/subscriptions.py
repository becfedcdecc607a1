"""
Subscription bookkeeping on top of the backend's tables.

Payment itself is out of scope: subscribing records an active subscription row.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from portfolio.auth import AuthClient
from portfolio.db import DbClient, PlanRecord, ProfileRecord, SubscriptionRecord
from portfolio.errors import InputError
from shared.types import PlanInterval, SubscriptionStatus

logger = logging.getLogger(__name__)

PERIOD_SECONDS = {
    PlanInterval.MONTH: 30 * 24 * 3600,
    PlanInterval.YEAR: 365 * 24 * 3600,
}


def period_end(plan: PlanRecord, start: float) -> float:
    return start + PERIOD_SECONDS[PlanInterval(plan.interval)]


def subscribe(db: DbClient, user_id: str, plan_id: str) -> SubscriptionRecord:
    """Replace the user's active subscription with one for ``plan_id``."""
    plan = db.get_plan(plan_id)
    if not plan:
        raise InputError("The selected plan does not exist", field="plan")

    current = db.get_active_subscription(user_id)
    if current:
        db.cancel_subscription(current.id)

    record = db.create_subscription(user_id, plan.id, period_end(plan, time.time()))
    logger.info("User %s subscribed to plan %s", user_id, plan.name)
    return record


def cancel(db: DbClient, user_id: str) -> Optional[SubscriptionRecord]:
    current = db.get_active_subscription(user_id)
    if not current:
        return None
    db.cancel_subscription(current.id)
    logger.info("User %s cancelled subscription %s", user_id, current.id)
    return current


def current_plan(db: DbClient, user_id: str) -> Optional[PlanRecord]:
    current = db.get_active_subscription(user_id)
    if not current:
        return None
    return db.get_plan(current.plan_id)


def has_premium_access(db: DbClient, profile: Optional[ProfileRecord]) -> bool:
    if not profile:
        return False
    if profile.is_admin:
        return True
    plan = current_plan(db, profile.id)
    return bool(plan and not plan.is_free)


def monthly_price(plan: PlanRecord) -> float:
    if PlanInterval(plan.interval) == PlanInterval.YEAR:
        return plan.price / 12
    return plan.price


@dataclass
class DashboardStats:
    total_users: int
    total_projects: int
    premium_projects: int
    total_downloads: int
    active_subscriptions: int
    monthly_revenue: float
    newsletter_subscribers: int
    contact_messages: int


def dashboard_stats(db: DbClient, auth: AuthClient) -> DashboardStats:
    projects = db.list_projects()
    active = db.list_subscriptions(status=SubscriptionStatus.ACTIVE)
    plans = {plan.id: plan for plan in db.list_plans()}
    revenue = sum(
        monthly_price(plans[sub.plan_id]) for sub in active if sub.plan_id in plans
    )
    return DashboardStats(
        total_users=len(auth.list_users()),
        total_projects=len(projects),
        premium_projects=sum(1 for p in projects if p.is_premium),
        total_downloads=sum(p.downloads for p in projects),
        active_subscriptions=len(active),
        monthly_revenue=round(revenue, 2),
        newsletter_subscribers=db.count_subscribers(),
        contact_messages=db.count_contact_messages(),
    )
