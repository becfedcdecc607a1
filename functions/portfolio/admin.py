"""
Admin console: dashboard, user moderation and catalog management.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request

from portfolio import subscriptions
from portfolio.activity import ActivityLog
from portfolio.auth import AuthClient
from portfolio.db import DbClient, PlanRecord, ProfileRecord, ProjectRecord
from portfolio.dependencies import (
    TextGenerator,
    get_activity_log,
    get_auth_client,
    get_db_client,
    get_text_generator,
)
from portfolio.errors import AuthApiError, GenerationError, InputError
from portfolio.pages import redirect
from portfolio.session import flash, require_admin
from portfolio.templating import render
from shared import validation
from shared.types import FlashLevel, PlanInterval, UserRole, UserStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])

RECENT_ACTIVITY_LIMIT = 10
DESCRIPTION_MAX_TOKENS = 400


@router.get("")
def overview(
    request: Request,
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
    activity: ActivityLog = Depends(get_activity_log),
):
    return render(
        request,
        "admin/overview.html",
        {
            "stats": subscriptions.dashboard_stats(db, auth),
            "activity": activity.recent(RECENT_ACTIVITY_LIMIT),
        },
    )


# Users


@router.get("/users")
def users(request: Request, db: DbClient = Depends(get_db_client)):
    rows = [
        {"profile": profile, "plan": subscriptions.current_plan(db, profile.id)}
        for profile in db.list_profiles()
    ]
    return render(request, "admin/users.html", {"rows": rows})


def _target_profile(request: Request, db: DbClient, user_id: str) -> Optional[ProfileRecord]:
    profile = db.get_profile(user_id)
    if not profile:
        flash(request, "User not found", FlashLevel.ERROR)
    return profile


@router.post("/users/{user_id}/role")
def change_role(
    request: Request,
    user_id: str,
    role: str = Form(...),
    admin: ProfileRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    try:
        new_role = UserRole(role)
    except ValueError:
        flash(request, "Unknown role", FlashLevel.ERROR)
        return redirect("/admin/users")
    if user_id == admin.id and new_role != UserRole.ADMIN:
        flash(request, "You cannot remove your own admin role", FlashLevel.ERROR)
        return redirect("/admin/users")

    profile = _target_profile(request, db, user_id)
    if profile:
        db.update_profile(user_id, role=new_role)
        logger.info("Admin %s set role of %s to %s", admin.id, user_id, new_role)
        flash(request, f"{profile.display_name} is now {new_role.value}")
    return redirect("/admin/users")


def _set_banned(
    request: Request,
    user_id: str,
    banned: bool,
    admin: ProfileRecord,
    db: DbClient,
    auth: AuthClient,
):
    if user_id == admin.id:
        flash(request, "You cannot ban yourself", FlashLevel.ERROR)
        return redirect("/admin/users")
    profile = _target_profile(request, db, user_id)
    if not profile:
        return redirect("/admin/users")
    try:
        auth.set_banned(user_id, banned)
    except AuthApiError as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        return redirect("/admin/users")

    db.update_profile(
        user_id, status=UserStatus.BANNED if banned else UserStatus.ACTIVE
    )
    logger.info("Admin %s set banned=%s for %s", admin.id, banned, user_id)
    action = "banned" if banned else "unbanned"
    flash(request, f"{profile.display_name} has been {action}")
    return redirect("/admin/users")


@router.post("/users/{user_id}/ban")
def ban_user(
    request: Request,
    user_id: str,
    admin: ProfileRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
):
    return _set_banned(request, user_id, True, admin, db, auth)


@router.post("/users/{user_id}/unban")
def unban_user(
    request: Request,
    user_id: str,
    admin: ProfileRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
):
    return _set_banned(request, user_id, False, admin, db, auth)


@router.post("/users/{user_id}/delete")
def delete_user(
    request: Request,
    user_id: str,
    admin: ProfileRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
):
    if user_id == admin.id:
        flash(request, "You cannot delete your own account", FlashLevel.ERROR)
        return redirect("/admin/users")
    profile = _target_profile(request, db, user_id)
    if not profile:
        return redirect("/admin/users")
    try:
        auth.delete_user(user_id)
    except AuthApiError as exc:
        # The profile may outlive an account removed directly on the backend.
        if exc.status != 404:
            flash(request, exc.message, FlashLevel.ERROR)
            return redirect("/admin/users")

    subscriptions.cancel(db, user_id)
    db.delete_profile(user_id)
    logger.info("Admin %s deleted user %s", admin.id, user_id)
    flash(request, f"{profile.display_name} has been deleted")
    return redirect("/admin/users")


# Projects


def _project_form(project: ProjectRecord | None = None) -> dict:
    if not project:
        return {"is_premium": False}
    return {
        "title": project.title,
        "description": project.description,
        "category": project.category,
        "long_description": project.long_description,
        "image": project.image,
        "tags": ", ".join(project.tags),
        "features": "\n".join(project.features),
        "demo_url": project.demo_url or "",
        "repo_url": project.repo_url or "",
        "is_premium": project.is_premium,
    }


def _project_fields(form: dict) -> dict:
    if not (form["title"] and form["description"] and form["category"]):
        raise InputError("Title, description and category are required")
    return {
        "title": form["title"],
        "description": form["description"],
        "category": form["category"],
        "long_description": form["long_description"],
        "image": form["image"] or "/static/img/project.svg",
        "tags": validation.split_list(form["tags"]),
        "features": validation.split_list(form["features"]),
        "demo_url": form["demo_url"] or None,
        "repo_url": form["repo_url"] or None,
        "is_premium": form["is_premium"],
    }


def _description_prompt(form: dict) -> str:
    if not form["title"]:
        raise InputError("Enter a title before generating a description")
    prompt = (
        "Write a two paragraph description of a software portfolio project "
        f"titled \"{form['title']}\""
    )
    if form["category"]:
        prompt += f" in the category {form['category']}"
    if form["tags"]:
        prompt += f", built with {', '.join(validation.split_list(form['tags']))}"
    if form["description"]:
        prompt += f". Summary: {form['description']}"
    return prompt + "."


async def _read_project_form(request: Request) -> dict:
    data = await request.form()
    form = {
        key: str(data.get(key, "")).strip()
        for key in (
            "title",
            "description",
            "category",
            "long_description",
            "image",
            "tags",
            "features",
            "demo_url",
            "repo_url",
        )
    }
    form["is_premium"] = data.get("is_premium") in ("on", "true", "1")
    form["action"] = data.get("action", "save")
    return form


def _generate_description(
    request: Request, form: dict, generate: TextGenerator
) -> None:
    try:
        form["long_description"] = generate(
            _description_prompt(form), max_tokens=DESCRIPTION_MAX_TOKENS
        ).strip()
    except (InputError, GenerationError) as exc:
        flash(request, exc.message, FlashLevel.ERROR)
    else:
        flash(request, "Description generated. Review it before saving.", FlashLevel.INFO)


@router.get("/projects")
def projects(request: Request, db: DbClient = Depends(get_db_client)):
    return render(request, "admin/projects.html", {"projects": db.list_projects()})


@router.get("/projects/new")
def new_project(request: Request):
    return render(
        request,
        "admin/project_form.html",
        {"form": _project_form(), "action_url": "/admin/projects/new"},
    )


@router.post("/projects/new")
async def create_project(
    request: Request,
    db: DbClient = Depends(get_db_client),
    generate: TextGenerator = Depends(get_text_generator),
):
    form = await _read_project_form(request)
    context = {"form": form, "action_url": "/admin/projects/new"}
    if form["action"] == "generate":
        _generate_description(request, form, generate)
        return render(request, "admin/project_form.html", context)
    try:
        project = db.create_project(ProjectRecord(**_project_fields(form)))
    except InputError as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        return render(request, "admin/project_form.html", context, status_code=400)
    logger.info("Created project %s", project.id)
    flash(request, f"Project \"{project.title}\" created")
    return redirect("/admin/projects")


@router.get("/projects/{project_id}/edit")
def edit_project(
    request: Request, project_id: str, db: DbClient = Depends(get_db_client)
):
    project = db.get_project(project_id)
    if not project:
        flash(request, "Project not found", FlashLevel.ERROR)
        return redirect("/admin/projects")
    return render(
        request,
        "admin/project_form.html",
        {
            "form": _project_form(project),
            "project": project,
            "action_url": f"/admin/projects/{project.id}/edit",
        },
    )


@router.post("/projects/{project_id}/edit")
async def update_project(
    request: Request,
    project_id: str,
    db: DbClient = Depends(get_db_client),
    generate: TextGenerator = Depends(get_text_generator),
):
    project = db.get_project(project_id)
    if not project:
        flash(request, "Project not found", FlashLevel.ERROR)
        return redirect("/admin/projects")

    form = await _read_project_form(request)
    context = {
        "form": form,
        "project": project,
        "action_url": f"/admin/projects/{project.id}/edit",
    }
    if form["action"] == "generate":
        _generate_description(request, form, generate)
        return render(request, "admin/project_form.html", context)
    try:
        db.update_project(project.id, **_project_fields(form))
    except InputError as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        return render(request, "admin/project_form.html", context, status_code=400)
    flash(request, f"Project \"{form['title']}\" updated")
    return redirect("/admin/projects")


@router.post("/projects/{project_id}/delete")
def delete_project(
    request: Request, project_id: str, db: DbClient = Depends(get_db_client)
):
    if db.delete_project(project_id):
        logger.info("Deleted project %s", project_id)
        flash(request, "Project deleted")
    else:
        flash(request, "Project not found", FlashLevel.ERROR)
    return redirect("/admin/projects")


# Plans


def _plan_form(plan: PlanRecord | None = None) -> dict:
    if not plan:
        return {"interval": PlanInterval.MONTH.value, "is_popular": False}
    return {
        "name": plan.name,
        "description": plan.description,
        "price": f"{plan.price:g}",
        "interval": PlanInterval(plan.interval).value,
        "features": "\n".join(plan.features),
        "is_popular": plan.is_popular,
    }


def _plan_fields(form: dict) -> dict:
    if not form["name"]:
        raise InputError("Plan name is required", field="name")
    try:
        price = float(form["price"])
    except ValueError:
        price = -1.0
    if not math.isfinite(price) or price < 0:
        raise InputError("Price must be a non-negative number", field="price")
    try:
        interval = PlanInterval(form["interval"])
    except ValueError:
        raise InputError("Interval must be month or year", field="interval")
    return {
        "name": form["name"],
        "description": form["description"],
        "price": price,
        "interval": interval,
        "features": validation.split_list(form["features"]),
        "is_popular": form["is_popular"],
    }


def _read_plan_form(
    name: str, description: str, price: str, interval: str, features: str, is_popular: bool
) -> dict:
    return {
        "name": name.strip(),
        "description": description.strip(),
        "price": price.strip(),
        "interval": interval.strip(),
        "features": features,
        "is_popular": is_popular,
    }


@router.get("/plans")
def plans(request: Request, db: DbClient = Depends(get_db_client)):
    return render(request, "admin/plans.html", {"plans": db.list_plans()})


@router.get("/plans/new")
def new_plan(request: Request):
    return render(
        request,
        "admin/plan_form.html",
        {"form": _plan_form(), "action_url": "/admin/plans/new"},
    )


@router.post("/plans/new")
def create_plan(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    interval: str = Form(PlanInterval.MONTH.value),
    features: str = Form(""),
    is_popular: bool = Form(False),
    db: DbClient = Depends(get_db_client),
):
    form = _read_plan_form(name, description, price, interval, features, is_popular)
    try:
        plan = db.create_plan(PlanRecord(**_plan_fields(form)))
    except InputError as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        return render(
            request,
            "admin/plan_form.html",
            {"form": form, "action_url": "/admin/plans/new"},
            status_code=400,
        )
    logger.info("Created plan %s", plan.id)
    flash(request, f"Plan \"{plan.name}\" created")
    return redirect("/admin/plans")


@router.get("/plans/{plan_id}/edit")
def edit_plan(request: Request, plan_id: str, db: DbClient = Depends(get_db_client)):
    plan = db.get_plan(plan_id)
    if not plan:
        flash(request, "Plan not found", FlashLevel.ERROR)
        return redirect("/admin/plans")
    return render(
        request,
        "admin/plan_form.html",
        {
            "form": _plan_form(plan),
            "plan": plan,
            "action_url": f"/admin/plans/{plan.id}/edit",
        },
    )


@router.post("/plans/{plan_id}/edit")
def update_plan(
    request: Request,
    plan_id: str,
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    interval: str = Form(PlanInterval.MONTH.value),
    features: str = Form(""),
    is_popular: bool = Form(False),
    db: DbClient = Depends(get_db_client),
):
    plan = db.get_plan(plan_id)
    if not plan:
        flash(request, "Plan not found", FlashLevel.ERROR)
        return redirect("/admin/plans")
    form = _read_plan_form(name, description, price, interval, features, is_popular)
    try:
        db.update_plan(plan.id, **_plan_fields(form))
    except InputError as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        return render(
            request,
            "admin/plan_form.html",
            {"form": form, "plan": plan, "action_url": f"/admin/plans/{plan.id}/edit"},
            status_code=400,
        )
    flash(request, f"Plan \"{form['name']}\" updated")
    return redirect("/admin/plans")


@router.post("/plans/{plan_id}/delete")
def delete_plan(request: Request, plan_id: str, db: DbClient = Depends(get_db_client)):
    if db.delete_plan(plan_id):
        logger.info("Deleted plan %s", plan_id)
        flash(request, "Plan deleted")
    else:
        flash(request, "Plan not found", FlashLevel.ERROR)
    return redirect("/admin/plans")


# Messages


@router.get("/messages")
def messages(request: Request, db: DbClient = Depends(get_db_client)):
    return render(
        request, "admin/messages.html", {"messages": db.list_contact_messages()}
    )
