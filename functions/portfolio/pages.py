"""
HTML page routes: public pages, account flows, pricing and subscriptions.

Forms follow post/redirect/get; outcomes are reported with flash messages.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode, urlparse

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import RedirectResponse

from portfolio import accounts, subscriptions
from portfolio.auth import AuthClient
from portfolio.catalog import ProjectFilters, filter_projects, list_categories
from portfolio.config import get_settings
from portfolio.db import DbClient, ProfileRecord
from portfolio.dependencies import get_auth_client, get_db_client
from portfolio.errors import AuthApiError, InputError, LoginRequired
from portfolio.outreach import (
    CONTACT_SENT,
    send_contact_message,
    subscribe_newsletter,
)
from portfolio.session import (
    SessionMirror,
    flash,
    get_current_profile,
    get_session_mirror,
    require_profile,
)
from portfolio.templating import THEME_KEY, THEMES, current_theme, render
from shared import validation
from shared.types import FlashLevel

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_profile)])

HOME_PROJECT_COUNT = 3
RESET_EMAIL_KEY = "reset_email"
RESET_STEPS = ("email", "otp", "newPassword")

PREMIUM_LOGIN_MESSAGE = "Please log in to access this premium content."
UPGRADE_MESSAGE = "Upgrade your plan to download premium projects"
PRICING_LOGIN_MESSAGE = "Please log in to subscribe to this plan"
SIGNED_UP_MESSAGE = "Account created! Please check your email for verification."
PASSWORD_RESET_MESSAGE = "Password reset successfully!"


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def safe_next(next_path: Optional[str]) -> str:
    """Only allow redirects back into this site."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return "/"
    return next_path


def login_url(next_path: str) -> str:
    return "/login?" + urlencode({"next": next_path})


def projects_url(filters: ProjectFilters) -> str:
    query = urlencode(filters.as_query(), doseq=True)
    return f"/projects?{query}" if query else "/projects"


def referer_path(request: Request) -> str:
    referer = request.headers.get("referer")
    if not referer:
        return "/"
    parsed = urlparse(referer)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return safe_next(path)


@router.get("/")
def home(request: Request, db: DbClient = Depends(get_db_client)):
    return render(
        request,
        "index.html",
        {"projects": db.list_projects()[:HOME_PROJECT_COUNT]},
    )


@router.post("/newsletter")
def newsletter(
    request: Request,
    email: str = Form(""),
    db: DbClient = Depends(get_db_client),
):
    try:
        created, message = subscribe_newsletter(db, email)
    except InputError as exc:
        flash(request, exc.message, FlashLevel.ERROR)
    else:
        flash(request, message, FlashLevel.SUCCESS if created else FlashLevel.INFO)
    return redirect(referer_path(request))


@router.get("/about")
def about(request: Request):
    return render(request, "about.html")


@router.get("/projects")
def projects(
    request: Request,
    q: Optional[str] = Query(None, max_length=200),
    category: list[str] = Query(default=[]),
    access: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
):
    all_projects = db.list_projects()
    filters = ProjectFilters.from_query(q, category, access)
    return render(
        request,
        "projects.html",
        {
            "projects": filter_projects(all_projects, filters),
            "total": len(all_projects),
            "categories": list_categories(all_projects),
            "filters": filters,
            "projects_url": projects_url,
        },
    )


@router.get("/projects/{project_id}")
def project_detail(
    request: Request,
    project_id: str,
    profile: Optional[ProfileRecord] = Depends(get_current_profile),
    db: DbClient = Depends(get_db_client),
):
    project = db.get_project(project_id)
    if not project:
        flash(request, "Project not found", FlashLevel.ERROR)
        return redirect("/projects")
    if project.is_premium and not profile:
        raise LoginRequired(next_path=request.url.path, message=PREMIUM_LOGIN_MESSAGE)

    can_download = not project.is_premium or subscriptions.has_premium_access(
        db, profile
    )
    return render(
        request,
        "project_detail.html",
        {"project": project, "can_download": can_download},
    )


@router.post("/projects/{project_id}/download")
def download_project(
    request: Request,
    project_id: str,
    profile: Optional[ProfileRecord] = Depends(get_current_profile),
    db: DbClient = Depends(get_db_client),
):
    project = db.get_project(project_id)
    if not project:
        flash(request, "Project not found", FlashLevel.ERROR)
        return redirect("/projects")
    if project.is_premium:
        if not profile:
            raise LoginRequired(
                next_path=f"/projects/{project.id}", message=PREMIUM_LOGIN_MESSAGE
            )
        if not subscriptions.has_premium_access(db, profile):
            flash(request, UPGRADE_MESSAGE, FlashLevel.ERROR)
            return redirect("/pricing")

    db.increment_downloads(project.id)
    logger.info("Download of project %s", project.id)
    flash(request, "Download Started")
    return redirect(f"/projects/{project.id}")


@router.get("/contact")
def contact(request: Request):
    return render(request, "contact.html", {"form": {}})


@router.post("/contact")
def contact_submit(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    subject: str = Form(""),
    message: str = Form(""),
    db: DbClient = Depends(get_db_client),
):
    try:
        send_contact_message(
            db, name=name, email=email, subject=subject, message=message
        )
    except InputError as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        form = {"name": name, "email": email, "subject": subject, "message": message}
        return render(request, "contact.html", {"form": form}, status_code=400)
    flash(request, CONTACT_SENT)
    return redirect("/contact")


@router.get("/login")
def login(
    request: Request,
    next: str = Query("/"),
    tab: str = Query("login"),
    profile: Optional[ProfileRecord] = Depends(get_current_profile),
):
    if profile:
        return redirect("/")
    return render(
        request,
        "login.html",
        {"next": safe_next(next), "tab": tab, "form": {}},
    )


@router.post("/login")
def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/"),
    mirror: SessionMirror = Depends(get_session_mirror),
):
    next_path = safe_next(next)
    try:
        accounts.sign_in(mirror, email.strip(), password)
    except (InputError, AuthApiError) as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        return redirect(login_url(next_path))
    return redirect(next_path)


@router.post("/signup")
def signup_submit(
    request: Request,
    first_name: str = Form(""),
    last_name: str = Form(""),
    email: str = Form(""),
    username: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    accept_terms: bool = Form(False),
    auth: AuthClient = Depends(get_auth_client),
    db: DbClient = Depends(get_db_client),
):
    form = accounts.SignUpForm(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        username=username,
        accept_terms=accept_terms,
    )
    try:
        if confirm_password:
            validation.passwords_match(password, confirm_password)
        accounts.sign_up(auth, db, form, get_settings().admin_email_set)
    except (InputError, AuthApiError) as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        values = {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "username": username,
        }
        return render(
            request,
            "login.html",
            {"next": "/", "tab": "signup", "form": values},
            status_code=400,
        )
    flash(request, SIGNED_UP_MESSAGE)
    return redirect("/login")


@router.post("/logout")
def logout(mirror: SessionMirror = Depends(get_session_mirror)):
    accounts.sign_out(mirror)
    return redirect("/")


@router.get("/forgot-password")
def forgot_password(
    request: Request,
    step: str = Query("email"),
    mirror: SessionMirror = Depends(get_session_mirror),
):
    if step not in RESET_STEPS:
        step = "email"
    email = request.session.get(RESET_EMAIL_KEY)
    if step == "otp" and not email:
        step = "email"
    if step == "newPassword" and not mirror.access_token:
        step = "email"
    return render(request, "forgot_password.html", {"step": step, "email": email})


@router.post("/forgot-password")
def forgot_password_submit(
    request: Request,
    step: str = Form("email"),
    email: str = Form(""),
    code: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    mirror: SessionMirror = Depends(get_session_mirror),
):
    try:
        if step == "otp":
            reset_email = request.session.get(RESET_EMAIL_KEY)
            if not reset_email:
                return redirect("/forgot-password")
            accounts.verify_reset_code(mirror, reset_email, code)
            return redirect("/forgot-password?step=newPassword")

        if step == "newPassword":
            accounts.reset_password(mirror, password, confirm_password)
            request.session.pop(RESET_EMAIL_KEY, None)
            flash(request, PASSWORD_RESET_MESSAGE)
            return redirect("/login")

        reset_email = accounts.request_password_reset(
            mirror.auth, email, get_settings().password_reset_redirect
        )
        request.session[RESET_EMAIL_KEY] = reset_email
        flash(request, "Check your email for a 6-digit verification code", FlashLevel.INFO)
        return redirect("/forgot-password?step=otp")
    except (InputError, AuthApiError) as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        return redirect(f"/forgot-password?step={step if step in RESET_STEPS else 'email'}")


@router.get("/profile")
def profile_page(
    request: Request,
    profile: ProfileRecord = Depends(require_profile),
    db: DbClient = Depends(get_db_client),
):
    return render(
        request,
        "profile.html",
        {"plan": subscriptions.current_plan(db, profile.id)},
    )


@router.post("/profile")
def profile_submit(
    request: Request,
    first_name: str = Form(""),
    last_name: str = Form(""),
    username: str = Form(""),
    avatar: Optional[UploadFile] = File(None),
    profile: ProfileRecord = Depends(require_profile),
    mirror: SessionMirror = Depends(get_session_mirror),
    db: DbClient = Depends(get_db_client),
):
    try:
        avatar_url = None
        if avatar is not None and avatar.filename:
            avatar_url = accounts.avatar_data_url(
                avatar.file.read(), avatar.content_type
            )
        accounts.update_profile(
            mirror,
            db,
            profile,
            first_name=first_name,
            last_name=last_name,
            username=username,
            avatar_url=avatar_url,
        )
    except (InputError, AuthApiError) as exc:
        flash(request, exc.message, FlashLevel.ERROR)
    else:
        flash(request, "Profile updated successfully!")
    return redirect("/profile")


@router.post("/profile/password")
def password_submit(
    request: Request,
    new_password: str = Form(""),
    confirm_password: str = Form(""),
    profile: ProfileRecord = Depends(require_profile),
    mirror: SessionMirror = Depends(get_session_mirror),
):
    try:
        accounts.change_password(mirror, new_password, confirm_password)
    except (InputError, AuthApiError) as exc:
        flash(request, exc.message, FlashLevel.ERROR)
    else:
        logger.info("Password changed for %s", profile.id)
        flash(request, "Password updated successfully!")
    return redirect("/profile")


@router.get("/pricing")
def pricing(
    request: Request,
    profile: Optional[ProfileRecord] = Depends(get_current_profile),
    db: DbClient = Depends(get_db_client),
):
    plan = subscriptions.current_plan(db, profile.id) if profile else None
    return render(
        request,
        "pricing.html",
        {"plans": db.list_plans(), "current_plan_id": plan.id if plan else None},
    )


@router.post("/pricing/{plan_id}")
def choose_plan(
    request: Request,
    plan_id: str,
    profile: Optional[ProfileRecord] = Depends(get_current_profile),
):
    if not profile:
        flash(request, PRICING_LOGIN_MESSAGE, FlashLevel.ERROR)
        return redirect(login_url("/pricing"))
    return redirect("/subscription?" + urlencode({"plan": plan_id}))


@router.get("/subscription")
def subscription_page(
    request: Request,
    plan: Optional[str] = Query(None),
    profile: ProfileRecord = Depends(require_profile),
    db: DbClient = Depends(get_db_client),
):
    current = db.get_active_subscription(profile.id)
    return render(
        request,
        "subscription.html",
        {
            "subscription": current,
            "current_plan": db.get_plan(current.plan_id) if current else None,
            "selected_plan": db.get_plan(plan) if plan else None,
        },
    )


@router.post("/subscription")
def subscription_submit(
    request: Request,
    plan_id: str = Form(""),
    profile: ProfileRecord = Depends(require_profile),
    db: DbClient = Depends(get_db_client),
):
    try:
        record = subscriptions.subscribe(db, profile.id, plan_id)
    except InputError as exc:
        flash(request, exc.message, FlashLevel.ERROR)
        return redirect("/pricing")
    plan = db.get_plan(record.plan_id)
    flash(request, f"You are now subscribed to the {plan.name} plan!")
    return redirect("/subscription")


@router.post("/subscription/cancel")
def subscription_cancel(
    request: Request,
    profile: ProfileRecord = Depends(require_profile),
    db: DbClient = Depends(get_db_client),
):
    if subscriptions.cancel(db, profile.id):
        flash(request, "Your subscription has been cancelled")
    else:
        flash(request, "You have no active subscription", FlashLevel.INFO)
    return redirect("/subscription")


@router.post("/theme")
def toggle_theme(request: Request):
    theme = current_theme(request)
    request.session[THEME_KEY] = THEMES[1] if theme == THEMES[0] else THEMES[0]
    return redirect(referer_path(request))
