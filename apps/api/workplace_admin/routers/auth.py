"""Local login, registration and logout."""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from workplace_admin.core.deps import get_db
from workplace_admin.core.errors import DuplicateUser
from workplace_admin.core.rate_limit import auth_limit, limiter
from workplace_admin.core.security import (
    SESSION_SIGNED_REQUEST,
    hash_password,
    login_user,
    logout_user,
    pop_login_referrer,
    verify_password,
)
from workplace_admin.core.structured_logging import build_log_context
from workplace_admin.services import user_service
from workplace_admin.templating import app_context, render

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


@router.get("/")
def home(request: Request):
    return render(request, "home.html")


@router.get("/login")
def login_page(request: Request):
    return render(request, "login.html", app_context())


@router.post("/login")
@limiter.limit(auth_limit)
def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    """
    Check local credentials.

    A pending signed request takes priority over the stored referrer so the
    account link can be confirmed right after login.
    """
    user = user_service.get_user_by_username(db, username)
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Login failed", extra=build_log_context(route="/login", method="POST"))
        return RedirectResponse(url="/login", status_code=302)

    login_user(request, user.id)
    if request.session.get(SESSION_SIGNED_REQUEST):
        return RedirectResponse(url="/link_account_confirm", status_code=302)
    return RedirectResponse(url=pop_login_referrer(request), status_code=302)


@router.get("/register")
def register_page(request: Request):
    return render(request, "register.html")


@router.post("/register")
def register(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    try:
        user = user_service.create_user(db, username, hash_password(password))
        login_user(request, user.id)
    except DuplicateUser as exc:
        logger.warning("Registration rejected: %s", exc.message)
        raise
    except Exception:
        logger.warning("Registration failed", exc_info=True)
        raise
    logger.info("User registered", extra=build_log_context(user_id=user.id))
    return RedirectResponse(url=pop_login_referrer(request), status_code=302)


@router.post("/logout")
def logout(request: Request):
    logout_user(request)
    return RedirectResponse(url="/", status_code=302)
