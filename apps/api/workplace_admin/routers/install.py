"""Install callbacks and account linking."""

import logging
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from workplace_admin.core.config import Settings, get_settings
from workplace_admin.core.deps import (
    get_current_user,
    get_db,
    get_graph_client,
    get_identity_verifier,
    require_user,
)
from workplace_admin.core.errors import MalformedRequest
from workplace_admin.core.security import SESSION_SIGNED_REQUEST
from workplace_admin.core.structured_logging import build_log_context
from workplace_admin.db.models import User
from workplace_admin.services import install_service, user_service
from workplace_admin.services.graph_api import GraphClient
from workplace_admin.services.identity_token import IdentityTokenVerifier
from workplace_admin.services.signed_request import verify_signed_request
from workplace_admin.templating import render

router = APIRouter(tags=["install"])
logger = logging.getLogger(__name__)


def _safe_redirect(url: str | None) -> str | None:
    """Only http(s) URLs are rendered as the continue link."""
    if url and urlsplit(url).scheme.lower() in ("http", "https"):
        return url
    return None


# =============================================================================
# OAuth install callbacks
# =============================================================================

@router.get("/page_install")
async def page_install(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    db: Session = Depends(get_db),
    graph: GraphClient = Depends(get_graph_client),
    settings: Settings = Depends(get_settings),
):
    page = await install_service.install_page(db, graph, settings, code)
    return render(request, "page_install_success.html", {"page": page, "state": state})


@router.get("/community_install")
async def community_install(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    redirect_uri: str | None = None,
    db: Session = Depends(get_db),
    graph: GraphClient = Depends(get_graph_client),
    settings: Settings = Depends(get_settings),
):
    community = await install_service.install_community(db, graph, settings, code)
    return render(
        request,
        "install_success.html",
        {"community": community, "state": state, "redirect": _safe_redirect(redirect_uri)},
    )


@router.get("/user_install")
async def user_install(
    request: Request,
    id_token: str | None = None,
    code: str | None = None,
    graph: GraphClient = Depends(get_graph_client),
    verifier: IdentityTokenVerifier = Depends(get_identity_verifier),
    settings: Settings = Depends(get_settings),
):
    result = await install_service.install_user(graph, verifier, settings, id_token, code)
    return render(request, "user_install_success.html", {"result": result})


# =============================================================================
# Account linking
# =============================================================================

@router.post("/link_account")
def link_account(
    request: Request,
    redirect_uri: str | None = None,
    signed_request: str | None = Form(None),
    user: User | None = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """
    Stage a verified signed request in the session.

    The link itself is confirmed by a logged-in user on /link_account_confirm.
    """
    payload = verify_signed_request(signed_request, redirect_uri, settings.APP_SECRET)
    request.session[SESSION_SIGNED_REQUEST] = payload
    if user is None:
        return RedirectResponse(url="/login", status_code=302)
    return RedirectResponse(url="/link_account_confirm", status_code=302)


def _pending_link(request: Request) -> dict:
    payload = request.session.get(SESSION_SIGNED_REQUEST)
    if not payload:
        raise MalformedRequest("No account link is pending.")
    return payload


@router.get("/link_account_confirm")
def link_account_confirm_page(request: Request, user: User = Depends(require_user)):
    return render(
        request,
        "link_account_confirm.html",
        {"user": user, "signed_request": _pending_link(request)},
    )


@router.post("/link_account_confirm")
def link_account_confirm(
    request: Request,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    payload = _pending_link(request)
    workplace_id = payload.get("user_id")
    if not workplace_id:
        raise MalformedRequest("Signed request has no user_id.")

    user_service.link_workplace_account(
        db,
        user,
        workplace_id=str(workplace_id),
        community_id=payload.get("community_id"),
    )
    request.session.pop(SESSION_SIGNED_REQUEST, None)
    logger.info("Account linked", extra=build_log_context(user_id=user.id))
    return RedirectResponse(url=payload["redirect"], status_code=302)
