"""Admin console: users, communities and webhook subscriptions."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from workplace_admin.core.config import Settings, get_settings
from workplace_admin.core.deps import get_db, get_graph_client, require_user
from workplace_admin.core.security import generate_state
from workplace_admin.services import admin_service, user_service
from workplace_admin.services.graph_api import GraphClient
from workplace_admin.templating import app_context, render

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_user)],
)
logger = logging.getLogger(__name__)


@router.get("")
def admin_home(request: Request):
    return render(
        request,
        "admin.html",
        {**app_context(), "state": generate_state()},
    )


@router.post("/subscribe")
async def subscribe(graph: GraphClient = Depends(get_graph_client)):
    """Subscribe all webhook topics; redirects only if every call succeeded."""
    await admin_service.subscribe_webhooks(graph)
    return RedirectResponse(url="/admin", status_code=302)


@router.get("/communities")
async def communities(
    request: Request,
    db: Session = Depends(get_db),
    graph: GraphClient = Depends(get_graph_client),
    settings: Settings = Depends(get_settings),
):
    installs = await admin_service.list_communities_with_installs(db, graph, settings)
    return render(
        request,
        "communities.html",
        {**app_context(), "communities": installs, "state": generate_state()},
    )


@router.get("/users")
def users(request: Request, db: Session = Depends(get_db)):
    return render(request, "users.html", {"users": user_service.list_users(db)})


@router.post("/user/{user_id}/unlink")
def unlink_user(user_id: int, db: Session = Depends(get_db)):
    user_service.unlink_user(db, user_id)
    logger.info("Unlinked user_id=%s", user_id)
    return RedirectResponse(url="/admin/users", status_code=302)


@router.post("/user/{user_id}/delete")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user_service.delete_user(db, user_id)
    logger.info("Deleted user_id=%s", user_id)
    return RedirectResponse(url="/admin/users", status_code=302)
