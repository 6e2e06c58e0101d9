"""FastAPI dependencies for database access, Graph clients and the current user."""

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from workplace_admin.core.config import Settings, get_settings
from workplace_admin.core.security import SESSION_LOGIN_REFERRER, SESSION_USER_ID
from workplace_admin.db.models import User
from workplace_admin.db.session import SessionLocal
from workplace_admin.services.graph_api import GraphClient
from workplace_admin.services.identity_token import IdentityTokenVerifier


class LoginRequired(Exception):
    """Raised by require_user; the app handler redirects to /login."""


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_graph_client(settings: Settings = Depends(get_settings)) -> GraphClient:
    return GraphClient(settings)


def get_identity_verifier(settings: Settings = Depends(get_settings)) -> IdentityTokenVerifier:
    return IdentityTokenVerifier(settings)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    """Logged-in user from the session cookie, or None."""
    user_id = request.session.get(SESSION_USER_ID)
    if user_id is None:
        return None
    user = db.get(User, user_id)
    if not user:
        # Stale session pointing at a deleted user
        request.session.pop(SESSION_USER_ID, None)
    return user


def require_user(
    request: Request,
    user: User | None = Depends(get_current_user),
) -> User:
    """
    Require a logged-in user.

    Remembers the requested path so login can send the user back.

    Raises:
        LoginRequired: No user in session
    """
    if user is None:
        if request.method == "GET":
            referrer = request.url.path
            if request.url.query:
                referrer = f"{referrer}?{request.url.query}"
            request.session[SESSION_LOGIN_REFERRER] = referrer
        raise LoginRequired()
    return user
