"""Install flows: authorization-code exchange, metadata fetch, persistence.

Each flow runs code -> token -> profile/install metadata -> persist. Upstream
failures propagate untouched; nothing is persisted unless every fetch in the
flow succeeded.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from workplace_admin.core.config import Settings
from workplace_admin.core.errors import MalformedRequest, MissingCode
from workplace_admin.db.models import Community, Page
from workplace_admin.services import community_service, page_service
from workplace_admin.services.graph_api import GraphClient
from workplace_admin.services.identity_token import IdentityTokenVerifier, decode_unverified

logger = logging.getLogger(__name__)


@dataclass
class UserInstallResult:
    """What the user-install page shows."""

    claims: dict[str, Any] | None = None
    code: str | None = None
    response: dict[str, Any] = field(default_factory=dict)
    token: dict[str, Any] | None = None


def require_code(code: str | None) -> str:
    if not code:
        raise MissingCode("No code received.")
    return code


async def install_community(
    db: Session,
    graph: GraphClient,
    settings: Settings,
    code: str | None,
) -> Community:
    """Exchange a community-install code and upsert the community."""
    code = require_code(code)
    token_response = await graph.exchange_code(code, settings.APP_REDIRECT)
    access_token = token_response["access_token"]

    community_response = await graph.get_community(access_token, fields="name")
    community = community_service.upsert_community(
        db,
        community_id=str(community_response["id"]),
        name=community_response.get("name"),
        access_token=access_token,
    )
    logger.info("Community installed: community_id=%s", community.id)
    return community


async def install_page(
    db: Session,
    graph: GraphClient,
    settings: Settings,
    code: str | None,
) -> Page:
    """Exchange a page-install code and record the page with its community."""
    code = require_code(code)
    token_response = await graph.exchange_code(code, settings.absolute_url("page_install"))
    access_token = token_response["access_token"]

    page_response, community_response = await asyncio.gather(
        graph.get_me(access_token, fields="name"),
        graph.get_community(access_token, fields="install,name"),
    )

    install = community_response.get("install") or {}
    page = page_service.create_page(
        db,
        page_id=str(page_response["id"]),
        name=page_response.get("name"),
        access_token=access_token,
        community_id=community_response.get("id"),
        community_name=community_response.get("name"),
        install_id=install.get("id"),
    )
    logger.info("Page installed: page_id=%s community_id=%s", page.id, page.community_id)
    return page


async def install_user(
    graph: GraphClient,
    verifier: IdentityTokenVerifier,
    settings: Settings,
    id_token: str | None,
    code: str | None,
) -> UserInstallResult:
    """
    Verify a user install.

    Either an identity token arrives directly, or a code is exchanged and any
    identity token in the token response is verified.

    Raises:
        MalformedRequest: Neither id_token nor code supplied
        UnknownKey, TokenInvalid: Identity token rejected
    """
    if not id_token and not code:
        raise MalformedRequest("Expected either an id_token or code.")

    keys = await verifier.fetch_keys()

    if id_token:
        return UserInstallResult(claims=verifier.verify(keys, id_token))

    token_response = await graph.exchange_code(
        code,
        settings.absolute_url("user_install"),
        grant_type="authorization_code",
    )
    token = None
    if token_response.get("id_token"):
        verifier.verify(keys, token_response["id_token"])
        token = decode_unverified(token_response["id_token"])
    return UserInstallResult(code=code, response=token_response, token=token)
