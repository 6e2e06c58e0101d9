"""Admin console operations that combine the database and the Graph API."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from workplace_admin.core.config import Settings
from workplace_admin.services import community_service
from workplace_admin.services.graph_api import GraphClient

CUSTOM_INTEGRATION_NAME = "Custom Integration"

# Webhook topics and the fields subscribed for each
WEBHOOK_SUBSCRIPTIONS: dict[str, list[str]] = {
    "link": ["preview", "collection"],
    "page": ["mention"],
}


@dataclass
class CommunityInstall:
    """A community row (or the custom integration) with its install details."""

    id: str
    name: str | None
    access_token: str
    permissions: list[Any] = field(default_factory=list)
    install_type: str | None = None


def _installs(db: Session, settings: Settings) -> list[CommunityInstall]:
    installs = [
        CommunityInstall(id=c.id, name=c.name, access_token=c.access_token)
        for c in community_service.list_communities(db)
    ]
    if settings.has_custom_integration:
        installs.insert(
            0,
            CommunityInstall(
                id=settings.APP_ID,
                name=CUSTOM_INTEGRATION_NAME,
                access_token=settings.ACCESS_TOKEN,
            ),
        )
    return installs


async def _attach_install(graph: GraphClient, install: CommunityInstall) -> CommunityInstall:
    response = await graph.get_community(install.access_token, fields="id,install")
    details = response.get("install") or {}
    install.permissions = details.get("permissions") or []
    install.install_type = details.get("install_type")
    return install


async def list_communities_with_installs(
    db: Session,
    graph: GraphClient,
    settings: Settings,
) -> list[CommunityInstall]:
    """
    List communities with their install permissions.

    One Graph call per community, issued concurrently. A single failure
    aborts the whole listing.
    """
    installs = _installs(db, settings)
    return list(await asyncio.gather(*(_attach_install(graph, i) for i in installs)))


async def subscribe_webhooks(graph: GraphClient) -> list[dict]:
    """Subscribe every webhook topic; all must succeed."""
    return list(
        await asyncio.gather(
            *(
                graph.subscribe_webhook(topic, fields)
                for topic, fields in WEBHOOK_SUBSCRIPTIONS.items()
            )
        )
    )
