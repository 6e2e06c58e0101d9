"""Community persistence."""

from sqlalchemy.orm import Session

from workplace_admin.db.models import Community


def list_communities(db: Session) -> list[Community]:
    return db.query(Community).order_by(Community.name.asc()).all()


def get_community(db: Session, community_id: str) -> Community | None:
    return db.get(Community, community_id)


def upsert_community(
    db: Session,
    community_id: str,
    name: str | None,
    access_token: str,
) -> Community:
    """
    Create a community or refresh its token.

    An existing row keeps its name; only the access token changes.
    """
    community = get_community(db, community_id)
    if community:
        community.access_token = access_token
    else:
        community = Community(id=community_id, name=name, access_token=access_token)
        db.add(community)
    db.commit()
    db.refresh(community)
    return community
