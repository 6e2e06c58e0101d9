"""Page persistence."""

from sqlalchemy.orm import Session

from workplace_admin.db.models import Page


def create_page(
    db: Session,
    *,
    page_id: str,
    name: str | None,
    access_token: str,
    community_id: str | None,
    community_name: str | None,
    install_id: str | None,
) -> Page:
    page = Page(
        id=page_id,
        name=name,
        access_token=access_token,
        community_id=community_id,
        community_name=community_name,
        install_id=install_id,
    )
    db.add(page)
    db.commit()
    db.refresh(page)
    return page
