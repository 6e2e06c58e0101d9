"""Webhook callback log."""

from sqlalchemy.orm import Session

from workplace_admin.db.models import Callback

# Topics the callback list can be filtered by
CALLBACK_TOPICS = ("page", "group", "link")


def list_callbacks(db: Session, topic: str | None = None) -> list[Callback]:
    """
    List callbacks newest first.

    A known topic keeps rows whose path contains it; any other value
    returns everything.
    """
    query = db.query(Callback)
    if topic in CALLBACK_TOPICS:
        query = query.filter(Callback.path.like(f"%{topic}%"))
    return query.order_by(Callback.created_at.desc(), Callback.id.desc()).all()


def record_callback(db: Session, path: str, payload: str) -> Callback:
    callback = Callback(path=path, payload=payload)
    db.add(callback)
    db.commit()
    db.refresh(callback)
    return callback


def delete_all_callbacks(db: Session) -> int:
    deleted = db.query(Callback).delete()
    db.commit()
    return deleted
