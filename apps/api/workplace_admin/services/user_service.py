"""User persistence."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from workplace_admin.core.errors import DuplicateUser, NotFound
from workplace_admin.db.models import Community, User


def list_users(db: Session) -> list[User]:
    """List users with their linked community, newest first."""
    return (
        db.query(User)
        .options(joinedload(User.community))
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def create_user(db: Session, username: str, password_hash: str) -> User:
    """
    Create a local user.

    Raises:
        DuplicateUser: If the username is taken
    """
    user = User(username=username, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateUser(f"Username '{username}' is already registered.") from exc
    db.refresh(user)
    return user


def link_workplace_account(
    db: Session,
    user: User,
    workplace_id: str,
    community_id: str | None,
) -> User:
    """Attach a Workplace identity; unknown communities are left unlinked."""
    if community_id is not None and db.get(Community, str(community_id)) is None:
        community_id = None
    user.workplace_id = workplace_id
    user.community_id = str(community_id) if community_id is not None else None
    db.commit()
    db.refresh(user)
    return user


def unlink_user(db: Session, user_id: int) -> User:
    """Clear the Workplace link for a user."""
    user = get_user(db, user_id)
    if not user:
        raise NotFound(f"User {user_id} not found.")
    user.workplace_id = None
    db.commit()
    return user


def delete_user(db: Session, user_id: int) -> int:
    """Hard delete by id. Returns the number of rows removed."""
    deleted = db.query(User).filter(User.id == user_id).delete()
    db.commit()
    return deleted
