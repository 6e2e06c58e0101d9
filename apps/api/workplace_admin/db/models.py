"""SQLAlchemy ORM models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workplace_admin.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Community(Base):
    """
    A Workplace community that installed the integration.

    The primary key is the community id issued by Workplace, so a reinstall
    of the same community finds the existing row.
    """

    __tablename__ = "communities"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )

    users: Mapped[list[User]] = relationship(back_populates="community")


class User(Base):
    """Local console account, optionally linked to a Workplace user."""

    __tablename__ = "users"
    __table_args__ = (Index("idx_users_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Set by account linking, cleared by unlink
    workplace_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    community_id: Mapped[str | None] = mapped_column(
        String(100),
        ForeignKey("communities.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )

    community: Mapped[Community | None] = relationship(back_populates="users")


class Page(Base):
    """
    A page installed into a community.

    community_id is not a foreign key: page installs can arrive before the
    community row exists.
    """

    __tablename__ = "pages"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    community_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    community_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    install_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )


class Callback(Base):
    """Append-only log of inbound webhook deliveries."""

    __tablename__ = "callbacks"
    __table_args__ = (Index("idx_callbacks_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
