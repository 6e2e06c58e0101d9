"""CLI tools for console administration."""

import anyio
import click

from workplace_admin.core.config import settings
from workplace_admin.core.errors import DuplicateUser
from workplace_admin.core.security import hash_password
from workplace_admin.db.base import Base
from workplace_admin.db.session import SessionLocal, engine
from workplace_admin.services import admin_service, user_service
from workplace_admin.services.graph_api import GraphClient


@click.group()
def cli():
    """Workplace admin console CLI tools."""
    pass


@cli.command()
def init_db():
    """
    Create all tables directly from the models.

    For local SQLite setups; production databases use alembic.
    """
    import workplace_admin.db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    click.echo("✅ Tables created")


@cli.command()
@click.option("--username", required=True, help="Login name")
@click.password_option(help="Password (prompted if omitted)")
def create_user(username: str, password: str):
    """
    Create a local console user.

    Example:
        python -m workplace_admin.cli create-user --username admin
    """
    db = SessionLocal()
    try:
        user = user_service.create_user(db, username.strip(), hash_password(password))
    except DuplicateUser as exc:
        click.echo(f"❌ {exc.message}")
        return
    finally:
        db.close()
    click.echo(f"✅ Created user {user.username} (id={user.id})")


@cli.command()
def subscribe_webhooks():
    """Subscribe the app to link and page webhooks."""
    if not settings.APP_ID or not settings.APP_SECRET:
        click.echo("❌ APP_ID and APP_SECRET must be set")
        return
    results = anyio.run(admin_service.subscribe_webhooks, GraphClient(settings))
    for topic, result in zip(admin_service.WEBHOOK_SUBSCRIPTIONS, results):
        click.echo(f"✅ {topic}: {result}")


if __name__ == "__main__":
    cli()
