"""CLI tools for jukeboxd administration."""

import click

from jukeboxd.core.cache import build_cache
from jukeboxd.core.config import settings
from jukeboxd.core.exceptions import JukeboxdError
from jukeboxd.core.structured_logging import configure_logging
from jukeboxd.db.base import Base
from jukeboxd.db.ownership import OwnedBy
from jukeboxd.db.session import SessionLocal
from jukeboxd.services import (
    account_service,
    feed_service,
    rating_service,
    review_service,
    social_service,
    user_service,
)
from jukeboxd.services.session_service import SessionStore


def _lookup_user(db, username: str):
    user = user_service.get_user_by_username(db, username)
    if not user:
        raise click.ClickException(f"User not found: {username}")
    return user


def _describe_actor(actor) -> str:
    if isinstance(actor, OwnedBy):
        return str(actor.user_id)
    return "deleted user"


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL for this run")
def cli(log_level: str | None):
    """jukeboxd CLI tools."""
    configure_logging(log_level or settings.LOG_LEVEL)


@cli.command()
def init_db():
    """
    Create all tables on the configured database.

    Production deployments use `alembic upgrade head` instead; this is for
    local SQLite databases and throwaway environments.
    """
    db = SessionLocal()
    try:
        Base.metadata.create_all(bind=db.get_bind())
        click.echo("✓ Database tables created")
    finally:
        db.close()


@cli.command()
@click.option("--username", required=True, help="Unique username (3-50 chars)")
@click.option("--email", required=True, help="Unique email address")
@click.option(
    "--credential-hash",
    default="!",
    show_default=True,
    help="Pre-computed credential hash; '!' creates an account that cannot log in",
)
@click.option("--display-name", default=None, help="Optional display name")
def create_user(username: str, email: str, credential_hash: str, display_name: str | None):
    """
    Register a user.

    Example:
        jukeboxd create-user --username alice --email alice@example.com
    """
    db = SessionLocal()
    try:
        user = user_service.create_user(
            db, username, email, credential_hash, display_name=display_name
        )
        click.echo(f"✓ Created user: {user.username}")
        click.echo(f"  ID: {user.id}")
    except JukeboxdError as e:
        db.rollback()
        click.echo(f"❌ Error: {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--follower", required=True, help="Username of the follower")
@click.option("--followee", required=True, help="Username to follow")
def follow(follower: str, followee: str):
    """Make one user follow another."""
    db = SessionLocal()
    try:
        follower_user = _lookup_user(db, follower)
        followee_user = _lookup_user(db, followee)
        social_service.follow(db, follower_user.id, followee_user.id)
        click.echo(f"✓ {follower} now follows {followee}")
    except JukeboxdError as e:
        db.rollback()
        click.echo(f"❌ Error: {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--username", required=True, help="Rating author")
@click.option("--album", "item_id", required=True, help="Album id")
@click.option("--rating", required=True, type=int, help="Integer 1-5")
def rate(username: str, item_id: str, rating: int):
    """Create or update a user's rating of an album."""
    db = SessionLocal()
    try:
        user = _lookup_user(db, username)
        result = rating_service.upsert_rating(db, user.id, item_id, rating)
        stats = rating_service.get_item_stats(db, item_id)
        click.echo(f"✓ {username} rated {item_id}: {result.rating}")
        click.echo(f"  Average: {stats.average_rating} ({stats.rating_count} rating(s))")
    except JukeboxdError as e:
        db.rollback()
        click.echo(f"❌ Error: {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--username", required=True, help="Review author")
@click.option("--album", "item_id", required=True, help="Album id")
@click.option("--content", required=True, help="Review text")
def review(username: str, item_id: str, content: str):
    """Create or replace a user's review of an album."""
    db = SessionLocal()
    try:
        user = _lookup_user(db, username)
        review_service.upsert_review(db, user.id, item_id, content)
        click.echo(f"✓ {username} reviewed {item_id}")
    except JukeboxdError as e:
        db.rollback()
        click.echo(f"❌ Error: {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--username", required=True, help="Whose feed to show")
@click.option("--page", default=1, show_default=True, help="Page number")
@click.option("--limit", default=settings.FEED_DEFAULT_LIMIT, show_default=True, help="Events per page")
def feed(username: str, page: int, limit: int):
    """Print a user's activity feed (people they follow), newest first."""
    db = SessionLocal()
    try:
        user = _lookup_user(db, username)
        result = feed_service.get_feed_with_pagination(db, user.id, page=page, limit=limit)
        if not result.activities:
            click.echo("No activity yet")
            return
        for activity in result.activities:
            actor = _describe_actor(activity.actor)
            click.echo(
                f"{activity.created_at.isoformat()}  {activity.type.value:<6}  "
                f"{activity.item_id}  {actor}  {activity.payload}"
            )
        meta = result.pagination
        click.echo(f"→ page {meta.page}, {meta.total} total, more: {meta.has_more}")
    except JukeboxdError as e:
        click.echo(f"❌ Error: {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--username", required=True, help="Account to delete")
@click.confirmation_option(prompt="This permanently deletes the account. Continue?")
def delete_account(username: str):
    """
    Delete an account: anonymize content, drop follow edges, revoke sessions.

    Example:
        jukeboxd delete-account --username alice --yes
    """
    db = SessionLocal()
    try:
        user = _lookup_user(db, username)
        sessions = SessionStore(build_cache(settings), settings.SESSION_TTL_SECONDS)
        audit = account_service.delete_account(db, user.id, sessions=sessions)
        click.echo(f"✓ Deleted account {username}")
        click.echo(f"  Audit ID: {audit.id}")
        click.echo(
            f"  Anonymized {audit.ratings_count} rating(s), {audit.reviews_count} review(s); "
            f"removed {audit.follows_count} follow edge(s)"
        )
    except JukeboxdError as e:
        db.rollback()
        click.echo(f"❌ Error: {e.message}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
