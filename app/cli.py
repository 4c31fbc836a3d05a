# app/cli.py
"""Administration commands.

    python -m app.cli seed-admin --email admin@example.com --password secret
"""
import click

from app.core.errors import NotFound
from app.core.security import hash_password
from app.store.factory import get_store
from app.store.records import User, new_id
from app.user.services import initials


@click.group()
def cli():
    """Support portal admin tools."""


@cli.command("seed-admin")
@click.option("--email", default="", help="Admin email (required unless --hash-only)")
@click.option("--password", required=True, help="Admin password")
@click.option("--name", default="Admin", show_default=True, help="Display name")
@click.option("--hash-only", is_flag=True, help="Only print the bcrypt hash")
def seed_admin(email: str, password: str, name: str, hash_only: bool):
    """Create the first admin user in the configured store."""
    password_hash = hash_password(password)
    if hash_only:
        click.echo(password_hash)
        return
    if not email:
        raise click.UsageError("--email is required when not using --hash-only")

    store = get_store()
    try:
        existing = store.get_user_by_email(email)
    except NotFound:
        existing = None
    if existing is not None:
        raise click.ClickException(f"User with email {email!r} already exists (id={existing.id})")

    user = store.create_user(
        User(
            id=new_id("user"),
            name=name,
            email=email,
            password_hash=password_hash,
            role="admin",
            avatar=initials(name),
        )
    )
    click.echo("Admin user created.")
    click.echo(f"  ID:    {user.id}")
    click.echo(f"  Email: {user.email}")
    click.echo(f"  Name:  {user.name}")


if __name__ == "__main__":
    cli()
