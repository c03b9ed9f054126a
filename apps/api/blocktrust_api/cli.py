"""CLI commands for BlockTrust API."""

from datetime import timedelta

import click

from blocktrust_api.auth.identity import issue_token
from blocktrust_api.db.seed import grant_role, revoke_role, seed_all
from blocktrust_api.db.session import SessionLocal
from blocktrust_api.models import Role

ROLE_CHOICES = click.Choice([role.value for role in Role])


@click.group()
def cli():
    """BlockTrust API CLI."""
    pass


@cli.command()
def seed():
    """Seed demo roles and events."""
    click.echo("Seeding initial data...")
    db = SessionLocal()
    try:
        seed_all(db)
        click.echo("✓ Seed data created.")
    except Exception as e:
        click.echo(f"✗ Error seeding data: {e}", err=True)
        db.rollback()
        raise SystemExit(1)
    finally:
        db.close()


@cli.command("grant-role")
@click.argument("user_id")
@click.argument("role", type=ROLE_CHOICES)
def grant_role_command(user_id, role):
    """Grant ROLE to USER_ID."""
    db = SessionLocal()
    try:
        if grant_role(db, user_id, Role(role)):
            click.echo(f"✓ Granted {role} to {user_id}")
        else:
            click.echo(f"{user_id} already has {role}")
    finally:
        db.close()


@cli.command("revoke-role")
@click.argument("user_id")
@click.argument("role", type=ROLE_CHOICES)
def revoke_role_command(user_id, role):
    """Revoke ROLE from USER_ID."""
    db = SessionLocal()
    try:
        if revoke_role(db, user_id, Role(role)):
            click.echo(f"✓ Revoked {role} from {user_id}")
        else:
            click.echo(f"{user_id} does not have {role}")
    finally:
        db.close()


@cli.command("issue-token")
@click.argument("user_id")
@click.option("--hours", default=24, show_default=True, help="Token lifetime in hours")
def issue_token_command(user_id, hours):
    """Print a development bearer token for USER_ID."""
    click.echo(issue_token(user_id, timedelta(hours=hours)))


if __name__ == "__main__":
    cli()
