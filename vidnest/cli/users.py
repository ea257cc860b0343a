"""Flask CLI commands for managing accounts in the user store."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from vidnest.api.deps import build_auth_service
from vidnest.core.extensions import get_user_store
from vidnest.services._shared.dto import ROLES

LOGGER = logging.getLogger(__name__)

# ``owner`` belongs to the env-configured account only.
ASSIGNABLE_ROLES = sorted(ROLES - {"owner"})


def _ensure_account_mode() -> None:
    """Abort when the deployment runs in single-password mode."""
    if current_app.config.get("STORAGE_TYPE", "localstorage") == "localstorage":
        raise click.UsageError("Accounts are unavailable when STORAGE_TYPE=localstorage.")


def _ensure_not_owner(username: str) -> None:
    owner = current_app.config.get("OWNER_USERNAME")
    if owner and username == owner:
        raise click.UsageError(f"{username!r} is the owner account; configure it through the environment.")


@click.group("users")
def users_cli() -> None:
    """Manage accounts (account storage modes only)."""


@users_cli.command("create")
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--role", type=click.Choice(ASSIGNABLE_ROLES), default="user", show_default=True)
@with_appcontext
def create_command(username: str, password: str, role: str) -> None:
    """Create USERNAME with the given password and role."""
    _ensure_account_mode()
    _ensure_not_owner(username)
    store = get_user_store()
    if store.lookup_user(username) is not None:
        raise click.ClickException(f"User {username!r} already exists.")
    store.register_user(username, password, role=role)  # type: ignore[arg-type]
    LOGGER.info("users.created user=%s role=%s", username, role)
    click.echo(f"Created {username} ({role})")


@users_cli.command("set-password")
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def set_password_command(username: str, password: str) -> None:
    """Reset the password of USERNAME."""
    _ensure_account_mode()
    _ensure_not_owner(username)
    try:
        get_user_store().change_password(username, password)
    except KeyError as exc:
        raise click.ClickException(f"User {username!r} does not exist.") from exc
    click.echo(f"Password updated for {username}")


@users_cli.command("ban")
@click.argument("username")
@click.option("--undo", is_flag=True, help="Lift the ban instead.")
@with_appcontext
def ban_command(username: str, undo: bool) -> None:
    """Refuse (or, with --undo, allow again) logins for USERNAME.

    Banning also revokes the account's refresh tokens so no session outlives
    the current access token.
    """
    _ensure_account_mode()
    _ensure_not_owner(username)
    store = get_user_store()
    if store.lookup_user(username) is None:
        raise click.ClickException(f"User {username!r} does not exist.")
    store.set_banned(username, not undo)
    if undo:
        click.echo(f"Unbanned {username}")
        return
    revoked = build_auth_service().revoke_sessions(username)
    LOGGER.info("users.banned user=%s", username)
    click.echo(f"Banned {username} (revoked {revoked} session(s))")
