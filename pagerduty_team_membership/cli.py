"""pd-team-membership — run one membership lifecycle action locally."""

from __future__ import annotations

import json as json_mod
import logging
import traceback
from typing import Any, Dict, Optional

import typer
from rich.console import Console

from pagerduty_common.config import load_settings
from pagerduty_common.resource import Action, OperationStatus, ProgressEvent
from pagerduty_team_membership import __version__
from pagerduty_team_membership.handlers import Resource
from pagerduty_team_membership.models import MembershipRole, ResourceModel

console = Console(stderr=True)

app = typer.Typer(
    name="pd-team-membership",
    help=(
        "Manage PagerDuty team memberships one lifecycle action at a time.\n\n"
        "Each command prints the resulting progress event as JSON.\n"
        "Exit codes: 0=SUCCESS, 1=FAILED."
    ),
    add_completion=False,
    no_args_is_help=True,
    epilog=(
        "Examples:\n"
        "  pd-team-membership list --team-id PTEAM01\n"
        "  pd-team-membership create --team-id PTEAM01 --user-id PUSER01 --role responder\n"
        "  pd-team-membership delete --team-id PTEAM01 --user-id PUSER01"
    ),
)

TeamOption = typer.Option(..., "--team-id", "-t", help="PagerDuty team ID.")
UserOption = typer.Option(..., "--user-id", "-u", help="PagerDuty user ID.")
AccessOption = typer.Option(
    None, "--access-token", envvar="PAGERDUTY_ACCESS_TOKEN",
    help="PagerDuty REST API key or OAuth token.", show_default=False,
)
ConfigOption = typer.Option(None, "--config", "-c", help="YAML client settings file.")
VerboseOption = typer.Option(False, "--verbose", help="Log requests and show tracebacks.")
RoleHelp = "Team role: " + ", ".join(role.value for role in MembershipRole) + "."


def _build_resource(config: Optional[str]) -> Resource:
    return Resource(settings=load_settings(config))


def _event_payload(event: ProgressEvent) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"status": event.status.value}
    if event.resource_model is not None:
        payload["resourceModel"] = event.resource_model.to_wire()
    if event.resource_models is not None:
        payload["resourceModels"] = [m.to_wire() for m in event.resource_models]
    if event.error_code is not None:
        payload["errorCode"] = event.error_code.value
        payload["message"] = event.message
    return payload


def _run_action(action: Action, config: Optional[str], verbose: bool, **fields: Any) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    resource = _build_resource(config)
    model = resource.new_model(fields)
    event = resource.run(action, model)
    Console().print_json(json_mod.dumps(_event_payload(event)))
    if event.status is not OperationStatus.SUCCESS:
        raise SystemExit(1)


def _run_safe(fn, verbose: bool = False) -> None:
    """Run a function with clean error handling."""
    try:
        fn()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise SystemExit(130)
    except Exception as e:
        console.print(f"\n[red bold]Error:[/red bold] {e}")
        if verbose:
            console.print(traceback.format_exc())
        else:
            console.print("[dim]Run with --verbose for full traceback.[/dim]")
        raise SystemExit(1)


# ── list ─────────────────────────────────────────────────────────

@app.command("list")
def list_cmd(
    team_id: str = TeamOption,
    access_token: Optional[str] = AccessOption,
    config: Optional[str] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """List every membership of a team.

    Example:
      pd-team-membership list --team-id PTEAM01
    """
    _run_safe(
        lambda: _run_action(
            Action.LIST, config, verbose, teamId=team_id, pagerDutyAccess=access_token
        ),
        verbose=verbose,
    )


# ── get ──────────────────────────────────────────────────────────

@app.command()
def get(
    team_id: str = TeamOption,
    user_id: str = UserOption,
    access_token: Optional[str] = AccessOption,
    config: Optional[str] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Read one membership (fails with NotFound when the user is not on the team)."""
    _run_safe(
        lambda: _run_action(
            Action.READ, config, verbose,
            teamId=team_id, userId=user_id, pagerDutyAccess=access_token,
        ),
        verbose=verbose,
    )


# ── create ───────────────────────────────────────────────────────

@app.command()
def create(
    team_id: str = TeamOption,
    user_id: str = UserOption,
    role: str = typer.Option(..., "--role", "-r", help=RoleHelp),
    access_token: Optional[str] = AccessOption,
    config: Optional[str] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Add a user to a team with a role (re-running overwrites the role).

    Example:
      pd-team-membership create --team-id PTEAM01 --user-id PUSER01 --role manager
    """
    _run_safe(
        lambda: _run_action(
            Action.CREATE, config, verbose,
            teamId=team_id, userId=user_id, role=role, pagerDutyAccess=access_token,
        ),
        verbose=verbose,
    )


# ── update ───────────────────────────────────────────────────────

@app.command()
def update(
    team_id: str = TeamOption,
    user_id: str = UserOption,
    role: Optional[str] = typer.Option(None, "--role", "-r", help=RoleHelp),
    access_token: Optional[str] = AccessOption,
    config: Optional[str] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Always fails: memberships are not updatable (delete and create instead)."""
    _run_safe(
        lambda: _run_action(
            Action.UPDATE, config, verbose,
            teamId=team_id, userId=user_id, role=role, pagerDutyAccess=access_token,
        ),
        verbose=verbose,
    )


# ── delete ───────────────────────────────────────────────────────

@app.command()
def delete(
    team_id: str = TeamOption,
    user_id: str = UserOption,
    access_token: Optional[str] = AccessOption,
    config: Optional[str] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Remove a user from a team."""
    _run_safe(
        lambda: _run_action(
            Action.DELETE, config, verbose,
            teamId=team_id, userId=user_id, pagerDutyAccess=access_token,
        ),
        verbose=verbose,
    )


# ── version ──────────────────────────────────────────────────────

@app.command()
def version() -> None:
    """Show version info."""
    Console().print(f"pd-team-membership v{__version__} ({ResourceModel.TYPE_NAME})")


def main() -> None:
    app()
