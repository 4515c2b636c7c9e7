"""App role assignment commands."""

import json

import click
from rich.console import Console
from rich.table import Table

from ..approle_assignments import AppRoleAssignmentLister
from ..exceptions import (
    GraphAPIError,
    NotAuthenticatedError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from ..models import DEFAULT_PROPERTIES, ApplicationSelector
from ..validation import validate_selector

console = Console()
err_console = Console(stderr=True)

ALL_PROPERTIES = ["appRoleId", "resourceDisplayName", "resourceId", "roleId", "roleName", "created", "deleted"]

COLUMN_LABELS = {
    "appRoleId": "App Role ID",
    "resourceDisplayName": "Resource",
    "resourceId": "Resource ID",
    "roleId": "Role ID",
    "roleName": "Role",
    "created": "Created",
    "deleted": "Deleted",
}


def _show_device_code(flow: dict):
    err_console.print(f"[bold]{flow.get('message', '')}[/bold]")


def _get_client():
    """Factory: build an authenticated Graph client from the environment."""
    from ..graph_client import GraphClient
    return GraphClient.from_environment(device_code_callback=_show_device_code)


@click.group("approleassignment")
def approleassignment_group():
    """Inspect app role assignments."""


@approleassignment_group.command("list")
@click.option("-i", "--appId", "app_id", default=None, help="Application (client) ID of the app registration")
@click.option("-n", "--appDisplayName", "app_display_name", default=None,
              help="Display name of the app registration")
@click.option("--appObjectId", "app_object_id", default=None,
              help="Object ID of the application's service principal")
@click.option("--json", "as_json", is_flag=True, help="Output full records as JSON")
@click.option("--properties", type=click.Choice(["default", "all"]), default="default",
              help="Table columns to show (default: resource and role name)")
@click.option("--report", "report_path", is_flag=False, flag_value="auto", default=None,
              help="Export as HTML report (optionally pass a filename)")
def list_command(app_id, app_display_name, app_object_id, as_json, properties, report_path):
    """List app role assignments for an application registration.

    Specify exactly one of --appId, --appDisplayName or --appObjectId.

    \b
    Examples:
      entra approleassignment list --appId 00000000-0000-0000-0000-000000000000
      entra approleassignment list -n "Contoso API" --properties all
      entra approleassignment list --appObjectId <sp-object-id> --json
    """
    selector = ApplicationSelector(
        app_id=app_id, app_object_id=app_object_id, app_display_name=app_display_name,
    )

    try:
        validate_selector(selector)

        client = _get_client()
        lister = AppRoleAssignmentLister(client)

        with err_console.status("Fetching app role assignments..."):
            results = lister.list(selector)

    except ValidationError as e:
        err_console.print(f"[red]Invalid input:[/red] {e}")
        raise SystemExit(1)
    except NotFoundError as e:
        err_console.print(f"[yellow]Not found:[/yellow] {e}")
        raise SystemExit(1)
    except NotAuthenticatedError as e:
        err_console.print(f"[red]Not authenticated.[/red] {e}")
        raise SystemExit(1)
    except GraphAPIError as e:
        if e.is_auth_error():
            err_console.print("[red]Access denied.[/red] Application.Read.All is required.")
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    except TransportError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    records = [r.to_dict() for r in results]

    if as_json:
        print(json.dumps(records, indent=2, default=str))
    else:
        _display_assignments(records, ALL_PROPERTIES if properties == "all" else DEFAULT_PROPERTIES)

    if report_path is not None:
        _save_report(records, selector, report_path)


def _display_assignments(records: list[dict], columns: list[str]):
    if not records:
        console.print("[yellow]No app role assignments with a resolvable role.[/yellow]")
        return

    table = Table(title="App Role Assignments")
    for col in columns:
        table.add_column(COLUMN_LABELS[col], no_wrap=col.endswith("Id"))

    for rec in records:
        table.add_row(*[str(rec.get(col) or "") for col in columns])

    console.print(table)
    console.print(f"\n[dim]{len(records)} assignment(s)[/dim]")


def _save_report(records: list[dict], selector: ApplicationSelector, report_path: str):
    from ..report_builder import ReportBuilder

    subject = selector.app_id or selector.app_object_id or selector.app_display_name or ""
    rb = ReportBuilder("App Role Assignments", subject)
    rb.add_kv("Summary", {
        "Assignments": len(records),
        "Resources": len({r["resourceId"] for r in records}),
    })
    rb.add_table(
        "Assignments",
        columns=[COLUMN_LABELS[c] for c in ALL_PROPERTIES],
        rows=[[r.get(c) or "" for c in ALL_PROPERTIES] for r in records],
    )
    saved = rb.save(None if report_path == "auto" else report_path)
    err_console.print(f"\n[green]Report saved:[/green] {saved}")
