from __future__ import annotations

import json
import logging
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from apilens.config import get_settings
from apilens.errors import ApilensError
from apilens.routing.route import RouteRegistry
from apilens.server.app import LensServer, load_registry
from apilens.server.tools import ToolResponse

app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
err_console = Console(stderr=True)

APP_HELP = "Target app as 'module:attr' (RouteRegistry or FastAPI app). Defaults to APILENS_APP."


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    settings = get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _server(app_target: Optional[str], required: bool = True) -> LensServer:
    target = app_target or get_settings().app
    if not target:
        if required:
            raise typer.BadParameter("No app given. Pass --app module:attr or set APILENS_APP.")
        return LensServer(RouteRegistry())
    try:
        return LensServer(load_registry(target))
    except ApilensError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _emit(response: ToolResponse) -> dict[str, Any]:
    if response.is_error:
        err_console.print(f"[bold red]error[/bold red]: {escape(response.error or '')}")
        raise typer.Exit(code=1)
    console.print_json(json.dumps(response.content or {}))
    return response.content or {}


@app.command("routes")
def routes_list(
    app_target: Optional[str] = typer.Option(None, "--app", help=APP_HELP),
    path: Optional[str] = typer.Option(None, help="URI pattern, '*' as wildcard (e.g. 'api/users*')"),
    method: Optional[str] = typer.Option(None, help="Filter by HTTP method (GET/POST/...)"),
    domain: Optional[str] = typer.Option(None, help="Filter by domain"),
    except_vendor: bool = typer.Option(False, "--except-vendor", help="Hide framework/vendor routes"),
    only_vendor: bool = typer.Option(False, "--only-vendor", help="Only framework/vendor routes"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    server = _server(app_target)
    response = server.call_tool(
        "list_api_routes",
        {
            "path": path,
            "method": method,
            "domain": domain,
            "except_vendor": except_vendor,
            "only_vendor": only_vendor,
        },
    )

    fmt = format.lower().strip()
    if fmt not in ("table", "json"):
        raise typer.BadParameter("format must be one of: table, json")
    if fmt == "json" or response.is_error:
        _emit(response)
        return

    content = response.content or {}
    console.print(f"[bold]Routes:[/bold] {content.get('count', 0)}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("METHODS", no_wrap=True)
    table.add_column("URI")
    table.add_column("NAME")
    table.add_column("HANDLER")
    table.add_column("API", no_wrap=True)

    for r in content.get("routes", []):
        table.add_row(
            "|".join(r["methods"]),
            r["uri"],
            r.get("name") or "",
            r.get("controller") or r["action"].get("uses", "Closure"),
            "yes" if r.get("is_api") else "",
        )

    console.print(table)


@app.command("route")
def route_show(
    uri: str = typer.Argument(..., help="Route URI, e.g. api/users/{id}"),
    method: str = typer.Option("GET", help="HTTP method"),
    app_target: Optional[str] = typer.Option(None, "--app", help=APP_HELP),
) -> None:
    _emit(_server(app_target).call_tool("get_route", {"uri": uri, "method": method}))


@app.command()
def details(
    uri: str = typer.Argument(..., help="Route URI"),
    method: str = typer.Option("GET", help="HTTP method"),
    app_target: Optional[str] = typer.Option(None, "--app", help=APP_HELP),
) -> None:
    _emit(_server(app_target).call_tool("get_route_details", {"uri": uri, "method": method}))


@app.command()
def analyze(
    uri: str = typer.Argument(..., help="Route URI"),
    method: str = typer.Option("GET", help="HTTP method"),
    app_target: Optional[str] = typer.Option(None, "--app", help=APP_HELP),
) -> None:
    _emit(_server(app_target).call_tool("analyze_endpoint", {"uri": uri, "method": method}))


@app.command()
def rules(
    request_class: str = typer.Argument(..., help="Request class path (dotted, '/'-separated or base64)"),
) -> None:
    _emit(_server(None, required=False).call_tool("get_request_rules", {"request_class": request_class}))


@app.command()
def response(
    controller_class: str = typer.Argument(..., help="Controller class path"),
    method: str = typer.Argument(..., help="Controller method name"),
) -> None:
    _emit(
        _server(None, required=False).call_tool(
            "get_response_schema", {"controller_class": controller_class, "method": method}
        )
    )


@app.command()
def controller(
    controller_class: str = typer.Argument(..., help="Controller class path"),
    method: Optional[str] = typer.Argument(None, help="Method name; omit to list public methods"),
) -> None:
    uri = f"controller://{controller_class}" + (f"/{method}" if method else "")
    _emit(_server(None, required=False).read_resource(uri))


@app.command()
def resource(
    uri: str = typer.Argument(..., help="Resource URI, e.g. route://api/users?method=POST"),
    app_target: Optional[str] = typer.Option(None, "--app", help=APP_HELP),
) -> None:
    needs_app = uri.startswith("route://")
    _emit(_server(app_target, required=needs_app).read_resource(uri))


@app.command()
def tools() -> None:
    server = _server(None, required=False)
    table = Table(show_header=True, header_style="bold")
    table.add_column("TOOL", no_wrap=True)
    table.add_column("REQUIRED")
    table.add_column("DESCRIPTION")
    for t in server.list_tools():
        table.add_row(t["name"], ", ".join(t["input_schema"]["required"]), t["description"])
    console.print(table)


@app.command()
def ping() -> None:
    console.print("pong")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
