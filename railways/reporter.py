"""Rich console output: route table, mounted engines and task errors."""

from __future__ import annotations

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .action_info import ActionIcon, ActionInfo
from .models import RailsEngine, RequestMethod, Route, RouteList, RouteType
from .routes_parser import ParseErrorCode, RailsRoutesParser

ICONS = {
    ActionIcon.ACTION: "[green]●[/green]",
    ActionIcon.METHOD: "[yellow]○[/yellow]",
    ActionIcon.ERROR: "[red]✗[/red]",
}


def print_report(routes: RouteList, parser: RailsRoutesParser,
                 action_infos: Optional[List[ActionInfo]] = None,
                 console: Optional[Console] = None) -> None:
    """Print the routes table, followed by engines and a summary."""
    console = console or Console()

    if parser.is_error_reported():
        print_error(parser, console)

    if not len(routes):
        console.print("[yellow]No routes found.[/yellow]")
        return

    table = Table(title="Routes")
    if action_infos is not None:
        table.add_column("", width=2)
    table.add_column("Verb", style="bold cyan", width=8)
    table.add_column("Path", style="white", max_width=50)
    table.add_column("Action", max_width=48)
    table.add_column("Name", style="dim")

    infos = action_infos if action_infos is not None else [None] * len(routes)
    for route, info in zip(routes, infos):
        row = []
        if action_infos is not None:
            row.append(ICONS[info.icon] if info is not None else "")
        verb = route.request_method.value or "ANY"
        style = _method_style(route.request_method)
        row.extend([
            f"[{style}]{verb}[/{style}]",
            route.path,
            _format_action(route),
            route.name,
        ])
        table.add_row(*row)

    console.print(table)
    console.print()

    if parser.mounted_engines:
        print_engines(parser.mounted_engines, console)

    _print_summary(console, routes, action_infos)


def print_error(parser: RailsRoutesParser, console: Console) -> None:
    if parser.error_code == ParseErrorCode.TASK_NOT_FOUND:
        title = "Routes task not found"
    else:
        title = "Routes task failed"
    console.print(Panel(parser.error_stacktrace or "(no output)",
                        title=f"[bold red]{title}[/bold red]", border_style="red"))


def print_engines(engines: List[RailsEngine], console: Console) -> None:
    console.print("[bold]Mounted engines:[/bold]")
    for engine in engines:
        console.print(f"  [magenta]{engine.name}[/magenta] at {engine.mount_path}")
    console.print()


def _print_summary(console: Console, routes: RouteList,
                   action_infos: Optional[List[ActionInfo]]) -> None:
    total = len(routes)
    console.print("[bold]Summary:[/bold]")
    console.print(f"  Total routes:      {total}")
    console.print(f"  Controllers:       {len(routes.controllers()):>4}")

    mounted = len(routes.of_type(RouteType.MOUNTED))
    if mounted:
        console.print(f"  Mounted:           {mounted:>4}")
    redirects = len(routes.of_type(RouteType.REDIRECT))
    if redirects:
        console.print(f"  Redirects:         {redirects:>4}")

    if action_infos is not None:
        unresolved = sum(1 for i in action_infos if i is not None and not i.is_resolved())
        if unresolved:
            console.print(f"  [red]Unresolved actions: {unresolved:>3}[/red]")

    console.print()


def _method_style(method: RequestMethod) -> str:
    """Return a Rich style for an HTTP method."""
    styles = {
        RequestMethod.GET: "green",
        RequestMethod.POST: "yellow",
        RequestMethod.PUT: "blue",
        RequestMethod.PATCH: "blue",
        RequestMethod.DELETE: "red",
        RequestMethod.ANY: "magenta",
    }
    return styles.get(method, "white")


def _format_action(route: Route) -> str:
    if route.route_type == RouteType.MOUNTED:
        return f"[magenta]{route.controller}[/magenta]"
    if route.route_type == RouteType.REDIRECT:
        return "[dim]redirect[/dim]"
    return f"{route.controller_class_name}#{route.action}"
