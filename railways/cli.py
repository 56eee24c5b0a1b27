"""CLI entry point: parse a routes report and resolve its actions."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click

from . import __version__


@click.command()
@click.argument("source", type=click.File("r"), required=False)
@click.option("--stderr", "stderr_file", type=click.File("r"),
              help="Captured stderr of the routes task")
@click.option("--run", "run_root", type=click.Path(file_okay=False),
              help="Run the routes task in this Rails app instead of reading SOURCE")
@click.option("--app", "app_root", type=click.Path(exists=True, file_okay=False),
              help="Resolve actions against the sources of this Rails app")
@click.option("--task", envvar="RAILWAYS_TASK", default="routes", show_default=True,
              help="Name of the routes task")
@click.option("--filter", "query", default="", help="Only show routes matching TEXT")
@click.option("--format", "fmt", type=click.Choice(["table", "yaml", "json"]),
              default="table", help="Output format (default: table)")
@click.option("--output", "-o", type=click.Path(dir_okay=False),
              help="Write yaml/json output to a file instead of stdout")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__)
def main(source, stderr_file, run_root: Optional[str], app_root: Optional[str],
         task: str, query: str, fmt: str, output: Optional[str],
         verbose: bool) -> None:
    """Show the routes of a Rails application.

    SOURCE is a file with the output of `rails routes`, or `-` for stdin.
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    # Import here to keep CLI snappy for --help
    from .action_info import resolve
    from .exporter import routes_to_dict, emit_json, emit_yaml
    from .models import RouteType
    from .rails_app import RailsApp
    from .reporter import print_report
    from .routes_parser import RailsRoutesParser
    from .routes_task import RoutesTask, RoutesTaskError

    from rich.console import Console
    console = Console(stderr=fmt != "table")

    # 1. Obtain the report
    if run_root:
        try:
            stdout, stderr = RoutesTask(run_root, task=task).run()
        except RoutesTaskError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)
        app_root = app_root or run_root
    elif source is not None:
        stdout = source.read()
        stderr = stderr_file.read() if stderr_file else None
    else:
        raise click.UsageError("Either SOURCE or --run is required")

    # 2. Resolve the app context
    app = None
    if app_root:
        try:
            app = RailsApp(app_root)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)

    # 3. Parse
    parser = RailsRoutesParser(app)
    routes = parser.parse(stdout, stderr)
    if routes is None:
        console.print("[red]Error:[/red] Failed to read routes output")
        sys.exit(1)
    routes = routes.filter(query)

    # 4. Resolve actions
    action_infos = None
    if app is not None:
        action_infos = [
            resolve(app, r.controller, r.action) if r.route_type == RouteType.NORMAL else None
            for r in routes
        ]

    # 5. Output
    if fmt == "table":
        print_report(routes, parser, action_infos, console=console)
    else:
        doc = routes_to_dict(routes, parser, action_infos)
        content = emit_json(doc) if fmt == "json" else emit_yaml(doc)
        if output:
            with open(output, "w") as f:
                f.write(content)
            console.print(f"[green]✓[/green] Routes written to: {output}")
        else:
            click.echo(content)

    if parser.is_error_reported():
        sys.exit(1)


if __name__ == "__main__":
    main()
