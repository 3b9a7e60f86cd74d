from pathlib import Path
from typing import TYPE_CHECKING, Optional

from click import group, option
from click import Path as ClickPath
from litestar.cli._utils import LitestarGroup  # pyright: ignore[reportPrivateImportUsage]

if TYPE_CHECKING:
    from litestar import Litestar


@group(cls=LitestarGroup, name="inertia")
def inertia_group() -> None:
    """Manage Inertia Tasks."""


@inertia_group.command(
    name="export-routes",
    help="Export the named routes for client-side URL generation.",
)
@option(
    "--output",
    help="Output file path",
    type=ClickPath(dir_okay=False, path_type=Path),
    default=Path("routes.json"),
    show_default=True,
)
@option(
    "--except",
    "exclude",
    help="Exclude routes matching these patterns (comma-separated)",
    type=str,
    default=None,
)
@option("--ziggy", type=bool, help="Export in the Ziggy format.", default=False, is_flag=True)
@option("--host", type=str, help="Host used for the Ziggy base URL.", default="localhost", show_default=True)
@option("--verbose", type=bool, help="Enable verbose output.", default=False, is_flag=True)
def export_routes(
    app: "Litestar",
    output: "Path",
    exclude: "Optional[str]",
    ziggy: "bool",
    host: "str",
    verbose: "bool",
) -> None:
    """Export the named routes.

    Args:
        app: The Litestar application instance.
        output: The path to the output file.
        exclude: Comma-separated list of route patterns to exclude.
        ziggy: Whether to write the Ziggy routes object.
        host: The host for the Ziggy base URL.
        verbose: Whether to enable verbose output.

    Raises:
        LitestarCLIException: If the output file cannot be written.
    """
    import msgspec
    from litestar.cli._utils import LitestarCLIException, console  # pyright: ignore[reportPrivateImportUsage]

    from litestar_inertia.plugin import InertiaPlugin
    from litestar_inertia.routes import generate_js_routes, generate_ziggy_routes

    if verbose:
        app.debug = True

    config = app.plugins.get(InertiaPlugin).config
    console.rule(f"[yellow]Exporting routes to {output}[/]", align="left")

    routes_data: "dict[str, object]"
    if ziggy:
        routes_data = dict(
            generate_ziggy_routes(
                app,
                {"scheme": config.scheme, "host": host},
                exclude_opt_key=config.exclude_from_js_routes_key,
            )
        )
    else:
        exclude_list = tuple(p.strip() for p in exclude.split(",")) if exclude else None
        routes_data = dict(
            generate_js_routes(app, exclude=exclude_list, exclude_opt_key=config.exclude_from_js_routes_key)
        )

    try:
        content = msgspec.json.format(msgspec.json.encode(routes_data), indent=2)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(content)
        console.print(f"[green]✓ Routes exported to {output}[/]")
        console.print(f"[dim]  {len(routes_data.get('routes', {}))} routes exported[/]")  # type: ignore[arg-type]
    except OSError as e:  # pragma: no cover
        msg = f"Failed to write routes to path {output}"
        raise LitestarCLIException(msg) from e


@inertia_group.command(
    name="version",
    help="Print the current Inertia asset version.",
)
def show_version(app: "Litestar") -> None:
    """Print the asset version sent with every page object.

    Args:
        app: The Litestar application instance.
    """
    from litestar.cli._utils import console  # pyright: ignore[reportPrivateImportUsage]

    from litestar_inertia.plugin import InertiaPlugin

    version = app.plugins.get(InertiaPlugin).versions.get_version()
    if version:
        console.print(version)
    else:
        console.print("[yellow]No asset version is set.[/]")
