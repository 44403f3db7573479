"""CLI commands for ckanwms."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.logging import RichHandler

from ckanwms.cli.formatting import count_items, render_definitions_table, render_group_tree
from ckanwms.core.exceptions import CkanWmsError, GroupLoadError
from ckanwms.core.models import CatalogQuery, GroupDefinition


if TYPE_CHECKING:
    from ckanwms.config import ProxySettings
    from ckanwms.core.models import CatalogMember
    from ckanwms.core.services import CkanGroup


app = typer.Typer(
    name="ckanwms",
    help="Build catalog groups from the WMS layers published on CKAN servers.",
    no_args_is_help=True,
)


DEFAULT_GROUPS_TEMPLATE = '''\
"""CKAN group definitions.

Each group specifies:
- name: Display name of the group
- query: The CKAN server and the filters used to fill the group
"""

from ckanwms import CatalogQuery, GroupDefinition

# Optional CORS relay for servers that do not support CORS
# proxy_url = "https://relay.example.org/proxy/"
# proxy_domains = ["data.gov.au"]

groups = [
    # Example group - replace with your own
    # GroupDefinition(
    #     name="data.gov.au",
    #     query=CatalogQuery(
    #         endpoint_url="http://www.data.gov.au",
    #         filter_query="res_format:wms",
    #         filter_by_capabilities=True,
    #         minimum_max_scale_denominator=10000,
    #     ),
    # ),
]
'''


def _fail(error: CkanWmsError) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    if error.recovery_hint:
        typer.echo(f"Hint: {error.recovery_hint}", err=True)
    return typer.Exit(1)


def _build_group(definition: GroupDefinition, proxy_settings: ProxySettings) -> CkanGroup:
    """Create a group wired to the real HTTP client and a terminal reporter."""
    from ckanwms.adapters.proxy import CorsProxy
    from ckanwms.adapters.reporting import RichErrorReporter
    from ckanwms.core.services import CkanGroup

    proxy = None
    if proxy_settings.base_url:
        proxy = CorsProxy(proxy_settings.base_url, proxy_settings.domains)

    return CkanGroup.from_definition(
        definition, proxy=proxy, error_reporter=RichErrorReporter()
    )


def _load_and_print(
    definition: GroupDefinition, proxy_settings: ProxySettings, as_json: bool
) -> None:
    group = _build_group(definition, proxy_settings)
    future = group.load(definition.query)
    if future is None:
        return

    try:
        result = future.result()
    except GroupLoadError:
        # Already shown by the group's error reporter
        raise typer.Exit(1) from None
    except CkanWmsError as e:
        raise _fail(e) from None

    members: list[CatalogMember] = result  # type: ignore[assignment]
    if as_json:
        typer.echo(json.dumps([member.to_dict() for member in members], indent=2))
        return

    console = Console(force_terminal=True)
    console.print(render_group_tree(definition.name, members))
    typer.echo(f"{count_items(members)} layers in {len(members)} entries")


@app.callback()
def configure(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log requests and filtering decisions.",
    ),
) -> None:
    """Build catalog groups from the WMS layers published on CKAN servers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def init(
    directory: str | None = typer.Argument(
        None,
        help="Directory to initialize. Defaults to current directory.",
    ),
) -> None:
    """Create .ckanwms/groups/ with a template definition file."""
    from ckanwms.config import groups_dir

    target = Path(directory) if directory else Path.cwd()
    target = target.resolve()

    definitions_dir = groups_dir(target)
    if not definitions_dir.exists():
        definitions_dir.mkdir(parents=True)
        typer.echo(f"Created {definitions_dir.relative_to(target)}/")

    default_py = definitions_dir / "default.py"
    if not default_py.exists():
        default_py.write_text(DEFAULT_GROUPS_TEMPLATE)
        typer.echo(f"Created {default_py.relative_to(target)}")


@app.command(name="list")
def list_groups() -> None:
    """List the configured CKAN groups."""
    from ckanwms.config import find_project_root
    from ckanwms.discovery import load_all_groups

    try:
        definitions, _proxy = load_all_groups(find_project_root())
    except CkanWmsError as e:
        raise _fail(e) from None

    if not definitions:
        typer.echo("No groups found. Run 'ckanwms init' to get started.")
        return

    console = Console(force_terminal=True)
    console.print(render_definitions_table(definitions.values()))


@app.command()
def show(
    name: str = typer.Argument(..., help="Name of the configured group."),
    as_json: bool = typer.Option(False, "--json", help="Print the tree as JSON."),
) -> None:
    """Load a configured group and print its tree."""
    from ckanwms.config import find_project_root
    from ckanwms.discovery import get_group_definition, load_all_groups

    try:
        definitions, proxy_settings = load_all_groups(find_project_root())
        definition = get_group_definition(definitions, name)
    except CkanWmsError as e:
        raise _fail(e) from None

    _load_and_print(definition, proxy_settings, as_json)


@app.command()
def search(
    url: str = typer.Argument(..., help="Base URL of the CKAN server."),
    fq: list[str] = typer.Option(
        [],
        "--fq",
        help="Solr filter query; repeat for several.",
    ),
    blacklist: list[str] = typer.Option(
        [],
        "--blacklist",
        "-b",
        help="Dataset or group name to hide; repeat for several.",
    ),
    filter_by_capabilities: bool = typer.Option(
        False,
        "--filter-by-capabilities",
        help="Drop layers not advertised by their WMS server's GetCapabilities.",
    ),
    min_scale: float | None = typer.Option(
        None,
        "--min-scale",
        help="Minimum MaxScaleDenominator a layer may declare.",
    ),
    custodian: str | None = typer.Option(
        None,
        "--custodian",
        help="Data custodian to show on every layer.",
    ),
    proxy_url: str | None = typer.Option(
        None,
        "--proxy-url",
        help="CORS relay URL.",
    ),
    proxy_domain: list[str] = typer.Option(
        [],
        "--proxy-domain",
        help="Host to route through the relay; repeat for several.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the tree as JSON."),
) -> None:
    """Load an ad-hoc query against a CKAN server and print the tree."""
    from ckanwms.config import ProxySettings

    try:
        query = CatalogQuery(
            endpoint_url=url,
            filter_query=tuple(fq) or None,
            blacklist=frozenset(blacklist),
            filter_by_capabilities=filter_by_capabilities,
            minimum_max_scale_denominator=min_scale,
            data_custodian=custodian,
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    definition = GroupDefinition(name=url, query=query)
    _load_and_print(
        definition,
        ProxySettings(base_url=proxy_url, domains=tuple(proxy_domain)),
        as_json,
    )


def main() -> None:
    """Entry point for the CLI."""
    app()
