"""Shared formatting helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from ckanwms.core.models import CatalogGroup


if TYPE_CHECKING:
    from collections.abc import Iterable

    from ckanwms.core.models import CatalogMember, CatalogQuery, GroupDefinition


def _format_filter(query: CatalogQuery) -> str:
    queries = query.filter_queries()
    return " AND ".join(queries) if queries else "-"


def _add_members(tree: Tree, members: Iterable[CatalogMember]) -> None:
    for member in members:
        if isinstance(member, CatalogGroup):
            branch = tree.add(Text(member.name, style="bold"))
            _add_members(branch, member.items)
        else:
            label = Text(member.name)
            if member.layers:
                label.append(f"  {member.layers}", style="cyan")
            label.append(f"  {member.url}", style="dim")
            tree.add(label)


def render_group_tree(name: str, members: Iterable[CatalogMember]) -> Tree:
    """Build a Rich tree of a loaded group's members."""
    tree = Tree(Text(name, style="bold blue"))
    _add_members(tree, members)
    return tree


def render_definitions_table(definitions: Iterable[GroupDefinition]) -> Table:
    """Build a Rich table describing configured groups."""
    table = Table()
    table.add_column("Name")
    table.add_column("CKAN server")
    table.add_column("Filter")
    table.add_column("GetCapabilities")

    for definition in definitions:
        query = definition.query
        if query.filter_by_capabilities:
            minimum = query.minimum_max_scale_denominator
            capabilities = Text(
                f"yes (min {minimum:g})" if minimum is not None else "yes",
                style="green",
            )
        else:
            capabilities = Text("no", style="dim")
        table.add_row(definition.name, query.endpoint_url, _format_filter(query), capabilities)

    return table


def count_items(members: Iterable[CatalogMember]) -> int:
    """Count leaf items; an item listed under several groups counts once per group."""
    total = 0
    for member in members:
        if isinstance(member, CatalogGroup):
            total += sum(1 for _ in member.walk_items())
        else:
            total += 1
    return total
