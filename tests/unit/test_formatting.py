"""Unit tests for CLI formatting helpers."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from ckanwms.cli.formatting import count_items, render_definitions_table, render_group_tree
from ckanwms.core.models import CatalogGroup, CatalogItem, CatalogQuery, GroupDefinition


def _render(renderable: object) -> str:
    buffer = io.StringIO()
    Console(file=buffer, width=200, color_system=None).print(renderable)
    return buffer.getvalue()


ITEM = CatalogItem(name="Roads", description="", url="http://x/wms", layers="roads")
MEMBERS = [CatalogGroup(name="Transport", items=[ITEM]), ITEM]


@pytest.mark.cli
@pytest.mark.tier(0)
class TestFormatting:
    """Tests for tree and table rendering."""

    def test_group_tree_lists_groups_and_items(self) -> None:
        output = _render(render_group_tree("National", MEMBERS))

        assert "National" in output
        assert "Transport" in output
        assert output.count("Roads") == 2
        assert "http://x/wms" in output

    def test_definitions_table(self) -> None:
        definitions = [
            GroupDefinition(
                name="National",
                query=CatalogQuery(
                    endpoint_url="http://ckan",
                    filter_query=("a:1", "b:2"),
                    filter_by_capabilities=True,
                    minimum_max_scale_denominator=10000,
                ),
            ),
            GroupDefinition(name="Plain", query=CatalogQuery(endpoint_url="http://plain")),
        ]

        output = _render(render_definitions_table(definitions))

        assert "a:1 AND b:2" in output
        assert "yes (min 10000)" in output
        assert "Plain" in output

    def test_count_items_counts_each_placement(self) -> None:
        assert count_items(MEMBERS) == 2
        assert count_items([]) == 0
