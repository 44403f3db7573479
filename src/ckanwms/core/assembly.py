"""Assembly of CKAN records into a sorted tree of groups and items."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from ckanwms.core.exceptions import ConfigurationError
from ckanwms.core.models import CatalogGroup, CatalogItem, Rectangle


if TYPE_CHECKING:
    from ckanwms.core.filtering import Admissions
    from ckanwms.core.models import (
        CatalogQuery,
        RawCatalogRecord,
        RawResource,
    )


logger = logging.getLogger(__name__)


def build_description(record: RawCatalogRecord) -> str:
    """HTML description for a record: notes with line breaks, plus a licence link."""
    description = record.notes.replace("\n", "<br/>")
    if record.license_url:
        description += f"<br/>[Licence]({record.license_url})"
    return description


def parse_rectangle(record: RawCatalogRecord) -> Rectangle | None:
    """The record's extent, or None if it has none or it is malformed."""
    if record.geo_coverage is None:
        return None
    try:
        return Rectangle.from_geo_coverage(record.geo_coverage)
    except ConfigurationError as e:
        logger.warning("Ignoring extent of %r: %s", record.title, e)
        return None


def resolve_custodian(query: CatalogQuery, record: RawCatalogRecord) -> str | None:
    """The query's custodian if set, else the record's organization."""
    if query.data_custodian is not None:
        return query.data_custodian
    return record.organization_title


def build_item(
    record: RawCatalogRecord,
    resource: RawResource,
    query: CatalogQuery,
    description: str,
    rectangle: Rectangle | None,
) -> CatalogItem | None:
    endpoint = resource.normalized_endpoint
    if endpoint is None:
        return None
    return CatalogItem(
        name=record.title,
        description=description,
        url=endpoint,
        layers=resource.layer_name,
        rectangle=rectangle,
        data_custodian=resolve_custodian(query, record),
    )


def sort_tree(root: CatalogGroup) -> None:
    """Sort the root's children, and each child group's children, by name."""
    root.sort_items()
    for member in root.items:
        if isinstance(member, CatalogGroup):
            member.sort_items()


def _find_or_create_group(root: CatalogGroup, name: str) -> CatalogGroup:
    for member in root.items:
        if isinstance(member, CatalogGroup) and member.name == name:
            return member
    group = CatalogGroup(name=name)
    root.add(group)
    return group


def assemble(
    records: Iterable[RawCatalogRecord],
    query: CatalogQuery,
    admissions: Admissions,
    root_name: str = "",
) -> CatalogGroup:
    """Build the group tree for a set of search results.

    Every admitted resource of a non-blacklisted record becomes an item.
    The item is added to each of the record's non-blacklisted CKAN groups,
    creating a group the first time its name is seen; a record with no
    groups contributes its items directly to the root.

    Args:
        records: Records from package_search, in response order.
        query: The query in effect (blacklist, custodian).
        admissions: Resources that passed the admission rules.
        root_name: Name given to the returned root group.

    Returns:
        A root CatalogGroup whose children are sorted by name.
    """
    root = CatalogGroup(name=root_name)
    item_count = 0

    for record in records:
        if query.is_blacklisted(record.title):
            logger.debug("Skipping blacklisted dataset %r", record.title)
            continue

        description = build_description(record)
        rectangle = parse_rectangle(record)
        group_names = [
            name for name in record.group_names if not query.is_blacklisted(name)
        ]

        for resource in record.resources:
            if resource not in admissions:
                continue

            item = build_item(record, resource, query, description, rectangle)
            if item is None:
                continue
            item_count += 1

            if not record.group_names:
                root.add(item)
                continue

            for group_name in group_names:
                _find_or_create_group(root, group_name).add(item)

    sort_tree(root)
    logger.info("Assembled %d items into %d top-level entries", item_count, len(root.items))
    return root
