"""Admission rules for WMS resources.

Admission is computed as a separate, immutable set of resources rather
than by flagging the resources themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from ckanwms.core.capabilities import is_wms_resource


if TYPE_CHECKING:
    from ckanwms.core.capabilities import CapabilitiesIndex
    from ckanwms.core.models import (
        CapabilityEntry,
        CatalogQuery,
        RawCatalogRecord,
        RawResource,
    )


logger = logging.getLogger(__name__)

Admissions = frozenset["RawResource"]


def passes_scale_check(
    max_scale_denominator: float | None,
    minimum_max_scale_denominator: float | None,
) -> bool:
    """A layer passes unless both values are set and the layer's is below the minimum."""
    if minimum_max_scale_denominator is None or max_scale_denominator is None:
        return True
    return max_scale_denominator >= minimum_max_scale_denominator


def admit(
    resource: RawResource,
    capability_entry: CapabilityEntry | None,
    minimum_max_scale_denominator: float | None = None,
    *,
    filter_by_capabilities: bool = True,
) -> bool:
    """Decide whether a resource is shown.

    Without capability filtering a resource only needs to be WMS and have a
    service URL. With it, the resource must also name a layer that its
    endpoint advertises, and that layer must pass the scale check.

    Args:
        resource: The resource to judge.
        capability_entry: Capabilities of the resource's endpoint, or None if
            they are unknown (not fetched, or the fetch failed).
        minimum_max_scale_denominator: Smallest acceptable MaxScaleDenominator.
        filter_by_capabilities: Whether the capability checks apply at all.
    """
    if not is_wms_resource(resource) or not resource.normalized_endpoint:
        return False

    if not filter_by_capabilities:
        return True

    layer_name = resource.layer_name
    if layer_name is None or capability_entry is None:
        return False
    if layer_name not in capability_entry:
        return False

    return passes_scale_check(
        capability_entry.max_scale_denominator(layer_name),
        minimum_max_scale_denominator,
    )


def compute_admissions(
    records: Iterable[RawCatalogRecord],
    query: CatalogQuery,
    index: CapabilitiesIndex | None = None,
) -> Admissions:
    """Return the set of resources, across all records, that are admitted.

    Args:
        records: The records returned by the catalog search.
        query: The query in effect; supplies the filtering flag and minimum scale.
        index: Capabilities per endpoint. Ignored unless the query filters by
            capabilities, in which case endpoints missing from it are unknown.
    """
    index = index or {}
    admitted: set[RawResource] = set()
    rejected = 0

    for record in records:
        for resource in record.resources:
            endpoint = resource.normalized_endpoint
            entry = index.get(endpoint) if endpoint is not None else None
            if admit(
                resource,
                entry,
                query.minimum_max_scale_denominator,
                filter_by_capabilities=query.filter_by_capabilities,
            ):
                admitted.add(resource)
            else:
                rejected += 1

    logger.debug("Admitted %d resources, rejected %d", len(admitted), rejected)
    return frozenset(admitted)
