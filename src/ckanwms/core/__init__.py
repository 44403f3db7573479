"""Core domain module for ckanwms.

This module contains the pure Python pipeline: models, port definitions,
search, capabilities indexing, admission, assembly and reload gating.
It has no I/O dependencies and can be tested in isolation.
"""

from ckanwms.core.models import (
    CatalogGroup,
    CatalogItem,
    CatalogQuery,
    GroupDefinition,
    RawCatalogRecord,
    RawResource,
    Rectangle,
)
from ckanwms.core.ports import (
    CapabilitiesClientPort,
    CatalogClientPort,
    ErrorReporter,
    ExecutorPort,
    ProxyPort,
)


__all__ = [
    "CapabilitiesClientPort",
    "CatalogClientPort",
    "CatalogGroup",
    "CatalogItem",
    "CatalogQuery",
    "ErrorReporter",
    "ExecutorPort",
    "GroupDefinition",
    "ProxyPort",
    "RawCatalogRecord",
    "RawResource",
    "Rectangle",
]
