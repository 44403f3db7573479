"""ckanwms - Build catalog groups from the WMS layers published on CKAN.

This library queries a CKAN server's package_search API, optionally checks
each referenced WMS server's GetCapabilities to drop layers that are missing
or only visible at small scales, and assembles the survivors into a sorted
tree of named groups.

Example:
    >>> from ckanwms import CatalogQuery, CkanGroup, GroupDefinition
    >>> definition = GroupDefinition(
    ...     name="data.gov.au",
    ...     query=CatalogQuery(
    ...         endpoint_url="http://www.data.gov.au",
    ...         filter_query="res_format:wms",
    ...         filter_by_capabilities=True,
    ...     ),
    ... )
    >>> group = CkanGroup.from_definition(definition)
    >>> items = group.load(definition.query).result()
"""

from ckanwms.adapters.executor import SynchronousExecutor, ThreadPoolExecutorAdapter
from ckanwms.adapters.http import RequestsHttpClient
from ckanwms.adapters.proxy import CorsProxy
from ckanwms.adapters.reporting import RichErrorReporter
from ckanwms.config import find_project_root
from ckanwms.core.exceptions import (
    CkanWmsError,
    ConfigurationError,
    DefinitionLoadError,
    GroupLoadError,
    NetworkError,
    NotFoundError,
    ParseError,
)
from ckanwms.core.models import (
    CapabilityEntry,
    CatalogGroup,
    CatalogItem,
    CatalogQuery,
    GroupDefinition,
    LayerNode,
    RawCatalogRecord,
    RawResource,
    Rectangle,
)
from ckanwms.core.ports import (
    CapabilitiesClientPort,
    CatalogClientPort,
    ErrorReporter,
    ExecutorPort,
    NullErrorReporter,
    ProxyPort,
)
from ckanwms.core.services import CkanGroup
from ckanwms.discovery import discover_group_files, load_all_groups, load_group_file


__version__ = "0.1.0"

__all__ = [
    "CapabilitiesClientPort",
    "CapabilityEntry",
    "CatalogClientPort",
    "CatalogGroup",
    "CatalogItem",
    "CatalogQuery",
    "CkanGroup",
    "CkanWmsError",
    "ConfigurationError",
    "CorsProxy",
    "DefinitionLoadError",
    "ErrorReporter",
    "ExecutorPort",
    "GroupDefinition",
    "GroupLoadError",
    "LayerNode",
    "NetworkError",
    "NotFoundError",
    "NullErrorReporter",
    "ParseError",
    "ProxyPort",
    "RawCatalogRecord",
    "RawResource",
    "Rectangle",
    "RequestsHttpClient",
    "RichErrorReporter",
    "SynchronousExecutor",
    "ThreadPoolExecutorAdapter",
    "__version__",
    "discover_group_files",
    "find_project_root",
    "load_all_groups",
    "load_group_file",
]
