"""CKAN package_search requests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from ckanwms.core.exceptions import ParseError
from ckanwms.core.models import RawCatalogRecord
from ckanwms.core.urls import clean_and_proxy_url


if TYPE_CHECKING:
    from ckanwms.core.ports import CatalogClientPort, ProxyPort


logger = logging.getLogger(__name__)

PACKAGE_SEARCH_PATH = "/api/3/action/package_search"

# package_search is issued as a single page this large
MAX_ROWS = 100000

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_search_url(
    endpoint_url: str,
    filter_queries: tuple[str, ...] = (),
    proxy: ProxyPort | None = None,
) -> str:
    """Build the package_search URL for a CKAN endpoint.

    Any query string on the endpoint is dropped and the endpoint is routed
    through the proxy if needed. Each filter query becomes its own ``fq``.

    Example:
        >>> build_search_url("http://ckan.example.org?x=1", ("res_format:wms",))
        'http://ckan.example.org/api/3/action/package_search?rows=100000&fq=res_format%3Awms'
    """
    base = clean_and_proxy_url(endpoint_url, proxy).rstrip("/")
    url = f"{base}{PACKAGE_SEARCH_PATH}?rows={MAX_ROWS}"
    for filter_query in filter_queries:
        url += "&fq=" + quote(filter_query, safe=_URI_COMPONENT_SAFE)
    return url


def parse_search_response(payload: Any, url: str | None = None) -> list[RawCatalogRecord]:
    """Turn a decoded package_search response into records.

    Raises:
        ParseError: If the payload does not have the expected
            ``{"result": {"results": [...]}}`` shape.
    """
    try:
        results = payload["result"]["results"]
        return [RawCatalogRecord.from_json(entry) for entry in results]
    except (KeyError, TypeError, AttributeError) as e:
        raise ParseError(
            f"Unexpected package_search response shape: {e!r}", url=url, cause=e
        ) from e


def search(
    endpoint_url: str,
    filter_queries: tuple[str, ...],
    client: CatalogClientPort,
    proxy: ProxyPort | None = None,
) -> list[RawCatalogRecord]:
    """Run package_search against a CKAN server.

    Args:
        endpoint_url: Base URL of the CKAN server.
        filter_queries: Solr filter queries, each sent as an ``fq`` parameter.
        client: Client used to fetch and decode the response.
        proxy: Optional CORS proxy.

    Returns:
        The records in the response, in the order CKAN returned them.

    Raises:
        NetworkError: If the request fails.
        ParseError: If the response is not JSON of the expected shape.
    """
    url = build_search_url(endpoint_url, filter_queries, proxy)
    logger.debug("package_search: %s", url)
    records = parse_search_response(client.get_json(url), url=url)
    logger.info("package_search on %s returned %d datasets", endpoint_url, len(records))
    return records
