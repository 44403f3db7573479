"""URL helpers for CKAN endpoints and WMS service URLs.

WMS resources in CKAN usually point at a GetMap-style URL such as
``http://host/wms?LAYERS=roads&SERVICE=WMS``. The endpoint (the part
before the query string) identifies the server, and the LAYERS
parameter names the layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlsplit, urlunsplit


if TYPE_CHECKING:
    from ckanwms.core.ports import ProxyPort


# Query parameter naming the WMS layer, matched case-insensitively
LAYER_PARAMETER = "layers"

# Cache lifetime requested from the proxy relay for catalog and capabilities requests
DEFAULT_PROXY_CACHE_HINT = "1d"


def strip_query(url: str) -> str:
    """Return the URL with its query string (and fragment) removed."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def extract_layer_name(url: str) -> str | None:
    """Return the value of the URL's LAYERS query parameter, if any.

    Example:
        >>> extract_layer_name("http://host/wms?SERVICE=WMS&LAYERS=roads")
        'roads'
    """
    query = urlsplit(url).query
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key.lower() == LAYER_PARAMETER:
            return value or None
    return None


def normalize(url: str) -> tuple[str, str | None]:
    """Split a WMS resource URL into (endpoint, layer name)."""
    return strip_query(url), extract_layer_name(url)


def proxy_if_needed(
    url: str,
    proxy: ProxyPort | None,
    cache_hint: str = DEFAULT_PROXY_CACHE_HINT,
) -> str:
    """Route a URL through the proxy relay when the proxy says it must be."""
    if proxy is not None and proxy.should_use_proxy(url):
        return proxy.get_url(url, cache_hint)
    return url


def clean_and_proxy_url(url: str, proxy: ProxyPort | None) -> str:
    """Strip the query string from a URL, then proxy it if required."""
    return proxy_if_needed(strip_query(url), proxy)
