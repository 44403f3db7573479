"""CORS relay adapter."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlsplit


class CorsProxy:
    """Routes requests for listed domains through a relay.

    Implements ProxyPort. A URL is proxied when its host is one of the
    proxy domains or a subdomain of one. The rewritten URL has the form
    ``<base_url>_<cache_hint>/<url>``, or ``<base_url><url>`` without a hint.

    Example:
        >>> proxy = CorsProxy("https://relay.example.org/proxy/", ["data.gov.au"])
        >>> proxy.get_url("http://data.gov.au/api", "1d")
        'https://relay.example.org/proxy/_1d/http://data.gov.au/api'
    """

    def __init__(
        self,
        base_url: str,
        proxy_domains: Iterable[str] = (),
        *,
        always_use_proxy: bool = False,
    ) -> None:
        """Initialize the proxy.

        Args:
            base_url: URL of the relay; a trailing slash is added if missing.
            proxy_domains: Hosts that do not support CORS.
            always_use_proxy: Proxy every http(s) URL regardless of host.
        """
        if not base_url:
            raise ValueError("CorsProxy base_url cannot be empty")
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.proxy_domains = tuple(domain.lower() for domain in proxy_domains)
        self.always_use_proxy = always_use_proxy

    def should_use_proxy(self, url: str) -> bool:
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https"):
            return False
        if url.startswith(self.base_url):
            return False
        if self.always_use_proxy:
            return True
        host = (parts.hostname or "").lower()
        return any(
            host == domain or host.endswith("." + domain) for domain in self.proxy_domains
        )

    def get_url(self, url: str, cache_hint: str | None = None) -> str:
        if cache_hint:
            return f"{self.base_url}_{cache_hint}/{url}"
        return f"{self.base_url}{url}"

    def __repr__(self) -> str:
        return f"CorsProxy(base_url={self.base_url!r}, domains={len(self.proxy_domains)})"
