"""HTTP adapter using requests."""

from __future__ import annotations

from typing import Any

import requests

from ckanwms.core.exceptions import NetworkError, ParseError


DEFAULT_TIMEOUT = 30.0


class RequestsHttpClient:
    """HTTP client for CKAN and WMS servers.

    Implements both CatalogClientPort and CapabilitiesClientPort.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            session: Optional requests session. If not provided, creates one.
            timeout: Seconds to wait for connect and for each read.
        """
        self._session = session or requests.Session()
        self._timeout = timeout

    def get_json(self, url: str) -> Any:
        """GET a URL and decode the JSON body.

        Raises:
            NetworkError: If the request fails or the status is an error.
            ParseError: If the body is not JSON.
        """
        response = self._get(url, accept="application/json")
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Response is not valid JSON: {url}", url=url, cause=e) from e

    def get_text(self, url: str) -> str:
        """GET a URL and return the decoded body.

        Raises:
            NetworkError: If the request fails or the status is an error.
        """
        return self._get(url, accept="application/xml, text/xml, */*").text

    def _get(self, url: str, accept: str) -> requests.Response:
        try:
            response = self._session.get(
                url, timeout=self._timeout, headers={"Accept": accept}
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise self._translate_request_error(e, url) from e
        return response

    @staticmethod
    def _translate_request_error(error: requests.RequestException, url: str) -> NetworkError:
        """Translate a requests exception to a domain exception."""
        response = error.response
        if response is not None:
            return NetworkError(
                f"HTTP {response.status_code} from {url}",
                url=url,
                cause=error,
                status_code=response.status_code,
            )
        return NetworkError(f"Request to {url} failed: {error}", url=url, cause=error)

    def close(self) -> None:
        self._session.close()
