"""Port interfaces for hexagonal architecture.

Ports define contracts that adapters must implement. The core domain
depends only on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from concurrent.futures import Future

    from ckanwms.core.exceptions import CkanWmsError


@runtime_checkable
class CatalogClientPort(Protocol):
    """Fetches and decodes JSON from a CKAN server."""

    def get_json(self, url: str) -> Any:
        """GET a URL and decode the body as JSON.

        Raises:
            NetworkError: If the request fails or the server answers with an error.
            ParseError: If the body is not valid JSON.
        """
        ...


@runtime_checkable
class CapabilitiesClientPort(Protocol):
    """Fetches the raw text of a WMS GetCapabilities document."""

    def get_text(self, url: str) -> str:
        """GET a URL and return the body as text.

        Raises:
            NetworkError: If the request fails or the server answers with an error.
        """
        ...


@runtime_checkable
class ProxyPort(Protocol):
    """Decides whether a URL needs the CORS relay, and rewrites it if so."""

    def should_use_proxy(self, url: str) -> bool:
        """Return True if requests to this URL must go through the relay."""
        ...

    def get_url(self, url: str, cache_hint: str | None = None) -> str:
        """Rewrite a URL to go through the relay.

        Args:
            url: The target URL.
            cache_hint: How long the relay may cache the response (e.g. "1d").
        """
        ...


@runtime_checkable
class ErrorReporter(Protocol):
    """Presents terminal load failures to the user.

    The core calls this exactly once per failed load. The presentation
    (dialog, log line, terminal panel) is up to the adapter.
    """

    def report(self, error: CkanWmsError) -> None:
        """Notify the user of a failure."""
        ...


class NullErrorReporter:
    """An ErrorReporter that produces no output.

    Used as the default when the host handles failures through the
    returned future instead.
    """

    def report(self, error: CkanWmsError) -> None:
        """Do nothing."""
        _ = error  # Unused but required by protocol


@runtime_checkable
class ExecutorPort(Protocol):
    """Executor for deferred and parallel task execution.

    The group controller uses one executor to run loads off the caller's
    call stack and another to fan out GetCapabilities requests. Injecting
    them keeps concurrency at the edges.
    """

    def submit(
        self, fn: Callable[..., object], *args: object, **kwargs: object
    ) -> Future[object]:  # type: ignore[name-defined, unused-ignore]
        """Submit a function for execution.

        Args:
            fn: Function to execute.
            *args: Positional arguments to pass to fn.
            **kwargs: Keyword arguments to pass to fn.

        Returns:
            Future representing the pending result.
        """
        ...
