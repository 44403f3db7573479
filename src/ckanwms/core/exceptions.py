"""Domain exceptions for ckanwms.

All library errors inherit from CkanWmsError, allowing hosts to catch
any library exception with a single except clause. Each exception provides
a recovery_hint property with guidance on resolving the error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pathlib import Path


class CkanWmsError(Exception):
    """Base class for all ckanwms exceptions.

    Catch this to handle any error from the library.
    """

    @property
    def recovery_hint(self) -> str | None:
        """Optional guidance on how to resolve this error."""
        return None


class NetworkError(CkanWmsError):
    """Raised when a transport-level request fails.

    Attributes:
        url: The URL that was being requested.
        cause: The underlying exception, if any.
        status_code: HTTP status code when the server answered with an error.
    """

    def __init__(
        self,
        message: str,
        url: str,
        cause: Exception | None = None,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.cause = cause
        self.status_code = status_code
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest checking the server and the link."""
        if self.status_code is not None:
            return f"The server answered {self.status_code}; verify the link: {self.url}"
        return (
            "Check your connection. If the server does not enable CORS, "
            "configure a proxy for its domain."
        )


class ParseError(CkanWmsError):
    """Raised when a response body is not valid JSON or XML.

    Attributes:
        url: The URL whose response failed to parse.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.url = url
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest checking that the link points at the right service."""
        return "Verify that the link points at a CKAN API or WMS endpoint"


class ConfigurationError(CkanWmsError):
    """Raised for malformed configuration or record data (e.g. a bad bounding box)."""

    pass


class NotFoundError(CkanWmsError):
    """Raised when something named cannot be found.

    Resources missing a service URL or layer name are excluded quietly and
    never raise this; hosts see it when asking for an unknown group.

    Attributes:
        name: The name that was not found.
        available: Names that do exist, if known.
    """

    def __init__(
        self, message: str, name: str, available: list[str] | None = None
    ) -> None:
        self.name = name
        self.available = available if available is not None else []
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest the names that are available."""
        if self.available:
            return f"Available: {', '.join(self.available)}"
        return "No group definitions found; run 'ckanwms init' to create one"


class GroupLoadError(CkanWmsError):
    """Raised when loading a CKAN group fails as a whole.

    This is the single terminal failure a host is notified about.

    Attributes:
        title: Short title suitable for a notification header.
        group_name: Name of the group that failed to load.
        url: The CKAN endpoint that was queried.
        cause: The error that stopped the load.
    """

    title = "Group is not available"

    def __init__(
        self,
        message: str,
        group_name: str,
        url: str,
        cause: Exception | None = None,
    ) -> None:
        self.group_name = group_name
        self.url = url
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Explain the usual causes of a failed package_search."""
        return (
            "If you entered the link manually, verify that it is correct. "
            "The server may not support CORS; ask its administrator to enable "
            "it or add its domain to the proxy list. Otherwise the group may be "
            "temporarily unavailable or your connection is down; try again later."
        )


class DefinitionLoadError(CkanWmsError):
    """Raised when a group definition file cannot be loaded.

    Attributes:
        definition_path: Path to the definition file that failed to load.
        line: Line number where the error occurred (if available).
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        definition_path: Path,
        line: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.definition_path = definition_path
        self.line = line
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest checking the definition file at the specific line."""
        if self.line:
            return f"Check {self.definition_path.name} at line {self.line}"
        return f"Check {self.definition_path.name} for syntax or import errors"
