"""Pytest configuration and shared fixtures.

This module registers custom markers for CI job separation and provides
fake collaborators for the HTTP clients used by the pipeline, plus a
local HTTP server for the integration tests.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlsplit

import pytest

from ckanwms.core.exceptions import NetworkError


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "core: Core models, ports, and pipeline stages")
    config.addinivalue_line("markers", "adapters: HTTP, proxy, executor and reporting adapters")
    config.addinivalue_line("markers", "cli: CLI tests")
    config.addinivalue_line(
        "markers", "tra: Test Responsibility Anchor (TRA) - namespace.Anchor format"
    )
    config.addinivalue_line(
        "markers",
        "tier: Test tier for CI job separation (0=instant, 1=fast, 2=standard, 3=slow, 4=manual)",
    )


class FakeCatalogClient:
    """CatalogClientPort returning canned JSON keyed by URL prefix."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[str] = []

    def get_json(self, url: str) -> Any:
        self.calls.append(url)
        for prefix, response in self.responses.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise NetworkError(f"No canned response for {url}", url=url)


class FakeCapabilitiesClient:
    """CapabilitiesClientPort returning canned XML keyed by URL prefix."""

    def __init__(self, documents: dict[str, str | Exception] | None = None) -> None:
        self.documents = documents or {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def get_text(self, url: str) -> str:
        with self._lock:
            self.calls.append(url)
        for prefix, document in self.documents.items():
            if url.startswith(prefix):
                if isinstance(document, Exception):
                    raise document
                return document
        raise NetworkError(f"No canned document for {url}", url=url)


class RecordingErrorReporter:
    """ErrorReporter that keeps every reported error."""

    def __init__(self) -> None:
        self.reported: list[Exception] = []

    def report(self, error: Exception) -> None:
        self.reported.append(error)


def make_resource(
    url: str | None = "http://wms.example.com/wms?LAYERS=A",
    fmt: str = "WMS",
    wms_url: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    resource: dict[str, Any] = {"format": fmt}
    if url is not None:
        resource["url"] = url
    if wms_url is not None:
        resource["wms_url"] = wms_url
    resource.update(extra)
    return resource


def make_package(
    title: str,
    resources: list[dict[str, Any]] | None = None,
    groups: list[str] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    package: dict[str, Any] = {
        "title": title,
        "notes": f"About {title}",
        "groups": [{"display_name": name} for name in (groups or [])],
        "resources": resources if resources is not None else [make_resource()],
    }
    package.update(extra)
    return package


def make_search_response(*packages: dict[str, Any]) -> dict[str, Any]:
    return {"success": True, "result": {"count": len(packages), "results": list(packages)}}


def make_capabilities(*layers: tuple[str, float | None]) -> str:
    """A WMS 1.3.0 capabilities document with the given (name, max scale) layers."""
    layer_xml = ""
    for name, max_scale in layers:
        scale_xml = (
            f"<MaxScaleDenominator>{max_scale}</MaxScaleDenominator>"
            if max_scale is not None
            else ""
        )
        layer_xml += f"<Layer><Name>{name}</Name><Title>{name}</Title>{scale_xml}</Layer>"
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<WMS_Capabilities version="1.3.0" xmlns="http://www.opengis.net/wms">'
        "<Service><Name>WMS</Name></Service>"
        f"<Capability><Layer><Title>Root</Title>{layer_xml}</Layer></Capability>"
        "</WMS_Capabilities>"
    )


@pytest.fixture
def error_reporter() -> RecordingErrorReporter:
    return RecordingErrorReporter()


# Local HTTP server used by the integration tests

PROXY_PREFIX = "/proxy/_1d/"


class CannedServer(ThreadingHTTPServer):
    """Serves canned (status, content type, body) responses keyed by path.

    Requests under /proxy/_1d/<url> are answered as if <url>'s path had
    been requested directly, so the server doubles as a CORS relay.
    """

    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), CannedHandler)
        self.routes: dict[str, tuple[int, str, str]] = {}
        self.requests: list[str] = []
        self._lock = threading.Lock()

    @property
    def base_url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"

    def record(self, path: str) -> None:
        with self._lock:
            self.requests.append(path)


class CannedHandler(BaseHTTPRequestHandler):
    server: CannedServer

    def do_GET(self) -> None:  # noqa: N802
        self.server.record(self.path)
        target = self.path
        if target.startswith(PROXY_PREFIX):
            target = target[len(PROXY_PREFIX) :]

        status, content_type, body = self.server.routes.get(
            urlsplit(target).path, (404, "text/plain", "not found")
        )
        data = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, format: str, *args: object) -> None:
        pass


@pytest.fixture
def http_server() -> Iterator[CannedServer]:
    server = CannedServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
