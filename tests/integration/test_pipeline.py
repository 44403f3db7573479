"""Integration tests for CkanGroup with the requests HTTP client.

These tests run the full load against a local HTTP server playing the
CKAN server, the WMS servers and the CORS relay. They exercise:
package_search, GetCapabilities filtering, proxying and error reporting.
"""

from __future__ import annotations

import json

import pytest
from conftest import (
    CannedServer,
    RecordingErrorReporter,
    make_capabilities,
    make_package,
    make_resource,
    make_search_response,
)

from ckanwms import CatalogQuery, CkanGroup, CorsProxy, GroupDefinition
from ckanwms.adapters.http import RequestsHttpClient
from ckanwms.core.exceptions import GroupLoadError, NetworkError, ParseError


SEARCH_PATH = "/api/3/action/package_search"
XML = "application/xml"


def _serve_catalog(server: CannedServer, wms_host: str) -> None:
    payload = make_search_response(
        make_package(
            "Layer A",
            groups=["Base"],
            resources=[make_resource(f"{wms_host}/wms?LAYERS=a")],
        ),
        make_package(
            "Too detailed",
            groups=["Base"],
            resources=[make_resource(f"{wms_host}/wms?LAYERS=small")],
        ),
        make_package(
            "Broken server",
            resources=[make_resource(f"{wms_host}/broken/wms?LAYERS=b")],
        ),
    )
    server.routes[SEARCH_PATH] = (200, "application/json", json.dumps(payload))
    server.routes["/wms"] = (200, XML, make_capabilities(("a", None), ("small", 100)))
    server.routes["/broken/wms"] = (500, "text/plain", "boom")


def _query(endpoint: str) -> CatalogQuery:
    return CatalogQuery(
        endpoint_url=endpoint,
        filter_query="res_format:wms",
        filter_by_capabilities=True,
        minimum_max_scale_denominator=1000,
    )


@pytest.mark.adapters
@pytest.mark.tra("UseCase.LoadGroup")
@pytest.mark.tier(2)
class TestLoadOverHttp:
    """Tests for a full load through RequestsHttpClient."""

    def test_load_filters_by_capabilities(self, http_server: CannedServer) -> None:
        _serve_catalog(http_server, http_server.base_url)
        reporter = RecordingErrorReporter()
        group = CkanGroup.from_definition(
            GroupDefinition(name="Local", query=_query(http_server.base_url)),
            max_workers=4,
            error_reporter=reporter,
        )

        future = group.load(_query(http_server.base_url))

        assert future is not None
        future.result(timeout=10)
        assert [m.name for m in group.items] == ["Base"]
        base = group.find_first_item_by_name("Base")
        assert [item.name for item in base.walk_items()] == ["Layer A"]  # type: ignore[union-attr]
        assert reporter.reported == []

        paths = sorted(http_server.requests)
        assert paths == [
            "/api/3/action/package_search?rows=100000&fq=res_format%3Awms",
            "/broken/wms?service=WMS&request=GetCapabilities",
            "/wms?service=WMS&request=GetCapabilities",
        ]

    def test_unchanged_query_is_not_requested_again(self, http_server: CannedServer) -> None:
        _serve_catalog(http_server, http_server.base_url)
        group = CkanGroup("Local", RequestsHttpClient())

        group.load(_query(http_server.base_url))
        count = len(http_server.requests)
        assert group.load(_query(http_server.base_url)) is None

        assert len(http_server.requests) == count

    def test_requests_routed_through_relay(self, http_server: CannedServer) -> None:
        _serve_catalog(http_server, "http://wms.test")
        proxy = CorsProxy(
            f"{http_server.base_url}/proxy/", ["ckan.test", "wms.test"]
        )
        group = CkanGroup("Relayed", RequestsHttpClient(), proxy=proxy)

        future = group.load(_query("http://ckan.test"))

        assert future is not None
        future.result(timeout=10)
        assert all(path.startswith("/proxy/_1d/http://") for path in http_server.requests)
        assert (
            "/proxy/_1d/http://wms.test/wms?service=WMS&request=GetCapabilities"
            in http_server.requests
        )
        base = group.find_first_item_by_name("Base")
        item = next(base.walk_items())  # type: ignore[union-attr]
        assert item.url == "http://wms.test/wms"


@pytest.mark.adapters
@pytest.mark.tra("UseCase.LoadGroup")
@pytest.mark.tier(2)
class TestLoadFailuresOverHttp:
    """Tests for failed package_search requests."""

    def test_server_error(self, http_server: CannedServer) -> None:
        http_server.routes[SEARCH_PATH] = (500, "text/plain", "down")
        reporter = RecordingErrorReporter()
        group = CkanGroup("Local", RequestsHttpClient(), error_reporter=reporter)

        future = group.load(CatalogQuery(endpoint_url=http_server.base_url))

        assert future is not None
        with pytest.raises(GroupLoadError) as exc_info:
            future.result(timeout=10)
        cause = exc_info.value.cause
        assert isinstance(cause, NetworkError)
        assert cause.status_code == 500
        assert reporter.reported == [exc_info.value]
        assert not group.is_loading

    def test_html_instead_of_json(self, http_server: CannedServer) -> None:
        http_server.routes[SEARCH_PATH] = (200, "text/html", "<html>login</html>")
        group = CkanGroup("Local", RequestsHttpClient())

        future = group.load(CatalogQuery(endpoint_url=http_server.base_url))

        assert future is not None
        with pytest.raises(GroupLoadError) as exc_info:
            future.result(timeout=10)
        assert isinstance(exc_info.value.cause, ParseError)
