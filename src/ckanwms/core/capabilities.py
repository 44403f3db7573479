"""WMS GetCapabilities fetching, parsing and indexing.

The capabilities document is parsed into a tree of LayerNode objects and
then flattened into a CapabilityEntry per endpoint. Parsing is tolerant of
namespaces (WMS 1.1.1 has none, 1.3.0 uses http://www.opengis.net/wms), and
every "one or many" element is read as a sequence.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, cast

from ckanwms.core.exceptions import CkanWmsError, ParseError
from ckanwms.core.models import CapabilityEntry, LayerNode, RawCatalogRecord, RawResource
from ckanwms.core.urls import proxy_if_needed


if TYPE_CHECKING:
    from concurrent.futures import Future

    from ckanwms.core.ports import CapabilitiesClientPort, ExecutorPort, ProxyPort


logger = logging.getLogger(__name__)

GET_CAPABILITIES_QUERY = "service=WMS&request=GetCapabilities"

# The CKAN "format" of a resource must equal this (case-insensitively) to be treated as WMS
WMS_FORMAT = "wms"

# endpoint -> layer name -> resources referencing that layer
ResourcesByEndpoint = dict[str, dict[str, list[RawResource]]]

# endpoint -> parsed capabilities, or None when the fetch or parse failed
CapabilitiesIndex = dict[str, CapabilityEntry | None]


def is_wms_resource(resource: RawResource) -> bool:
    return resource.format_tag.lower() == WMS_FORMAT


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _child_elements(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _child_text(element: ET.Element, name: str) -> str | None:
    for child in _child_elements(element, name):
        text = (child.text or "").strip()
        if text:
            return text
    return None


def _parse_scale(text: str | None, layer_name: str | None) -> float | None:
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        logger.warning(
            "Ignoring non-numeric MaxScaleDenominator %r on layer %r", text, layer_name
        )
        return None


def _parse_layer(element: ET.Element) -> LayerNode:
    name = _child_text(element, "Name")
    return LayerNode(
        name=name,
        max_scale_denominator=_parse_scale(
            _child_text(element, "MaxScaleDenominator"), name
        ),
        children=tuple(
            _parse_layer(child) for child in _child_elements(element, "Layer")
        ),
    )


def parse_capabilities(document: str | bytes, url: str | None = None) -> tuple[LayerNode, ...]:
    """Parse a GetCapabilities document into its top-level layers.

    Args:
        document: The XML text or bytes.
        url: The URL the document came from, for error messages.

    Returns:
        The Layer elements directly under Capability, as LayerNode trees.
        A document with no layers yields an empty tuple.

    Raises:
        ParseError: If the document is not XML or has no Capability element.
    """
    if isinstance(document, str):
        # ElementTree refuses str input that carries an encoding declaration
        data = document.encode("utf-8")
        parser = ET.XMLParser(encoding="utf-8")
    else:
        data = document
        parser = ET.XMLParser()

    try:
        root = ET.fromstring(data, parser=parser)
    except ET.ParseError as e:
        raise ParseError(f"Invalid capabilities XML: {e}", url=url, cause=e) from e

    capability = next(iter(_child_elements(root, "Capability")), None)
    if capability is None:
        raise ParseError(
            f"Capabilities document has no Capability element (root is {_local_name(root.tag)!r})",
            url=url,
        )

    return tuple(_parse_layer(layer) for layer in _child_elements(capability, "Layer"))


def flatten_layers(layers: Iterable[LayerNode]) -> CapabilityEntry:
    """Index every named layer in a capabilities tree by name.

    A layer with no MaxScaleDenominator is unconstrained. When the same name
    appears more than once the most permissive declaration wins, since any
    matching layer is enough to admit a resource.
    """
    index: dict[str, float | None] = {}
    for top in layers:
        for node in top.walk():
            if node.name is None:
                continue
            if node.name not in index:
                index[node.name] = node.max_scale_denominator
                continue
            current = index[node.name]
            if current is None or node.max_scale_denominator is None:
                index[node.name] = None
            else:
                index[node.name] = max(current, node.max_scale_denominator)
    return CapabilityEntry(layers=index)


def capabilities_url(endpoint: str, proxy: ProxyPort | None = None) -> str:
    return proxy_if_needed(f"{endpoint}?{GET_CAPABILITIES_QUERY}", proxy)


def group_resources_by_endpoint(records: Iterable[RawCatalogRecord]) -> ResourcesByEndpoint:
    """Collect the WMS resources of all records, keyed by endpoint then layer name.

    Resources that are not WMS, have no URL, or name no layer are left out.
    """
    grouped: ResourcesByEndpoint = {}
    for record in records:
        for resource in record.resources:
            if not is_wms_resource(resource):
                continue
            endpoint = resource.normalized_endpoint
            layer_name = resource.layer_name
            if endpoint is None or layer_name is None:
                continue
            grouped.setdefault(endpoint, {}).setdefault(layer_name, []).append(resource)
    return grouped


def fetch_capabilities(
    endpoint: str,
    client: CapabilitiesClientPort,
    proxy: ProxyPort | None = None,
) -> CapabilityEntry:
    """Fetch and index the capabilities of one WMS endpoint.

    Raises:
        NetworkError: If the document cannot be fetched.
        ParseError: If the document cannot be parsed.
    """
    url = capabilities_url(endpoint, proxy)
    logger.debug("Fetching capabilities for %s from %s", endpoint, url)
    document = client.get_text(url)
    return flatten_layers(parse_capabilities(document, url=url))


def build_capability_index(
    endpoints: Iterable[str] | Mapping[str, object],
    client: CapabilitiesClientPort,
    executor: ExecutorPort,
    proxy: ProxyPort | None = None,
) -> CapabilitiesIndex:
    """Fetch the capabilities of every endpoint, one request each.

    All requests are submitted before any result is awaited, so with a
    thread pool executor they run concurrently. A failure on one endpoint
    is logged and recorded as None; it does not affect the others.

    Args:
        endpoints: Distinct endpoints (a ResourcesByEndpoint mapping works too).
        client: Client used to fetch each document.
        executor: Executor the fetches are submitted to.
        proxy: Optional CORS proxy.

    Returns:
        Mapping of endpoint to its CapabilityEntry, or None if it failed.
    """
    futures: dict[str, Future[object]] = {}
    for endpoint in endpoints:
        if endpoint not in futures:
            futures[endpoint] = executor.submit(fetch_capabilities, endpoint, client, proxy)

    index: CapabilitiesIndex = {}
    for endpoint, future in futures.items():
        try:
            entry = cast(CapabilityEntry, future.result())
        except CkanWmsError as e:
            logger.warning("Capabilities unavailable for %s: %s", endpoint, e)
            index[endpoint] = None
            continue
        logger.debug("%s advertises %d named layers", endpoint, len(entry.layers))
        index[endpoint] = entry

    return index
