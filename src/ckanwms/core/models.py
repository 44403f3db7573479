"""Core domain models for ckanwms.

These models are pure Python dataclasses with no I/O dependencies.
They represent the catalog query, the raw CKAN records it returns, the
parsed WMS capabilities, and the group tree handed back to the host.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from ckanwms.core.exceptions import ConfigurationError
from ckanwms.core.urls import extract_layer_name, strip_query


@dataclass(frozen=True, slots=True)
class CatalogQuery:
    """Everything that determines the contents of a CKAN group.

    Two queries compare equal field-by-field, so a reload with an
    unchanged query can be skipped.

    Attributes:
        endpoint_url: Base URL of the CKAN server (query string is ignored).
        filter_query: Solr filter query passed as ``fq``. A sequence of
            strings sends each one as an independent ``fq`` parameter.
        blacklist: Names of datasets and groups that must not be shown.
            Any iterable of names is accepted; a mapping keeps the keys whose
            value is truthy.
        filter_by_capabilities: Query GetCapabilities on every referenced WMS
            server and drop datasets whose layer is not advertised there.
        minimum_max_scale_denominator: Lowest MaxScaleDenominator a layer may
            declare and still be included. Only used with capability filtering.
        data_custodian: Custodian applied to every item, overriding the
            organization reported by CKAN.

    Example:
        >>> query = CatalogQuery(
        ...     endpoint_url="http://data.gov.au",
        ...     filter_query="res_format:wms",
        ...     blacklist={"Test dataset"},
        ... )
        >>> query.is_blacklisted("Test dataset")
        True
    """

    endpoint_url: str
    filter_query: str | tuple[str, ...] | None = None
    blacklist: frozenset[str] = frozenset()
    filter_by_capabilities: bool = False
    minimum_max_scale_denominator: float | None = None
    data_custodian: str | None = None

    def __post_init__(self) -> None:
        """Validate the endpoint and normalize compound fields."""
        if not self.endpoint_url:
            raise ValueError("CatalogQuery endpoint_url cannot be empty")

        if self.filter_query is not None and not isinstance(self.filter_query, str):
            object.__setattr__(self, "filter_query", tuple(self.filter_query))

        if not isinstance(self.blacklist, frozenset):
            blacklist: Any = self.blacklist
            if isinstance(blacklist, Mapping):
                names = frozenset(name for name, flag in blacklist.items() if flag)
            else:
                names = frozenset(blacklist)
            object.__setattr__(self, "blacklist", names)

    def filter_queries(self) -> tuple[str, ...]:
        """Return the filter queries as a tuple (empty when unset)."""
        if self.filter_query is None:
            return ()
        if isinstance(self.filter_query, str):
            return (self.filter_query,)
        return self.filter_query

    def is_blacklisted(self, name: str | None) -> bool:
        """Check whether a dataset or group name is blacklisted."""
        return name is not None and name in self.blacklist


@dataclass(frozen=True, slots=True)
class Rectangle:
    """A geographic extent in degrees."""

    west: float
    south: float
    east: float
    north: float

    @classmethod
    def from_geo_coverage(cls, text: str) -> Rectangle:
        """Parse a CKAN ``geo_coverage`` string of the form "west,south,east,north".

        Raises:
            ConfigurationError: If the text does not hold exactly four numbers.
        """
        if not isinstance(text, str):
            raise ConfigurationError(f"Bounding box is not a string: {text!r}")
        parts = text.split(",")
        if len(parts) != 4:
            raise ConfigurationError(
                f"Bounding box needs 4 comma-separated parts, got {len(parts)}: {text!r}"
            )
        try:
            west, south, east, north = (float(part) for part in parts)
        except ValueError as e:
            raise ConfigurationError(f"Bounding box is not numeric: {text!r}") from e
        return cls(west=west, south=south, east=east, north=north)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.west, self.south, self.east, self.north)


@dataclass(frozen=True, slots=True)
class RawResource:
    """One resource attached to a CKAN dataset.

    Attributes:
        format_tag: The CKAN ``format`` field (e.g. "WMS").
        service_url: ``wms_url`` if present, else ``url``. May carry a query string.
        declared_layer_name: CKAN ``wms_layer``, used when the URL has no LAYERS.
    """

    format_tag: str
    service_url: str | None = None
    declared_layer_name: str | None = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> RawResource:
        """Build a resource from one entry of a package's ``resources`` list."""
        service_url = data.get("wms_url") or data.get("url") or None
        return cls(
            format_tag=data.get("format") or "",
            service_url=service_url,
            declared_layer_name=data.get("wms_layer") or None,
        )

    @property
    def normalized_endpoint(self) -> str | None:
        """The service URL with its query string removed."""
        if self.service_url is None:
            return None
        return strip_query(self.service_url)

    @property
    def layer_name(self) -> str | None:
        """Layer named by the URL's LAYERS parameter, else the declared layer."""
        if self.service_url is not None:
            from_url = extract_layer_name(self.service_url)
            if from_url:
                return from_url
        return self.declared_layer_name


def _text_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True, slots=True)
class RawCatalogRecord:
    """One dataset (CKAN "package") from a package_search response."""

    title: str
    notes: str = ""
    license_url: str | None = None
    geo_coverage: str | None = None
    organization_title: str | None = None
    group_names: tuple[str, ...] = ()
    resources: tuple[RawResource, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> RawCatalogRecord:
        """Build a record from one entry of ``result.results``."""
        organization = data.get("organization") or {}
        group_names = tuple(
            group["display_name"]
            for group in data.get("groups") or []
            if group.get("display_name")
        )
        return cls(
            title=data.get("title") or "",
            notes=data.get("notes") or "",
            license_url=data.get("license_url") or None,
            geo_coverage=_text_or_none(data.get("geo_coverage")),
            organization_title=organization.get("title") or None,
            group_names=group_names,
            resources=tuple(
                RawResource.from_json(resource)
                for resource in data.get("resources") or []
            ),
        )


@dataclass(frozen=True, slots=True)
class LayerNode:
    """A Layer element of a WMS capabilities document.

    Attributes:
        name: The layer's Name, or None for grouping-only layers.
        max_scale_denominator: The layer's own MaxScaleDenominator, if declared.
        children: Nested Layer elements, in document order.
    """

    name: str | None = None
    max_scale_denominator: float | None = None
    children: tuple[LayerNode, ...] = ()

    def walk(self) -> Iterator[LayerNode]:
        """Yield this node and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class CapabilityEntry:
    """The named layers one WMS endpoint advertises.

    Attributes:
        layers: Mapping of layer name to its MaxScaleDenominator (None when
            the layer declares none).
    """

    layers: Mapping[str, float | None] = field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.layers

    def max_scale_denominator(self, name: str) -> float | None:
        return self.layers.get(name)


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """A WMS layer shown to the user.

    Attributes:
        name: Display name (the dataset title).
        description: HTML description; must be sanitized before display.
        url: WMS endpoint with no query string.
        layers: Layer name(s) to request from the endpoint.
        rectangle: Extent of the dataset, if CKAN reported a valid one.
        data_custodian: Who looks after the data, if known.
    """

    name: str
    description: str
    url: str
    layers: str | None = None
    rectangle: Rectangle | None = None
    data_custodian: str | None = None

    type = "wms"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "layers": self.layers,
            "rectangle": self.rectangle.as_tuple() if self.rectangle else None,
            "dataCustodian": self.data_custodian,
        }


CatalogMember = Union["CatalogGroup", CatalogItem]


def name_sort_key(member: CatalogMember) -> tuple[str, str]:
    return (member.name.lower(), member.name)


@dataclass
class CatalogGroup:
    """A named, ordered collection of groups and items."""

    name: str
    items: list[CatalogMember] = field(default_factory=list)

    type = "group"

    def add(self, member: CatalogMember) -> None:
        self.items.append(member)

    def find_first_item_by_name(self, name: str) -> CatalogMember | None:
        """Return the first direct child with exactly this name, or None."""
        for member in self.items:
            if member.name == name:
                return member
        return None

    def sort_items(self) -> None:
        """Sort direct children by case-insensitive name, ties broken by original case."""
        self.items.sort(key=name_sort_key)

    def walk_items(self) -> Iterator[CatalogItem]:
        """Yield every leaf item under this group, depth-first."""
        for member in self.items:
            if isinstance(member, CatalogGroup):
                yield from member.walk_items()
            else:
                yield member

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "items": [member.to_dict() for member in self.items],
        }


@dataclass(frozen=True, slots=True)
class GroupDefinition:
    """A configured CKAN group: a display name plus the query that fills it."""

    name: str
    query: CatalogQuery

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("GroupDefinition name cannot be empty")

