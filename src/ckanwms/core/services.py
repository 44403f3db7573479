"""Core domain services for ckanwms."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import TYPE_CHECKING

from ckanwms.core.assembly import assemble
from ckanwms.core.capabilities import build_capability_index, group_resources_by_endpoint
from ckanwms.core.exceptions import CkanWmsError, ConfigurationError, GroupLoadError
from ckanwms.core.filtering import compute_admissions
from ckanwms.core.gate import LoadHandle, ReloadGate
from ckanwms.core.ports import (
    CapabilitiesClientPort,
    CatalogClientPort,
    ErrorReporter,
    ExecutorPort,
    NullErrorReporter,
    ProxyPort,
)
from ckanwms.core.search import search


if TYPE_CHECKING:
    from ckanwms.core.models import CatalogMember, CatalogQuery, GroupDefinition


logger = logging.getLogger(__name__)


class CkanGroup:
    """A catalog group filled with the WMS layers found on a CKAN server.

    Each load runs package_search, optionally checks every referenced WMS
    server's GetCapabilities, and replaces the group's items with the
    resulting tree. Loading again with an unchanged query does nothing.

    Example:
        >>> group = CkanGroup.from_definition(definition)
        >>> future = group.load(definition.query)
        >>> items = future.result()
    """

    type = "ckan"
    type_name = "CKAN Group"

    def __init__(
        self,
        name: str,
        catalog_client: CatalogClientPort,
        capabilities_client: CapabilitiesClientPort | None = None,
        proxy: ProxyPort | None = None,
        scheduler: ExecutorPort | None = None,
        fetch_executor: ExecutorPort | None = None,
        error_reporter: ErrorReporter | None = None,
    ) -> None:
        """Initialize the group.

        Args:
            name: Display name of the group.
            catalog_client: Client for CKAN JSON requests.
            capabilities_client: Client for GetCapabilities requests. Defaults
                to catalog_client when that client can also fetch text.
            proxy: Optional CORS proxy for cross-origin servers.
            scheduler: Executor that runs each load. Defaults to running
                the load immediately in the calling thread.
            fetch_executor: Executor for the GetCapabilities fan-out. Defaults
                to sequential requests.
            error_reporter: Receives the error of each failed load.
        """
        from ckanwms.adapters.executor import SynchronousExecutor

        if capabilities_client is None and isinstance(catalog_client, CapabilitiesClientPort):
            capabilities_client = catalog_client

        self.name = name
        self.items: list[CatalogMember] = []
        self.is_open = False
        self._catalog_client = catalog_client
        self._capabilities_client = capabilities_client
        self._proxy = proxy
        self._scheduler = scheduler or SynchronousExecutor()
        self._fetch_executor = fetch_executor or SynchronousExecutor()
        self._error_reporter = error_reporter or NullErrorReporter()
        self._gate = ReloadGate()

    @classmethod
    def from_definition(
        cls,
        definition: GroupDefinition,
        proxy: ProxyPort | None = None,
        max_workers: int | None = None,
        error_reporter: ErrorReporter | None = None,
    ) -> CkanGroup:
        """Create a group with the default HTTP client.

        Args:
            definition: The configured group.
            proxy: Optional CORS proxy.
            max_workers: Size of the GetCapabilities thread pool. None uses
                the ThreadPoolExecutor default; 1 fetches sequentially.
            error_reporter: Receives the error of each failed load.
        """
        from ckanwms.adapters.executor import SynchronousExecutor, ThreadPoolExecutorAdapter
        from ckanwms.adapters.http import RequestsHttpClient

        client = RequestsHttpClient()
        fetch_executor: ExecutorPort
        if max_workers == 1:
            fetch_executor = SynchronousExecutor()
        else:
            fetch_executor = ThreadPoolExecutorAdapter(max_workers=max_workers)

        return cls(
            name=definition.name,
            catalog_client=client,
            capabilities_client=client,
            proxy=proxy,
            fetch_executor=fetch_executor,
            error_reporter=error_reporter,
        )

    @property
    def is_loading(self) -> bool:
        """True while a load is in progress."""
        return self._gate.is_loading

    @property
    def loaded_query(self) -> CatalogQuery | None:
        """The query of the most recent load that has not failed."""
        return self._gate.state.last_applied_query

    def load(self, query: CatalogQuery, force: bool = False) -> Future[object] | None:
        """Load the group's items for a query.

        The load is handed to the scheduler; the returned future resolves to
        the new list of items, or to a GroupLoadError if package_search
        failed. Returns None without doing anything if a load is already in
        progress or, unless force is set, the query equals the one last loaded.
        """
        handle = self._gate.request_load(query, force=force)
        if handle is None:
            return None
        logger.info("Loading group %r from %s", self.name, query.endpoint_url)
        return self._scheduler.submit(self._run, handle)

    def reload(self, query: CatalogQuery) -> Future[object] | None:
        """Load even if the query is unchanged (still refused while loading)."""
        return self.load(query, force=True)

    def find_first_item_by_name(self, name: str) -> CatalogMember | None:
        for member in self.items:
            if member.name == name:
                return member
        return None

    def _run(self, handle: LoadHandle) -> list[CatalogMember]:
        query = handle.query
        try:
            items = self._build_items(query)
        except Exception as e:
            if not isinstance(e, CkanWmsError):
                logger.exception("Unexpected error loading group %r", self.name)
            error = GroupLoadError(
                f"An error occurred while invoking package_search on the CKAN server "
                f"{query.endpoint_url}: {e}",
                group_name=self.name,
                url=query.endpoint_url,
                cause=e,
            )
            self.is_open = False
            handle.fail()
            logger.error("Group %r is not available: %s", self.name, e)
            self._error_reporter.report(error)
            raise error from e
        except BaseException:
            handle.fail()
            raise

        if handle.is_current:
            self.items = items
        else:
            logger.info("Discarding stale results for group %r", self.name)
        handle.complete()
        return items

    def _build_items(self, query: CatalogQuery) -> list[CatalogMember]:
        records = search(
            query.endpoint_url,
            query.filter_queries(),
            self._catalog_client,
            self._proxy,
        )

        index = None
        if query.filter_by_capabilities:
            if self._capabilities_client is None:
                raise ConfigurationError(
                    "filter_by_capabilities requires a capabilities client"
                )
            resources_by_endpoint = group_resources_by_endpoint(records)
            logger.info(
                "Checking GetCapabilities on %d WMS servers", len(resources_by_endpoint)
            )
            index = build_capability_index(
                resources_by_endpoint,
                self._capabilities_client,
                self._fetch_executor,
                self._proxy,
            )

        admissions = compute_admissions(records, query, index)
        root = assemble(records, query, admissions, root_name=self.name)
        return root.items

    def __repr__(self) -> str:
        return f"CkanGroup(name={self.name!r}, items={len(self.items)})"
