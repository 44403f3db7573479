"""Reload gating for CKAN groups.

A group reloads only when its query changes. The gate remembers the last
query it let through, refuses new loads while one is in progress, and
forgets everything when a load fails so the same query can be retried.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from ckanwms.core.models import CatalogQuery


logger = logging.getLogger(__name__)


@dataclass
class LoadState:
    """Mutable load bookkeeping for one group.

    Attributes:
        is_loading: True while a load is in progress.
        last_applied_query: The query of the last load that was let through
            and has not failed.
        generation: Incremented for every admitted load.
    """

    is_loading: bool = False
    last_applied_query: CatalogQuery | None = None
    generation: int = 0


class LoadHandle:
    """Ticket for one admitted load.

    Exactly one of complete() or fail() should be called when the load
    settles; further calls are ignored.
    """

    def __init__(self, gate: ReloadGate, query: CatalogQuery, generation: int) -> None:
        self._gate = gate
        self.query = query
        self.generation = generation
        self._settled = False

    @property
    def is_current(self) -> bool:
        """True if no later load has been admitted since this one."""
        return self._gate.state.generation == self.generation

    @property
    def settled(self) -> bool:
        return self._settled

    def complete(self) -> None:
        """Mark the load as succeeded."""
        if self._settled:
            return
        self._settled = True
        self._gate._finish(self, failed=False)

    def fail(self) -> None:
        """Mark the load as failed; the gate will admit the same query again."""
        if self._settled:
            return
        self._settled = True
        self._gate._finish(self, failed=True)

    def __repr__(self) -> str:
        return f"LoadHandle(generation={self.generation}, settled={self._settled})"


class ReloadGate:
    """Decides whether a load request should run.

    Example:
        >>> gate = ReloadGate()
        >>> handle = gate.request_load(query)
        >>> gate.request_load(query) is None  # already loading
        True
        >>> handle.complete()
        >>> gate.request_load(query) is None  # unchanged query
        True
    """

    def __init__(self) -> None:
        self.state = LoadState()
        self._lock = threading.Lock()

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    def should_skip(self, query: CatalogQuery) -> bool:
        """True if a load is in progress or the query equals the last applied one."""
        return self.state.is_loading or self.state.last_applied_query == query

    def request_load(self, query: CatalogQuery, force: bool = False) -> LoadHandle | None:
        """Admit a load for a query, or return None if it should be skipped.

        Admitting marks the gate as loading and records the query as applied
        straight away. With force, an unchanged query is admitted too, but a
        load in progress still refuses the request and keeps its state.
        """
        with self._lock:
            if self.state.is_loading or (not force and self.should_skip(query)):
                logger.debug("Skipping reload of %s", query.endpoint_url)
                return None
            self.state.is_loading = True
            self.state.last_applied_query = query
            self.state.generation += 1
            return LoadHandle(self, query, self.state.generation)

    def _finish(self, handle: LoadHandle, *, failed: bool) -> None:
        with self._lock:
            if handle.generation == self.state.generation:
                self.state.is_loading = False
                if failed:
                    self.state.last_applied_query = None
