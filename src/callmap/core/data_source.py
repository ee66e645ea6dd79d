"""Data source coordination: upload, server pages, server search, local pages.

Exactly one source is active at a time:

    UPLOAD         whole uploaded dataset (few enough roots to show at once)
    LOCAL_PAGED    uploaded dataset sliced client-side by root
    LOCAL_SEARCH   uploaded dataset filtered by query, then sliced
    SERVER_PAGED   remote page of roots plus their closure
    SERVER_SEARCH  remote search results plus their closure

Ordering: every remote request takes a sequence number. A response is only
applied if no newer request was issued meanwhile, so a slow stale response
can never overwrite the result of a later, faster one. Typed queries are
debounced; only the newest pending query ever fires.

Error Handling:
    - Malformed upload: DatasetError raised, banner set, dataset untouched
    - Remote failure: banner set, pagination stays at its last good values
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from ..config.defaults import DEFAULT_DATASET, DEFAULT_DATASET_LABEL
from ..config.settings import DataSourceConfig
from .client import RelationsClient, RelationsSource
from .debounce import Debouncer
from .exceptions import ConfigError, DatasetError, FetchError
from .graph_builder import find_roots
from .models import FunctionRecord, parse_records, records_from_python
from .paging import page_count, paginate


class SourceMode(StrEnum):
    UPLOAD = "upload"
    LOCAL_PAGED = "local_paged"
    LOCAL_SEARCH = "local_search"
    SERVER_PAGED = "server_paged"
    SERVER_SEARCH = "server_search"

    @property
    def is_server(self) -> bool:
        return self in (SourceMode.SERVER_PAGED, SourceMode.SERVER_SEARCH)


@dataclass
class PaginationState:
    """Pagination/search state of the active source."""

    mode: SourceMode = SourceMode.UPLOAD
    page: int = 1
    page_size: int = 5
    total_roots: int = 0
    query: str = ""

    @property
    def page_count(self) -> int:
        return page_count(self.total_roots, self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count


DatasetListener = Callable[[list[FunctionRecord]], None]


class DataSourceCoordinator:
    """Decides where the active dataset comes from and keeps paging consistent.

    Args:
        config: Paging/debounce/server settings
        client: Remote source (defaults to a RelationsClient on ``config.server_url``)
        on_dataset_change: Called with the new record list whenever the
            active dataset is replaced
    """

    def __init__(
        self,
        config: DataSourceConfig | None = None,
        client: RelationsSource | None = None,
        on_dataset_change: DatasetListener | None = None,
    ) -> None:
        self.config = config or DataSourceConfig()
        self.client: RelationsSource = client or RelationsClient(
            self.config.server_url, timeout=self.config.request_timeout
        )
        self.on_dataset_change = on_dataset_change

        self.pagination = PaginationState(page_size=self.config.page_size)
        self.records: list[FunctionRecord] = []
        self.label = ""
        self.error: str | None = None
        self.loading = False

        self._upload = records_from_python(DEFAULT_DATASET)
        self._upload_label = DEFAULT_DATASET_LABEL
        self._seq = 0
        self._debouncer = Debouncer(self.config.debounce_seconds)
        # Typed text waiting out the quiet period; not yet in pagination.query
        self._pending_query: str | None = None

        self._apply_local()

    # ── Properties ──────────────────────────────────────────────────────

    @property
    def mode(self) -> SourceMode:
        return self.pagination.mode

    @property
    def use_server(self) -> bool:
        return self.pagination.mode.is_server

    @property
    def download_url(self) -> str | None:
        return self.client.download_url() if self.use_server else None

    @property
    def search_pending(self) -> bool:
        return self._debouncer.pending

    # ── Upload ──────────────────────────────────────────────────────────

    def load_upload(self, payload: str | bytes, label: str = "upload") -> None:
        """Replace the uploaded dataset with a JSON document.

        Leaves server mode if active. On failure the error banner is set and
        the current dataset is left untouched.

        Raises:
            DatasetError: If the payload is not a valid FunctionRecord list
        """
        try:
            records = parse_records(payload)
        except DatasetError as e:
            self.error = f"Error parsing JSON file: {e}"
            logger.warning(f"Rejected upload {label}: {e}")
            raise
        self.load_records(records, label)

    def load_records(self, records: list[FunctionRecord], label: str) -> None:
        self._invalidate()
        self._upload = list(records)
        self._upload_label = label
        self.error = None
        self.loading = False
        self.pagination.query = ""
        self.pagination.page = 1
        logger.info(f"Loaded {len(records)} records from {label}")
        self._apply_local()

    def _apply_local(self) -> None:
        """Recompute the active dataset from the uploaded records."""
        state = self.pagination
        query = state.query.strip()

        if query:
            state.mode = SourceMode.LOCAL_SEARCH
        elif len(find_roots(self._upload)) > self.config.local_pagination_threshold:
            state.mode = SourceMode.LOCAL_PAGED
        else:
            state.mode = SourceMode.UPLOAD

        if state.mode is SourceMode.UPLOAD:
            state.page = 1
            state.total_roots = len(find_roots(self._upload))
            self.label = self._upload_label
            self._set_dataset(list(self._upload))
            return

        result = paginate(self._upload, state.page, state.page_size, query)
        if state.page > result.page_count:
            result = paginate(self._upload, result.page_count, state.page_size, query)
        state.page = result.page
        state.total_roots = result.total_roots

        if state.mode is SourceMode.LOCAL_SEARCH:
            self.label = (
                f'Search: "{query}" ({result.total_roots} matches, page {state.page})'
            )
        else:
            self.label = f"{self._upload_label} (page {state.page}/{state.page_count})"
        self._set_dataset(result.data)

    # ── Server mode ─────────────────────────────────────────────────────

    async def set_use_server(self, enabled: bool) -> bool:
        """Switch between the remote dataset and the uploaded one.

        Either way the query is cleared and paging restarts at page 1;
        totals from the abandoned mode are dropped.

        Returns:
            True if the resulting dataset was applied successfully
        """
        if enabled == self.use_server:
            return True

        self._invalidate()
        self.pagination.query = ""
        self.pagination.page = 1
        self.error = None

        if not enabled:
            self.loading = False
            self._apply_local()
            return True

        self.pagination.mode = SourceMode.SERVER_PAGED
        self.pagination.total_roots = 0
        self.label = "Server"
        self._set_dataset([])
        return await self._fetch(1, self.pagination.page_size, "")

    async def _fetch(self, page: int, page_size: int, query: str) -> bool:
        """Issue a remote page/search request and apply it if still current."""
        self._seq += 1
        seq = self._seq
        self.loading = True
        self.error = None
        query = query.strip()

        try:
            if query:
                result = await self.client.search(query, page, page_size)
                total = result.total_results
            else:
                result = await self.client.fetch_page(page, page_size)
                total = result.total_roots
        except FetchError as e:
            if seq == self._seq:
                self.error = str(e)
                self.loading = False
            logger.warning(f"Fetch of page {page} failed: {e}")
            return False

        if seq != self._seq or not self.use_server:
            logger.debug(f"Discarding stale response #{seq} (latest #{self._seq})")
            return False

        state = self.pagination
        state.mode = SourceMode.SERVER_SEARCH if query else SourceMode.SERVER_PAGED
        state.page = result.page or page
        state.page_size = result.page_size or page_size
        state.total_roots = total
        self.loading = False
        self.label = (
            f'Search: "{query}" ({total} matches, page {state.page})'
            if query
            else f"Server Roots Page {state.page}"
        )
        self._set_dataset(result.data)
        return True

    async def reload(self) -> bool:
        """Invalidate the server-side cache, then refetch page 1.

        If another request is issued while the reload is in flight, that
        request wins: neither the reload's error nor its refetch is applied.
        """
        if not self.use_server:
            raise ConfigError("Reload is only available in server mode")

        self._invalidate()
        seq = self._seq
        self.loading = True
        try:
            await self.client.reload()
        except FetchError as e:
            logger.warning(f"Reload failed: {e}")
            if seq == self._seq:
                self.error = str(e)
                self.loading = False
            return False

        if seq != self._seq:
            logger.debug("Reload superseded, skipping refetch of page 1")
            return False

        self.pagination.query = ""
        return await self._fetch(1, self.pagination.page_size, "")

    # ── Search ──────────────────────────────────────────────────────────

    async def set_query(self, query: str, immediate: bool = False) -> None:
        """Record a typed query and apply it after the quiet period.

        Until the timer fires the text is only pending; ``pagination.query``
        keeps the last applied query. ``immediate`` (explicit submit)
        applies it now and drops any pending debounced query.
        """
        if immediate:
            self._debouncer.cancel()
            self._pending_query = None
            self.pagination.query = query
            await self._apply_query()
        else:
            self._pending_query = query
            self._debouncer.schedule(self._commit_query)

    async def _commit_query(self) -> None:
        query, self._pending_query = self._pending_query, None
        if query is None:
            return
        self.pagination.query = query
        await self._apply_query()

    def _settle_query(self) -> None:
        """Fold a pending query into the next page request instead of firing it."""
        if self._pending_query is None:
            return
        self._debouncer.cancel()
        self.pagination.query, self._pending_query = self._pending_query, None

    async def _apply_query(self) -> None:
        if self.use_server:
            await self._fetch(1, self.pagination.page_size, self.pagination.query)
        else:
            self.pagination.page = 1
            self._apply_local()

    async def clear_query(self) -> None:
        await self.set_query("", immediate=True)

    # ── Paging ──────────────────────────────────────────────────────────

    def check_page_size(self, page_size: int) -> None:
        """Raise ConfigError unless ``page_size`` is one of the offered choices."""
        if page_size not in self.config.page_size_choices:
            choices = ", ".join(str(c) for c in self.config.page_size_choices)
            raise ConfigError(
                f"Page size must be one of {choices}, got {page_size}",
                context={"choices": list(self.config.page_size_choices)},
            )

    async def go_to_page(self, page: int) -> bool:
        self._settle_query()
        state = self.pagination
        page = max(1, min(page, state.page_count))
        if self.use_server:
            return await self._fetch(page, state.page_size, state.query)
        state.page = page
        self._apply_local()
        return True

    async def next_page(self) -> bool:
        return await self.go_to_page(self.pagination.page + 1)

    async def previous_page(self) -> bool:
        return await self.go_to_page(self.pagination.page - 1)

    async def set_page_size(self, page_size: int) -> bool:
        self.check_page_size(page_size)
        self._settle_query()
        if self.use_server:
            return await self._fetch(1, page_size, self.pagination.query)
        self.pagination.page_size = page_size
        self.pagination.page = 1
        self._apply_local()
        return True

    async def refresh(self) -> bool:
        """Re-issue the current request (or recompute the local page)."""
        self._settle_query()
        state = self.pagination
        if self.use_server:
            return await self._fetch(state.page, state.page_size, state.query)
        self._apply_local()
        return True

    # ── Misc ────────────────────────────────────────────────────────────

    def dismiss_error(self) -> None:
        self.error = None

    async def drain(self) -> None:
        """Wait for a fired debounced query to finish."""
        await self._debouncer.wait()

    def _invalidate(self) -> None:
        """Supersede pending timers and in-flight requests."""
        self._debouncer.cancel()
        self._pending_query = None
        self._seq += 1

    def _set_dataset(self, records: list[FunctionRecord]) -> None:
        self.records = records
        if self.on_dataset_change is not None:
            self.on_dataset_change(records)
