"""Shared session setup for commands that render a dataset."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from ...config.settings import ViewerConfig
from ...core.client import RelationsClient
from ...core.exceptions import ConfigError, FetchError
from ...core.session import MindMapSession


def _expand_everything(session: MindMapSession) -> None:
    graph = session.graph
    session.expansion.expand(n.key for n in graph.nodes if n.has_children)


async def open_session(
    config: ViewerConfig,
    dataset: Path | None,
    server: str | None,
    query: str,
    page: int,
    page_size: int | None,
    expand: list[str],
    expand_all: bool,
) -> MindMapSession:
    """Build a session from a dataset file or a running server.

    Raises:
        ConfigError: If both or neither of ``dataset``/``server`` are given
        DatasetError: If the dataset file is malformed
        FetchError: If the server cannot be reached
    """
    if (dataset is None) == (server is None):
        raise ConfigError("Pass either a dataset file or --server, not both")

    client = None
    if server:
        client = RelationsClient(server, timeout=config.data_source.request_timeout)
    session = MindMapSession(config, client=client)
    source = session.data_source

    if page_size:
        source.check_page_size(page_size)
        source.pagination.page_size = page_size

    if dataset is not None:
        source.load_upload(dataset.read_bytes(), label=dataset.name)
    else:
        if not await source.set_use_server(True):
            logger.debug(f"Initial fetch from {server} failed")
            raise FetchError(source.error or f"Could not fetch from {server}")

    if query:
        await source.set_query(query, immediate=True)
    if page > 1:
        await source.go_to_page(page)

    if expand_all:
        _expand_everything(session)
    else:
        session.expansion.expand(expand)
    return session
