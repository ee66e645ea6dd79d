"""HTTP server exposing a function dataset page by page.

Serves a JSON dataset file (as produced by the upstream analyzer) through the
endpoints the viewer's server mode consumes:

    GET  /api/relations?page&pageSize   roots page + closure
    GET  /api/search?q&page&pageSize    search page + closure
    POST /api/reload                    re-read the dataset file
    GET  /api/download                  the dataset file itself
"""

from __future__ import annotations

import socket
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from loguru import logger
from rich.console import Console
from rich.panel import Panel

from ..config.settings import ServerConfig
from ..core.exceptions import DatasetError
from ..core.models import FunctionRecord, dump_records, parse_records
from ..core.paging import paginate

console = Console()


def find_free_port(start_port: int = 8080, end_port: int = 8099) -> int:
    """Find a free port in the given range.

    Args:
        start_port: Starting port number to check
        end_port: Ending port number to check

    Returns:
        First available port in the range

    Raises:
        OSError: If no free ports available in range
    """
    for test_port in range(start_port, end_port + 1):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(("", test_port))
                return test_port
        except OSError:
            continue
    raise OSError(f"No free ports available in range {start_port}-{end_port}")


@dataclass
class DatasetCache:
    """In-memory copy of the dataset file, sorted by (name, filePath)."""

    path: Path
    records: list[FunctionRecord] = field(default_factory=list)
    loaded_at: datetime | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def load(self) -> None:
        """(Re)read the dataset file.

        Raises:
            DatasetError: If the file is missing or malformed; the previously
                loaded records are kept
        """
        try:
            payload = self.path.read_bytes()
        except OSError as e:
            raise DatasetError(f"Cannot read dataset {self.path}: {e}") from e

        records = sorted(parse_records(payload), key=lambda r: (r.name, r.file_path))
        with self._lock:
            self.records = records
            self.loaded_at = datetime.now(UTC)
        logger.info(f"Loaded {len(records)} records from {self.path}")

    def snapshot(self) -> tuple[list[FunctionRecord], datetime | None]:
        with self._lock:
            return self.records, self.loaded_at


def clamp_paging(page: int, page_size: int, config: ServerConfig) -> tuple[int, int]:
    """Page below 1 becomes 1; page size outside 1..max becomes the default."""
    if page < 1:
        page = 1
    if page_size <= 0 or page_size > config.max_page_size:
        page_size = config.default_page_size
    return page, page_size


def create_app(dataset_path: Path, config: ServerConfig | None = None) -> FastAPI:
    """Create FastAPI application serving ``dataset_path``.

    Args:
        dataset_path: JSON file holding a list of FunctionRecord
        config: Paging limits and bind settings

    Returns:
        Configured FastAPI application

    Raises:
        DatasetError: If the initial load fails
    """
    config = config or ServerConfig()
    cache = DatasetCache(dataset_path)
    cache.load()

    app = FastAPI(title="callmap dataset server")
    app.state.cache = cache
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/api/relations")
    async def relations(
        page: int = Query(1),
        page_size: int = Query(config.default_page_size, alias="pageSize"),
    ) -> JSONResponse:
        """Paginated roots with the full call closure of each root on the page."""
        page, page_size = clamp_paging(page, page_size, config)
        records, loaded_at = cache.snapshot()
        result = paginate(records, page, page_size)
        return JSONResponse(
            {
                "page": result.page,
                "pageSize": result.page_size,
                "totalRoots": result.total_roots,
                "roots": dump_records(result.roots),
                "data": dump_records(result.data),
                "loadedAt": loaded_at.isoformat() if loaded_at else None,
            },
            headers={"Cache-Control": "no-cache"},
        )

    @app.get("/api/search")
    async def search(
        q: str = Query(""),
        page: int = Query(1),
        page_size: int = Query(config.default_page_size, alias="pageSize"),
    ) -> JSONResponse:
        """Roots of the records matching ``q``, paginated, with closures."""
        page, page_size = clamp_paging(page, page_size, config)
        records, _ = cache.snapshot()
        result = paginate(records, page, page_size, query=q)
        logger.debug(f"Search {q!r}: {result.total_roots} matching roots")
        return JSONResponse(
            {
                "page": result.page,
                "pageSize": result.page_size,
                "totalResults": result.total_roots,
                "query": q,
                "data": dump_records(result.data),
            },
            headers={"Cache-Control": "no-cache"},
        )

    @app.post("/api/reload")
    async def reload() -> JSONResponse:
        """Re-read the dataset file, invalidating the cached copy."""
        try:
            cache.load()
        except DatasetError as e:
            logger.error(f"Reload failed: {e}")
            return JSONResponse({"error": str(e)}, status_code=500)
        _, loaded_at = cache.snapshot()
        return JSONResponse(
            {"status": "reloaded", "loadedAt": loaded_at.isoformat() if loaded_at else None}
        )

    @app.get("/api/download", response_model=None)
    async def download() -> FileResponse | JSONResponse:
        """The dataset file as an attachment."""
        if not dataset_path.exists():
            return JSONResponse({"error": "Dataset file not found"}, status_code=404)
        return FileResponse(
            dataset_path,
            media_type="application/json",
            filename=dataset_path.name,
        )

    return app


def start_dataset_server(
    dataset_path: Path, config: ServerConfig | None = None, log_level: str = "warning"
) -> None:
    """Run the dataset server until interrupted.

    Args:
        dataset_path: JSON dataset to serve
        config: Host/port and paging limits
        log_level: uvicorn log level
    """
    config = config or ServerConfig()
    app = create_app(dataset_path, config)
    url = f"http://{config.host}:{config.port}"

    console.print()
    console.print(
        Panel.fit(
            f"[green]✓[/green] Dataset server running\n\n"
            f"URL: [cyan]{url}[/cyan]\n"
            f"Dataset: [dim]{dataset_path}[/dim]\n\n"
            f"[dim]Press Ctrl+C to stop[/dim]",
            title="Server Started",
            border_style="green",
        )
    )

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level=log_level,
            access_log=False,
        )
    )
    server.run()
