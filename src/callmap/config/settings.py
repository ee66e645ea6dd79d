"""Viewer configuration loaded from ``callmap.yaml``."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..core.exceptions import ConfigError
from . import defaults


@dataclass
class LayoutConfig:
    """Geometry of the tree layout."""

    origin_x: float = defaults.LAYOUT_ORIGIN_X
    origin_y: float = defaults.LAYOUT_ORIGIN_Y
    row_height: float = defaults.ROW_HEIGHT
    node_height: float = defaults.NODE_HEIGHT
    min_width: float = defaults.MIN_NODE_WIDTH
    base_width: float = defaults.BASE_NODE_WIDTH
    char_width: float = defaults.CHAR_WIDTH
    gutter: float = defaults.COLUMN_GUTTER


@dataclass
class ViewportConfig:
    """Pan/zoom bounds and steps."""

    zoom_min: float = defaults.ZOOM_MIN
    zoom_max: float = defaults.ZOOM_MAX
    default_pan_x: float = defaults.DEFAULT_PAN[0]
    default_pan_y: float = defaults.DEFAULT_PAN[1]
    default_zoom: float = defaults.DEFAULT_ZOOM
    wheel_zoom_in: float = defaults.WHEEL_ZOOM_IN
    wheel_zoom_out: float = defaults.WHEEL_ZOOM_OUT
    button_zoom_in: float = defaults.BUTTON_ZOOM_IN
    button_zoom_out: float = defaults.BUTTON_ZOOM_OUT
    # Keep a drag alive when the pointer leaves the diagram surface
    global_pointer_tracking: bool = True


@dataclass
class DataSourceConfig:
    """Pagination, search debounce and remote endpoint settings."""

    local_pagination_threshold: int = defaults.LOCAL_PAGINATION_THRESHOLD
    page_size: int = defaults.DEFAULT_PAGE_SIZE
    page_size_choices: list[int] = field(
        default_factory=lambda: list(defaults.PAGE_SIZE_CHOICES)
    )
    debounce_seconds: float = defaults.SEARCH_DEBOUNCE_SECONDS
    server_url: str = f"http://localhost:{defaults.SERVER_DEFAULT_PORT}"
    request_timeout: float = defaults.REQUEST_TIMEOUT_SECONDS


@dataclass
class ServerConfig:
    """Dataset server settings."""

    host: str = "127.0.0.1"
    port: int = defaults.SERVER_DEFAULT_PORT
    default_page_size: int = defaults.SERVER_DEFAULT_PAGE_SIZE
    max_page_size: int = defaults.SERVER_MAX_PAGE_SIZE


@dataclass
class ViewerConfig:
    """Complete callmap configuration."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    data_source: DataSourceConfig = field(default_factory=DataSourceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def __post_init__(self) -> None:
        if self.viewport.zoom_min <= 0 or self.viewport.zoom_min > self.viewport.zoom_max:
            raise ConfigError(
                "viewport.zoom_min must be positive and not exceed zoom_max",
                context={
                    "zoom_min": self.viewport.zoom_min,
                    "zoom_max": self.viewport.zoom_max,
                },
            )
        if self.data_source.page_size not in self.data_source.page_size_choices:
            raise ConfigError(
                "data_source.page_size must be one of data_source.page_size_choices",
                context={
                    "page_size": self.data_source.page_size,
                    "choices": self.data_source.page_size_choices,
                },
            )
        if self.data_source.debounce_seconds < 0:
            raise ConfigError("data_source.debounce_seconds cannot be negative")

    @classmethod
    def load(cls, path: Path) -> ViewerConfig:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            ViewerConfig instance (defaults when the file does not exist)

        Raises:
            ConfigError: If the file is not valid YAML or has unknown keys
        """
        if not path.exists():
            logger.debug(f"No config at {path}, using defaults")
            return cls()

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config root in {path} must be a mapping")

        logger.debug(f"Loaded config from {path}")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ViewerConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary with optional ``layout``,
                ``viewport``, ``data_source`` and ``server`` sections

        Returns:
            ViewerConfig instance
        """
        sections = {
            "layout": LayoutConfig,
            "viewport": ViewportConfig,
            "data_source": DataSourceConfig,
            "server": ServerConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown))}")

        built = {}
        for name, section_cls in sections.items():
            section_data = data.get(name) or {}
            allowed = {f.name for f in fields(section_cls)}
            bad = set(section_data) - allowed
            if bad:
                raise ConfigError(
                    f"Unknown keys in '{name}': {', '.join(sorted(bad))}",
                    context={"allowed": sorted(allowed)},
                )
            built[name] = section_cls(**section_data)

        return cls(**built)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
