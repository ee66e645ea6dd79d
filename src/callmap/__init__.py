"""callmap - explore function call relationships as a pannable, zoomable tree."""

__version__ = "0.3.0"

from loguru import logger

from .core.exceptions import CallMapError

# Library logging stays silent unless the application enables it
logger.disable("callmap")

__all__ = ["CallMapError", "__version__"]
