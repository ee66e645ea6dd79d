"""Dataset server exposing paging, search, reload and download endpoints."""

from .app import create_app, find_free_port, start_dataset_server

__all__ = ["create_app", "find_free_port", "start_dataset_server"]
