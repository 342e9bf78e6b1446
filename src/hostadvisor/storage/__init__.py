"""
Artifact persistence for the hostadvisor package.

This module provides the storage backends (Parquet via Polars, or plain JSON)
and the SessionStore that lays sessions and recommendation results out on disk.
"""

from .base import DataStorage
from .factory import create_storage
from .parquet_storage import JsonStorage, ParquetStorage
from .session_store import SessionStore

__all__ = [
    "DataStorage",
    "ParquetStorage",
    "JsonStorage",
    "create_storage",
    "SessionStore",
]
