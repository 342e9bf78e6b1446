"""
Abstract base class for artifact storage backends.

A backend persists two kinds of data: tabular data points as Polars
DataFrames and small JSON-serializable dictionaries (session metadata,
recommendation results). The session store works against this interface only,
so the on-disk format is chosen by configuration.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import polars as pl


class DataStorage(ABC):
    """Abstract base class for data storage implementations."""

    file_extension: str = ""
    """Extension, including the dot, used for DataFrame files."""

    @abstractmethod
    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        """
        Save a Polars DataFrame to the specified path.

        Args:
            df: Polars DataFrame to save
            path: File path to save to
        """

    @abstractmethod
    def load_dataframe(
        self, path: str, columns: Optional[List[str]] = None
    ) -> pl.DataFrame:
        """
        Load a Polars DataFrame from the specified path.

        Args:
            path: File path to load from
            columns: Optional list of columns to load

        Returns:
            Loaded Polars DataFrame
        """

    @abstractmethod
    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        """Save dictionary data to the specified path."""

    @abstractmethod
    def load_dict(self, path: str) -> Dict[str, Any]:
        """Load dictionary data from the specified path."""

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """Check if a file exists at the specified path."""
