"""
Parquet and JSON storage implementations using Polars.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import polars as pl

from .base import DataStorage

logger = logging.getLogger(__name__)


class _JsonDictMixin:
    """Dictionaries are always written as indented JSON."""

    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            logger.debug(f"Saved dictionary data to {path}")
        except Exception as e:
            logger.error(f"Failed to save dictionary to {path}: {e}")
            raise

    def load_dict(self, path: str) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            logger.debug(f"Loaded dictionary data from {path}")
            return data
        except Exception as e:
            logger.error(f"Failed to load dictionary from {path}: {e}")
            raise

    def file_exists(self, path: str) -> bool:
        return Path(path).exists()


class ParquetStorage(_JsonDictMixin, DataStorage):
    """
    Columnar storage for data points.

    Data points go to compressed Parquet files; metadata dictionaries stay as
    JSON so they remain readable without tooling.
    """

    file_extension = ".parquet"

    def __init__(self, compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"):
        self.compression = compression
        logger.debug(f"Initialized ParquetStorage with compression: {compression}")

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            df.write_parquet(path, compression=self.compression)
            logger.debug(f"Saved DataFrame with {len(df)} rows to {path}")
        except Exception as e:
            logger.error(f"Failed to save DataFrame to {path}: {e}")
            raise

    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        try:
            df = pl.read_parquet(path, columns=columns) if columns else pl.read_parquet(path)
            logger.debug(f"Loaded DataFrame with {len(df)} rows from {path}")
            return df
        except Exception as e:
            logger.error(f"Failed to load DataFrame from {path}: {e}")
            raise


class JsonStorage(_JsonDictMixin, DataStorage):
    """Human-readable storage: data points are written as a JSON array of rows."""

    file_extension = ".json"

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(df.to_dicts(), f, indent=2, ensure_ascii=False)
            logger.debug(f"Saved DataFrame with {len(df)} rows to {path}")
        except Exception as e:
            logger.error(f"Failed to save DataFrame to {path}: {e}")
            raise

    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        try:
            with open(path, "r", encoding="utf-8") as f:
                rows = json.load(f)
            df = pl.DataFrame(rows)
            if columns:
                df = df.select(columns)
            logger.debug(f"Loaded DataFrame with {len(df)} rows from {path}")
            return df
        except Exception as e:
            logger.error(f"Failed to load DataFrame from {path}: {e}")
            raise
