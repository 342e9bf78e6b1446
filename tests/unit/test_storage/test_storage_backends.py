"""
Unit tests for the Parquet and JSON storage backends.
"""

import polars as pl
import pytest

from hostadvisor.storage import JsonStorage, ParquetStorage, create_storage


@pytest.fixture
def sample_frame():
    return pl.DataFrame({
        "timestamp": [1.0, 2.0, 3.0],
        "metric_name": ["CPU.Load", "CPU.Load", "Memory.UsedPercent"],
        "value": [35.0, 98.0, 60.0],
    })


@pytest.mark.unit
class TestStorageFactory:
    """Test cases for create_storage."""

    def test_parquet(self):
        storage = create_storage("parquet", compression="zstd")
        assert isinstance(storage, ParquetStorage)
        assert storage.compression == "zstd"
        assert storage.file_extension == ".parquet"

    def test_json(self):
        storage = create_storage("json")
        assert isinstance(storage, JsonStorage)
        assert storage.file_extension == ".json"

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported storage format"):
            create_storage("csv")


@pytest.mark.unit
@pytest.mark.parametrize("storage_cls", [ParquetStorage, JsonStorage])
class TestBackends:
    """Behaviour shared by both backends."""

    def test_dataframe_round_trip(self, storage_cls, temp_dir, sample_frame):
        storage = storage_cls()
        path = temp_dir / "nested" / f"points{storage.file_extension}"

        storage.save_dataframe(sample_frame, str(path))

        assert storage.file_exists(str(path))
        loaded = storage.load_dataframe(str(path))
        assert loaded["value"].to_list() == [35.0, 98.0, 60.0]
        assert loaded["metric_name"].to_list() == sample_frame["metric_name"].to_list()

    def test_column_selection(self, storage_cls, temp_dir, sample_frame):
        storage = storage_cls()
        path = temp_dir / f"points{storage.file_extension}"
        storage.save_dataframe(sample_frame, str(path))

        loaded = storage.load_dataframe(str(path), columns=["value"])

        assert loaded.columns == ["value"]

    def test_dict_round_trip(self, storage_cls, temp_dir):
        storage = storage_cls()
        path = temp_dir / "meta.json"
        data = {"id": "abc", "anomalies": ["CPU.Load: value 98.00"], "summary": {"x": 1.5}}

        storage.save_dict(data, str(path))

        assert storage.load_dict(str(path)) == data

    def test_missing_file(self, storage_cls, temp_dir):
        storage = storage_cls()
        assert not storage.file_exists(str(temp_dir / "nope.json"))
        with pytest.raises(FileNotFoundError):
            storage.load_dict(str(temp_dir / "nope.json"))
