"""
Unit tests for SessionStore persistence.
"""

import json
from unittest.mock import patch

import pytest

from hostadvisor.models import (
    ActionLabel,
    AnomalyEvent,
    DataPoint,
    RecommendationResult,
    RiskLevel,
    Session,
    SettingRecommendation,
    WorkloadCategory,
)
from hostadvisor.analysis import summarize_data_points
from hostadvisor.storage import JsonStorage, ParquetStorage, SessionStore
from hostadvisor.storage.session_store import RECOMMENDATIONS_DIR, SESSION_FILE
from hostadvisor.validation import SessionStateError, ValidationError


def _session(session_id="session-1", values=(35.0, 35.0, 98.0)):
    session = Session.begin(1000.0, session_id=session_id)
    for i, value in enumerate(values):
        session.add_data_point(DataPoint(
            1000.0 + i, "CPU.Load", value, "%", {"category": "cpu", "iteration": str(i + 1)}
        ))
    session.record_anomaly(AnomalyEvent("CPU.Load", 98.0, 35.0, 0.0, 1002.0))
    session.finalize(1003.0, summarize_data_points(session.data_points))
    return session


@pytest.mark.unit
@pytest.mark.parametrize("storage", [ParquetStorage(), JsonStorage()], ids=["parquet", "json"])
class TestSessionPersistence:
    """Sessions survive a save/load cycle with either backend."""

    def test_round_trip(self, storage, temp_dir):
        store = SessionStore(temp_dir, storage=storage)
        original = _session()

        directory = store.save_session(original)
        loaded = store.load_session(original.id)

        assert directory == temp_dir / original.id
        assert (directory / SESSION_FILE).exists()
        assert loaded.is_finalized
        assert loaded.data_points == original.data_points
        assert loaded.anomalies == original.anomalies
        assert loaded.summary["CPU.Load"].max == 98.0
        assert store.list_sessions() == [original.id]

    def test_metadata_file_has_no_data_points(self, storage, temp_dir):
        store = SessionStore(temp_dir, storage=storage)
        directory = store.save_session(_session())

        meta = json.loads((directory / SESSION_FILE).read_text())

        assert "data_points" not in meta
        assert meta["summary"]["CPU.Load"]["count"] == 3


@pytest.mark.unit
class TestSessionStoreErrors:
    """Test cases for rejected operations."""

    def test_unfinalized_session_rejected(self, temp_dir):
        store = SessionStore(temp_dir)
        with pytest.raises(SessionStateError):
            store.save_session(Session.begin(0.0))

    @pytest.mark.parametrize("session_id", ["../escape", "a/b", "", ".."])
    def test_unsafe_ids_rejected(self, temp_dir, session_id):
        with pytest.raises(ValidationError):
            SessionStore(temp_dir).session_dir(session_id)

    def test_missing_session(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            SessionStore(temp_dir).load_session("unknown")

    def test_list_sessions_without_directory(self, temp_dir):
        assert SessionStore(temp_dir / "missing").list_sessions() == []


@pytest.mark.unit
class TestRecommendationPersistence:
    """Test cases for save_recommendation."""

    def test_saved_as_json(self, temp_dir):
        store = SessionStore(temp_dir, storage=JsonStorage())
        result = RecommendationResult(
            workload_category=WorkloadCategory.GAMING,
            confidence=0.925,
            expected_gain_percent=17.5,
            risk_level=RiskLevel.MEDIUM,
            per_setting={"boost": SettingRecommendation(ActionLabel.MAXIMIZE, 0.95, 92.5)},
            reasoning=["Workload classified as Gaming."],
        )

        path = store.save_recommendation(result, "recommendation_live")

        assert path == temp_dir / RECOMMENDATIONS_DIR / "recommendation_live.json"
        data = json.loads(path.read_text())
        assert data["workload_category"] == "Gaming"
        assert data["per_setting"]["boost"]["action"] == "Maximize"
        assert data["risk_level"] == "Medium"


@pytest.mark.unit
class TestSessionStoreFileErrors:
    """I/O failures are logged with context and propagated."""

    def test_save_failure_logged_and_raised(self, temp_dir, caplog):
        store = SessionStore(temp_dir, storage=JsonStorage())
        session = _session()

        with patch.object(store.storage, "save_dict", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                store.save_session(session)

        assert f"Error in file saving session {session.id}" in caplog.text

    def test_load_failure_logged_and_raised(self, temp_dir, caplog):
        store = SessionStore(temp_dir, storage=JsonStorage())
        session = _session()
        store.save_session(session)

        with patch.object(store.storage, "load_dataframe", side_effect=PermissionError("denied")):
            with pytest.raises(PermissionError):
                store.load_session(session.id)

        assert f"Error in file loading session {session.id}" in caplog.text
