"""
Persistence of sessions and recommendation results.

Layout under the output directory::

    <session id>/session.json           id, times, summary, anomalies
    <session id>/datapoints.<ext>       one row per data point
    recommendations/<name>.json         RecommendationResult.to_dict()
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from ..analysis.summary import data_points_frame, data_points_from_frame
from ..models.recommendation import RecommendationResult
from ..models.session import Session
from ..validation import SessionStateError, ValidationError, handle_file_error
from .base import DataStorage
from .factory import create_storage

logger = logging.getLogger(__name__)

SESSION_FILE = "session.json"
DATA_POINTS_STEM = "datapoints"
RECOMMENDATIONS_DIR = "recommendations"

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


def _check_name(name: str, field_name: str) -> str:
    if not name or not _SAFE_NAME.match(name) or name in (".", ".."):
        raise ValidationError(
            f"{field_name} must contain only letters, digits, '.', '_' or '-', got {name!r}",
            field_name=field_name,
            value=name,
        )
    return name


class SessionStore:
    """
    Reads and writes finalized sessions and recommendation results.

    Args:
        output_dir: Root directory for stored artifacts.
        storage: Backend used for data points; Parquet when omitted.
    """

    def __init__(self, output_dir: Union[str, Path], storage: Optional[DataStorage] = None):
        self.output_dir = Path(output_dir)
        self.storage = storage or create_storage()

    def session_dir(self, session_id: str) -> Path:
        return self.output_dir / _check_name(session_id, "session_id")

    def _data_points_path(self, session_id: str) -> Optional[Path]:
        directory = self.session_dir(session_id)
        preferred = directory / f"{DATA_POINTS_STEM}{self.storage.file_extension}"
        if self.storage.file_exists(str(preferred)):
            return preferred
        return None

    def save_session(self, session: Session) -> Path:
        """
        Write a finalized session.

        Returns:
            The session directory.

        Raises:
            SessionStateError: If the session has not been finalized.
        """
        if not session.is_finalized:
            raise SessionStateError(session.id, "save an unfinalized session")
        directory = self.session_dir(session.id)
        points_path = directory / f"{DATA_POINTS_STEM}{self.storage.file_extension}"

        try:
            self.storage.save_dataframe(data_points_frame(session.data_points), str(points_path))
            self.storage.save_dict(
                session.to_dict(include_data_points=False), str(directory / SESSION_FILE)
            )
        except OSError as e:
            handle_file_error(e, f"saving session {session.id}", logger=logger)
            raise
        logger.info(
            f"Saved session {session.id} ({len(session.data_points)} data points) to {directory}"
        )
        return directory

    def load_session(self, session_id: str) -> Session:
        """
        Load a stored session. The returned session is finalized and read-only.

        Raises:
            FileNotFoundError: If no session with that id is stored.
        """
        directory = self.session_dir(session_id)
        meta_path = directory / SESSION_FILE
        if not self.storage.file_exists(str(meta_path)):
            raise FileNotFoundError(f"No stored session '{session_id}' in {self.output_dir}")

        try:
            data = self.storage.load_dict(str(meta_path))
            points_path = self._data_points_path(session_id)
            if points_path is None:
                logger.warning(f"Session {session_id} has no data point file; loading metadata only")
                points = []
            else:
                points = data_points_from_frame(self.storage.load_dataframe(str(points_path)))
        except OSError as e:
            handle_file_error(e, f"loading session {session_id}", logger=logger)
            raise
        session = Session.from_dict(data, data_points=points)
        logger.debug(f"Loaded session {session_id} with {len(points)} data points")
        return session

    def list_sessions(self) -> List[str]:
        """Ids of stored sessions, sorted by name."""
        if not self.output_dir.is_dir():
            return []
        return sorted(
            p.name for p in self.output_dir.iterdir()
            if p.is_dir() and (p / SESSION_FILE).exists()
        )

    def save_recommendation(self, result: RecommendationResult, name: str) -> Path:
        """Write a recommendation result as JSON and return its path."""
        path = self.output_dir / RECOMMENDATIONS_DIR / f"{_check_name(name, 'name')}.json"
        try:
            self.storage.save_dict(result.to_dict(), str(path))
        except OSError as e:
            handle_file_error(e, f"saving recommendation {name}", logger=logger)
            raise
        logger.info(f"Saved recommendation to {path}")
        return path
