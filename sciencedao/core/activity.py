"""
Research activity log.

Append-only record of research events (reviews, curations, proposals,
errors) persisted as a JSON array. It is the data source for reporting and
dashboard views. Recording never raises: persistence problems are logged and
the in-memory record is kept.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    """Kinds of research activity."""

    PAPER_FETCH = "PAPER_FETCH"
    PAPER_ANALYSIS = "PAPER_ANALYSIS"
    HYPOTHESIS_GENERATION = "HYPOTHESIS_GENERATION"
    PEER_REVIEW = "PEER_REVIEW"
    DATA_CURATION = "DATA_CURATION"
    PROPOSAL_CREATION = "PROPOSAL_CREATION"
    ERROR = "ERROR"
    INFO = "INFO"


class ActivityEntry(BaseModel):
    """A single activity record."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    type: ActivityType
    message: str
    data: Optional[Dict[str, Any]] = None
    agent: Optional[str] = None


class ActivityLog:
    """
    Thread-safe activity sink, optionally backed by a JSON file.

    Example:
        ```python
        activity = ActivityLog("data/research_log.json")
        activity.record(
            ActivityType.PEER_REVIEW,
            "Peer review completed for hyp_001",
            data={"overall_score": 8.0},
            agent="ResearchCoordinator"
        )
        activity.get_stats()["PEER_REVIEW"]  # 1
        ```
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize the activity log.

        Args:
            path: JSON file to persist to. None keeps the log in memory only.
        """
        self.path = Path(path) if path else None
        self._entries: List[ActivityEntry] = []
        self._lock = threading.Lock()

        if self.path is not None:
            self._load()

    def _load(self):
        """Load existing entries from disk, starting empty if unreadable."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            return

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            self._entries = [ActivityEntry.model_validate(item) for item in raw]
            logger.info(f"Loaded {len(self._entries)} activity entries from {self.path}")
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Could not load existing activity log {self.path}: {e}")
            self._entries = []

    def _write(self):
        if self.path is None:
            return
        try:
            payload = [entry.model_dump(mode="json") for entry in self._entries]
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write activity log {self.path}: {e}")

    def record(
        self,
        activity_type: ActivityType,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        agent: Optional[str] = None
    ) -> ActivityEntry:
        """
        Append an activity and persist the log.

        Args:
            activity_type: Kind of activity
            message: Human-readable description
            data: Structured payload (must be JSON serializable)
            agent: Source agent name

        Returns:
            ActivityEntry: The recorded entry
        """
        entry = ActivityEntry(type=activity_type, message=message, data=data, agent=agent)
        with self._lock:
            self._entries.append(entry)
            self._write()

        prefix = f"[{agent}] " if agent else ""
        logger.debug(f"[{activity_type.value}] {prefix}{message}")
        return entry

    def entries(self) -> List[ActivityEntry]:
        """All entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def by_type(self, activity_type: ActivityType) -> List[ActivityEntry]:
        """Entries of one type."""
        with self._lock:
            return [e for e in self._entries if e.type == activity_type]

    def recent(self, count: int = 10) -> List[ActivityEntry]:
        """The last ``count`` entries."""
        if count <= 0:
            return []
        with self._lock:
            return self._entries[-count:]

    def get_stats(self) -> Dict[str, int]:
        """Number of entries per activity type (every type present)."""
        with self._lock:
            stats = {t.value: 0 for t in ActivityType}
            for entry in self._entries:
                stats[entry.type.value] += 1
            return stats

    def clear(self):
        """Remove all entries."""
        with self._lock:
            self._entries = []
            self._write()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
