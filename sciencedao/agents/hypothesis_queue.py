"""
Hypothesis queue.

Feeds hypotheses produced upstream (literature fetch, paper analysis and
hypothesis generation) to the operation loop, one per iteration, and carries
the research counters reported in iteration metrics.

The queue file is JSON, either a list of hypotheses or an object::

    {
      "papers_fetched": 12,
      "papers_analyzed": 10,
      "hypotheses": [
        {"hypothesis_id": "hyp_001", "statement": "...", "methodology": "...", "field": "aging"}
      ]
    }
"""

import json
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from sciencedao.models.hypothesis import Hypothesis

logger = logging.getLogger(__name__)


class ResearchState(BaseModel):
    """Research activity counters."""
    current_field: str = "longevity"
    papers_fetched: int = 0
    papers_analyzed: int = 0
    hypotheses_generated: int = 0
    hypotheses_dispatched: int = 0
    pending_hypotheses: List[str] = Field(default_factory=list)
    last_update: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HypothesisQueue:
    """FIFO hypothesis source for the operation loop."""

    def __init__(
        self,
        hypotheses: Optional[Iterable[Hypothesis]] = None,
        field: str = "longevity",
    ):
        """
        Initialize the queue.

        Args:
            hypotheses: Initial hypotheses, in dispatch order
            field: Default research field
        """
        self._lock = threading.Lock()
        self._pending = deque()
        self._state = ResearchState(current_field=field)
        for hypothesis in hypotheses or []:
            self.add(hypothesis)

    @classmethod
    def from_file(cls, path: Union[str, Path], field: str = "longevity") -> "HypothesisQueue":
        """
        Load a queue from a JSON file.

        A missing file yields an empty queue. Entries without a field use
        ``field``.

        Raises:
            ValueError: If the file is not valid JSON or an entry is invalid
        """
        path = Path(path)
        queue = cls(field=field)
        if not path.exists():
            logger.warning(f"Hypothesis file not found: {path}; starting with an empty queue")
            return queue

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Hypothesis file {path} is not valid JSON: {e}")

        if isinstance(raw, dict):
            entries = raw.get("hypotheses", [])
            queue.record_papers(
                fetched=int(raw.get("papers_fetched", 0)),
                analyzed=int(raw.get("papers_analyzed", 0)),
            )
        else:
            entries = raw

        for i, entry in enumerate(entries):
            try:
                queue.add(Hypothesis.model_validate({"field": field, **entry}))
            except (ValidationError, TypeError) as e:
                raise ValueError(f"Invalid hypothesis #{i} in {path}: {e}")

        logger.info(f"Loaded {len(queue)} hypotheses from {path}")
        return queue

    def add(self, hypothesis: Hypothesis):
        """Queue a newly generated hypothesis."""
        with self._lock:
            self._pending.append(hypothesis)
            self._state.hypotheses_generated += 1
            self._touch()

    def record_papers(self, fetched: int = 0, analyzed: int = 0):
        """Add to the paper counters."""
        with self._lock:
            self._state.papers_fetched += fetched
            self._state.papers_analyzed += analyzed
            self._touch()

    def next_hypothesis(self) -> Optional[Hypothesis]:
        """Pop the next hypothesis, or None when the queue is empty."""
        with self._lock:
            if not self._pending:
                return None
            hypothesis = self._pending.popleft()
            self._state.hypotheses_dispatched += 1
            self._touch()
            return hypothesis

    def get_state(self) -> ResearchState:
        """Snapshot of the research counters."""
        with self._lock:
            state = self._state.model_copy(deep=True)
            state.pending_hypotheses = [h.hypothesis_id for h in self._pending]
            return state

    def _touch(self):
        self._state.last_update = datetime.now(timezone.utc)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
