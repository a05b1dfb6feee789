"""
Unit tests for the research activity log.
"""

import json

from sciencedao.core.activity import ActivityLog, ActivityType
from sciencedao.core.exceptions import (
    HealthCheckFailedError,
    ReviewFailedError,
    UnknownJobError,
)


class TestActivityLogInMemory:
    """Test in-memory activity log."""

    def test_record_and_query(self):
        log = ActivityLog()

        entry = log.record(
            ActivityType.PEER_REVIEW,
            "Peer review completed for H1",
            data={"overall_score": 8.0},
            agent="ResearchCoordinator",
        )

        assert entry.type == ActivityType.PEER_REVIEW
        assert len(log) == 1
        assert log.by_type(ActivityType.PEER_REVIEW) == [entry]
        assert log.by_type(ActivityType.ERROR) == []

    def test_stats_include_every_type(self):
        log = ActivityLog()
        log.record(ActivityType.ERROR, "boom")
        log.record(ActivityType.ERROR, "boom again")

        stats = log.get_stats()

        assert stats["ERROR"] == 2
        assert stats["PROPOSAL_CREATION"] == 0
        assert set(stats) == {t.value for t in ActivityType}

    def test_recent(self):
        log = ActivityLog()
        for i in range(5):
            log.record(ActivityType.INFO, f"event {i}")

        recent = log.recent(2)

        assert [e.message for e in recent] == ["event 3", "event 4"]
        assert log.recent(0) == []

    def test_clear(self):
        log = ActivityLog()
        log.record(ActivityType.INFO, "event")

        log.clear()

        assert len(log) == 0


class TestActivityLogPersistence:
    """Test JSON file persistence."""

    def test_persists_and_reloads(self, tmp_path):
        path = tmp_path / "data" / "research_log.json"
        log = ActivityLog(path)
        log.record(ActivityType.DATA_CURATION, "Found 2 datasets", data={"datasets": ["A", "B"]})

        raw = json.loads(path.read_text())
        assert raw[0]["type"] == "DATA_CURATION"

        reloaded = ActivityLog(path)
        assert len(reloaded) == 1
        assert reloaded.entries()[0].data == {"datasets": ["A", "B"]}

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "research_log.json"
        path.write_text("{not json")

        log = ActivityLog(path)

        assert len(log) == 0
        log.record(ActivityType.INFO, "fresh start")
        assert len(json.loads(path.read_text())) == 1


class TestExceptions:
    """Test error taxonomy messages."""

    def test_unknown_job_message(self):
        error = UnknownJobError("job_42")

        assert str(error) == "Unknown job: job_42"
        assert isinstance(error, KeyError)

    def test_review_failed_carries_context(self):
        error = ReviewFailedError("H1", "LLM timeout", job_id="job_1_1")

        assert error.hypothesis_id == "H1"
        assert error.job_id == "job_1_1"
        assert "Peer review failed for H1: LLM timeout" in str(error)

    def test_health_check_failed_lists_errors(self):
        error = HealthCheckFailedError(["OpenAI API key not configured"])

        assert error.errors == ["OpenAI API key not configured"]
        assert "OpenAI API key not configured" in str(error)
