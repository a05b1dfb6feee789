"""
Unit tests for the operation loop.
"""

import signal

import pytest
from unittest.mock import Mock, patch

from sciencedao.agents.hypothesis_queue import HypothesisQueue, ResearchState
from sciencedao.agents.research_coordinator import ResearchCoordinator
from sciencedao.core.activity import ActivityLog
from sciencedao.core.exceptions import HealthCheckFailedError, ReviewFailedError
from sciencedao.models.hypothesis import Hypothesis
from sciencedao.workflow.health import HealthStatus
from sciencedao.workflow.operation_loop import (
    IterationMetrics,
    OperationConfig,
    OperationLoop,
    OperationMode,
    RetryPolicy,
)


# Fixtures

class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self, on_sleep=None):
        self.calls = []
        self.on_sleep = on_sleep

    def __call__(self, seconds):
        self.calls.append(seconds)
        if self.on_sleep:
            self.on_sleep(len(self.calls))


def make_hypothesis(hypothesis_id="H1"):
    return Hypothesis(
        hypothesis_id=hypothesis_id,
        statement="Senolytics restore muscle regeneration",
        methodology="Randomized mouse trial",
        field="aging",
    )


@pytest.fixture
def source():
    return HypothesisQueue([make_hypothesis(f"H{i}") for i in range(1, 6)], field="aging")


@pytest.fixture
def coordinator():
    coordinator = Mock()
    coordinator.coordinate_research.return_value = Mock(ready_for_funding=True)
    coordinator.get_status.return_value = {"jobs": {"total": 0}}
    coordinator.activity.get_stats.return_value = {"ERROR": 0}
    coordinator.activity.path = None
    return coordinator


@pytest.fixture
def reporter():
    return Mock()


@pytest.fixture
def sleep():
    return FakeSleep()


@pytest.fixture(autouse=True)
def no_psutil():
    """Avoid sampling real process memory."""
    with patch("sciencedao.workflow.operation_loop.psutil") as mock_psutil:
        mock_psutil.Process.return_value.memory_info.return_value.rss = 64 * 1024 * 1024
        yield mock_psutil


def build_loop(coordinator, source, reporter, sleep, **config):
    config.setdefault("enable_health_checks", False)
    return OperationLoop(
        coordinator,
        source,
        OperationConfig(**config),
        reporter=reporter,
        sleep=sleep,
    )


# Test configuration models

class TestOperationConfig:
    """Test loop configuration."""

    def test_iteration_limits(self):
        assert OperationConfig().iteration_limit() == 1
        assert OperationConfig(mode=OperationMode.SINGLE, max_iterations=5).iteration_limit() == 1
        assert OperationConfig(mode=OperationMode.TEST).iteration_limit() == 1
        assert OperationConfig(mode=OperationMode.TEST, max_iterations=3).iteration_limit() == 3
        assert OperationConfig(mode=OperationMode.CONTINUOUS).iteration_limit() is None

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            OperationConfig(interval_minutes=0)
        with pytest.raises(ValueError):
            OperationConfig(max_iterations=0)

    def test_backoff_schedule(self):
        policy = RetryPolicy()

        assert [policy.backoff_delay(n) for n in range(3)] == [1.0, 2.0, 4.0]


class TestIterationMetrics:
    """Test metrics accumulation."""

    def test_record_iteration(self):
        metrics = IterationMetrics()
        metrics.record_iteration(2.0, success=True)
        metrics.record_iteration(4.0, success=False)

        assert metrics.iterations == 2
        assert metrics.successful_iterations == 1
        assert metrics.failed_iterations == 1
        assert metrics.average_iteration_time == pytest.approx(3.0)
        assert metrics.last_iteration_time == 4.0
        assert metrics.success_rate == pytest.approx(50.0)

    def test_update_totals(self):
        metrics = IterationMetrics()
        metrics.update_totals(ResearchState(papers_fetched=4, papers_analyzed=3, hypotheses_generated=2))

        assert metrics.total_papers_fetched == 4
        assert metrics.total_papers_analyzed == 3
        assert metrics.total_hypotheses_generated == 2

    def test_sample_memory(self):
        assert IterationMetrics().sample_memory() == 64.0

    def test_success_rate_empty(self):
        assert IterationMetrics().success_rate == 0.0


# Test retries

class TestRunIteration:
    """Test retry with exponential backoff."""

    def test_success_first_try(self, coordinator, source, reporter, sleep):
        loop = build_loop(coordinator, source, reporter, sleep)

        assert loop.run_iteration() is True
        assert sleep.calls == []
        coordinator.coordinate_research.assert_called_once_with(
            "H1", "Senolytics restore muscle regeneration", "Randomized mouse trial", "aging"
        )

    def test_fails_twice_then_succeeds(self, coordinator, source, reporter, sleep):
        """Test two retries with delays of at least 1s and 2s."""
        coordinator.coordinate_research.side_effect = [
            ReviewFailedError("H1", "timeout"),
            ReviewFailedError("H1", "timeout"),
            Mock(ready_for_funding=False),
        ]
        loop = build_loop(coordinator, source, reporter, sleep)

        assert loop.run() == 0

        assert coordinator.coordinate_research.call_count == 3
        assert {c.args[0] for c in coordinator.coordinate_research.call_args_list} == {"H1"}
        assert len(source) == 4
        assert len(sleep.calls) == 2
        assert sleep.calls[0] >= 1
        assert sleep.calls[1] >= 2
        assert loop.metrics.successful_iterations == 1
        assert loop.metrics.failed_iterations == 0

    def test_exhausts_retries(self, coordinator, source, reporter, sleep):
        coordinator.coordinate_research.side_effect = RuntimeError("down")
        loop = build_loop(coordinator, source, reporter, sleep)

        assert loop.run_iteration() is False
        assert coordinator.coordinate_research.call_count == 4
        assert sleep.calls == [1.0, 2.0, 4.0]
        assert loop.metrics.failed_iterations == 1

    def test_empty_queue_is_successful(self, coordinator, reporter, sleep):
        loop = build_loop(coordinator, HypothesisQueue(), reporter, sleep)

        assert loop.run_iteration() is True
        coordinator.coordinate_research.assert_not_called()
        assert loop.last_result is None

    def test_metrics_track_research_state(self, coordinator, source, reporter, sleep):
        source.record_papers(fetched=7, analyzed=5)
        loop = build_loop(coordinator, source, reporter, sleep)

        loop.run_iteration()

        assert loop.metrics.total_papers_fetched == 7
        assert loop.metrics.total_hypotheses_generated == 5
        assert loop.metrics.memory_usage_mb == 64.0

    def test_duration_uses_clock(self, coordinator, source, reporter, sleep):
        ticks = iter([10.0, 12.5])
        loop = OperationLoop(
            coordinator,
            source,
            OperationConfig(enable_health_checks=False),
            reporter=reporter,
            sleep=sleep,
            clock=lambda: next(ticks),
        )

        loop.run_iteration()

        assert loop.metrics.last_iteration_time == pytest.approx(2.5)


# Test modes

class TestRunModes:
    """Test single, test and continuous modes."""

    def test_single_mode_failure_exits_nonzero(self, coordinator, source, reporter, sleep):
        """Test a failed single iteration returns exit code 1."""
        coordinator.coordinate_research.side_effect = RuntimeError("down")
        loop = build_loop(coordinator, source, reporter, sleep)

        assert loop.run() == 1
        assert loop.metrics.failed_iterations == 1

    def test_single_mode_last_hypothesis_keeps_failing(self, reporter, sleep):
        """Test retries reuse the only queued hypothesis instead of draining the queue."""
        reviewer = Mock()
        reviewer.review_hypothesis.side_effect = RuntimeError("LLM down")
        coordinator = ResearchCoordinator(reviewer=reviewer, curator=Mock(), activity_log=ActivityLog())
        loop = build_loop(coordinator, HypothesisQueue([make_hypothesis("H1")]), reporter, sleep)

        assert loop.run() == 1
        assert reviewer.review_hypothesis.call_count == 4
        assert sleep.calls == [1.0, 2.0, 4.0]
        assert loop.metrics.failed_iterations == 1
        assert loop.metrics.successful_iterations == 0

    def test_single_mode_runs_once(self, coordinator, source, reporter, sleep):
        loop = build_loop(coordinator, source, reporter, sleep, max_iterations=5)

        assert loop.run() == 0
        assert coordinator.coordinate_research.call_count == 1

    def test_test_mode_no_waiting(self, coordinator, source, reporter, sleep):
        loop = build_loop(coordinator, source, reporter, sleep, mode=OperationMode.TEST, max_iterations=3)

        assert loop.run() == 0
        assert coordinator.coordinate_research.call_count == 3
        assert sleep.calls == []
        assert reporter.metrics.call_count == 4

    def test_test_mode_continues_after_failure(self, coordinator, source, reporter, sleep):
        coordinator.coordinate_research.side_effect = [RuntimeError("down")] * 4 + [Mock()]
        loop = build_loop(coordinator, source, reporter, sleep, mode=OperationMode.TEST, max_iterations=2)

        assert loop.run() == 0
        assert loop.metrics.failed_iterations == 1
        assert loop.metrics.successful_iterations == 1

    def test_continuous_waits_between_iterations(self, coordinator, source, reporter, sleep):
        """Test the wait is sliced into one-second steps."""
        loop = build_loop(
            coordinator, source, reporter, sleep,
            mode=OperationMode.CONTINUOUS, interval_minutes=0.25, max_iterations=2,
        )

        assert loop.run() == 0
        assert coordinator.coordinate_research.call_count == 2
        assert sleep.calls == [1.0] * 15

    def test_shutdown_interrupts_wait(self, coordinator, source, reporter):
        """Test a shutdown request ends the wait within one slice."""
        loop = None

        def stop_after_two(count):
            if count == 2:
                loop.request_shutdown()

        sleep = FakeSleep(on_sleep=stop_after_two)
        loop = build_loop(coordinator, source, reporter, sleep, mode=OperationMode.CONTINUOUS, interval_minutes=10)

        assert loop.run() == 0
        assert len(sleep.calls) == 2
        assert coordinator.coordinate_research.call_count == 1
        assert reporter.agent_state.call_args[0][0] == "Final Agent State"
        reporter.activity_stats.assert_called_once()

    def test_shutdown_before_start(self, coordinator, source, reporter, sleep):
        loop = build_loop(coordinator, source, reporter, sleep, mode=OperationMode.TEST, max_iterations=3)
        loop.request_shutdown()

        assert loop.run() == 0
        coordinator.coordinate_research.assert_not_called()


# Test health checks

class TestStartupHealthCheck:
    """Test startup health gating."""

    def test_unhealthy_exits_nonzero(self, coordinator, source, reporter, sleep):
        checker = Mock()
        checker.require_healthy.side_effect = HealthCheckFailedError(["arXiv check failed: HTTP 503"])
        loop = OperationLoop(
            coordinator, source, OperationConfig(), health_checker=checker, reporter=reporter, sleep=sleep
        )

        assert loop.run() == 1
        coordinator.coordinate_research.assert_not_called()
        reporter.health_status.assert_called_once_with(["arXiv check failed: HTTP 503"])

    def test_healthy_proceeds(self, coordinator, source, reporter, sleep):
        checker = Mock()
        checker.require_healthy.return_value = HealthStatus(llm=True, arxiv=True)
        loop = OperationLoop(
            coordinator, source, OperationConfig(), health_checker=checker, reporter=reporter, sleep=sleep
        )

        assert loop.run() == 0
        coordinator.coordinate_research.assert_called_once()

    def test_enabled_without_checker(self, coordinator, source, reporter, sleep):
        loop = OperationLoop(coordinator, source, OperationConfig(), reporter=reporter, sleep=sleep)

        with pytest.raises(ValueError):
            loop.run()


# Test signal handling

class TestSignals:
    """Test SIGINT handling."""

    def test_install_signal_handlers(self, coordinator, source, reporter, sleep):
        loop = build_loop(coordinator, source, reporter, sleep)

        with patch("sciencedao.workflow.operation_loop.signal.signal") as mock_signal:
            loop.install_signal_handlers()

        mock_signal.assert_called_once_with(signal.SIGINT, loop._handle_sigint)

    def test_first_sigint_requests_shutdown(self, coordinator, source, reporter, sleep):
        loop = build_loop(coordinator, source, reporter, sleep)

        loop._handle_sigint(signal.SIGINT, None)

        assert loop.shutdown_requested
        reporter.shutdown_notice.assert_called_once()

    def test_second_sigint_forces_exit(self, coordinator, source, reporter, sleep):
        loop = build_loop(coordinator, source, reporter, sleep)
        loop.request_shutdown()

        with pytest.raises(SystemExit) as exc_info:
            loop._handle_sigint(signal.SIGINT, None)

        assert exc_info.value.code == 1
        reporter.force_shutdown.assert_called_once()
