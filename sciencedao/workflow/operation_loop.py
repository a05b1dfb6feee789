"""
Operation loop for the research agent.

Drives the research coordinator once, N times, or continuously on an
interval:

1. Startup health check (optional, fatal on failure)
2. Iteration: next hypothesis → coordinate_research, retried with
   exponential backoff (1s, 2s, 4s) before counting as failed
3. Metrics update after every iteration
4. Interruptible wait between iterations (continuous mode)
5. Graceful shutdown on SIGINT; a second SIGINT forces exit
"""

import logging
import signal
import sys
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

import psutil
from pydantic import BaseModel, Field

from sciencedao.agents.collaborators import HypothesisSource
from sciencedao.agents.research_coordinator import ResearchCoordinator
from sciencedao.core.exceptions import HealthCheckFailedError
from sciencedao.core.workflow import WorkflowResult
from sciencedao.models.hypothesis import Hypothesis
from sciencedao.workflow.health import HealthChecker

logger = logging.getLogger(__name__)


class OperationMode(str, Enum):
    """How many iterations the loop runs."""
    SINGLE = "single"
    CONTINUOUS = "continuous"
    TEST = "test"


class OperationConfig(BaseModel):
    """Operation loop settings."""
    mode: OperationMode = OperationMode.SINGLE
    interval_minutes: float = Field(10.0, gt=0)
    max_iterations: Optional[int] = Field(None, ge=1)
    enable_health_checks: bool = True

    def iteration_limit(self) -> Optional[int]:
        """Iterations to run; None means until shutdown."""
        if self.mode == OperationMode.SINGLE:
            return 1
        if self.mode == OperationMode.TEST:
            return self.max_iterations or 1
        return self.max_iterations


class RetryPolicy(BaseModel):
    """Exponential backoff for failed iterations."""
    max_retries: int = Field(3, ge=0)
    base_delay: float = Field(1.0, ge=0)

    def backoff_delay(self, retry: int) -> float:
        """Delay in seconds before retry number ``retry`` (0-based)."""
        return self.base_delay * (2 ** retry)


class IterationMetrics(BaseModel):
    """Accumulated metrics across iterations."""
    start_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    iterations: int = 0
    successful_iterations: int = 0
    failed_iterations: int = 0
    total_papers_fetched: int = 0
    total_papers_analyzed: int = 0
    total_hypotheses_generated: int = 0
    average_iteration_time: float = 0.0  # seconds
    last_iteration_time: float = 0.0  # seconds
    memory_usage_mb: float = 0.0

    @property
    def success_rate(self) -> float:
        """Percentage of successful iterations."""
        if not self.iterations:
            return 0.0
        return self.successful_iterations / self.iterations * 100

    def record_iteration(self, duration: float, success: bool):
        """
        Record one finished iteration.

        The average duration is updated incrementally.
        """
        self.iterations += 1
        if success:
            self.successful_iterations += 1
        else:
            self.failed_iterations += 1

        self.last_iteration_time = duration
        self.average_iteration_time = (
            self.average_iteration_time * (self.iterations - 1) + duration
        ) / self.iterations

    def update_totals(self, research_state):
        """Copy research counters from the hypothesis source state."""
        self.total_papers_fetched = research_state.papers_fetched
        self.total_papers_analyzed = research_state.papers_analyzed
        self.total_hypotheses_generated = research_state.hypotheses_generated

    def sample_memory(self) -> float:
        """Record current process resident memory in MB."""
        rss = psutil.Process().memory_info().rss
        self.memory_usage_mb = round(rss / 1024 / 1024, 1)
        return self.memory_usage_mb

    def runtime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()


class OperationLoop:
    """
    Repeatedly runs the research workflow with retries and health checks.

    Example:
        ```python
        loop = OperationLoop(
            coordinator,
            HypothesisQueue.from_file("data/hypotheses.json"),
            OperationConfig(mode=OperationMode.CONTINUOUS, interval_minutes=5),
            health_checker=HealthChecker(get_config()),
        )
        loop.install_signal_handlers()
        sys.exit(loop.run())
        ```
    """

    def __init__(
        self,
        coordinator: ResearchCoordinator,
        source: HypothesisSource,
        config: Optional[OperationConfig] = None,
        retry_policy: Optional[RetryPolicy] = None,
        health_checker: Optional[HealthChecker] = None,
        metrics: Optional[IterationMetrics] = None,
        reporter=None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the loop.

        Args:
            coordinator: Research coordinator to drive
            source: Supplies one hypothesis per iteration
            config: Mode, interval, iteration limit, health checks
            retry_policy: Retry count and backoff base
            health_checker: Startup checker; required when health checks
                are enabled
            metrics: Metrics accumulator (new one if omitted)
            reporter: Console reporter (``sciencedao.cli.display.ConsoleReporter``
                if omitted)
            sleep: Sleep function (tests inject a fake)
            clock: Monotonic clock for iteration timing
        """
        if reporter is None:
            from sciencedao.cli.display import ConsoleReporter
            reporter = ConsoleReporter()

        self.coordinator = coordinator
        self.source = source
        self.config = config or OperationConfig()
        self.retry_policy = retry_policy or RetryPolicy()
        self.health_checker = health_checker
        self.metrics = metrics or IterationMetrics()
        self.reporter = reporter
        self._sleep = sleep
        self._clock = clock
        self._shutdown_requested = False
        self.last_result: Optional[WorkflowResult] = None

    # ========================================================================
    # SHUTDOWN
    # ========================================================================

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    def request_shutdown(self):
        """Ask the loop to stop at the next iteration boundary."""
        if not self._shutdown_requested:
            logger.info("Agent shutdown requested")
        self._shutdown_requested = True

    def install_signal_handlers(self):
        """Route SIGINT to graceful shutdown."""
        signal.signal(signal.SIGINT, self._handle_sigint)

    def _handle_sigint(self, signum, frame):
        if self._shutdown_requested:
            self.reporter.force_shutdown()
            sys.exit(1)
        self.reporter.shutdown_notice()
        self.request_shutdown()

    # ========================================================================
    # ITERATIONS
    # ========================================================================

    def _execute_once(self, hypothesis: Hypothesis) -> WorkflowResult:
        return self.coordinator.coordinate_research(
            hypothesis.hypothesis_id,
            hypothesis.statement,
            hypothesis.methodology,
            hypothesis.field,
        )

    def run_iteration(self) -> bool:
        """
        Run one iteration, retrying failures with exponential backoff.

        Returns:
            bool: True if an attempt succeeded
        """
        iteration = self.metrics.iterations + 1
        start = self._clock()
        logger.info(f"Starting research iteration {iteration}...")

        # The same hypothesis is retried until it succeeds or retries run out
        hypothesis = self.source.next_hypothesis()
        success = True
        if hypothesis is None:
            logger.info("No pending hypotheses; nothing to coordinate this iteration")
            self.last_result = None

        retry = 0
        while hypothesis is not None:
            try:
                self.last_result = self._execute_once(hypothesis)
                break
            except Exception as e:
                logger.error(
                    f"Research iteration {iteration} failed: {e} (retry {retry})",
                    exc_info=logger.isEnabledFor(logging.DEBUG),
                )
                if retry >= self.retry_policy.max_retries:
                    logger.error(
                        f"Research iteration failed after {self.retry_policy.max_retries} retries"
                    )
                    success = False
                    break

                delay = self.retry_policy.backoff_delay(retry)
                logger.info(
                    f"Retrying in {delay:g}s... "
                    f"(Attempt {retry + 1}/{self.retry_policy.max_retries})"
                )
                self._sleep(delay)
                retry += 1

        elapsed = self._clock() - start
        self.metrics.record_iteration(elapsed, success)
        self.metrics.update_totals(self.source.get_state())
        self.metrics.sample_memory()

        if success:
            logger.info(f"Research iteration completed successfully in {elapsed:.2f}s")
        return success

    def _wait_for_next_iteration(self):
        """Sleep for the configured interval in 1-second slices."""
        total = self.config.interval_minutes * 60
        logger.info(f"Waiting {self.config.interval_minutes:g} minutes before next iteration...")
        logger.info("Press Ctrl+C to stop the agent gracefully")

        waited = 0.0
        while waited < total and not self._shutdown_requested:
            step = min(1.0, total - waited)
            self._sleep(step)
            waited += step

    # ========================================================================
    # MAIN LOOP
    # ========================================================================

    def startup_check(self) -> bool:
        """Run startup health checks when enabled."""
        if not self.config.enable_health_checks:
            return True
        if self.health_checker is None:
            raise ValueError("Health checks are enabled but no health checker was provided")

        self.reporter.health_check_started()
        try:
            status = self.health_checker.require_healthy()
        except HealthCheckFailedError as e:
            self.reporter.health_status(e.errors)
            logger.error(f"Critical services unavailable. Cannot start agent. {e}")
            return False

        self.reporter.health_status(status.errors)
        return True

    def run(self) -> int:
        """
        Run the loop.

        Returns:
            int: Process exit code (0 success, 1 failure)
        """
        self.reporter.banner(self.config)

        if not self.startup_check():
            return 1

        self.reporter.agent_state("Initial Agent State", self._agent_state())
        logger.info("Starting research activities...")

        limit = self.config.iteration_limit()
        iteration = 0

        while not self._shutdown_requested and (limit is None or iteration < limit):
            iteration += 1
            success = self.run_iteration()

            if self.config.mode == OperationMode.SINGLE:
                if not success:
                    logger.error("Single iteration failed. Exiting.")
                    return 1
                logger.info("Single iteration completed successfully")
                break

            self.reporter.metrics(self.metrics)

            more_to_run = limit is None or iteration < limit
            if self.config.mode == OperationMode.CONTINUOUS and more_to_run and not self._shutdown_requested:
                self._wait_for_next_iteration()

        if self._shutdown_requested:
            self.reporter.agent_state("Final Agent State", self._agent_state())
            self.reporter.metrics(self.metrics)
            self.reporter.activity_stats(self.coordinator.activity.get_stats(), self.coordinator.activity.path)
        else:
            logger.info("Agent completed all iterations")
            self.reporter.metrics(self.metrics)
        return 0

    def _agent_state(self):
        return {
            "research": self.source.get_state().model_dump(mode="json"),
            "coordinator": self.coordinator.get_status(),
        }
