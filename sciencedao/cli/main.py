"""
Command-line entry point for the research agent.

Usage:
    sciencedao                       # one iteration
    sciencedao --continuous 5        # every 5 minutes until Ctrl+C
    sciencedao --test -m 3           # three iterations, no waiting
"""

import argparse
import logging
import sys
from typing import List, Optional

from sciencedao import __version__
from sciencedao.agents import (
    CatalogDatasetCurator,
    HypothesisQueue,
    LLMPeerReviewer,
    ResearchCoordinator,
)
from sciencedao.cli.display import ConsoleReporter, print_error
from sciencedao.config import get_config
from sciencedao.core.activity import ActivityLog, ActivityType
from sciencedao.core.logging import setup_logging
from sciencedao.workflow import HealthChecker, OperationConfig, OperationLoop, OperationMode

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sciencedao",
        description="Autonomous research agent: peer review, dataset curation and funding proposals",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-c", "--continuous",
        nargs="?",
        const=10.0,
        type=float,
        metavar="MINUTES",
        help="Run continuously, waiting MINUTES between iterations (default: 10)",
    )
    mode.add_argument(
        "-t", "--test",
        action="store_true",
        help="Run iterations back to back without waiting",
    )
    parser.add_argument(
        "-m", "--max-iterations",
        type=int,
        metavar="N",
        help="Stop after N iterations",
    )
    parser.add_argument(
        "--no-health-check",
        action="store_true",
        help="Skip startup health checks",
    )
    parser.add_argument(
        "--hypotheses",
        metavar="PATH",
        help="Hypothesis file (default: from configuration)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: from configuration)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def operation_config_from_args(args: argparse.Namespace) -> OperationConfig:
    """Translate parsed arguments into loop settings."""
    if args.continuous is not None:
        mode = OperationMode.CONTINUOUS
    elif args.test:
        mode = OperationMode.TEST
    else:
        mode = OperationMode.SINGLE

    settings = {
        "mode": mode,
        "max_iterations": args.max_iterations,
        "enable_health_checks": not args.no_health_check,
    }
    if args.continuous is not None:
        settings["interval_minutes"] = args.continuous
    return OperationConfig(**settings)


def main(argv: Optional[List[str]] = None):
    """Parse arguments, wire the agent and run the operation loop."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    setup_logging(args.log_level or config.storage.log_level, config.storage.log_file)

    try:
        operation_config = operation_config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    reporter = ConsoleReporter()
    reporter.config_summary(config.summary())

    missing = config.missing_credentials()
    if missing:
        logger.warning(f"Missing credentials: {', '.join(missing)}")

    activity = ActivityLog(config.storage.activity_log_file)
    source = HypothesisQueue.from_file(
        args.hypotheses or config.storage.hypothesis_file,
        field=config.research.default_field,
    )

    try:
        reviewer = LLMPeerReviewer(config=config.llm)
    except ImportError as e:
        print_error(str(e))
        sys.exit(1)

    coordinator = ResearchCoordinator(
        reviewer=reviewer,
        curator=CatalogDatasetCurator(),
        activity_log=activity,
        config=config.coordinator,
    )
    activity.record(
        ActivityType.INFO,
        f"Research agent started in {operation_config.mode.value} mode",
        data={"pending_hypotheses": len(source)},
        agent="ResearchAgent",
    )

    loop = OperationLoop(
        coordinator,
        source,
        operation_config,
        health_checker=HealthChecker(config),
        reporter=reporter,
    )
    loop.install_signal_handlers()
    sys.exit(loop.run())


if __name__ == "__main__":
    main()
