"""
Command-line interface for the hostadvisor telemetry and recommendation engine.

This module provides the main CLI entry point. It loads configuration, wires
the psutil snapshot provider into the sampler, classifier and scorer, and
writes results through the session store.
"""

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from ..analysis import compare_sessions
from ..classification import WorkloadClassifier
from ..collectors import MetricSampler
from ..config import get_config, set_config_path
from ..models.config import AppConfig
from ..models.session import MetricCategory, Session
from ..recommendation import RecommendationScorer
from ..storage import SessionStore, create_storage
from ..system import PsutilSnapshotProvider, bottlenecks_from_summary
from ..validation import (
    ValidationError,
    handle_cli_error,
    validate_category_list,
    validate_fraction,
    validate_positive_float,
)

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostadvisor",
        description="Collect host telemetry, classify the workload and recommend tuning settings.",
    )
    parser.add_argument("--config", type=Path, help="Path to config.toml.")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Override [general].log_level.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    collect = subparsers.add_parser("collect", help="Sample metrics into a session.")
    collect.add_argument("--duration", type=float, help="Total duration in seconds.")
    collect.add_argument("--interval", type=float, help="Sampling interval in seconds (>= 1).")
    collect.add_argument(
        "--categories", type=str,
        help="Comma-separated categories, e.g. 'cpu,memory,thermal'.",
    )
    collect.add_argument("--baseline-fraction", type=float,
                         help="Leading fraction of iterations used as baseline.")
    collect.add_argument("--output", type=Path, help="Output directory.")

    subparsers.add_parser("classify", help="Classify the current workload.")

    recommend = subparsers.add_parser("recommend", help="Recommend tuning settings.")
    recommend.add_argument(
        "--session", type=str,
        help="Derive bottlenecks from a stored session instead of live readings.",
    )
    recommend.add_argument("--output", type=Path, help="Output directory.")

    compare = subparsers.add_parser("compare", help="Compare two stored sessions.")
    compare.add_argument("before_id")
    compare.add_argument("after_id")
    compare.add_argument("--output", type=Path, help="Directory holding the sessions.")
    compare.add_argument("--threshold", type=float, default=50.0,
                         help="Regression threshold in percent (default: 50).")
    return parser


def _session_store(app_config: AppConfig, output: Optional[Path]) -> SessionStore:
    storage = create_storage(app_config.storage.format, app_config.storage.compression)
    return SessionStore(output or app_config.general.output_dir, storage)


def _provider(app_config: AppConfig) -> PsutilSnapshotProvider:
    return PsutilSnapshotProvider(
        thresholds=app_config.thresholds,
        application_dirs=app_config.application_dirs or None,
    )


def _classifier(app_config: AppConfig) -> WorkloadClassifier:
    return WorkloadClassifier(
        signatures=app_config.workloads.signatures,
        policy=app_config.classification.policy,
        match_points=app_config.classification.match_points,
    )


def print_session_summary(session: Session) -> None:
    print(f"\nSession {session.id}"
          + (" (cancelled, partial data)" if session.cancelled else ""))
    print(f"{'Metric':<28} {'Count':>6} {'Average':>12} {'Min':>12} {'Max':>12} {'Stddev':>10}")
    for name, s in session.summary.items():
        print(f"{name:<28} {s.count:>6} {s.average:>12.2f} {s.min:>12.2f} "
              f"{s.max:>12.2f} {s.stddev:>10.2f}")
    if session.anomalies:
        print(f"\nAnomalies ({len(session.anomalies)}):")
        for message in session.anomalies:
            print(f"  - {message}")


def run_collect(args: argparse.Namespace, app_config: AppConfig) -> None:
    collection = app_config.collection
    duration = validate_positive_float(
        args.duration if args.duration is not None else collection.duration_seconds,
        min_value=1.0, field_name="--duration",
    )
    interval = validate_positive_float(
        args.interval if args.interval is not None else collection.interval_seconds,
        min_value=1.0, field_name="--interval",
    )
    categories = validate_category_list(
        args.categories if args.categories else list(collection.categories),
        valid_choices=MetricCategory.names(),
        field_name="--categories",
    )
    baseline_fraction = validate_fraction(
        args.baseline_fraction if args.baseline_fraction is not None
        else collection.baseline_fraction,
        field_name="--baseline-fraction",
    )

    cancel_event = threading.Event()

    def signal_handler(signum, frame):
        if cancel_event.is_set():
            logger.warning("Shutdown already in progress. Please be patient.")
            return
        logger.info(
            f"Signal {signal.strsignal(signum)} received. Finishing the current iteration..."
        )
        cancel_event.set()

    original_sigint = signal.signal(signal.SIGINT, signal_handler)
    original_sigterm = signal.signal(signal.SIGTERM, signal_handler)
    try:
        sampler = MetricSampler(
            _provider(app_config),
            baseline_fraction=baseline_fraction,
            sigma_multiplier=collection.sigma_multiplier,
            query_timeout=collection.query_timeout_seconds,
            cancel_event=cancel_event,
        )
        session = sampler.collect(duration, interval, categories)
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)

    print_session_summary(session)
    directory = _session_store(app_config, args.output).save_session(session)
    print(f"\nSession saved to {directory}")


def run_classify(args: argparse.Namespace, app_config: AppConfig) -> None:
    names = _provider(app_config).list_indicator_names()
    classification = _classifier(app_config).classify(names)
    print(f"Workload: {classification.category.value} "
          f"(confidence {classification.confidence:.2f}, policy {classification.policy.value})")
    for category, score in classification.scores.items():
        if score > 0:
            print(f"  {category.value:<12} {score:g}")
    if classification.matched_indicators:
        print(f"Matched: {', '.join(classification.matched_indicators)}")


def run_recommend(args: argparse.Namespace, app_config: AppConfig) -> None:
    provider = _provider(app_config)
    store = _session_store(app_config, args.output)
    facts = provider.get_hardware_facts()
    if args.session:
        session = store.load_session(args.session)
        bottlenecks = bottlenecks_from_summary(session.summary, app_config.thresholds)
    else:
        bottlenecks = provider.get_bottlenecks()
    facts = dataclasses.replace(facts, bottlenecks=bottlenecks)

    classification = _classifier(app_config).classify(provider.list_indicator_names())
    scorer = RecommendationScorer(
        weights=app_config.workloads.weights,
        expected_gains=app_config.workloads.expected_gains,
    )
    result = scorer.score(facts, classification)

    print(f"Workload: {result.workload_category.value}  confidence {result.confidence:.2f}  "
          f"gain {result.expected_gain_percent:.1f}%  risk {result.risk_level.value}")
    for name, rec in result.per_setting.items():
        print(f"  {name:<18} {rec.action.value:<18} {rec.confidence_percent:>5.1f}%")
    for line in result.reasoning:
        print(f"  * {line}")

    name = f"recommendation_{args.session}" if args.session else "recommendation_live"
    print(f"\nRecommendation saved to {store.save_recommendation(result, name)}")


def run_compare(args: argparse.Namespace, app_config: AppConfig) -> None:
    store = _session_store(app_config, args.output)
    comparison = compare_sessions(
        store.load_session(args.before_id),
        store.load_session(args.after_id),
        regression_threshold_percent=args.threshold,
    )
    print(f"{'Metric':<28} {'Before':>12} {'After':>12} {'Change':>10}")
    for name, delta in comparison.metrics.items():
        change = delta.percent_change
        change_text = f"{change:+.1f}%" if change is not None else "n/a"
        flag = "  REGRESSION" if name in comparison.regressions else ""
        print(f"{name:<28} {delta.before_average:>12.2f} {delta.after_average:>12.2f} "
              f"{change_text:>10}{flag}")
    if comparison.only_before:
        print(f"Only in {comparison.before_id}: {', '.join(comparison.only_before)}")
    if comparison.only_after:
        print(f"Only in {comparison.after_id}: {', '.join(comparison.only_after)}")


COMMANDS = {
    "collect": run_collect,
    "classify": run_classify,
    "recommend": run_recommend,
    "compare": run_compare,
}


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for hostadvisor.

    Exits with status 1 on configuration, validation or file errors.
    """
    args = build_parser().parse_args(argv)

    if args.config:
        set_config_path(args.config)
    try:
        app_config = get_config()
    except Exception as e:
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    logging.getLogger().setLevel(args.log_level or app_config.general.log_level)

    try:
        COMMANDS[args.command](args, app_config)
    except ValidationError as e:
        handle_cli_error(error=e, context=f"{args.command} argument validation",
                         exit_code=1, logger=logger)
    except (OSError, ValueError) as e:
        handle_cli_error(error=e, context=f"{args.command}", exit_code=1, logger=logger)


if __name__ == "__main__":
    main_cli()
