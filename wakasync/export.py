"""Wakapi heartbeats -> sessions -> Solidtime entries, one run at a time."""

import logging
from dataclasses import dataclass
from datetime import timezone, tzinfo

from wakasync.config import GAP_THRESHOLD_SECONDS, MIN_SESSION_SECONDS
from wakasync.models import TimeRange
from wakasync.reconcile import Reconciler, ReconcileResult
from wakasync.remote import DryRunRepository, RemoteRepository
from wakasync.report import Report, build_report
from wakasync.sessions import aggregate_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportOptions:
    gap_threshold: int = GAP_THRESHOLD_SECONDS
    min_duration: int = MIN_SESSION_SECONDS
    per_day: bool = False
    round_quarter_hour: bool = False
    user_id: str | None = None
    tz: tzinfo = timezone.utc


def generate_input_report(source, time_range: TimeRange, options: ExportOptions) -> tuple[Report, int]:
    """Read heartbeats and aggregate them. Returns (report, heartbeat count)."""
    heartbeats = source.get_heartbeats(time_range, options.user_id)
    sessions = aggregate_window(
        heartbeats,
        time_range,
        gap_threshold=options.gap_threshold,
        min_duration=options.min_duration,
        per_day=options.per_day,
        tz=options.tz,
    )
    return build_report(time_range, sessions), len(heartbeats)


def run_export(
    source,
    repository: RemoteRepository,
    time_range: TimeRange,
    options: ExportOptions | None = None,
) -> tuple[dict, ReconcileResult]:
    """Run the full pipeline. Input aggregation completes before any remote call."""
    options = options or ExportOptions()

    logger.info("Reading heartbeats for %s", time_range.format_local(options.tz))
    input_report, heartbeat_count = generate_input_report(source, time_range, options)
    logger.info("Aggregated %d heartbeats into %d sessions", heartbeat_count, len(input_report))

    reconciler = Reconciler(repository, round_quarter_hour=options.round_quarter_hour)
    result = reconciler.reconcile(input_report)

    dry_run = isinstance(repository, DryRunRepository)
    stats = {
        "heartbeats": heartbeat_count,
        "sessions": len(input_report),
        "planned": len(result.planned),
        "created": 0 if dry_run else len(result.created),
        "skipped": result.skipped,
        "projects_created": 0 if dry_run else len(result.created_projects),
        "dry_run": dry_run,
    }
    return stats, result
