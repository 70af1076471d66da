"""Aggregate heartbeats into sessions.

A session is a contiguous run of heartbeats on one project. A run ends when
the gap to the previous heartbeat of the same project exceeds the inactivity
threshold, or when the heartbeat stream switches to another project.
"""

import base64
import hashlib
import logging
from bisect import bisect_right
from collections import defaultdict
from datetime import datetime, timezone, tzinfo

from wakasync.config import GAP_THRESHOLD_SECONDS, MIN_SESSION_SECONDS
from wakasync.models import Heartbeat, Session, TimeRange

logger = logging.getLogger(__name__)

IDENTIFIER_LENGTH = 10


def fingerprint(*parts: str) -> str:
    """Short deterministic code for the concatenation of ``parts``."""
    digest = hashlib.sha256("".join(parts).encode("utf-8")).digest()
    encoded = base64.b32encode(digest).decode("ascii").rstrip("=").lower()
    return encoded[:IDENTIFIER_LENGTH]


def session_identifier(project: str, time_range: TimeRange) -> str:
    return fingerprint(project, time_range.format())


def project_identifier(project: str) -> str:
    return fingerprint(project)


def split_runs(heartbeats, gap_threshold: int = GAP_THRESHOLD_SECONDS) -> list[list[Heartbeat]]:
    """Group heartbeats into contiguous same-project runs.

    Exact ``(timestamp, project)`` duplicates are collapsed before walking.
    A gap equal to the threshold keeps the run going.
    """
    ordered = sorted(set(heartbeats), key=lambda hb: (hb.timestamp, hb.project))

    runs: list[list[Heartbeat]] = []
    last_seen: dict[str, datetime] = {}
    previous_project = None

    for hb in ordered:
        last = last_seen.get(hb.project)
        gap = (hb.timestamp - last).total_seconds() if last is not None else None
        last_seen[hb.project] = hb.timestamp

        switched = previous_project is not None and hb.project != previous_project
        inactive = gap is not None and gap > gap_threshold
        previous_project = hb.project

        if not runs or switched or inactive:
            runs.append([hb])
        else:
            runs[-1].append(hb)

    return runs


def make_session(run: list[Heartbeat]) -> Session:
    project = run[0].project
    time_range = TimeRange(
        min(hb.timestamp for hb in run),
        max(hb.timestamp for hb in run),
    )
    return Session(
        project=project,
        time_range=time_range,
        identifier=session_identifier(project, time_range),
        display_name=project,
    )


def aggregate(
    heartbeats,
    gap_threshold: int = GAP_THRESHOLD_SECONDS,
    min_duration: int = MIN_SESSION_SECONDS,
) -> list[Session]:
    """Turn heartbeats into sessions sorted by start time.

    Sessions shorter than ``min_duration`` seconds are dropped; with the
    default of 0 a lone heartbeat still yields a zero-length session.
    """
    sessions = []
    dropped = 0
    for run in split_runs(heartbeats, gap_threshold):
        session = make_session(run)
        if session.time_range.seconds < min_duration:
            dropped += 1
            continue
        sessions.append(session)

    if dropped:
        logger.debug("Dropped %d sessions shorter than %ds", dropped, min_duration)

    sessions.sort(key=lambda s: (s.start, s.project))
    return sessions


def aggregate_window(
    heartbeats,
    time_range: TimeRange,
    *,
    gap_threshold: int = GAP_THRESHOLD_SECONDS,
    min_duration: int = MIN_SESSION_SECONDS,
    per_day: bool = False,
    tz: tzinfo = timezone.utc,
) -> list[Session]:
    """Aggregate heartbeats of one query window.

    With ``per_day`` the window is cut at midnight (in ``tz``) and each day is
    aggregated on its own, so no session crosses a day boundary.
    """
    heartbeats = list(heartbeats)
    if not per_day:
        return aggregate(heartbeats, gap_threshold, min_duration)

    days = time_range.days(tz)
    starts = [day.start for day in days]
    buckets: dict[int, list[Heartbeat]] = defaultdict(list)
    for hb in heartbeats:
        index = bisect_right(starts, hb.timestamp) - 1
        if index < 0 or hb.timestamp >= days[index].end:
            logger.debug("Heartbeat at %s is outside %s", hb.timestamp, time_range.format())
            continue
        buckets[index].append(hb)

    sessions = []
    for index in sorted(buckets):
        day_sessions = aggregate(buckets[index], gap_threshold, min_duration)
        logger.debug("%s: %d sessions", days[index].format(), len(day_sessions))
        sessions.extend(day_sessions)

    sessions.sort(key=lambda s: (s.start, s.project))
    return sessions
