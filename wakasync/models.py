"""Value types shared by the source, aggregation and remote sides."""

import math
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo

from wakasync.errors import ValidationError

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# GORM writes "2024-01-15 10:00:00.123456789+00:00"; Solidtime sends "2024-01-15T10:00:00Z".
_TIMESTAMP_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[ T](\d{2}:\d{2}:\d{2})(?:\.(\d+))?\s*(Z|[+-]\d{2}:?\d{2})?$"
)


def parse_datetime(value) -> datetime:
    """Parse a stored or transmitted timestamp into an aware UTC datetime.

    Naive values are taken as UTC; sub-microsecond digits are truncated.
    """
    if not isinstance(value, str):
        raise ValidationError(f"Invalid timestamp {value!r}: expected text")
    match = _TIMESTAMP_RE.match(value.strip())
    if match is None:
        raise ValidationError(f"Invalid timestamp {value!r}")

    day, clock, fraction, offset = match.groups()
    micros = (fraction or "0")[:6].ljust(6, "0")
    if offset is None or offset == "Z":
        offset = "+00:00"
    elif ":" not in offset:
        offset = f"{offset[:3]}:{offset[3:]}"

    try:
        parsed = datetime.fromisoformat(f"{day}T{clock}.{micros}{offset}")
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp {value!r}: {e}")
    return parsed.astimezone(timezone.utc)


def format_datetime(value: datetime) -> str:
    """Second-precision UTC ISO form used on the wire."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _round_to_quarter_hour(value: datetime) -> datetime:
    hour = value.replace(minute=0, second=0, microsecond=0)
    seconds = _round_half_up(value.second + value.microsecond / 1_000_000)
    minutes = value.minute + _round_half_up(seconds / 60)
    return hour + timedelta(minutes=_round_half_up(minutes / 15) * 15)


def format_duration(delta: timedelta) -> str:
    days, rest = divmod(int(delta.total_seconds()), 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{days}d {hours}h {minutes}m {seconds}s"


@dataclass(frozen=True)
class TimeRange:
    """Closed interval between two timezone-aware instants, stored in UTC."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValidationError(f"TimeRange endpoints must be timezone-aware: {self.start!r}, {self.end!r}")
        object.__setattr__(self, "start", self.start.astimezone(timezone.utc))
        object.__setattr__(self, "end", self.end.astimezone(timezone.utc))
        if self.start > self.end:
            raise ValidationError(f"TimeRange start {self.start} is after end {self.end}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def seconds(self) -> int:
        return int(self.duration.total_seconds())

    def format(self) -> str:
        """Canonical UTC rendering, also the input to session fingerprints."""
        return f"{self.start.strftime(DATE_FORMAT)} - {self.end.strftime(DATE_FORMAT)}"

    def format_local(self, tz: tzinfo) -> str:
        start = self.start.astimezone(tz)
        end = self.end.astimezone(tz)
        if start.date() == end.date():
            return f"{start.strftime(DATE_FORMAT)} - {end.strftime('%H:%M:%S')}"
        return f"{start.strftime(DATE_FORMAT)} - {end.strftime(DATE_FORMAT)}"

    def format_duration(self) -> str:
        return format_duration(self.duration)

    def contains(self, other: "TimeRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def intersects(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end

    def days(self, tz: tzinfo = timezone.utc) -> list["TimeRange"]:
        """Split into consecutive windows that each stay within one calendar day of ``tz``."""
        windows = []
        cursor = self.start
        while cursor < self.end:
            local = cursor.astimezone(tz)
            midnight = datetime.combine(local.date() + timedelta(days=1), time(0), tzinfo=tz)
            window_end = min(midnight.astimezone(timezone.utc), self.end)
            windows.append(TimeRange(cursor, window_end))
            cursor = window_end
        return windows

    def round_to_quarter_hour(self) -> "TimeRange":
        return TimeRange(_round_to_quarter_hour(self.start), _round_to_quarter_hour(self.end))


@dataclass(frozen=True)
class Heartbeat:
    timestamp: datetime
    project: str


@dataclass(frozen=True)
class Session:
    project: str
    time_range: TimeRange
    identifier: str
    display_name: str

    @property
    def start(self) -> datetime:
        return self.time_range.start

    @property
    def end(self) -> datetime:
        return self.time_range.end


@dataclass(frozen=True)
class Project:
    """A named grouping of sessions.

    ``id`` is only set for projects that exist remotely.
    """

    identifier: str
    display_name: str
    id: str | None = None


@dataclass(frozen=True)
class RemoteEntry:
    id: str
    start: datetime
    end: datetime | None
    description: str | None
    project_id: str | None

    @property
    def is_running(self) -> bool:
        return self.end is None
