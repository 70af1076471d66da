"""Configuration: paths, thresholds and Solidtime connection settings."""

import os
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from wakasync.errors import ConfigurationError
from wakasync.models import TimeRange

load_dotenv()


def _env_number(name: str, default, kind=int):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'")


# Paths
DB_PATH = Path(os.environ.get("WAKAPI_DB", Path.home() / ".wakapi" / "wakapi_db.db"))
WAKAPI_USER = os.environ.get("WAKAPI_USER") or None
LOG_FILE = os.environ.get("WAKASYNC_LOG_FILE") or None

# Aggregation
GAP_THRESHOLD_SECONDS = _env_number("WAKASYNC_GAP_SECONDS", 900)
# 0 keeps single-heartbeat sessions; some setups prefer 30.
MIN_SESSION_SECONDS = _env_number("WAKASYNC_MIN_SESSION_SECONDS", 0)

# Display timezone for date arguments and console output
DISPLAY_TZ = os.environ.get("WAKASYNC_TZ", "UTC")

# Solidtime
HTTP_TIMEOUT = _env_number("WAKASYNC_HTTP_TIMEOUT", 5.0, float)
PROJECT_COLOR = "#ef5350"


@dataclass(frozen=True)
class SolidtimeSettings:
    url: str
    api_key: str
    organization_id: str
    member_id: str | None = None
    timeout: float = HTTP_TIMEOUT

    @classmethod
    def from_values(
        cls,
        url: str | None,
        api_key: str | None,
        organization_id: str | None,
        member_id: str | None = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> "SolidtimeSettings":
        """Validate connection values, reporting every missing one at once."""
        problems = []
        if not url:
            problems.append("Solidtime URL is required (--solidtime-url / SOLIDTIME_URL)")
        if not api_key:
            problems.append("Solidtime API key is required (--solidtime-key / SOLIDTIME_API_KEY)")
        if not organization_id:
            problems.append(
                "Solidtime organization ID is required (--organization-id / SOLIDTIME_ORGANIZATION_ID)"
            )
        if problems:
            raise ConfigurationError(problems)
        return cls(
            url=url.rstrip("/"),
            api_key=api_key,
            organization_id=organization_id,
            member_id=member_id or None,
            timeout=timeout,
        )


def get_timezone(name: str | None = None) -> ZoneInfo:
    name = name or DISPLAY_TZ
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"Unknown timezone '{name}'")


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ConfigurationError(f"Invalid date format '{value}'. Use YYYY-MM-DD.")


def parse_date_range(from_date: str, to_date: str, tz: ZoneInfo | None = None) -> TimeRange:
    """Turn inclusive YYYY-MM-DD bounds into a UTC TimeRange.

    The range starts at midnight of ``from_date`` and ends at midnight after
    ``to_date``, both in ``tz``.
    """
    tz = tz or get_timezone()
    first = parse_date(from_date)
    last = parse_date(to_date)
    if first > last:
        raise ConfigurationError(f"--from {from_date} is after --to {to_date}")

    start = datetime.combine(first, time(0), tzinfo=tz)
    end = datetime.combine(last + timedelta(days=1), time(0), tzinfo=tz)
    return TimeRange(start, end)
