"""Reports: the sessions of one time range, indexed by identifier."""

from dataclasses import dataclass
from datetime import timedelta, timezone, tzinfo
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, TypeVar

from wakasync.errors import DuplicateIdentifierError, ValidationError
from wakasync.models import Session, TimeRange, format_duration

T = TypeVar("T")


@dataclass(frozen=True)
class Report:
    time_range: TimeRange
    entries: Mapping[str, Session]

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self.entries

    @property
    def sessions(self) -> list[Session]:
        return list(self.entries.values())


def index_by(items: Iterable[T], key: Callable[[T], str]) -> dict[str, T]:
    """Index items by a unique key; a repeated key is an error."""
    index: dict[str, T] = {}
    for item in items:
        k = key(item)
        if k in index:
            raise DuplicateIdentifierError(k)
        index[k] = item
    return index


def build_report(time_range: TimeRange, sessions: Iterable[Session]) -> Report:
    """Build an immutable report, ordered by session start."""
    ordered = sorted(sessions, key=lambda s: (s.start, s.project))
    for session in ordered:
        if not time_range.contains(session.time_range):
            raise ValidationError(
                f"Session {session.identifier} ({session.time_range.format()}) "
                f"is outside the report range {time_range.format()}"
            )
    entries = index_by(ordered, lambda s: s.identifier)
    return Report(time_range=time_range, entries=MappingProxyType(entries))


def total_duration(report: Report) -> timedelta:
    return sum((s.time_range.duration for s in report.entries.values()), timedelta())


def format_report(report: Report, tz: tzinfo = timezone.utc) -> str:
    lines = [f"Report {report.time_range.format_local(tz)} ({len(report)} sessions)"]
    for session in report.entries.values():
        lines.append(
            f"  [{session.identifier}] {session.time_range.format_local(tz)}"
            f" | {session.time_range.format_duration()} | {session.display_name}"
        )
    lines.append(f"  Total: {format_duration(total_duration(report))}")
    return "\n".join(lines)
