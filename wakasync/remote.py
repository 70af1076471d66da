"""Remote repositories: where sessions are exported to.

Three interchangeable variants share one capability set:

- SolidtimeRepository: the real Solidtime instance.
- InMemoryRepository: a local stand-in that records every write.
- DryRunRepository: reads from another repository, logs writes instead of
  performing them.

The variant is picked once at startup by ``select_repository``.
"""

import itertools
import logging
from datetime import datetime
from typing import Protocol

from wakasync.config import SolidtimeSettings
from wakasync.errors import ConfigurationError, ValidationError
from wakasync.models import Project, RemoteEntry, TimeRange, format_datetime
from wakasync.solidtime import SolidtimeApi, parse_entry, parse_project
from wakasync.tags import parse_tag

logger = logging.getLogger(__name__)


class RemoteRepository(Protocol):
    def list_projects(self) -> list[Project]: ...

    def list_entries(self, time_range: TimeRange) -> list[RemoteEntry]: ...

    def create_project(self, name: str) -> Project: ...

    def create_entry(
        self, start: datetime, end: datetime, description: str, project_id: str | None
    ) -> RemoteEntry: ...


def tagged_project(project_id: str, name: str) -> Project | None:
    """Managed projects carry an identifier tag in their name."""
    tag = parse_tag(name)
    if tag is None:
        return None
    identifier, display_name = tag
    return Project(identifier=identifier, display_name=display_name, id=project_id)


class SolidtimeRepository:
    def __init__(self, api: SolidtimeApi):
        self._api = api

    def list_projects(self) -> list[Project]:
        projects = []
        for raw in self._api.get_projects():
            project_id, name = parse_project(raw)
            project = tagged_project(project_id, name)
            if project is None:
                logger.debug("Ignoring unmanaged project %s (%s)", name, project_id)
                continue
            projects.append(project)
        return projects

    def list_entries(self, time_range: TimeRange) -> list[RemoteEntry]:
        return [parse_entry(raw) for raw in self._api.get_time_entries(time_range.start, time_range.end)]

    def create_project(self, name: str) -> Project:
        project_id, created_name = parse_project(self._api.create_project(name))
        project = tagged_project(project_id, created_name)
        if project is None:
            raise ValidationError(f"Created project {project_id} lost its identifier tag: {created_name!r}")
        logger.info("Created project %s (%s)", created_name, project_id)
        return project

    def create_entry(
        self, start: datetime, end: datetime, description: str, project_id: str | None
    ) -> RemoteEntry:
        entry = parse_entry(self._api.create_time_entry(start, end, description, project_id))
        logger.info("Created entry %s (%s)", description, entry.id)
        return entry


class InMemoryRepository:
    """Remote stand-in kept in memory; ``write_calls`` records every write."""

    def __init__(self, projects=(), entries=()):
        self.projects: list[Project] = list(projects)
        self.entries: list[RemoteEntry] = list(entries)
        self.write_calls: list[tuple] = []
        self._ids = itertools.count(1)

    def list_projects(self) -> list[Project]:
        return [p for p in self.projects if p.identifier]

    def list_entries(self, time_range: TimeRange) -> list[RemoteEntry]:
        return [e for e in self.entries if time_range.start <= e.start < time_range.end]

    def create_project(self, name: str) -> Project:
        self.write_calls.append(("create_project", name))
        tag = parse_tag(name)
        if tag is None:
            raise ValidationError(f"Project name {name!r} has no identifier tag")
        project = Project(identifier=tag[0], display_name=tag[1], id=f"project-{next(self._ids)}")
        self.projects.append(project)
        return project

    def create_entry(
        self, start: datetime, end: datetime, description: str, project_id: str | None
    ) -> RemoteEntry:
        self.write_calls.append(("create_entry", description))
        entry = RemoteEntry(
            id=f"entry-{next(self._ids)}",
            start=start,
            end=end,
            description=description,
            project_id=project_id,
        )
        self.entries.append(entry)
        return entry


class DryRunRepository:
    """Performs every read on ``inner`` and replaces writes with log lines."""

    def __init__(self, inner: RemoteRepository):
        self._inner = inner
        self.intended: list[tuple] = []
        self._ids = itertools.count(1)

    def list_projects(self) -> list[Project]:
        return self._inner.list_projects()

    def list_entries(self, time_range: TimeRange) -> list[RemoteEntry]:
        return self._inner.list_entries(time_range)

    def create_project(self, name: str) -> Project:
        self.intended.append(("create_project", name))
        logger.info("[DRY-RUN] Would create project %s", name)
        identifier, display_name = parse_tag(name) or ("", name)
        return Project(identifier=identifier, display_name=display_name, id=f"dry-run-project-{next(self._ids)}")

    def create_entry(
        self, start: datetime, end: datetime, description: str, project_id: str | None
    ) -> RemoteEntry:
        self.intended.append(("create_entry", description))
        logger.info(
            "[DRY-RUN] Would create entry %s - %s %s",
            format_datetime(start),
            format_datetime(end),
            description,
        )
        return RemoteEntry(
            id=f"dry-run-entry-{next(self._ids)}",
            start=start,
            end=end,
            description=description,
            project_id=project_id,
        )


def select_repository(
    settings: SolidtimeSettings | None,
    *,
    dry_run: bool = False,
    mock: bool = False,
) -> RemoteRepository:
    if mock:
        repository = InMemoryRepository()
    elif settings is None:
        raise ConfigurationError("Solidtime settings are required unless --mock-remote is used")
    else:
        repository = SolidtimeRepository(SolidtimeApi(settings))

    if dry_run:
        return DryRunRepository(repository)
    return repository
