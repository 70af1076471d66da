"""Reconcile an input report against what the remote system already holds.

Each exported entry carries its session identifier as a tag in its
description, so reading the remote entries back is enough to tell which
sessions still need to be created. Existing entries are never updated.
"""

import logging
from dataclasses import dataclass, field

from wakasync.models import Project, RemoteEntry, Session, TimeRange
from wakasync.remote import RemoteRepository
from wakasync.report import Report, build_report
from wakasync.sessions import project_identifier
from wakasync.tags import format_tag, parse_tag

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    planned: list[Session]
    created: list[RemoteEntry]
    skipped: int
    output_report: Report
    created_projects: list[Project] = field(default_factory=list)


class Reconciler:
    """One export run against one remote repository.

    ``project_cache`` maps project identifiers to remote projects. It lives
    as long as the instance, so a project is created at most once per run.
    """

    def __init__(self, repository: RemoteRepository, round_quarter_hour: bool = False):
        self.repository = repository
        self.round_quarter_hour = round_quarter_hour
        self.project_cache: dict[str, Project] = {}
        self._projects_by_id: dict[str, Project] = {}
        self._created_projects: list[Project] = []
        self._loaded = False

    def _remember(self, project: Project):
        self.project_cache[project.identifier] = project
        if project.id:
            self._projects_by_id[project.id] = project

    def load_projects(self):
        for project in self.repository.list_projects():
            self._remember(project)
        self._loaded = True
        logger.debug("Loaded %d managed remote projects", len(self.project_cache))

    def fetch_output_report(self, time_range: TimeRange) -> Report:
        """Sessions already exported for ``time_range``, keyed by their tag."""
        if not self._loaded:
            self.load_projects()

        sessions = []
        for entry in self.repository.list_entries(time_range):
            if entry.is_running:
                logger.debug("Skipping entry %s: still running", entry.id)
                continue
            project = self._projects_by_id.get(entry.project_id) if entry.project_id else None
            if project is None:
                logger.debug("Skipping entry %s: no managed project", entry.id)
                continue
            tag = parse_tag(entry.description)
            if tag is None:
                logger.debug("Skipping entry %s: no identifier in description", entry.id)
                continue

            identifier, name = tag
            sessions.append(Session(
                project=project.display_name,
                time_range=TimeRange(entry.start, entry.end),
                identifier=identifier,
                display_name=name,
            ))

        # Exported entries may be rounded past the requested bounds.
        report_range = time_range
        if sessions:
            report_range = TimeRange(
                min([time_range.start] + [s.start for s in sessions]),
                max([time_range.end] + [s.end for s in sessions]),
            )
        return build_report(report_range, sessions)

    def plan(self, input_report: Report, output_report: Report) -> list[Session]:
        """Input sessions missing from the output, in chronological order."""
        missing = [s for s in input_report.entries.values() if s.identifier not in output_report]
        return sorted(missing, key=lambda s: (s.start, s.project))

    def ensure_project(self, session: Session) -> Project:
        identifier = project_identifier(session.project)
        project = self.project_cache.get(identifier)
        if project is not None:
            return project

        project = self.repository.create_project(format_tag(identifier, session.project))
        self._remember(project)
        self._created_projects.append(project)
        return project

    def push(self, session: Session) -> RemoteEntry:
        project = self.ensure_project(session)
        time_range = session.time_range
        if self.round_quarter_hour:
            time_range = time_range.round_to_quarter_hour()
        return self.repository.create_entry(
            time_range.start,
            time_range.end,
            format_tag(session.identifier, session.display_name),
            project.id,
        )

    def reconcile(self, input_report: Report) -> ReconcileResult:
        """Create every missing session remotely; the first failure aborts."""
        self.load_projects()
        output_report = self.fetch_output_report(input_report.time_range)
        planned = self.plan(input_report, output_report)
        skipped = len(input_report) - len(planned)
        logger.info(
            "%d sessions to create, %d already exported", len(planned), skipped
        )

        created = []
        for session in planned:
            created.append(self.push(session))

        return ReconcileResult(
            planned=planned,
            created=created,
            skipped=skipped,
            output_report=output_report,
            created_projects=list(self._created_projects),
        )
