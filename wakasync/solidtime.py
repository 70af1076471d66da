"""Minimal Solidtime REST API client.

All organization-scoped calls go to ``{url}/api/v1/organizations/{org}``.
Every failure surfaces as RemoteCallError; there are no retries because a
re-run of the export is idempotent.
"""

import logging
import time
from datetime import datetime

import requests

from wakasync.config import PROJECT_COLOR, SolidtimeSettings
from wakasync.errors import RemoteCallError, ValidationError
from wakasync.models import RemoteEntry, format_datetime, parse_datetime

logger = logging.getLogger(__name__)

PAGE_SIZE = 500


def _require(raw: dict, key: str, kind, what: str, nullable: bool = False):
    if not isinstance(raw, dict) or key not in raw:
        raise ValidationError(f"Invalid {what} payload: missing '{key}'")
    value = raw[key]
    if value is None and nullable:
        return None
    if not isinstance(value, kind):
        raise ValidationError(f"Invalid {what} payload: '{key}' is {type(value).__name__}")
    return value


def parse_project(raw: dict) -> tuple[str, str]:
    """Return ``(id, name)`` of an API project."""
    return _require(raw, "id", str, "project"), _require(raw, "name", str, "project")


def parse_entry(raw: dict) -> RemoteEntry:
    end = _require(raw, "end", str, "time entry", nullable=True)
    return RemoteEntry(
        id=_require(raw, "id", str, "time entry"),
        start=parse_datetime(_require(raw, "start", str, "time entry")),
        end=parse_datetime(end) if end is not None else None,
        description=_require(raw, "description", str, "time entry", nullable=True),
        project_id=_require(raw, "project_id", str, "time entry", nullable=True),
    )


class SolidtimeApi:
    def __init__(self, settings: SolidtimeSettings, session: requests.Session | None = None):
        self.settings = settings
        self.base_url = f"{settings.url}/api/v1/organizations/{settings.organization_id}"
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {settings.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        self._member_id = settings.member_id

    def _request(self, method: str, url: str, *, params=None, payload=None) -> dict:
        started = time.monotonic()
        try:
            resp = self._session.request(
                method, url, params=params, json=payload, timeout=self.settings.timeout
            )
        except requests.RequestException as e:
            raise RemoteCallError(f"{method} {url} failed: {e}")

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.debug("%s %s -> %s in %.0fms", method, url, resp.status_code, elapsed_ms)

        if not resp.ok:
            body = resp.text[:500]
            raise RemoteCallError(
                f"HTTP error {resp.status_code} for {method} {url}: {body}",
                status_code=resp.status_code,
                body=body,
            )
        try:
            data = resp.json()
        except ValueError:
            raise ValidationError(f"{method} {url} returned a non-JSON response")
        if not isinstance(data, dict):
            raise ValidationError(f"{method} {url} returned {type(data).__name__}, expected an object")
        return data

    def _org(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def get_projects(self) -> list[dict]:
        """All projects of the organization, following ``links.next``."""
        projects = []
        url = self._org("/projects")
        while url:
            data = self._request("GET", url)
            projects.extend(_require(data, "data", list, "project list"))
            url = (data.get("links") or {}).get("next")
        return projects

    def get_time_entries(self, start: datetime, end: datetime) -> list[dict]:
        entries = []
        offset = 0
        while True:
            data = self._request(
                "GET",
                self._org("/time-entries"),
                params={
                    "start": format_datetime(start),
                    "end": format_datetime(end),
                    "limit": PAGE_SIZE,
                    "offset": offset,
                },
            )
            page = _require(data, "data", list, "time entry list")
            entries.extend(page)
            total = (data.get("meta") or {}).get("total")
            offset += len(page)
            if not page or total is None or offset >= total:
                break
        return entries

    def create_project(self, name: str, color: str = PROJECT_COLOR, is_billable: bool = False) -> dict:
        data = self._request(
            "POST",
            self._org("/projects"),
            payload={"name": name, "color": color, "is_billable": is_billable},
        )
        return _require(data, "data", dict, "created project")

    def get_member_id(self) -> str:
        """Membership id of the API key's user in the configured organization."""
        if self._member_id:
            return self._member_id
        data = self._request("GET", f"{self.settings.url}/api/v1/users/me/memberships")
        for membership in _require(data, "data", list, "membership list"):
            organization = membership.get("organization") or {}
            if organization.get("id") == self.settings.organization_id:
                self._member_id = _require(membership, "id", str, "membership")
                return self._member_id
        raise RemoteCallError(
            f"API key has no membership in organization {self.settings.organization_id}"
        )

    def create_time_entry(
        self,
        start: datetime,
        end: datetime,
        description: str,
        project_id: str | None,
    ) -> dict:
        data = self._request(
            "POST",
            self._org("/time-entries"),
            payload={
                "member_id": self.get_member_id(),
                "project_id": project_id,
                "start": format_datetime(start),
                "end": format_datetime(end),
                "billable": False,
                "description": description,
                "tags": [],
            },
        )
        return _require(data, "data", dict, "created time entry")
