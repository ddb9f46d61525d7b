"""Projection of raw Jira status codes onto the three-valued IssueStatus.

Only statuses listed here (or supplied by the operator through
``JIRA_EXTRA_STATUS_MAP``) are accepted. Anything else raises
``UnknownIssueStatus`` so that a terminal state is never mistaken for an
active one.
"""

from __future__ import annotations

from typing import Mapping

from buildtracker.core.exceptions import InvalidConfigurationError, UnknownIssueStatus
from buildtracker.models.enums import IssueStatus

STATUS_MAP: dict[str, IssueStatus] = {
    # Classic Jira status ids.
    "1": IssueStatus.open,
    "3": IssueStatus.open,
    "4": IssueStatus.open,
    "5": IssueStatus.resolved,
    "6": IssueStatus.closed,
    # Status names.
    "open": IssueStatus.open,
    "to do": IssueStatus.open,
    "new": IssueStatus.open,
    "backlog": IssueStatus.open,
    "in progress": IssueStatus.open,
    "in-progress": IssueStatus.open,
    "reopened": IssueStatus.open,
    "in review": IssueStatus.open,
    "resolved": IssueStatus.resolved,
    "closed": IssueStatus.closed,
    "done": IssueStatus.closed,
}


def _normalize(raw: str) -> str:
    return " ".join(str(raw or "").split()).casefold()


def build_status_map(extra: Mapping[str, str] | None = None) -> dict[str, IssueStatus]:
    mapping = dict(STATUS_MAP)
    for name, value in (extra or {}).items():
        try:
            status = IssueStatus(_normalize(value))
        except ValueError:
            raise InvalidConfigurationError(
                f"Invalid status projection for {name!r}: {value!r}",
                setting="JIRA_EXTRA_STATUS_MAP",
            ) from None
        mapping[_normalize(name)] = status
    return mapping


def project_status(raw: str, extra: Mapping[str, str] | None = None) -> IssueStatus:
    mapping = build_status_map(extra) if extra else STATUS_MAP
    status = mapping.get(_normalize(raw))
    if status is None:
        raise UnknownIssueStatus(str(raw))
    return status
