from __future__ import annotations

import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from buildtracker.integrations.jira.client import CreatedIssue  # noqa: E402
from buildtracker.services.ticket_store import TicketRecord  # noqa: E402


class FakeTracker:
    """In-memory issue tracker recording every call."""

    def __init__(self, statuses: dict[str, str] | None = None) -> None:
        self.statuses = dict(statuses or {})
        self.created: list[dict] = []
        self.comments: list[tuple[str, str]] = []
        self.status_calls: list[str] = []
        self.status_error: Exception | None = None
        self.create_error: Exception | None = None
        self.comment_error: Exception | None = None
        self._counter = 100

    def create_issue(self, project_key, summary, description, assignee=None, components=None):  # noqa: ANN001
        if self.create_error is not None:
            raise self.create_error
        self._counter += 1
        key = f"{project_key}-{self._counter}"
        self.created.append(
            {
                "key": key,
                "project_key": project_key,
                "summary": summary,
                "description": description,
                "assignee": assignee,
                "components": components,
            }
        )
        self.statuses[key] = "Open"
        return CreatedIssue(id=str(self._counter), key=key)

    def get_status(self, issue_key: str) -> str:
        self.status_calls.append(issue_key)
        if self.status_error is not None:
            raise self.status_error
        return self.statuses[issue_key]

    def add_comment(self, issue_key: str, text: str) -> None:
        if self.comment_error is not None:
            raise self.comment_error
        self.comments.append((issue_key, text))


class MemoryStore:
    """Dict-backed ticket store that logs operations in order."""

    def __init__(self) -> None:
        self.records: dict[str, TicketRecord] = {}
        self.operations: list[tuple[str, str]] = []

    def load(self, job_name: str) -> TicketRecord | None:
        return self.records.get(job_name)

    def save(self, job_name: str, ticket_key: str, build_number: int | None = None) -> None:
        self.operations.append(("save", ticket_key))
        self.records[job_name] = TicketRecord(job_name, ticket_key, build_number)

    def mark_build(self, job_name: str, build_number: int) -> None:
        record = self.records.get(job_name)
        if record is None:
            return
        self.operations.append(("mark", record.ticket_key))
        self.records[job_name] = TicketRecord(job_name, record.ticket_key, build_number)

    def clear(self, job_name: str) -> None:
        record = self.records.pop(job_name, None)
        self.operations.append(("clear", record.ticket_key if record else ""))


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()
