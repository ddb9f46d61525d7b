"""Shared enum values used by the decision logic, models and schemas."""

from __future__ import annotations

import enum


class BuildOutcome(str, enum.Enum):
    success = "SUCCESS"
    failure = "FAILURE"
    aborted = "ABORTED"


class IssueStatus(str, enum.Enum):
    open = "open"
    resolved = "resolved"
    closed = "closed"


class ActionKind(str, enum.Enum):
    noop = "noop"
    create = "create"
    comment = "comment"
    forget = "forget"
    replace = "replace"


class StoreBackend(str, enum.Enum):
    database = "database"
    file = "file"
