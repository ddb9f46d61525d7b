"""DTOs for the build reconcile endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from buildtracker.core.sanitize import clean_list, clean_multiline, clean_single_line
from buildtracker.models.enums import ActionKind, BuildOutcome

MAX_JOB_NAME_LEN = 255
MAX_COMPONENTS = 20


class BuildReport(BaseModel):
    job_name: str = Field(min_length=1, max_length=MAX_JOB_NAME_LEN)
    build_number: int = Field(ge=1)
    build_url: str = Field(default="", max_length=2048)
    result: BuildOutcome
    previous_result: BuildOutcome | None = None
    root_url: str | None = Field(default=None, max_length=2048)

    # Per-job overrides; settings supply the defaults.
    project_key: str | None = Field(default=None, max_length=32)
    test_description: str | None = Field(default=None, max_length=4000)
    assignee: str | None = Field(default=None, max_length=128)
    components: list[str] | None = None

    @field_validator("job_name", "build_url", mode="before")
    @classmethod
    def normalize_single_line(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("root_url", "project_key", "assignee", mode="before")
    @classmethod
    def normalize_optional(cls, value: str | None) -> str | None:
        cleaned = clean_single_line(value)
        return cleaned or None

    @field_validator("test_description", mode="before")
    @classmethod
    def normalize_description(cls, value: str | None) -> str | None:
        cleaned = clean_multiline(value)
        return cleaned or None

    @field_validator("result", "previous_result", mode="before")
    @classmethod
    def normalize_outcome(cls, value: object) -> object:
        if isinstance(value, str):
            cleaned = value.strip().upper()
            return cleaned or None
        return value

    @field_validator("components", mode="before")
    @classmethod
    def normalize_components(cls, value: list[str] | str | None) -> list[str] | None:
        if value is None:
            return None
        return clean_list(value, max_items=MAX_COMPONENTS)


class ReconcileResult(BaseModel):
    status: str = "ok"
    job_name: str
    build_number: int
    action: ActionKind
    reason: str | None = None
    ticket_key: str | None = None
    previous_ticket_key: str | None = None
    created_ticket_key: str | None = None
    commented_ticket_key: str | None = None
    forgotten_ticket_key: str | None = None
    warnings: list[str] = Field(default_factory=list)


class TrackedTicketOut(BaseModel):
    job_name: str
    ticket_key: str
    last_build_number: int | None = None
