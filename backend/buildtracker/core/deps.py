"""Common FastAPI dependencies for CI authentication and collaborators."""

from __future__ import annotations

import hmac

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from buildtracker.core.config import settings
from buildtracker.core.exceptions import InvalidAPIKeyError, InvalidConfigurationError
from buildtracker.db.session import get_db
from buildtracker.integrations.jira.client import JiraClient
from buildtracker.models.enums import StoreBackend
from buildtracker.services.ticket_store import FileTicketStore, SqlTicketStore, TicketStore

CI_TOKEN_HEADER = "X-CI-Token"


def require_ci_token(x_ci_token: str | None = Header(default=None, alias=CI_TOKEN_HEADER)) -> None:
    configured = (settings.CI_API_TOKEN or "").strip()
    if not configured:
        return
    if not x_ci_token or not hmac.compare_digest(x_ci_token.strip(), configured):
        raise InvalidAPIKeyError("invalid_ci_token")


def get_issue_tracker() -> JiraClient:
    if not settings.jira_ready:
        raise InvalidConfigurationError("Jira credentials are not configured", setting="JIRA_BASE_URL")
    return JiraClient()


def build_ticket_store(backend: str, *, db: Session | None = None, directory: str | None = None) -> TicketStore:
    try:
        kind = StoreBackend((backend or "").strip().lower())
    except ValueError:
        raise InvalidConfigurationError(f"Unknown ticket store backend: {backend!r}", setting="TICKET_STORE_BACKEND") from None
    if kind == StoreBackend.file:
        return FileTicketStore(directory or settings.TICKET_STORE_DIR)
    if db is None:
        raise InvalidConfigurationError("Database store requires a session", setting="TICKET_STORE_BACKEND")
    return SqlTicketStore(db)


def get_ticket_store(db: Session = Depends(get_db)) -> TicketStore:
    return build_ticket_store(settings.TICKET_STORE_BACKEND, db=db)
