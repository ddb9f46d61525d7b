"""Jira REST v3 client covering the calls the reconciler needs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from buildtracker.core.config import settings
from buildtracker.core.exceptions import (
    CommentFailed,
    CreateFailed,
    InvalidConfigurationError,
    IssueTrackerUnavailable,
    LookupFailed,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}
UNAVAILABLE_STATUSES = {401, 403} | RETRYABLE_STATUSES
STATUS_FIELDS = "status"


@dataclass(frozen=True)
class CreatedIssue:
    id: str
    key: str


def adf_from_text(text: str) -> dict[str, Any]:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    if not lines:
        lines = ["No details provided."]
    blocks = []
    for line in lines[:40]:
        blocks.append(
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": line[:1000]}],
            }
        )
    return {"type": "doc", "version": 1, "content": blocks}


def _error_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:300]
    if not isinstance(payload, dict):
        return str(payload)[:300]
    messages = [str(item) for item in list(payload.get("errorMessages") or [])]
    errors = payload.get("errors") or {}
    if isinstance(errors, dict):
        messages.extend(f"{field}: {message}" for field, message in errors.items())
    return "; ".join(messages)[:300] or response.reason_phrase


class JiraClient:
    def __init__(
        self,
        *,
        base_url: str | None = None,
        email: str | None = None,
        api_token: str | None = None,
        issue_type: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.JIRA_BASE_URL).strip().rstrip("/")
        if not self.base_url:
            raise InvalidConfigurationError("Jira base URL is not configured", setting="JIRA_BASE_URL")
        self.email = email if email is not None else settings.JIRA_EMAIL
        self.api_token = api_token if api_token is not None else settings.JIRA_API_TOKEN
        self.issue_type = issue_type or settings.JIRA_ISSUE_TYPE
        self.timeout = timeout if timeout is not None else settings.JIRA_TIMEOUT_SECONDS
        self.max_retries = max(1, max_retries if max_retries is not None else settings.JIRA_MAX_RETRIES)
        self.backoff = backoff
        self.transport = transport

    def _send(self, method: str, path: str, *, retries: int | None = None, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        attempts = retries or self.max_retries
        backoff = self.backoff
        with httpx.Client(
            timeout=self.timeout,
            auth=(self.email, self.api_token),
            headers={"Accept": "application/json"},
            transport=self.transport,
        ) as client:
            for attempt in range(1, attempts + 1):
                try:
                    response = client.request(method, url, **kwargs)
                except httpx.TransportError as exc:
                    if attempt >= attempts:
                        logger.warning("Jira %s %s failed after %s attempts: %s", method, path, attempt, exc)
                        raise IssueTrackerUnavailable(
                            f"Jira request failed: {exc.__class__.__name__}",
                            details={"method": method, "path": path},
                        ) from exc
                    time.sleep(backoff)
                    backoff *= 2
                    continue

                if response.status_code in RETRYABLE_STATUSES and attempt < attempts:
                    time.sleep(backoff)
                    backoff *= 2
                    continue
                return response
        raise IssueTrackerUnavailable("Jira request was not attempted", details={"method": method, "path": path})

    def get_status(self, issue_key: str) -> str:
        """Return the raw status name of ``issue_key`` (or its id when unnamed)."""
        key = (issue_key or "").strip()
        response = self._send("GET", f"/rest/api/3/issue/{key}", params={"fields": STATUS_FIELDS})
        if response.status_code in UNAVAILABLE_STATUSES:
            raise IssueTrackerUnavailable(
                f"Jira status lookup for {key} returned {response.status_code}",
                details={"ticket_key": key, "status": response.status_code},
            )
        if response.status_code == 404:
            raise LookupFailed(key, f"Ticket {key} no longer exists", status=404)
        if response.is_error:
            raise LookupFailed(key, f"Jira status lookup for {key} failed: {_error_text(response)}", status=response.status_code)

        data = response.json()
        status = ((data if isinstance(data, dict) else {}).get("fields") or {}).get("status") or {}
        raw = str(status.get("name") or status.get("id") or "").strip()
        if not raw:
            raise LookupFailed(key, f"Jira returned no status for {key}")
        return raw

    def get_project_components(self, project_key: str) -> list[dict[str, Any]]:
        response = self._send("GET", f"/rest/api/3/project/{project_key}/components")
        if response.is_error:
            logger.warning(
                "Jira components unavailable for %s (status=%s). Sending component names as given.",
                project_key,
                response.status_code,
            )
            return []
        data = response.json()
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        return []

    def _resolve_components(self, project_key: str, names: list[str]) -> list[dict[str, str]]:
        available = {
            str(item.get("name") or "").strip().casefold(): str(item.get("id") or "").strip()
            for item in self.get_project_components(project_key)
        }
        resolved: list[dict[str, str]] = []
        for name in names:
            component_id = available.get(name.strip().casefold())
            if component_id:
                resolved.append({"id": component_id})
            else:
                logger.warning("Jira component %r not found in project %s", name, project_key)
                resolved.append({"name": name})
        return resolved

    def create_issue(
        self,
        project_key: str,
        summary: str,
        description: str,
        assignee: str | None = None,
        components: list[str] | None = None,
    ) -> CreatedIssue:
        fields: dict[str, Any] = {
            "project": {"key": project_key},
            "summary": summary,
            "description": adf_from_text(description),
            "issuetype": {"name": self.issue_type},
        }
        if assignee:
            fields["assignee"] = {"accountId": assignee}
        if components:
            fields["components"] = self._resolve_components(project_key, components)

        # Not retried: a create that timed out may still have succeeded remotely.
        response = self._send("POST", "/rest/api/3/issue", retries=1, json={"fields": fields})
        if response.is_error:
            raise CreateFailed(
                f"Jira rejected issue creation ({response.status_code}): {_error_text(response)}",
                status=response.status_code,
            )
        data = response.json()
        key = str((data if isinstance(data, dict) else {}).get("key") or "").strip()
        if not key:
            raise CreateFailed("Jira did not return an issue key", status=response.status_code)
        return CreatedIssue(id=str(data.get("id") or ""), key=key)

    def add_comment(self, issue_key: str, text: str) -> None:
        key = (issue_key or "").strip()
        # Not retried: a comment that timed out may already be stored.
        response = self._send(
            "POST",
            f"/rest/api/3/issue/{key}/comment",
            retries=1,
            json={"body": adf_from_text(text)},
        )
        if response.is_error:
            raise CommentFailed(
                key,
                f"Jira rejected comment on {key} ({response.status_code}): {_error_text(response)}",
                status=response.status_code,
            )
