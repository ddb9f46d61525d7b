"""Applies a decided action against the issue tracker and the ticket store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from buildtracker.core.exceptions import IssueTrackerException
from buildtracker.integrations.jira.client import CreatedIssue
from buildtracker.services.decision import Action, CommentOnTicket, CreateTicket, ForgetTicket
from buildtracker.services.ticket_store import TicketStore

logger = logging.getLogger(__name__)


class IssueTrackerClient(Protocol):
    def create_issue(
        self,
        project_key: str,
        summary: str,
        description: str,
        assignee: str | None = None,
        components: list[str] | None = None,
    ) -> CreatedIssue: ...

    def get_status(self, issue_key: str) -> str: ...

    def add_comment(self, issue_key: str, text: str) -> None: ...


@dataclass
class ApplyOutcome:
    created_ticket: str | None = None
    commented_ticket: str | None = None
    forgotten_ticket: str | None = None
    warnings: list[str] = field(default_factory=list)


def _create(step: CreateTicket, client: IssueTrackerClient, store: TicketStore, job_name: str, build_number: int) -> str:
    draft = step.draft
    issue = client.create_issue(
        draft.project_key,
        draft.summary,
        draft.description,
        draft.assignee or None,
        list(draft.components) or None,
    )
    store.save(job_name, issue.key, build_number)
    logger.info("Created %s for %s #%s", issue.key, job_name, build_number)
    return issue.key


def _comment(step: CommentOnTicket, client: IssueTrackerClient, store: TicketStore, job_name: str, build_number: int) -> None:
    client.add_comment(step.ticket_key, step.text)
    store.mark_build(job_name, build_number)
    logger.info("Commented on %s for %s #%s", step.ticket_key, job_name, build_number)


def _forget(
    step: ForgetTicket,
    client: IssueTrackerClient,
    store: TicketStore,
    job_name: str,
    outcome: ApplyOutcome,
) -> None:
    if step.text:
        try:
            client.add_comment(step.ticket_key, step.text)
        except IssueTrackerException as exc:
            logger.warning("Final comment on %s failed, forgetting anyway: %s", step.ticket_key, exc.message)
            outcome.warnings.append(f"final_comment_failed: {exc.message}")
    store.clear(job_name)
    logger.info("Stopped tracking %s for %s", step.ticket_key, job_name)


def apply(
    action: Action,
    *,
    client: IssueTrackerClient,
    store: TicketStore,
    job_name: str,
    build_number: int,
) -> ApplyOutcome:
    """Run the steps of ``action`` in order.

    Any failure propagates and stops later steps. A forget always completes
    before a following create starts, so an interruption between them leaves
    the job with no tracked ticket.
    """
    outcome = ApplyOutcome()
    for step in action.steps:
        if isinstance(step, ForgetTicket):
            _forget(step, client, store, job_name, outcome)
            outcome.forgotten_ticket = step.ticket_key
        elif isinstance(step, CreateTicket):
            outcome.created_ticket = _create(step, client, store, job_name, build_number)
        elif isinstance(step, CommentOnTicket):
            _comment(step, client, store, job_name, build_number)
            outcome.commented_ticket = step.ticket_key
    return outcome
