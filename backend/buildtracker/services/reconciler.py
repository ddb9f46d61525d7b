"""Build-outcome to ticket reconciliation: one cycle per completed build.

Precondition: the CI layer serializes builds of the same job. Builds of
different jobs may be reconciled concurrently; they touch separate store
records.
"""

from __future__ import annotations

import logging
from typing import Mapping

from buildtracker.core.config import settings
from buildtracker.core.exceptions import BadRequestError, BuildTrackerException
from buildtracker.integrations.jira.status import project_status
from buildtracker.models.enums import IssueStatus
from buildtracker.schemas.build import BuildReport, ReconcileResult
from buildtracker.services.decision import CreateTicket, JobConfig, NoOp, ReconcileContext, decide
from buildtracker.services.executor import IssueTrackerClient, apply
from buildtracker.services.formatter import BuildInfo
from buildtracker.services.ticket_store import TicketStore

logger = logging.getLogger(__name__)


def job_config_for(report: BuildReport) -> JobConfig:
    components = report.components if report.components is not None else settings.default_components
    return JobConfig(
        project_key=(report.project_key or settings.JIRA_PROJECT_KEY or "").strip(),
        test_description=report.test_description or settings.DEFAULT_TEST_DESCRIPTION,
        assignee=report.assignee or settings.DEFAULT_ASSIGNEE,
        components=tuple(components),
    )


def reconcile(
    report: BuildReport,
    *,
    client: IssueTrackerClient,
    store: TicketStore,
    job_config: JobConfig | None = None,
    comment_on_forget: bool | None = None,
    extra_status_map: Mapping[str, str] | None = None,
) -> ReconcileResult:
    job = job_config or job_config_for(report)
    build = BuildInfo(
        job_name=report.job_name,
        build_number=report.build_number,
        build_url=report.build_url,
        root_url=report.root_url or settings.CI_ROOT_URL,
    )
    extra = settings.extra_status_map if extra_status_map is None else extra_status_map

    record = store.load(report.job_name)
    context = ReconcileContext(
        build=build,
        job=job,
        current_result=report.result,
        previous_result=report.previous_result,
        tracked_ticket=record.ticket_key if record else None,
        last_applied_build=record.last_build_number if record else None,
        comment_on_forget=settings.COMMENT_ON_FORGET if comment_on_forget is None else comment_on_forget,
    )

    def live_status_of(ticket_key: str) -> IssueStatus:
        raw = client.get_status(ticket_key)
        status = project_status(raw, extra)
        logger.debug("Ticket %s is %r (%s)", ticket_key, raw, status.value)
        return status

    try:
        action = decide(context, live_status_of)
    except BuildTrackerException as exc:
        logger.warning("Reconcile of %s #%s skipped: %s", report.job_name, report.build_number, exc.message)
        raise

    logger.info(
        "Decided %s for %s #%s (previous=%s current=%s tracked=%s)",
        action.kind.value,
        report.job_name,
        report.build_number,
        report.previous_result.value if report.previous_result else None,
        report.result.value,
        context.tracked_ticket,
    )

    if any(isinstance(step, CreateTicket) and not step.draft.project_key for step in action.steps):
        raise BadRequestError("project_key_required", details={"job_name": report.job_name})

    try:
        outcome = apply(
            action,
            client=client,
            store=store,
            job_name=report.job_name,
            build_number=report.build_number,
        )
    except BuildTrackerException as exc:
        logger.warning(
            "Applying %s for %s #%s failed: %s",
            action.kind.value,
            report.job_name,
            report.build_number,
            exc.message,
        )
        raise

    if outcome.created_ticket:
        ticket_key = outcome.created_ticket
    elif outcome.forgotten_ticket:
        ticket_key = None
    else:
        ticket_key = context.tracked_ticket

    return ReconcileResult(
        job_name=report.job_name,
        build_number=report.build_number,
        action=action.kind,
        reason=action.reason if isinstance(action, NoOp) else None,
        ticket_key=ticket_key,
        previous_ticket_key=context.tracked_ticket,
        created_ticket_key=outcome.created_ticket,
        commented_ticket_key=outcome.commented_ticket,
        forgotten_ticket_key=outcome.forgotten_ticket,
        warnings=outcome.warnings,
    )
