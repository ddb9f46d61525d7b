"""CI-facing endpoints: reconcile a finished build, inspect or drop tracking."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from buildtracker.core.deps import get_issue_tracker, get_ticket_store, require_ci_token
from buildtracker.core.exceptions import NotFoundError
from buildtracker.schemas.build import BuildReport, ReconcileResult, TrackedTicketOut
from buildtracker.services.executor import IssueTrackerClient
from buildtracker.services.reconciler import reconcile
from buildtracker.services.ticket_store import TicketStore

router = APIRouter(dependencies=[Depends(require_ci_token)])


@router.post("/builds/reconcile", response_model=ReconcileResult)
def reconcile_build(
    payload: BuildReport,
    store: TicketStore = Depends(get_ticket_store),
    client: IssueTrackerClient = Depends(get_issue_tracker),
) -> ReconcileResult:
    return reconcile(payload, client=client, store=store)


@router.get("/jobs/{job_name:path}/ticket", response_model=TrackedTicketOut)
def get_tracked_ticket(job_name: str, store: TicketStore = Depends(get_ticket_store)) -> TrackedTicketOut:
    record = store.load(job_name)
    if record is None:
        raise NotFoundError("no_tracked_ticket", details={"job_name": job_name})
    return TrackedTicketOut(
        job_name=record.job_name,
        ticket_key=record.ticket_key,
        last_build_number=record.last_build_number,
    )


@router.delete("/jobs/{job_name:path}/ticket", status_code=204)
def forget_tracked_ticket(job_name: str, store: TicketStore = Depends(get_ticket_store)) -> Response:
    store.clear(job_name)
    return Response(status_code=204)
