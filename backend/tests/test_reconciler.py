from __future__ import annotations

import httpx
import pytest

from buildtracker.core.exceptions import BadRequestError, IssueTrackerUnavailable, UnknownIssueStatus
from buildtracker.models.enums import ActionKind
from buildtracker.schemas.build import BuildReport
from buildtracker.services import reconciler
from buildtracker.services.decision import JobConfig

JOB = JobConfig(project_key="QA", test_description="Nightly API suite")


def _report(result: str, previous: str | None, build_number: int = 5) -> BuildReport:
    return BuildReport(
        job_name="api-tests",
        build_number=build_number,
        build_url=f"https://ci.example/job/api-tests/{build_number}/",
        root_url="https://ci.example/",
        result=result,
        previous_result=previous,
    )


def _run(report, tracker, store, **kwargs):  # noqa: ANN001
    return reconciler.reconcile(report, client=tracker, store=store, job_config=JOB, extra_status_map={}, **kwargs)


def test_first_failure_creates_ticket(tracker, store) -> None:  # noqa: ANN001
    result = _run(_report("FAILURE", "SUCCESS"), tracker, store)

    assert result.action == ActionKind.create
    assert result.created_ticket_key == "QA-101"
    assert result.ticket_key == "QA-101"
    assert store.load("api-tests").ticket_key == "QA-101"
    assert tracker.created[0]["summary"] == "Test api-tests failure - https://ci.example/"


def test_repeated_failure_comments_on_open_ticket(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "ISSUE-1", 4)
    tracker.statuses["ISSUE-1"] = "Open"

    result = _run(_report("FAILURE", "FAILURE"), tracker, store)

    assert result.action == ActionKind.comment
    assert result.commented_ticket_key == "ISSUE-1"
    assert tracker.comments[0][0] == "ISSUE-1"
    assert "still failing" in tracker.comments[0][1]


def test_failure_on_closed_ticket_opens_a_new_one(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "ISSUE-1", 4)
    tracker.statuses["ISSUE-1"] = "Closed"

    result = _run(_report("FAILURE", "FAILURE"), tracker, store)

    assert result.action == ActionKind.replace
    assert result.forgotten_ticket_key == "ISSUE-1"
    assert result.previous_ticket_key == "ISSUE-1"
    assert store.load("api-tests").ticket_key == result.created_ticket_key
    assert result.created_ticket_key != "ISSUE-1"


def test_recovery_comments_on_resolved_ticket(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "ISSUE-2", 4)
    tracker.statuses["ISSUE-2"] = "Resolved"

    result = _run(_report("SUCCESS", "FAILURE"), tracker, store)

    assert result.action == ActionKind.comment
    assert "not failing" in tracker.comments[0][1]
    assert store.load("api-tests").ticket_key == "ISSUE-2"


def test_green_to_green_without_ticket_is_noop(tracker, store) -> None:  # noqa: ANN001
    result = _run(_report("SUCCESS", "SUCCESS"), tracker, store)

    assert result.action == ActionKind.noop
    assert result.reason == "no tracked ticket"
    assert tracker.status_calls == []


def test_rerun_of_same_build_does_not_duplicate(tracker, store) -> None:  # noqa: ANN001
    report = _report("FAILURE", "SUCCESS")
    first = _run(report, tracker, store)
    second = _run(report, tracker, store)

    assert first.action == ActionKind.create
    assert second.action == ActionKind.noop
    assert len(tracker.created) == 1
    assert tracker.comments == []


def test_rerun_of_comment_cycle_does_not_comment_twice(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "ISSUE-1", 4)
    tracker.statuses["ISSUE-1"] = "Open"
    report = _report("FAILURE", "FAILURE")

    _run(report, tracker, store)
    _run(report, tracker, store)

    assert len(tracker.comments) == 1


def test_forget_then_next_failure_creates(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "ISSUE-2", 4)
    tracker.statuses["ISSUE-2"] = "Closed"

    forgotten = _run(_report("SUCCESS", "FAILURE", build_number=5), tracker, store)
    assert forgotten.action == ActionKind.forget
    assert forgotten.ticket_key is None
    assert store.load("api-tests") is None

    created = _run(_report("FAILURE", "SUCCESS", build_number=6), tracker, store)
    assert created.action == ActionKind.create


def test_status_timeout_leaves_store_unchanged(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "ISSUE-1", 4)
    store.operations.clear()
    tracker.status_error = IssueTrackerUnavailable("Jira request failed: ReadTimeout")

    with pytest.raises(IssueTrackerUnavailable):
        _run(_report("FAILURE", "FAILURE"), tracker, store)
    assert store.operations == []
    assert tracker.comments == [] and tracker.created == []


def test_unknown_status_leaves_store_unchanged(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "ISSUE-1", 4)
    store.operations.clear()
    tracker.statuses["ISSUE-1"] = "Awaiting Triage"

    with pytest.raises(UnknownIssueStatus):
        _run(_report("SUCCESS", "FAILURE"), tracker, store)
    assert store.operations == []


def test_extra_status_map_extends_projection(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "ISSUE-1", 4)
    tracker.statuses["ISSUE-1"] = "Awaiting Triage"

    result = reconciler.reconcile(
        _report("SUCCESS", "FAILURE"),
        client=tracker,
        store=store,
        job_config=JOB,
        extra_status_map={"Awaiting Triage": "open"},
    )

    assert result.action == ActionKind.comment


def test_create_requires_project_key(tracker, store) -> None:  # noqa: ANN001
    with pytest.raises(BadRequestError):
        reconciler.reconcile(
            _report("FAILURE", "SUCCESS"),
            client=tracker,
            store=store,
            job_config=JobConfig(project_key=""),
        )
    assert store.operations == []


def test_job_config_falls_back_to_settings(monkeypatch) -> None:
    monkeypatch.setattr(reconciler.settings, "JIRA_PROJECT_KEY", "OPS")
    monkeypatch.setattr(reconciler.settings, "DEFAULT_ASSIGNEE", "acc-9")
    monkeypatch.setattr(reconciler.settings, "DEFAULT_COMPONENTS", "Build, Infra")

    job = reconciler.job_config_for(_report("FAILURE", "SUCCESS"))

    assert job.project_key == "OPS"
    assert job.assignee == "acc-9"
    assert job.components == ("Build", "Infra")


def test_comment_on_forget_uses_settings(tracker, store, monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(reconciler.settings, "COMMENT_ON_FORGET", True)
    store.save("api-tests", "ISSUE-2", 4)
    tracker.statuses["ISSUE-2"] = "Done"

    result = _run(_report("SUCCESS", "SUCCESS"), tracker, store)

    assert result.action == ActionKind.forget
    assert tracker.comments and tracker.comments[0][0] == "ISSUE-2"


def test_real_client_timeout_maps_to_unavailable(store) -> None:  # noqa: ANN001
    from buildtracker.integrations.jira.client import JiraClient

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = JiraClient(
        base_url="https://jira.example",
        email="ci@example.com",
        api_token="token",
        timeout=0.1,
        max_retries=2,
        backoff=0,
        transport=httpx.MockTransport(handler),
    )
    store.save("api-tests", "ISSUE-1", 4)
    store.operations.clear()

    with pytest.raises(IssueTrackerUnavailable):
        _run(_report("FAILURE", "FAILURE"), client, store)
    assert store.operations == []
