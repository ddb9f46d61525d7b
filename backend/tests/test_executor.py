from __future__ import annotations

import pytest

from buildtracker.core.exceptions import CommentFailed, CreateFailed, StoreUnavailable
from buildtracker.services.decision import CommentOnTicket, CreateTicket, ForgetTicket, IssueDraft, NoOp, ReplaceTicket
from buildtracker.services.executor import apply

DRAFT = IssueDraft(
    project_key="QA",
    summary="Test api-tests failure",
    description="The test api-tests has failed.",
    assignee="acc-1",
    components=("Backend", "CI"),
)


def _apply(action, tracker, store):  # noqa: ANN001
    return apply(action, client=tracker, store=store, job_name="api-tests", build_number=12)


def test_noop_has_no_side_effects(tracker, store) -> None:  # noqa: ANN001
    outcome = _apply(NoOp("first build of job"), tracker, store)

    assert outcome.created_ticket is None
    assert tracker.created == [] and tracker.comments == []
    assert store.operations == []


def test_create_persists_returned_key(tracker, store) -> None:  # noqa: ANN001
    outcome = _apply(CreateTicket(DRAFT), tracker, store)

    assert outcome.created_ticket == "QA-101"
    assert tracker.created[0]["components"] == ["Backend", "CI"]
    assert tracker.created[0]["assignee"] == "acc-1"
    record = store.load("api-tests")
    assert record.ticket_key == "QA-101"
    assert record.last_build_number == 12


def test_create_failure_leaves_store_untouched(tracker, store) -> None:  # noqa: ANN001
    tracker.create_error = CreateFailed("rejected", status=400)

    with pytest.raises(CreateFailed):
        _apply(CreateTicket(DRAFT), tracker, store)
    assert store.operations == []


def test_comment_marks_the_build(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "QA-1", 11)
    store.operations.clear()

    outcome = _apply(CommentOnTicket("QA-1", "- Job is still failing."), tracker, store)

    assert outcome.commented_ticket == "QA-1"
    assert tracker.comments == [("QA-1", "- Job is still failing.")]
    assert store.load("api-tests").last_build_number == 12


def test_comment_failure_keeps_ticket_association(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "QA-1", 11)
    tracker.comment_error = CommentFailed("QA-1", status=500)

    with pytest.raises(CommentFailed):
        _apply(CommentOnTicket("QA-1", "text"), tracker, store)
    record = store.load("api-tests")
    assert record.ticket_key == "QA-1"
    assert record.last_build_number == 11


def test_forget_clears_even_when_final_comment_fails(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "QA-1", 11)
    tracker.comment_error = CommentFailed("QA-1", status=403)

    outcome = _apply(ForgetTicket("QA-1", text="closing note"), tracker, store)

    assert outcome.forgotten_ticket == "QA-1"
    assert store.load("api-tests") is None
    assert outcome.warnings and outcome.warnings[0].startswith("final_comment_failed")


def test_replace_forgets_before_creating(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "QA-1", 11)
    store.operations.clear()

    outcome = _apply(ReplaceTicket(forget=ForgetTicket("QA-1"), create=CreateTicket(DRAFT)), tracker, store)

    assert store.operations == [("clear", "QA-1"), ("save", "QA-101")]
    assert outcome.forgotten_ticket == "QA-1"
    assert outcome.created_ticket == "QA-101"


def test_replace_interrupted_after_forget_leaves_no_ticket(tracker, store) -> None:  # noqa: ANN001
    store.save("api-tests", "QA-1", 11)
    tracker.create_error = CreateFailed("rejected")

    with pytest.raises(CreateFailed):
        _apply(ReplaceTicket(forget=ForgetTicket("QA-1"), create=CreateTicket(DRAFT)), tracker, store)
    assert store.load("api-tests") is None


def test_store_failure_after_create_surfaces(tracker, store, monkeypatch) -> None:  # noqa: ANN001
    def broken_save(*_args, **_kwargs) -> None:  # noqa: ANN002, ANN003
        raise StoreUnavailable("disk full", job_name="api-tests")

    monkeypatch.setattr(store, "save", broken_save)

    with pytest.raises(StoreUnavailable):
        _apply(CreateTicket(DRAFT), tracker, store)
