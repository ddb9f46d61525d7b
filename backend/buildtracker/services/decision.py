"""Pure decision function mapping a build outcome to a ticket action.

``decide`` performs no I/O of its own. The only outside call is
``live_status_of``, which the caller supplies; its failures propagate
unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Union

from buildtracker.models.enums import ActionKind, BuildOutcome, IssueStatus
from buildtracker.services import formatter
from buildtracker.services.formatter import BuildInfo

ACTIVE_STATUSES = {IssueStatus.open, IssueStatus.resolved}


@dataclass(frozen=True)
class JobConfig:
    project_key: str
    test_description: str = ""
    assignee: str = ""
    components: tuple[str, ...] = ()


@dataclass(frozen=True)
class IssueDraft:
    project_key: str
    summary: str
    description: str
    assignee: str = ""
    components: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReconcileContext:
    build: BuildInfo
    job: JobConfig
    current_result: BuildOutcome
    previous_result: BuildOutcome | None = None
    tracked_ticket: str | None = None
    last_applied_build: int | None = None
    comment_on_forget: bool = False


@dataclass(frozen=True)
class NoOp:
    reason: str = ""
    kind: ActionKind = field(default=ActionKind.noop, init=False)

    @property
    def steps(self) -> tuple["Step", ...]:
        return ()


@dataclass(frozen=True)
class CreateTicket:
    draft: IssueDraft
    kind: ActionKind = field(default=ActionKind.create, init=False)

    @property
    def steps(self) -> tuple["Step", ...]:
        return (self,)


@dataclass(frozen=True)
class CommentOnTicket:
    ticket_key: str
    text: str
    kind: ActionKind = field(default=ActionKind.comment, init=False)

    @property
    def steps(self) -> tuple["Step", ...]:
        return (self,)


@dataclass(frozen=True)
class ForgetTicket:
    ticket_key: str
    # Optional final comment; posted best-effort before tracking is dropped.
    text: str | None = None
    kind: ActionKind = field(default=ActionKind.forget, init=False)

    @property
    def steps(self) -> tuple["Step", ...]:
        return (self,)


@dataclass(frozen=True)
class ReplaceTicket:
    """Forget a ticket a human closed and open a fresh one."""

    forget: ForgetTicket
    create: CreateTicket
    kind: ActionKind = field(default=ActionKind.replace, init=False)

    @property
    def ticket_key(self) -> str:
        return self.forget.ticket_key

    @property
    def steps(self) -> tuple["Step", ...]:
        return (self.forget, self.create)


Step = Union[CreateTicket, CommentOnTicket, ForgetTicket]
Action = Union[NoOp, CreateTicket, CommentOnTicket, ForgetTicket, ReplaceTicket]
StatusLookup = Callable[[str], IssueStatus]


def draft_issue(context: ReconcileContext) -> IssueDraft:
    return IssueDraft(
        project_key=context.job.project_key,
        summary=formatter.issue_summary(context.build),
        description=formatter.issue_description(context.build, context.job.test_description),
        assignee=context.job.assignee,
        components=tuple(context.job.components),
    )


def _forget(context: ReconcileContext, ticket_key: str) -> ForgetTicket:
    text = formatter.forget_comment(context.build) if context.comment_on_forget else None
    return ForgetTicket(ticket_key=ticket_key, text=text)


def decide(context: ReconcileContext, live_status_of: StatusLookup) -> Action:
    current = context.current_result
    tracked = context.tracked_ticket

    if current == BuildOutcome.aborted:
        return NoOp("aborted build")
    if context.previous_result is None:
        return NoOp("first build of job")
    if tracked and context.last_applied_build == context.build.build_number:
        return NoOp("build already applied")

    if current == BuildOutcome.failure:
        if not tracked:
            return CreateTicket(draft_issue(context))
        status = live_status_of(tracked)
        if status in ACTIVE_STATUSES:
            return CommentOnTicket(tracked, formatter.still_failing_comment(context.build))
        return ReplaceTicket(forget=_forget(context, tracked), create=CreateTicket(draft_issue(context)))

    # SUCCESS
    if not tracked:
        return NoOp("no tracked ticket")
    status = live_status_of(tracked)
    if status in ACTIVE_STATUSES:
        return CommentOnTicket(tracked, formatter.now_passing_comment(context.build))
    return _forget(context, tracked)
