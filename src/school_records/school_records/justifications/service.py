from __future__ import annotations

import dataclasses
from typing import Optional, Sequence

from ..access.guard import AccessGuard
from ..access.memo import LinkageMemo
from ..access.model import Principal
from ..access.resolver import OwnershipResolver
from ..app_logger import get_logger
from ..attendance.model import AttendanceEvent
from ..attendance.repository import AttendanceRepository
from ..common.errors import tagged_errors
from ..common.retry import retry_on_conflict
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import AttendanceStatus, JustificationDecision, JustificationTrigger, Operation
from ..core.exceptions import NotFound, ValidationError
from ..roster.repository import RosterRepository
from .attachments import AcceptedAttachment, AttachmentPolicy
from .repository import JustificationRepository
from .workflow import JustificationWorkflow

log = get_logger("justifications")

_DECISION_TRIGGERS = {
    "approve": JustificationTrigger.APPROVE,
    "approved": JustificationTrigger.APPROVE,
    "reject": JustificationTrigger.REJECT,
    "rejected": JustificationTrigger.REJECT,
}


def decision_trigger(decision: object) -> JustificationTrigger:
    raw = decision.value if isinstance(decision, (JustificationDecision, JustificationTrigger)) else decision
    trigger = _DECISION_TRIGGERS.get(str(raw or "").strip().lower())
    if trigger is None:
        raise ValidationError("Decision must be approve or reject")
    return trigger


class JustificationService:
    """Absence justification use cases.

    Each mutation loads the event, authorizes, runs the workflow and commits
    with a compare-and-swap on the decision it started from. A lost race is
    rerun once from the load.
    """

    def __init__(
        self,
        justifications: JustificationRepository,
        attendance: AttendanceRepository,
        roster: RosterRepository,
        guard: AccessGuard,
        *,
        workflow: Optional[JustificationWorkflow] = None,
        attachments: Optional[AttachmentPolicy] = None,
    ):
        self._justifications = justifications
        self._attendance = attendance
        self._guard = guard
        self._resolver = OwnershipResolver(roster)
        self._workflow = workflow or JustificationWorkflow()
        self._attachments = attachments or AttachmentPolicy()

    def _load(self, event_id: int) -> AttendanceEvent:
        event = self._attendance.load_attendance_event(int(event_id))
        if not event:
            raise NotFound("Attendance event not found", entity_id=int(event_id))
        return event

    def _authorized_event(self, principal: Principal, op: Operation, event_id: int, memo: LinkageMemo) -> AttendanceEvent:
        event = self._load(event_id)
        self._guard.authorize(principal, op, self._resolver.for_attendance_event(event, memo))
        return event

    @staticmethod
    def _require_absence(event: AttendanceEvent) -> None:
        if event.status != AttendanceStatus.ABSENT:
            raise ValidationError(f"Only absences can be justified (event is {event.status.label})")

    def _submission_trigger(self, event: AttendanceEvent) -> JustificationTrigger:
        self._require_absence(event)
        if event.justification.decision == JustificationDecision.REJECTED:
            return JustificationTrigger.RESUBMIT
        return JustificationTrigger.SUBMIT

    def submit_justification(
        self,
        principal: Principal,
        event_id: int,
        text: Optional[str] = None,
        file_ref: Optional[str] = None,
        *,
        memo: Optional[LinkageMemo] = None,
    ) -> AttendanceEvent:
        """Submit, or resubmit after a rejection, the owning student's justification."""
        op = Operation.SUBMIT_JUSTIFICATION
        memo = memo or LinkageMemo()

        def action() -> AttendanceEvent:
            event = self._authorized_event(principal, op, event_id, memo)
            current = event.justification
            nxt = self._workflow.apply(current, self._submission_trigger(event), text=text, file_reference=file_ref)
            saved = self._justifications.save_justification_decision(
                event_id=event.event_id,
                expected_from=current.decision,
                new_state=nxt,
            )
            log.info("justification #%s %s -> %s by user #%s", event.event_id, current.decision.value, nxt.decision.value, principal.user_id)
            return saved

        return retry_on_conflict(action, operation=op.value, entity_id=int(event_id))

    def decide_justification(
        self,
        principal: Principal,
        event_id: int,
        decision: object,
        reason: Optional[str] = None,
        *,
        memo: Optional[LinkageMemo] = None,
    ) -> AttendanceEvent:
        """Approve or reject a pending justification (teacher of the class subject, or admin)."""
        op = Operation.DECIDE_JUSTIFICATION
        memo = memo or LinkageMemo()

        def action() -> AttendanceEvent:
            event = self._authorized_event(principal, op, event_id, memo)
            self._require_absence(event)
            current = event.justification
            nxt = self._workflow.apply(current, decision_trigger(decision), reason=reason)
            saved = self._justifications.save_justification_decision(
                event_id=event.event_id,
                expected_from=current.decision,
                new_state=nxt,
            )
            log.info("justification #%s %s -> %s by user #%s", event.event_id, current.decision.value, nxt.decision.value, principal.user_id)
            return saved

        return retry_on_conflict(action, operation=op.value, entity_id=int(event_id))

    def list_justifications(
        self,
        principal: Principal,
        decision: Optional[JustificationDecision] = None,
        *,
        memo: Optional[LinkageMemo] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[AttendanceEvent]:
        scope = self._resolver.listing_scope(principal, memo or LinkageMemo())
        return self._justifications.list_justifications(scope=scope, decision=decision, limit=limit)

    def accept_attachment(
        self,
        principal: Principal,
        event_id: int,
        *,
        filename: str,
        mime_type: str,
        size: int,
        memo: Optional[LinkageMemo] = None,
    ) -> AcceptedAttachment:
        """Decide on an upload before it is stored; the caller stores it under the returned reference."""
        op = Operation.SUBMIT_JUSTIFICATION
        with tagged_errors(op.value, int(event_id)):
            event = self._authorized_event(principal, op, event_id, memo or LinkageMemo())
            self._workflow.target(event.justification.decision, self._submission_trigger(event))
            accepted = self._attachments.accept(event_id=event.event_id, filename=filename, mime_type=mime_type, size=size)
            return dataclasses.replace(accepted, replaces=event.justification.file_reference)

    def authorize_attachment_download(
        self,
        principal: Principal,
        event_id: int,
        *,
        memo: Optional[LinkageMemo] = None,
    ) -> str:
        op = Operation.READ_JUSTIFICATION
        with tagged_errors(op.value, int(event_id)):
            event = self._authorized_event(principal, op, event_id, memo or LinkageMemo())
            ref = event.justification.file_reference
            if not ref:
                raise NotFound("No file attached to this justification")
            return ref
