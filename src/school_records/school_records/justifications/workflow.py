from __future__ import annotations

from typing import Dict, Optional, Tuple

from ..app_logger import get_logger
from ..common.validators import optional_text, require_non_empty
from ..core.enums import JustificationDecision, JustificationTrigger
from ..core.exceptions import InvalidTransition, ValidationError
from .model import Justification

log = get_logger("justifications.workflow")

D = JustificationDecision
T = JustificationTrigger

# (from, trigger) -> to. Approved has no outgoing edges.
TRANSITIONS: Dict[Tuple[JustificationDecision, JustificationTrigger], JustificationDecision] = {
    (D.UNSUBMITTED, T.SUBMIT): D.PENDING,
    (D.PENDING, T.APPROVE): D.APPROVED,
    (D.PENDING, T.REJECT): D.REJECTED,
    (D.REJECTED, T.RESUBMIT): D.PENDING,
}


class JustificationWorkflow:
    """State machine over :class:`Justification` values.

    Pure: it checks the edge, then the trigger's input, and returns the next
    value. Authorization and persistence belong to the caller.
    """

    def target(self, current: JustificationDecision, trigger: JustificationTrigger) -> JustificationDecision:
        to = TRANSITIONS.get((current, trigger))
        if to is None:
            raise InvalidTransition(f"Cannot {trigger.value} a justification that is {current.value.lower()}")
        return to

    def apply(
        self,
        current: Justification,
        trigger: JustificationTrigger,
        *,
        text: Optional[str] = None,
        file_reference: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Justification:
        self.target(current.decision, trigger)

        if trigger in (T.SUBMIT, T.RESUBMIT):
            text = optional_text(text)
            file_reference = optional_text(file_reference)
            if not text and not file_reference:
                raise ValidationError("Justification text or file is required")
            nxt = Justification.submitted(text=text, file_reference=file_reference)
        elif trigger == T.APPROVE:
            nxt = current.approved()
        else:
            nxt = current.rejected(require_non_empty(reason, "Reject reason"))

        log.debug("justification %s -> %s via %s", current.decision.value, nxt.decision.value, trigger.value)
        return nxt

    def submit(self, current: Justification, *, text: Optional[str] = None, file_reference: Optional[str] = None) -> Justification:
        return self.apply(current, T.SUBMIT, text=text, file_reference=file_reference)

    def resubmit(self, current: Justification, *, text: Optional[str] = None, file_reference: Optional[str] = None) -> Justification:
        return self.apply(current, T.RESUBMIT, text=text, file_reference=file_reference)

    def approve(self, current: Justification) -> Justification:
        return self.apply(current, T.APPROVE)

    def reject(self, current: Justification, reason: Optional[str]) -> Justification:
        return self.apply(current, T.REJECT, reason=reason)
