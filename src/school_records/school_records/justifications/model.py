from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import JustificationDecision
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Justification:
    """Justification attached to an attendance event.

    The decision is the tag; the other fields are its payload:

    - UNSUBMITTED: no text, no file, no reason
    - PENDING / APPROVED: text and/or file, no reason
    - REJECTED: text and/or file plus a non-blank reject_reason

    Anything else fails on construction.
    """

    decision: JustificationDecision = JustificationDecision.UNSUBMITTED
    text: Optional[str] = None
    file_reference: Optional[str] = None
    reject_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.decision == JustificationDecision.UNSUBMITTED:
            if self.has_payload or self.reject_reason:
                raise ValidationError("An unsubmitted justification carries no content")
            return

        if not self.has_payload:
            raise ValidationError("Justification text or file is required")

        if self.decision == JustificationDecision.REJECTED:
            if not (self.reject_reason and self.reject_reason.strip()):
                raise ValidationError("Reject reason is required")
        elif self.reject_reason:
            raise ValidationError("Only a rejected justification has a reject reason")

    @property
    def has_payload(self) -> bool:
        return bool((self.text and self.text.strip()) or self.file_reference)

    @classmethod
    def unsubmitted(cls) -> "Justification":
        return cls()

    @classmethod
    def submitted(cls, text: Optional[str] = None, file_reference: Optional[str] = None) -> "Justification":
        return cls(decision=JustificationDecision.PENDING, text=text, file_reference=file_reference)

    def approved(self) -> "Justification":
        return Justification(
            decision=JustificationDecision.APPROVED,
            text=self.text,
            file_reference=self.file_reference,
        )

    def rejected(self, reason: str) -> "Justification":
        return Justification(
            decision=JustificationDecision.REJECTED,
            text=self.text,
            file_reference=self.file_reference,
            reject_reason=reason,
        )

    @classmethod
    def from_row(cls, r: dict) -> "Justification":
        """Rebuild from the attendance columns.

        Rows written before the decision column existed have it NULL; those are
        pending when they carry content and unsubmitted otherwise.
        """
        text = (r.get("justification") or "").strip() or None
        file_reference = r.get("justification_file") or None
        raw = r.get("justification_decision")
        if raw:
            decision = JustificationDecision(raw)
        elif text or file_reference:
            decision = JustificationDecision.PENDING
        else:
            decision = JustificationDecision.UNSUBMITTED

        if decision == JustificationDecision.UNSUBMITTED:
            return cls()
        return cls(
            decision=decision,
            text=text,
            file_reference=file_reference,
            reject_reason=(r.get("reject_reason") or None) if decision == JustificationDecision.REJECTED else None,
        )
