from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..access.model import ListingScope
from ..attendance.model import AttendanceEvent
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import JustificationDecision
from .model import Justification


class JustificationRepository(Protocol):
    def save_justification_decision(
        self,
        *,
        event_id: int,
        expected_from: JustificationDecision,
        new_state: Justification,
    ) -> AttendanceEvent:
        """Compare-and-swap the justification of one event.

        Raises NotFound when the event is gone, InvalidTransition when its
        decision is no longer ``expected_from``, ConflictRetryable on lock races.
        """

        raise NotImplementedError

    def list_justifications(
        self,
        *,
        scope: ListingScope,
        decision: Optional[JustificationDecision] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[AttendanceEvent]:
        """Submitted justifications (anything but UNSUBMITTED) of absences inside ``scope``."""

        raise NotImplementedError
