from __future__ import annotations

from typing import Callable, Optional, TypeVar

from ..app_logger import get_logger
from ..core.constants import CONFLICT_RETRIES
from ..core.exceptions import ConflictRetryable, DomainError
from .errors import tag_error

T = TypeVar("T")

log = get_logger("retry")


def retry_on_conflict(
    action: Callable[[], T],
    *,
    operation: str,
    entity_id: Optional[int] = None,
    retries: int = CONFLICT_RETRIES,
) -> T:
    """Run ``action``; rerun it when the store reports a write race.

    The action is rerun from scratch so it re-reads whatever state it depends on.
    After ``retries`` extra attempts the last ConflictRetryable propagates.
    """
    attempt = 0
    while True:
        try:
            return action()
        except ConflictRetryable as exc:
            if attempt >= retries:
                log.warning("%s: conflict persisted after %d retr%s", operation, retries, "y" if retries == 1 else "ies")
                tag_error(exc, operation, entity_id)
                raise
            attempt += 1
            log.info("%s: write conflict, retrying (%d/%d)", operation, attempt, retries)
        except DomainError as exc:
            tag_error(exc, operation, entity_id)
            raise
