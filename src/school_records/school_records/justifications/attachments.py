from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Mapping, Optional

from werkzeug.utils import secure_filename

from ..core.constants import ALLOWED_ATTACHMENT_TYPES, MAX_ATTACHMENT_BYTES
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AcceptedAttachment:
    file_reference: str
    mime_type: str
    size: int
    original_name: str
    # file of the justification this upload supersedes, if any
    replaces: Optional[str] = None


class AttachmentPolicy:
    """Decides whether an uploaded justification file is acceptable and names it.

    No I/O happens here; the caller stores the bytes under the returned reference.
    """

    def __init__(
        self,
        *,
        max_bytes: int = MAX_ATTACHMENT_BYTES,
        allowed_types: Optional[Mapping[str, str]] = None,
    ):
        self._max_bytes = int(max_bytes)
        self._allowed = dict(allowed_types or ALLOWED_ATTACHMENT_TYPES)

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def check(self, *, filename: str, mime_type: str, size: int) -> str:
        """Return the sanitized original name, or raise ValidationError."""
        safe = secure_filename(filename or "")
        if not safe:
            raise ValidationError("Invalid file name")

        mime = (mime_type or "").split(";")[0].strip().lower()
        if mime not in self._allowed:
            raise ValidationError("Only PDF, JPEG and PNG files are accepted")

        if int(size) <= 0:
            raise ValidationError("File is empty")
        if int(size) > self._max_bytes:
            raise ValidationError(f"File is larger than {self._max_bytes // (1024 * 1024)} MB")
        return safe

    def file_reference_for(self, event_id: int, mime_type: str) -> str:
        ext = self._allowed[(mime_type or "").split(";")[0].strip().lower()]
        return f"justification_{int(event_id)}_{uuid.uuid4().hex[:16]}.{ext}"

    def accept(self, *, event_id: int, filename: str, mime_type: str, size: int) -> AcceptedAttachment:
        safe = self.check(filename=filename, mime_type=mime_type, size=size)
        return AcceptedAttachment(
            file_reference=self.file_reference_for(event_id, mime_type),
            mime_type=mime_type.split(";")[0].strip().lower(),
            size=int(size),
            original_name=safe,
        )
