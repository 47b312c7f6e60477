from __future__ import annotations

from pathlib import Path

from flask import Flask, current_app, request, send_from_directory

from ..access.memo import LinkageMemo
from ..app_logger import get_logger
from ..attendance.controller import event_payload
from ..common.http import json_body, login_required, ok, principal_from_session
from ..container import Container
from ..core.enums import JustificationDecision
from ..core.exceptions import ValidationError

log = get_logger("justifications.http")


def _upload_dir() -> Path:
    return Path(current_app.config["UPLOAD_DIR"])


def register(app: Flask, container: Container) -> None:
    @app.route("/api/justifications", methods=["GET"], endpoint="list_justifications")
    @login_required
    def list_justifications():
        raw = (request.args.get("decision") or "").strip().upper()
        try:
            decision = JustificationDecision(raw) if raw else None
        except ValueError:
            raise ValidationError(f"Unknown decision filter: {raw}")

        events = container.justification_service.list_justifications(
            principal_from_session(),
            decision,
            memo=LinkageMemo(),
        )
        return ok([event_payload(e) for e in events])

    @app.route("/api/attendance/<int:event_id>/justification", methods=["POST"], endpoint="submit_justification")
    @login_required
    def submit_justification(event_id: int):
        principal = principal_from_session()
        memo = LinkageMemo()
        upload = request.files.get("file")

        if upload is None:
            text = json_body().get("text") if request.is_json else request.form.get("text")
            event = container.justification_service.submit_justification(principal, event_id, text, memo=memo)
            return ok(event_payload(event))

        content = upload.read()
        accepted = container.justification_service.accept_attachment(
            principal,
            event_id,
            filename=upload.filename or "",
            mime_type=upload.mimetype or "",
            size=len(content),
            memo=memo,
        )

        target_dir = _upload_dir()
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / accepted.file_reference
        target.write_bytes(content)

        try:
            event = container.justification_service.submit_justification(
                principal,
                event_id,
                request.form.get("text"),
                accepted.file_reference,
                memo=memo,
            )
        except Exception:
            target.unlink(missing_ok=True)
            raise

        log.info("stored attachment %s (%d bytes) for event #%s", accepted.file_reference, accepted.size, event_id)
        old = accepted.replaces
        if old and old != accepted.file_reference and Path(old).name == old:
            (target_dir / old).unlink(missing_ok=True)
            log.info("removed superseded attachment %s of event #%s", old, event_id)
        return ok(event_payload(event))

    @app.route(
        "/api/attendance/<int:event_id>/justification/decision",
        methods=["POST"],
        endpoint="decide_justification",
    )
    @login_required
    def decide_justification(event_id: int):
        data = json_body()
        event = container.justification_service.decide_justification(
            principal_from_session(),
            event_id,
            data.get("decision"),
            data.get("reason"),
            memo=LinkageMemo(),
        )
        return ok(event_payload(event))

    @app.route("/api/attendance/<int:event_id>/justification/file", methods=["GET"], endpoint="download_justification")
    @login_required
    def download_justification(event_id: int):
        ref = container.justification_service.authorize_attachment_download(
            principal_from_session(),
            event_id,
            memo=LinkageMemo(),
        )
        return send_from_directory(_upload_dir().resolve(), ref, as_attachment=True)
