"""Helpers for persisting audit entries to the run log."""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models.logs import RunLog


def persist_run_log(source: str, message: str, user_id: str | None = None) -> None:
    """Persist a run log entry; database errors are logged and rolled back."""

    if not message:
        return

    try:
        entry = RunLog(source=source, message=message, user_id=user_id)
        db.session.add(entry)
        db.session.commit()
    except Exception:
        current_app.logger.exception("Failed to persist run log entry")
        db.session.rollback()
