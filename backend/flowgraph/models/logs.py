"""Run log model definition."""

from __future__ import annotations

from datetime import datetime

from ..extensions import db

RUN_LOG_SOURCES = ("sync", "dispatch", "upload")


class RunLog(db.Model):
    """Audit entry for graph saves, run dispatches and job stage changes."""

    __tablename__ = "run_logs"

    id = db.Column(db.Integer, primary_key=True)
    source = db.Column(db.Enum(*RUN_LOG_SOURCES, name="runlog_source"), nullable=False)
    user_id = db.Column(db.String(64), nullable=True, index=True)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<RunLog {self.id} from {self.source}>"
