"""Upload processing job model definition."""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from .workflow import new_uuid

JOB_STATUSES = ("uploading", "queued", "processing", "completed", "failed")
JOB_STAGES = ("registered", "uploaded", "processing", "extracted", "indexed", "injected", "failed")
ANALYSIS_TARGETS = ("document-analysis", "image-ocr", "image-generation", "audio-transcription")
VISION_PROVIDERS = ("gpt4o", "gemini")


class ProcessingJob(db.Model):
    """An ingestion job whose stage lives in the generic metadata bag."""

    __tablename__ = "processing_jobs"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    user_id = db.Column(db.String(64), nullable=True, index=True)
    file_name = db.Column(db.String(512), nullable=False)
    file_type = db.Column(db.String(255), nullable=False)
    file_size = db.Column(db.BigInteger, nullable=False)
    analysis_target = db.Column(db.String(64), nullable=False)
    status = db.Column(db.Enum(*JOB_STATUSES, name="processing_job_status"), nullable=False, default="queued")
    message = db.Column(db.Text, nullable=True)
    error = db.Column(db.Text, nullable=True)
    result_text = db.Column(db.Text, nullable=True)
    vision_summary = db.Column(db.Text, nullable=True)
    vision_provider = db.Column(db.String(32), nullable=True)
    vision_metadata = db.Column(db.JSON, nullable=True)
    job_metadata = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<ProcessingJob {self.file_name!r} {self.status}>"
