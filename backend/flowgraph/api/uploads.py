"""REST API endpoints for upload processing jobs and their stages."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, g, jsonify, request

from ..errors import InvalidStageError, JobNotFoundError
from ..extensions import db
from ..jobs.stages import derive_stage, is_valid_stage, with_job_stage
from ..models.upload import ANALYSIS_TARGETS, ProcessingJob
from ..utils.audit import persist_run_log
from ..utils.auth import get_current_user, require_token
from .serializers import serialize_job

bp = Blueprint("uploads", __name__)


def _validate_upload_payload(payload: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    errors: list[str] = []
    file_name = payload.get("file_name")
    file_type = payload.get("file_type")
    file_size = payload.get("file_size")
    analysis_target = payload.get("analysis_target")
    metadata = payload.get("metadata")

    if not isinstance(file_name, str) or not file_name.strip():
        errors.append("file_name is required")
    if not isinstance(file_type, str) or not file_type.strip():
        errors.append("file_type is required")
    if not isinstance(file_size, int) or isinstance(file_size, bool) or file_size < 0:
        errors.append("file_size is required")
    if analysis_target not in ANALYSIS_TARGETS:
        errors.append("analysis_target is invalid")
    if metadata is not None and not isinstance(metadata, dict):
        errors.append("metadata must be an object or null")

    data = {
        "file_name": file_name.strip() if isinstance(file_name, str) else file_name,
        "file_type": file_type,
        "file_size": file_size,
        "analysis_target": analysis_target,
        "metadata": metadata,
    }
    return data, errors


def _load_job(job_id: str) -> ProcessingJob:
    """Return a job visible to the caller; admins may reach any job."""

    query = ProcessingJob.query.filter_by(id=job_id)
    if g.api_token.role != "admin":
        query = query.filter_by(user_id=get_current_user())
    job = query.first()
    if job is None:
        raise JobNotFoundError()
    return job


@bp.post("/uploads")
@require_token(role="member")
def register_upload() -> tuple[object, int]:
    payload = request.get_json(silent=True, force=True) or {}
    data, errors = _validate_upload_payload(payload)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    metadata = data.pop("metadata")
    job = ProcessingJob(
        user_id=get_current_user(),
        status="queued",
        job_metadata=with_job_stage(metadata, "registered"),
        **data,
    )
    db.session.add(job)
    db.session.commit()

    response = serialize_job(job)
    response["message"] = "Upload registered."
    return jsonify(response), HTTPStatus.CREATED


@bp.get("/uploads")
@require_token()
def list_uploads() -> tuple[object, int]:
    jobs = (
        ProcessingJob.query.filter_by(user_id=get_current_user())
        .order_by(ProcessingJob.created_at.desc())
        .all()
    )
    return jsonify([serialize_job(job) for job in jobs]), HTTPStatus.OK


@bp.get("/uploads/<job_id>")
@require_token()
def get_upload(job_id: str) -> tuple[object, int]:
    return jsonify(serialize_job(_load_job(job_id))), HTTPStatus.OK


@bp.patch("/uploads/<job_id>/stage")
@require_token(role="member")
def update_upload_stage(job_id: str) -> tuple[object, int]:
    payload = request.get_json(silent=True, force=True) or {}
    stage = payload.get("stage")
    if not is_valid_stage(stage):
        raise InvalidStageError()

    job = _load_job(job_id)
    job.job_metadata = with_job_stage(job.job_metadata, stage)
    db.session.commit()

    persist_run_log("upload", f"job {job.id} moved to stage {stage}", user_id=job.user_id)

    response = {"job_id": job.id, "stage": stage, "metadata": job.job_metadata}
    response.update(derive_stage(job.job_metadata))
    return jsonify(response), HTTPStatus.OK
