"""API endpoints exposing run log entries."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ..models.logs import RUN_LOG_SOURCES, RunLog
from ..utils.auth import require_token
from .serializers import isoformat

bp = Blueprint("logs", __name__)


def _serialize_entry(entry: RunLog) -> dict[str, object]:
    return {
        "id": entry.id,
        "source": entry.source,
        "user_id": entry.user_id,
        "message": entry.message,
        "created_at": isoformat(entry.created_at),
    }


@bp.get("/logs")
@require_token(role="admin")
def get_logs() -> tuple[object, int]:
    source = request.args.get("source")
    user_id = request.args.get("user_id")
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 200))

    query = RunLog.query
    if source:
        if source not in RUN_LOG_SOURCES:
            return jsonify({"error": "invalid source"}), HTTPStatus.BAD_REQUEST
        query = query.filter_by(source=source)
    if user_id:
        query = query.filter_by(user_id=user_id)

    entries = query.order_by(RunLog.created_at.desc(), RunLog.id.desc()).limit(limit).all()
    return jsonify([_serialize_entry(entry) for entry in entries]), HTTPStatus.OK
