"""Progress polling for workflow runs."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify

from ..execution.tracker import get_execution_progress
from ..utils.auth import get_current_user, require_token
from .serializers import serialize_execution, serialize_node_execution

bp = Blueprint("executions", __name__)


@bp.get("/executions/<execution_id>")
@require_token()
def get_execution(execution_id: str) -> tuple[object, int]:
    progress = get_execution_progress(execution_id, get_current_user())
    payload = {
        "execution": serialize_execution(progress.execution),
        "node_executions": [
            serialize_node_execution(node_execution) for node_execution in progress.node_executions
        ],
        "current_step": progress.current_step,
        "total_steps": progress.total_steps,
        "progress": progress.progress,
    }
    return jsonify(payload), HTTPStatus.OK
