"""REST API endpoints for storing, saving and executing workflows."""

from __future__ import annotations

import json
from http import HTTPStatus
from numbers import Real
from typing import Any

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import or_

from ..errors import WorkflowNotFoundError
from ..execution.dispatcher import dispatch_execution
from ..execution.tracker import list_workflow_executions
from ..extensions import db, limiter
from ..graph.sync import delete_workflow_graph, sync_workflow_graph
from ..models.workflow import NODE_TYPES, Workflow, WorkflowEdge, WorkflowNode
from ..utils.audit import persist_run_log
from ..utils.auth import get_current_user, get_session_credential, require_token
from .serializers import serialize_edge, serialize_execution, serialize_node, serialize_workflow

bp = Blueprint("workflows", __name__)

MAX_GRAPH_BYTES = 500_000


def _execute_rate_limit() -> str:
    return current_app.config.get("EXECUTE_RATE_LIMIT", "30 per minute")


def _load_owned_workflow(workflow_id: str) -> Workflow:
    """Return the caller's workflow; other users' workflows look missing."""

    workflow = Workflow.query.filter_by(id=workflow_id, user_id=get_current_user()).first()
    if workflow is None:
        raise WorkflowNotFoundError()
    return workflow


def _load_readable_workflow(workflow_id: str) -> Workflow:
    workflow = (
        Workflow.query.filter(Workflow.id == workflow_id)
        .filter(or_(Workflow.user_id == get_current_user(), Workflow.is_template.is_(True)))
        .first()
    )
    if workflow is None:
        raise WorkflowNotFoundError()
    return workflow


def _load_graph(workflow_id: str) -> tuple[list[WorkflowNode], list[WorkflowEdge]]:
    nodes = (
        WorkflowNode.query.filter_by(workflow_id=workflow_id)
        .order_by(WorkflowNode.execution_order.is_(None), WorkflowNode.execution_order.asc())
        .all()
    )
    edges = WorkflowEdge.query.filter_by(workflow_id=workflow_id).all()
    return nodes, edges


def _normalize_optional_text(value: Any, field: str, errors: list[str]) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(f"{field} must be a string or null")
        return None
    return value.strip() or None


def _normalize_metadata(value: Any, errors: list[str]) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        errors.append("metadata must be an object or null")
        return None
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        errors.append("metadata must be serializable")
        return None
    return value


def _validate_workflow_payload(
    payload: dict[str, Any], *, partial: bool = False
) -> tuple[dict[str, Any], list[str]]:
    """Validate create and partial update payloads for workflows."""

    errors: list[str] = []
    data: dict[str, Any] = {}

    if "name" in payload or not partial:
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("name is required")
        else:
            data["name"] = name.strip()

    if "description" in payload:
        data["description"] = _normalize_optional_text(payload["description"], "description", errors)

    if "metadata" in payload:
        data["workflow_metadata"] = _normalize_metadata(payload["metadata"], errors)

    if partial:
        return data, errors

    is_template = payload.get("is_template", False)
    if not isinstance(is_template, bool):
        errors.append("is_template must be a boolean")
    data["is_template"] = is_template is True
    data["template_category"] = _normalize_optional_text(
        payload.get("template_category"), "template_category", errors
    )
    return data, errors


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _normalize_node(item: Any, index: int, errors: list[str]) -> dict[str, Any] | None:
    prefix = f"nodes[{index}]"
    if not isinstance(item, dict):
        errors.append(f"{prefix} must be an object")
        return None

    node: dict[str, Any] = {}
    node_type = item.get("node_type")
    if node_type not in NODE_TYPES:
        errors.append(f"{prefix}.node_type is invalid")
    node["node_type"] = node_type

    label = item.get("label")
    if not isinstance(label, str) or not label.strip():
        errors.append(f"{prefix}.label is required")
    node["label"] = label

    for axis in ("position_x", "position_y"):
        value = item.get(axis, 0)
        if not _is_number(value):
            errors.append(f"{prefix}.{axis} must be a number")
        node[axis] = value

    config = item.get("config")
    if config is not None and not isinstance(config, dict):
        errors.append(f"{prefix}.config must be an object")
    node["config"] = config or {}

    execution_order = item.get("execution_order")
    if execution_order is not None and (
        not isinstance(execution_order, int) or isinstance(execution_order, bool)
    ):
        errors.append(f"{prefix}.execution_order must be an integer or null")
    node["execution_order"] = execution_order

    for key in ("id", "temp_id", "mcp_server_id", "mcp_command_name"):
        value = item.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f"{prefix}.{key} must be a string or null")
        node[key] = value

    return node


def _normalize_graph_payload(
    payload: dict[str, Any],
) -> tuple[list[dict[str, Any]], list[Any], list[str]]:
    """Validate submitted nodes; edges are checked one by one during the sync."""

    errors: list[str] = []
    raw_nodes = payload.get("nodes", [])
    raw_edges = payload.get("edges", [])

    if not isinstance(raw_nodes, list):
        errors.append("nodes must be a list")
        raw_nodes = []
    if not isinstance(raw_edges, list):
        errors.append("edges must be a list")
        raw_edges = []

    nodes: list[dict[str, Any]] = []
    for index, item in enumerate(raw_nodes, start=1):
        node = _normalize_node(item, index, errors)
        if node is not None:
            nodes.append(node)

    return nodes, raw_edges, errors


@bp.post("/workflows")
@require_token(role="member")
def create_workflow() -> tuple[object, int]:
    payload = request.get_json(silent=True, force=True) or {}
    data, errors = _validate_workflow_payload(payload)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    workflow = Workflow(user_id=get_current_user(), **data)
    db.session.add(workflow)
    db.session.commit()

    return jsonify(serialize_workflow(workflow)), HTTPStatus.CREATED


@bp.get("/workflows")
@require_token()
def list_workflows() -> tuple[object, int]:
    include_templates = request.args.get("include_templates", "").lower() in {"1", "true", "yes"}
    user_id = get_current_user()

    workflows = (
        Workflow.query.filter_by(user_id=user_id).order_by(Workflow.updated_at.desc()).all()
    )
    if include_templates:
        templates = (
            Workflow.query.filter(Workflow.is_template.is_(True))
            .filter(Workflow.user_id != user_id)
            .order_by(Workflow.name.asc())
            .all()
        )
        workflows = [*workflows, *templates]

    return jsonify([serialize_workflow(workflow) for workflow in workflows]), HTTPStatus.OK


@bp.get("/workflows/<workflow_id>")
@require_token()
def get_workflow(workflow_id: str) -> tuple[object, int]:
    workflow = _load_readable_workflow(workflow_id)
    nodes, edges = _load_graph(workflow.id)
    payload = {
        "workflow": serialize_workflow(workflow),
        "nodes": [serialize_node(node) for node in nodes],
        "edges": [serialize_edge(edge) for edge in edges],
    }
    return jsonify(payload), HTTPStatus.OK


@bp.patch("/workflows/<workflow_id>")
@require_token(role="member")
def update_workflow(workflow_id: str) -> tuple[object, int]:
    workflow = _load_owned_workflow(workflow_id)
    payload = request.get_json(silent=True, force=True) or {}

    data, errors = _validate_workflow_payload(payload, partial=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    for key, value in data.items():
        setattr(workflow, key, value)
    db.session.commit()

    return jsonify(serialize_workflow(workflow)), HTTPStatus.OK


@bp.delete("/workflows/<workflow_id>")
@require_token(role="member")
def delete_workflow(workflow_id: str) -> tuple[object, int]:
    workflow = _load_owned_workflow(workflow_id)
    delete_workflow_graph(workflow.id)
    db.session.delete(workflow)
    db.session.commit()
    return "", HTTPStatus.NO_CONTENT


@bp.put("/workflows/<workflow_id>/graph")
@require_token(role="member")
def save_workflow_graph(workflow_id: str) -> tuple[object, int]:
    workflow = _load_owned_workflow(workflow_id)

    if len(request.get_data()) > MAX_GRAPH_BYTES:
        return jsonify({"errors": ["graph exceeds the maximum size"]}), HTTPStatus.BAD_REQUEST

    payload = request.get_json(silent=True, force=True) or {}
    nodes, edges, errors = _normalize_graph_payload(payload)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    try:
        result = sync_workflow_graph(workflow.id, nodes, edges)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    persist_run_log(
        "sync",
        f"workflow {workflow.id} saved with {len(result.nodes)} node(s), "
        f"{len(result.edges)} edge(s), {result.dropped_edges} dropped",
        user_id=workflow.user_id,
    )

    response = {
        "id_map": result.id_map,
        "nodes": [serialize_node(node) for node in result.nodes],
        "edges": [serialize_edge(edge) for edge in result.edges],
        "dropped_edges": result.dropped_edges,
    }
    return jsonify(response), HTTPStatus.OK


@bp.post("/workflows/<workflow_id>/execute")
@require_token(role="member")
@limiter.limit(_execute_rate_limit)
def execute_workflow(workflow_id: str) -> tuple[object, int]:
    workflow = _load_owned_workflow(workflow_id)
    payload = request.get_json(silent=True, force=True) or {}

    input_data = payload.get("input_data")
    parameters = payload.get("parameters")
    if input_data is not None and not isinstance(input_data, dict):
        return jsonify({"error": "input_data must be an object"}), HTTPStatus.BAD_REQUEST
    if parameters is not None and not isinstance(parameters, dict):
        return jsonify({"error": "parameters must be an object"}), HTTPStatus.BAD_REQUEST

    handle = dispatch_execution(
        workflow.id,
        input_data,
        parameters,
        credential=get_session_credential(),
    )

    persist_run_log(
        "dispatch",
        f"workflow {workflow.id} dispatched as execution {handle['execution_id']}",
        user_id=workflow.user_id,
    )
    return jsonify(handle), HTTPStatus.ACCEPTED


@bp.get("/workflows/<workflow_id>/executions")
@require_token()
def list_executions(workflow_id: str) -> tuple[object, int]:
    workflow = _load_owned_workflow(workflow_id)
    executions = list_workflow_executions(workflow.id, workflow.user_id)
    return jsonify([serialize_execution(execution) for execution in executions]), HTTPStatus.OK
