"""JSON representations shared by the API blueprints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ..jobs.stages import derive_stage
from ..models.execution import NodeExecution, WorkflowExecution
from ..models.upload import ProcessingJob
from ..models.workflow import Workflow, WorkflowEdge, WorkflowNode


def isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat() + "Z"


def serialize_workflow(workflow: Workflow) -> dict[str, Any]:
    return {
        "id": workflow.id,
        "user_id": workflow.user_id,
        "name": workflow.name,
        "description": workflow.description,
        "is_template": workflow.is_template,
        "template_category": workflow.template_category,
        "metadata": workflow.workflow_metadata,
        "created_at": isoformat(workflow.created_at),
        "updated_at": isoformat(workflow.updated_at),
    }


def serialize_node(node: WorkflowNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "workflow_id": node.workflow_id,
        "node_type": node.node_type,
        "label": node.label,
        "position_x": node.position_x,
        "position_y": node.position_y,
        "config": node.config or {},
        "mcp_server_id": node.mcp_server_id,
        "mcp_command_name": node.mcp_command_name,
        "execution_order": node.execution_order,
        "created_at": isoformat(node.created_at),
        "updated_at": isoformat(node.updated_at),
    }


def serialize_edge(edge: WorkflowEdge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "workflow_id": edge.workflow_id,
        "source_node_id": edge.source_node_id,
        "target_node_id": edge.target_node_id,
        "condition": edge.condition,
        "data_mapping": edge.data_mapping,
        "created_at": isoformat(edge.created_at),
    }


def serialize_execution(execution: WorkflowExecution) -> dict[str, Any]:
    return {
        "id": execution.id,
        "workflow_id": execution.workflow_id,
        "user_id": execution.user_id,
        "status": execution.status,
        "input_data": execution.input_data,
        "output_data": execution.output_data,
        "error_message": execution.error_message,
        "started_at": isoformat(execution.started_at),
        "completed_at": isoformat(execution.completed_at),
        "created_at": isoformat(execution.created_at),
    }


def serialize_node_execution(node_execution: NodeExecution) -> dict[str, Any]:
    return {
        "id": node_execution.id,
        "execution_id": node_execution.execution_id,
        "node_id": node_execution.node_id,
        "status": node_execution.status,
        "input_data": node_execution.input_data,
        "output_data": node_execution.output_data,
        "error_message": node_execution.error_message,
        "started_at": isoformat(node_execution.started_at),
        "completed_at": isoformat(node_execution.completed_at),
        "latency_ms": node_execution.latency_ms,
        "created_at": isoformat(node_execution.created_at),
    }


def serialize_job(job: ProcessingJob) -> dict[str, Any]:
    """Serialize a processing job with its stage fields decoded from metadata."""

    payload: dict[str, Any] = {
        "id": job.id,
        "file_name": job.file_name,
        "status": job.status,
        "message": job.message,
        "error": job.error,
        "result_text": job.result_text,
        "updated_at": isoformat(job.updated_at),
        "vision_summary": job.vision_summary,
        "vision_provider": job.vision_provider,
        "vision_metadata": job.vision_metadata,
    }
    payload.update(derive_stage(job.job_metadata))
    return payload
