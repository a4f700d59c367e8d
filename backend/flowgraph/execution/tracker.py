"""Aggregate progress of a workflow run from its node execution rows."""
from __future__ import annotations

from dataclasses import dataclass

from ..errors import ExecutionNotFoundError
from ..models.execution import NodeExecution, WorkflowExecution


@dataclass
class ExecutionProgress:
    execution: WorkflowExecution
    node_executions: list[NodeExecution]

    @property
    def total_steps(self) -> int:
        return len(self.node_executions)

    @property
    def current_step(self) -> int:
        return sum(1 for node_execution in self.node_executions if node_execution.status == "completed")

    @property
    def progress(self) -> int:
        return compute_progress(self.current_step, self.total_steps)


def compute_progress(current_step: int, total_steps: int) -> int:
    """Return the completion percentage rounded half up, 0 for a run without steps."""

    if total_steps <= 0:
        return 0
    return (current_step * 200 + total_steps) // (2 * total_steps)


def get_execution_progress(execution_id: str, caller_id: str) -> ExecutionProgress:
    """Load a run owned by ``caller_id`` together with its node executions.

    Missing runs and runs owned by someone else raise the same error.
    """

    execution = WorkflowExecution.query.filter_by(id=execution_id, user_id=caller_id).first()
    if execution is None:
        raise ExecutionNotFoundError()

    node_executions = (
        NodeExecution.query.filter_by(execution_id=execution.id)
        .order_by(NodeExecution.started_at.asc(), NodeExecution.created_at.asc())
        .all()
    )
    return ExecutionProgress(execution=execution, node_executions=node_executions)


def list_workflow_executions(workflow_id: str, caller_id: str) -> list[WorkflowExecution]:
    return (
        WorkflowExecution.query.filter_by(workflow_id=workflow_id, user_id=caller_id)
        .order_by(WorkflowExecution.created_at.desc())
        .all()
    )
