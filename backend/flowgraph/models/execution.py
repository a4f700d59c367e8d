"""Execution record models written by the execution engine."""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from .workflow import new_uuid

EXECUTION_STATUSES = ("pending", "running", "completed", "failed", "cancelled", "skipped")


class WorkflowExecution(db.Model):
    """One run of a workflow graph."""

    __tablename__ = "workflow_executions"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    workflow_id = db.Column(
        db.String(36), db.ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = db.Column(db.String(64), nullable=False, index=True)
    status = db.Column(
        db.Enum(*EXECUTION_STATUSES, name="execution_status"), nullable=False, default="pending"
    )
    input_data = db.Column(db.JSON, nullable=True)
    output_data = db.Column(db.JSON, nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    node_executions = db.relationship(
        "NodeExecution", backref="execution", cascade="all"
    )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<WorkflowExecution {self.id} {self.status}>"


class NodeExecution(db.Model):
    """Execution record of a single node within a run."""

    __tablename__ = "node_executions"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    execution_id = db.Column(
        db.String(36),
        db.ForeignKey("workflow_executions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Not a foreign key: run history outlives graph re-saves.
    node_id = db.Column(db.String(36), nullable=False)
    status = db.Column(
        db.Enum(*EXECUTION_STATUSES, name="node_execution_status"), nullable=False, default="pending"
    )
    input_data = db.Column(db.JSON, nullable=True)
    output_data = db.Column(db.JSON, nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    latency_ms = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<NodeExecution {self.node_id} {self.status}>"
