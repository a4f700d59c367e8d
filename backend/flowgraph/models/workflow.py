"""Workflow graph model definitions."""

from __future__ import annotations

import uuid
from datetime import datetime

from ..extensions import db

NODE_TYPES = ("agent", "tool", "data", "condition", "merge", "start", "end")


def new_uuid() -> str:
    return str(uuid.uuid4())


class Workflow(db.Model):
    """A user owned graph of processing nodes."""

    __tablename__ = "workflows"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_template = db.Column(db.Boolean, nullable=False, default=False)
    template_category = db.Column(db.String(120), nullable=True)
    # "metadata" is reserved on declarative models.
    workflow_metadata = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    nodes = db.relationship(
        "WorkflowNode", backref="workflow", cascade="all", passive_deletes=True
    )
    edges = db.relationship(
        "WorkflowEdge", backref="workflow", cascade="all", passive_deletes=True
    )
    executions = db.relationship(
        "WorkflowExecution", backref="workflow", cascade="all"
    )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<Workflow {self.name!r}>"


class WorkflowNode(db.Model):
    """A single node placed on a workflow canvas."""

    __tablename__ = "workflow_nodes"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    workflow_id = db.Column(
        db.String(36), db.ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True
    )
    node_type = db.Column(db.Enum(*NODE_TYPES, name="workflow_node_type"), nullable=False)
    label = db.Column(db.String(255), nullable=False)
    position_x = db.Column(db.Float, nullable=False, default=0)
    position_y = db.Column(db.Float, nullable=False, default=0)
    config = db.Column(db.JSON, nullable=False, default=dict)
    mcp_server_id = db.Column(db.String(255), nullable=True)
    mcp_command_name = db.Column(db.String(255), nullable=True)
    execution_order = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<WorkflowNode {self.node_type}:{self.label!r}>"


class WorkflowEdge(db.Model):
    """A directed connection between two nodes of the same workflow."""

    __tablename__ = "workflow_edges"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    workflow_id = db.Column(
        db.String(36), db.ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source_node_id = db.Column(
        db.String(36), db.ForeignKey("workflow_nodes.id", ondelete="CASCADE"), nullable=False
    )
    target_node_id = db.Column(
        db.String(36), db.ForeignKey("workflow_nodes.id", ondelete="CASCADE"), nullable=False
    )
    condition = db.Column(db.Text, nullable=True)
    data_mapping = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<WorkflowEdge {self.source_node_id} -> {self.target_node_id}>"
