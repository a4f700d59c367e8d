"""Workflow graph persistence."""

from .sync import (
    GraphSyncResult,
    NodeIdIndex,
    delete_workflow_graph,
    is_durable_id,
    sync_workflow_graph,
)

__all__ = [
    "GraphSyncResult",
    "NodeIdIndex",
    "delete_workflow_graph",
    "is_durable_id",
    "sync_workflow_graph",
]
