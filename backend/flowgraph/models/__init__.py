"""Database models for the Flowgraph backend."""

from .auth import ApiToken
from .execution import NodeExecution, WorkflowExecution
from .logs import RunLog
from .upload import ProcessingJob
from .workflow import Workflow, WorkflowEdge, WorkflowNode

__all__ = [
    "ApiToken",
    "Workflow",
    "WorkflowNode",
    "WorkflowEdge",
    "WorkflowExecution",
    "NodeExecution",
    "ProcessingJob",
    "RunLog",
]
