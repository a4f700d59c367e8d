"""Run dispatch and progress tracking."""

from .dispatcher import dispatch_execution
from .tracker import ExecutionProgress, get_execution_progress, list_workflow_executions

__all__ = [
    "ExecutionProgress",
    "dispatch_execution",
    "get_execution_progress",
    "list_workflow_executions",
]
