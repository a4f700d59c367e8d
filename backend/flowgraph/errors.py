"""Typed failures raised by the Flowgraph services."""

from __future__ import annotations

from http import HTTPStatus


class FlowgraphError(Exception):
    """Base class for errors rendered as ``{"error": message}`` responses."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(FlowgraphError):
    """Raised when a required endpoint or setting is missing."""

    default_message = "service is not configured"


class MissingCredentialError(FlowgraphError):
    """Raised when no bearer credential is available for a downstream call."""

    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Unable to authenticate user. Please sign in."


class NotFoundError(FlowgraphError):
    status_code = HTTPStatus.NOT_FOUND
    default_message = "not found"


class WorkflowNotFoundError(NotFoundError):
    default_message = "Workflow not found"


class ExecutionNotFoundError(NotFoundError):
    default_message = "Execution not found"


class JobNotFoundError(NotFoundError):
    default_message = "Job not found"


class InvalidStageError(FlowgraphError):
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Invalid stage value"


class EngineError(FlowgraphError):
    """Raised when the execution engine rejects or fails a run request."""

    status_code = HTTPStatus.BAD_GATEWAY
    default_message = "Failed to execute workflow"
