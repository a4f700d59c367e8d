"""Submit run requests to the external execution engine."""
from __future__ import annotations

from typing import Any

import requests
from flask import current_app

from ..errors import ConfigurationError, EngineError, MissingCredentialError

EXECUTE_PATH = "workflow-execute"


def _engine_url() -> str:
    base_url = (current_app.config.get("EXECUTION_ENGINE_URL") or "").strip()
    if not base_url:
        raise ConfigurationError("Execution engine URL is not configured")
    return f"{base_url.rstrip('/')}/{EXECUTE_PATH}"


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return EngineError.default_message
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return EngineError.default_message


def dispatch_execution(
    workflow_id: str,
    input_data: dict[str, Any] | None = None,
    parameters: dict[str, Any] | None = None,
    *,
    credential: str | None,
) -> dict[str, Any]:
    """Ask the engine to start a run and return its handle.

    The engine answers before the run finishes; progress is polled separately.
    """

    if not credential:
        raise MissingCredentialError()
    url = _engine_url()

    payload: dict[str, Any] = {"workflow_id": workflow_id}
    if input_data is not None:
        payload["input_data"] = input_data
    if parameters is not None:
        payload["parameters"] = parameters

    try:
        response = requests.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {credential}"},
            timeout=current_app.config.get("EXECUTION_ENGINE_TIMEOUT"),
        )
    except requests.RequestException as exc:
        current_app.logger.warning("Execution engine request failed: %s", exc)
        raise EngineError(str(exc) or EngineError.default_message) from exc

    if not response.ok:
        message = _error_message(response)
        current_app.logger.warning(
            "Execution engine rejected workflow %s with %s: %s",
            workflow_id,
            response.status_code,
            message,
        )
        raise EngineError(message)

    try:
        body = response.json()
    except ValueError as exc:
        raise EngineError("Execution engine returned an invalid response") from exc
    if not isinstance(body, dict) or not body.get("execution_id"):
        raise EngineError("Execution engine returned an invalid response")

    return {
        "execution_id": body["execution_id"],
        "status": body.get("status"),
        "workflow_id": body.get("workflow_id", workflow_id),
    }
