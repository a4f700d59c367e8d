"""Stage view over the generic metadata bag of a processing job.

The ingestion worker records stage transitions in the job metadata under
``job_stage`` and ``job_stage_history`` instead of dedicated columns.
``derive_stage`` decodes that bag field by field and drops anything it does
not recognise; ``with_job_stage`` is the writing side used by the uploads
API.
"""
from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from numbers import Real
from typing import Any

from ..errors import InvalidStageError
from ..models.upload import JOB_STAGES

HISTORY_LIMIT = 25

STAGE_KEY = "job_stage"
HISTORY_KEY = "job_stage_history"
UPDATED_AT_KEY = "job_stage_updated_at"


def is_valid_stage(value: Any) -> bool:
    return isinstance(value, str) and value in JOB_STAGES


def _decode_history_entry(entry: Any) -> dict[str, str] | None:
    if not isinstance(entry, Mapping):
        return None
    stage = entry.get("stage")
    at = entry.get("at")
    if not is_valid_stage(stage) or not isinstance(at, str):
        return None
    return {"stage": stage, "at": at}


def _decode_history(value: Any) -> list[dict[str, str]]:
    if not isinstance(value, list):
        return []
    decoded = (_decode_history_entry(entry) for entry in value)
    return [entry for entry in decoded if entry is not None]


def _decode_timestamp(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _decode_content_length(value: Any) -> int | float | None:
    # bool is a subclass of int but never a length.
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    return value


def derive_stage(metadata: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return the stage fields that can be validated from ``metadata``.

    Keys are only present when their value passed validation, so an empty
    history is reported as no history at all.
    """

    if not isinstance(metadata, Mapping):
        return {}

    derived: dict[str, Any] = {}

    stage = metadata.get(STAGE_KEY)
    if is_valid_stage(stage):
        derived["stage"] = stage

    history = _decode_history(metadata.get(HISTORY_KEY))
    if history:
        derived["stage_history"] = history

    injected_at = _decode_timestamp(metadata.get("injected_at"))
    if injected_at is not None:
        derived["injected_at"] = injected_at

    extracted_at = _decode_timestamp(metadata.get("extracted_at"))
    if extracted_at is not None:
        derived["extracted_at"] = extracted_at

    content_length = _decode_content_length(metadata.get("content_length"))
    if content_length is not None:
        derived["content_length"] = content_length

    return derived


def _timestamp(now: datetime | None) -> str:
    moment = now or datetime.now(timezone.utc)
    return moment.isoformat().replace("+00:00", "Z")


def with_job_stage(
    metadata: Mapping[str, Any] | None,
    stage: str,
    *,
    now: datetime | None = None,
    extra: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return a copy of ``metadata`` moved to ``stage``.

    Re-asserting the current stage keeps the history unchanged; otherwise a
    new entry is appended and only the latest ``HISTORY_LIMIT`` are kept.
    """

    if not is_valid_stage(stage):
        raise InvalidStageError()

    base: dict[str, Any] = dict(metadata) if isinstance(metadata, Mapping) else {}
    history = _decode_history(base.get(HISTORY_KEY))
    timestamp = _timestamp(now)

    if not history or history[-1]["stage"] != stage:
        history = [*history, {"stage": stage, "at": timestamp}][-HISTORY_LIMIT:]

    base.update(extra or {})
    base[STAGE_KEY] = stage
    base[HISTORY_KEY] = history
    base[UPDATED_AT_KEY] = timestamp
    if stage == "uploaded":
        base["uploaded_at"] = timestamp
    return base
