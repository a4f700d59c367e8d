"""Upload job stage tracking."""

from .stages import HISTORY_LIMIT, derive_stage, is_valid_stage, with_job_stage

__all__ = ["HISTORY_LIMIT", "derive_stage", "is_valid_stage", "with_job_stage"]
