"""Enumerations describing edit pipeline stages."""

from enum import Enum


class PipelineState(str, Enum):
    """Finite states an edit invocation moves through."""

    IDLE = "idle"
    PREPARING = "preparing"
    MASK_GENERATING = "mask_generating"
    BUDGET_FITTING = "budget_fitting"
    SUBMITTING = "submitting"
    DOWNLOADING = "downloading"
    ORIENTATION_FIXING = "orientation_fixing"
    DONE = "done"
    FAILED = "failed"
