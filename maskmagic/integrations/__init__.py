"""Integration check helpers."""

from .checks import (
    IntegrationCheckResult,
    check_edit_backend,
    check_openai,
    run_all_checks,
)

__all__ = [
    "IntegrationCheckResult",
    "check_edit_backend",
    "check_openai",
    "run_all_checks",
]
