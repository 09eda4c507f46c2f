"""Course progress tracking module."""

from .models import PROGRESS_TABLES_CQL, ProgressRecord, calculate_progress
from .service import ProgressService


__all__ = [
    "PROGRESS_TABLES_CQL",
    "ProgressRecord",
    "ProgressService",
    "calculate_progress",
]
