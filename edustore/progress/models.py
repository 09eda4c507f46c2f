"""Database models for course progress tracking.

One record per (user, course) purchase:
- completed_leaves: set of consumed leaf ids
- progress: integer percentage, 0..100
- version: optimistic concurrency counter (``UPDATE ... IF version = ?``)

Records exist only for purchasers; they are created when an order is
approved and are never reset.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from edustore.orders.models import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Progress per user and course
# Partition key: user_id so all records of a user are listed in one read
PROGRESS_RECORDS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.progress_records (
    user_id UUID,
    course_id UUID,
    order_id UUID,
    progress INT,
    completed_leaves SET<UUID>,
    purchase_date TIMESTAMP,
    last_accessed TIMESTAMP,
    version INT,
    PRIMARY KEY ((user_id), course_id)
)
"""

PROGRESS_TABLES_CQL = [
    PROGRESS_RECORDS_TABLE_CQL,
]


# ==============================================================================
# Helper Functions
# ==============================================================================


def calculate_progress(completed: int, total: int) -> int:
    """Calculate integer progress percentage.

    Rounds half up and clamps to 0..100. Leaves deleted after being
    completed can push the raw ratio over 100.
    """
    if total <= 0:
        return 0
    raw = (Decimal(100) * completed / total).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(raw)))


# ==============================================================================
# Entity
# ==============================================================================


@dataclass
class ProgressRecord:
    """Consumption state of one purchased course."""

    user_id: UUID
    course_id: UUID
    order_id: UUID | None = None
    progress: int = 0
    completed_leaves: set[UUID] = field(default_factory=set)
    purchase_date: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_accessed: datetime | None = None
    version: int = 0

    def has_completed(self, leaf_id: UUID) -> bool:
        """Check if a leaf was already consumed."""
        return leaf_id in self.completed_leaves

    @classmethod
    def from_row(cls, row: Any) -> "ProgressRecord":
        """Create instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            course_id=row.course_id,
            order_id=row.order_id,
            progress=row.progress or 0,
            completed_leaves=set(row.completed_leaves or ()),
            purchase_date=ensure_utc_aware(row.purchase_date) or datetime.now(UTC),
            last_accessed=ensure_utc_aware(row.last_accessed),
            version=row.version or 0,
        )
