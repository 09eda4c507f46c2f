"""Pydantic schemas for course progress tracking.

Request and response models for:
- Leaf consumption
- Progress queries
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import ProgressRecord


class RecordConsumptionRequest(BaseModel):
    """Request to mark a leaf as consumed."""

    leaf_id: UUID = Field(..., description="Leaf UUID")


class ConsumptionResponse(BaseModel):
    """Outcome of a consumption.

    ``recorded`` is False when a non-purchaser opened a free or preview
    leaf; nothing is stored in that case and ``progress`` is None.
    """

    course_id: UUID
    leaf_id: UUID
    recorded: bool
    progress: int | None = Field(None, ge=0, le=100, description="0-100 percentage")
    completed_count: int = 0
    total_leaves: int = 0


class CourseProgressResponse(BaseModel):
    """Progress of one purchased course."""

    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    order_id: UUID | None = None
    progress: int = Field(ge=0, le=100, description="0-100 percentage")
    completed_leaves: list[UUID]
    completed_count: int
    total_leaves: int
    purchase_date: datetime
    last_accessed: datetime | None = None

    @classmethod
    def from_record(
        cls, record: ProgressRecord, total_leaves: int
    ) -> "CourseProgressResponse":
        """Create response from ProgressRecord entity."""
        return cls(
            course_id=record.course_id,
            order_id=record.order_id,
            progress=record.progress,
            completed_leaves=sorted(record.completed_leaves, key=str),
            completed_count=len(record.completed_leaves),
            total_leaves=total_leaves,
            purchase_date=record.purchase_date,
            last_accessed=record.last_accessed,
        )


class ProgressSummary(BaseModel):
    """Progress list entry."""

    course_id: UUID
    progress: int
    completed_count: int
    purchase_date: datetime
    last_accessed: datetime | None = None

    @classmethod
    def from_record(cls, record: ProgressRecord) -> "ProgressSummary":
        """Create summary from ProgressRecord entity."""
        return cls(
            course_id=record.course_id,
            progress=record.progress,
            completed_count=len(record.completed_leaves),
            purchase_date=record.purchase_date,
            last_accessed=record.last_accessed,
        )


class ProgressListResponse(BaseModel):
    """All progress records of a user."""

    items: list[ProgressSummary]
    total: int
