# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Course progress tracking service layer.

Business logic for:
- Idempotent progress record creation on purchase
- Leaf consumption with optimistic versioned writes
- Progress queries
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from edustore.catalog.models import ItemType, get_capabilities
from edustore.core.errors import (
    NotEntitledError,
    NotFoundError,
    ValidationError,
    WriteConflictError,
)
from edustore.core.logging import get_logger

from .models import ProgressRecord, calculate_progress
from .schemas import ConsumptionResponse, CourseProgressResponse, ProgressSummary


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from edustore.catalog.service import CatalogService
    from edustore.entitlements.service import EntitlementService


logger = get_logger(__name__)


class ProgressService:
    """Service for per-user course progress."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        catalog: "CatalogService",
        entitlements: "EntitlementService",
        max_write_attempts: int = 5,
    ):
        """Initialize with Cassandra session and collaborators."""
        self.session = session
        self.keyspace = keyspace
        self.catalog = catalog
        self.entitlements = entitlements
        self.max_write_attempts = max_write_attempts
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_record = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.progress_records
            WHERE user_id = ? AND course_id = ?
        """)

        self._get_user_records = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.progress_records
            WHERE user_id = ?
        """)

        self._insert_record = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.progress_records
            (user_id, course_id, order_id, progress, completed_leaves,
             purchase_date, last_accessed, version)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._update_record = self.session.prepare(f"""
            UPDATE {self.keyspace}.progress_records
            SET completed_leaves = ?, progress = ?, last_accessed = ?, version = ?
            WHERE user_id = ? AND course_id = ?
            IF version = ?
        """)

    # ==========================================================================
    # Records
    # ==========================================================================

    async def get_record(self, user_id: UUID, course_id: UUID) -> ProgressRecord | None:
        """Get the progress record of a (user, course) pair."""
        result = await self.session.aexecute(self._get_record, [user_id, course_id])
        row = result.one()
        return ProgressRecord.from_row(row) if row else None

    async def initialize_progress(
        self,
        user_id: UUID,
        course_id: UUID,
        order_id: UUID | None = None,
    ) -> ProgressRecord:
        """Create the progress record of a purchase.

        Idempotent: an existing record is returned untouched, never reset.
        """
        now = datetime.now(UTC)
        record = ProgressRecord(
            user_id=user_id,
            course_id=course_id,
            order_id=order_id,
            purchase_date=now,
        )

        result = await self.session.aexecute(
            self._insert_record,
            [user_id, course_id, order_id, 0, set(), now, None, 0],
        )

        if result.was_applied:
            logger.info(
                "progress_initialized",
                user_id=str(user_id),
                course_id=str(course_id),
                order_id=str(order_id) if order_id else None,
            )
            return record

        existing = await self.get_record(user_id, course_id)
        return existing or record

    # ==========================================================================
    # Consumption
    # ==========================================================================

    async def record_consumption(
        self,
        user_id: UUID,
        course_id: UUID,
        leaf_id: UUID,
        item_type: ItemType = ItemType.COURSE,
    ) -> ConsumptionResponse:
        """Mark a leaf as consumed and recompute progress.

        Raises:
            ValidationError: If the item type does not track progress
            NotFoundError: If the course or leaf does not exist
            NotEntitledError: If the caller has no access to the leaf
            WriteConflictError: If concurrent writers keep winning
        """
        if not get_capabilities(item_type).tracks_progress:
            raise ValidationError(f"{item_type.value} does not track progress")

        item = await self.catalog.get_item(item_type, course_id)
        if not item:
            raise NotFoundError("Course not found")

        leaf = await self.catalog.get_leaf(course_id, leaf_id)
        if not leaf or not item.accepts(leaf):
            raise NotFoundError("Content not found")

        # Write path: always a fresh ledger read
        entitled = await self.entitlements.has_access(user_id, item, use_cache=False)
        total = await self.catalog.count_active_leaves(course_id, item.capabilities.leaf_kinds)

        if not entitled:
            if not leaf.is_open:
                raise NotEntitledError
            return ConsumptionResponse(
                course_id=course_id,
                leaf_id=leaf_id,
                recorded=False,
                total_leaves=total,
            )

        for attempt in range(1, self.max_write_attempts + 1):
            record = await self.get_record(user_id, course_id)
            if record is None:
                slot = await self.entitlements.get_slot(user_id, item_type, course_id)
                record = await self.initialize_progress(
                    user_id, course_id, order_id=slot.order_id if slot else None
                )

            if record.has_completed(leaf_id):
                return ConsumptionResponse(
                    course_id=course_id,
                    leaf_id=leaf_id,
                    recorded=True,
                    progress=record.progress,
                    completed_count=len(record.completed_leaves),
                    total_leaves=total,
                )

            completed = record.completed_leaves | {leaf_id}
            progress = calculate_progress(len(completed), total)
            now = datetime.now(UTC)

            result = await self.session.aexecute(
                self._update_record,
                [
                    completed,
                    progress,
                    now,
                    record.version + 1,
                    user_id,
                    course_id,
                    record.version,
                ],
            )

            if result.was_applied:
                logger.info(
                    "leaf_consumed",
                    user_id=str(user_id),
                    course_id=str(course_id),
                    leaf_id=str(leaf_id),
                    progress=progress,
                )
                return ConsumptionResponse(
                    course_id=course_id,
                    leaf_id=leaf_id,
                    recorded=True,
                    progress=progress,
                    completed_count=len(completed),
                    total_leaves=total,
                )

            logger.debug(
                "progress_write_conflict",
                user_id=str(user_id),
                course_id=str(course_id),
                attempt=attempt,
            )

        logger.warning(
            "progress_write_abandoned",
            user_id=str(user_id),
            course_id=str(course_id),
            attempts=self.max_write_attempts,
        )
        raise WriteConflictError

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_progress(self, user_id: UUID, course_id: UUID) -> CourseProgressResponse:
        """Get progress detail of a purchased course.

        Raises:
            NotFoundError: If the course or the record does not exist
            NotEntitledError: If the caller has no access to the course
        """
        item = await self.catalog.get_item(ItemType.COURSE, course_id)
        if not item:
            raise NotFoundError("Course not found")

        if not await self.entitlements.has_access(user_id, item):
            raise NotEntitledError

        record = await self.get_record(user_id, course_id)
        if not record:
            raise NotFoundError("Progress record not found")

        total = await self.catalog.count_active_leaves(course_id, item.capabilities.leaf_kinds)
        return CourseProgressResponse.from_record(record, total)

    async def list_user_progress(self, user_id: UUID) -> list[ProgressSummary]:
        """List progress of every course the user purchased."""
        rows = await self.session.aexecute(self._get_user_records, [user_id])
        return [ProgressSummary.from_record(ProgressRecord.from_row(row)) for row in rows]
