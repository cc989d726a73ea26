"""Contact merge log repository."""

from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.persistence.models.contact_merge_log import ContactMergeLog
from inbox.persistence.repositories.base import BaseRepository


class ContactMergeLogRepository(BaseRepository[ContactMergeLog]):
    """Repository for ContactMergeLog entities."""

    def __init__(self, session: AsyncSession):
        """Initialize merge log repository."""
        super().__init__(ContactMergeLog, session)

    def add_merge_log(
        self,
        tenant_id: str,
        primary_contact_id: int,
        secondary_contact_id: int,
        merged_by: str | None,
        secondary_data_snapshot: dict[str, Any],
        stats: dict[str, int],
    ) -> ContactMergeLog:
        """Stage a merge log entry; persisted with the caller's next commit."""
        log = ContactMergeLog(
            tenant_id=tenant_id,
            primary_contact_id=primary_contact_id,
            secondary_contact_id=secondary_contact_id,
            merged_by=merged_by,
            secondary_data_snapshot=secondary_data_snapshot,
            stats=stats,
        )
        self.session.add(log)
        return log

    async def get_merge_history_for_contact(
        self, tenant_id: str, contact_id: int
    ) -> list[ContactMergeLog]:
        """Get merge logs where the contact survived or was retired, newest first."""
        stmt = (
            select(ContactMergeLog)
            .where(
                ContactMergeLog.tenant_id == tenant_id,
                or_(
                    ContactMergeLog.primary_contact_id == contact_id,
                    ContactMergeLog.secondary_contact_id == contact_id,
                ),
            )
            .order_by(ContactMergeLog.merged_at.desc(), ContactMergeLog.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
