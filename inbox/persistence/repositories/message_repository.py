"""Message repository."""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.persistence.models.conversation import SENDER_CONTACT, Message
from inbox.persistence.repositories.base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for Message entities."""

    def __init__(self, session: AsyncSession):
        """Initialize message repository."""
        super().__init__(Message, session)

    async def get_by_conversation(
        self, tenant_id: str, conversation_id: int
    ) -> list[Message]:
        """Get all messages for a conversation in chronological order."""
        stmt = (
            select(Message)
            .where(
                Message.tenant_id == tenant_id,
                Message.conversation_id == conversation_id,
            )
            .order_by(Message.timestamp, Message.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(
        self, tenant_id: str, query: str, limit: int = 50
    ) -> list[Message]:
        """Case-insensitive substring search over message content, newest first."""
        pattern = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        stmt = (
            select(Message)
            .where(
                Message.tenant_id == tenant_id,
                Message.content.ilike(f"%{pattern}%", escape="\\"),
            )
            .order_by(Message.timestamp.desc(), Message.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_external_id(
        self, tenant_id: str, external_id: str
    ) -> Message | None:
        """Get message by provider message id (for webhook redelivery)."""
        stmt = select(Message).where(
            Message.tenant_id == tenant_id,
            Message.external_id == external_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest(self, tenant_id: str, conversation_id: int) -> Message | None:
        """Get the most recent message of a conversation."""
        stmt = (
            select(Message)
            .where(
                Message.tenant_id == tenant_id,
                Message.conversation_id == conversation_id,
            )
            .order_by(Message.timestamp.desc(), Message.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_by_conversation(
        self, tenant_id: str, conversation_ids: list[int]
    ) -> dict[int, int]:
        """Count messages per conversation id (missing ids count as zero)."""
        counts = {conversation_id: 0 for conversation_id in conversation_ids}
        if not conversation_ids:
            return counts
        stmt = (
            select(Message.conversation_id, func.count(Message.id))
            .where(
                Message.tenant_id == tenant_id,
                Message.conversation_id.in_(conversation_ids),
            )
            .group_by(Message.conversation_id)
        )
        result = await self.session.execute(stmt)
        for conversation_id, count in result.all():
            counts[conversation_id] = count
        return counts

    async def reassign_conversation(
        self, tenant_id: str, from_conversation_id: int, to_conversation_id: int
    ) -> int:
        """Move every message of one conversation into another (flush only).

        Content, timestamp and sender are left untouched.

        Returns:
            Number of messages moved
        """
        result = await self.session.execute(
            update(Message)
            .where(
                Message.tenant_id == tenant_id,
                Message.conversation_id == from_conversation_id,
            )
            .values(conversation_id=to_conversation_id)
        )
        await self.session.flush()
        return result.rowcount

    async def reassign_contact_sender(
        self, tenant_id: str, from_contact_id: int, to_contact_id: int
    ) -> int:
        """Re-attribute messages sent by one contact to another (flush only).

        Staff-sent messages are never touched.

        Returns:
            Number of messages updated
        """
        result = await self.session.execute(
            update(Message)
            .where(
                Message.tenant_id == tenant_id,
                Message.sender_type == SENDER_CONTACT,
                Message.sender_id == str(from_contact_id),
            )
            .values(sender_id=str(to_contact_id))
        )
        await self.session.flush()
        return result.rowcount
