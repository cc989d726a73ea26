"""Conversation repository."""

from typing import Iterable

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.core.channels import Channel
from inbox.persistence.models.conversation import (
    CONVERSATION_STATUS_ACTIVE,
    Conversation,
    ConversationParticipant,
)
from inbox.persistence.repositories.base import BaseRepository


def ordered_unique(ids: Iterable[int]) -> list[int]:
    """Drop repeated ids, keeping first occurrence order."""
    seen: set[int] = set()
    result = []
    for id_ in ids:
        if id_ not in seen:
            seen.add(id_)
            result.append(id_)
    return result


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for Conversation entities.

    Participants are an ordered set: every write goes through
    ``set_participants`` which de-duplicates and replaces the whole list.
    """

    def __init__(self, session: AsyncSession):
        """Initialize conversation repository."""
        super().__init__(Conversation, session)

    async def create_with_participants(
        self,
        tenant_id: str,
        channel: Channel,
        participant_ids: list[int],
        type: str = "direct",
    ) -> Conversation:
        """Create a conversation with its initial participants."""
        conversation = Conversation(
            tenant_id=tenant_id,
            channel=channel.value,
            type=type,
            status=CONVERSATION_STATUS_ACTIVE,
            version=0,
            participants=[
                ConversationParticipant(contact_id=contact_id, position=position)
                for position, contact_id in enumerate(ordered_unique(participant_ids))
            ],
        )
        self.session.add(conversation)
        await self.session.commit()
        return conversation

    async def find_active_for_contact(
        self, tenant_id: str, channel: Channel, contact_id: int
    ) -> Conversation | None:
        """Get the oldest active conversation on a channel that includes a contact."""
        stmt = (
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(
                Conversation.tenant_id == tenant_id,
                Conversation.channel == channel.value,
                Conversation.status == CONVERSATION_STATUS_ACTIVE,
                ConversationParticipant.contact_id == contact_id,
            )
            .order_by(Conversation.created_at, Conversation.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_contacts(
        self, tenant_id: str, contact_ids: list[int]
    ) -> list[Conversation]:
        """List conversations (any channel, any status) including any of the contacts."""
        if not contact_ids:
            return []
        member = (
            select(ConversationParticipant.conversation_id)
            .where(ConversationParticipant.contact_id.in_(contact_ids))
        )
        stmt = (
            select(Conversation)
            .where(
                Conversation.tenant_id == tenant_id,
                Conversation.id.in_(member),
            )
            .order_by(Conversation.created_at, Conversation.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_participants(
        self, conversation: Conversation, participant_ids: list[int]
    ) -> list[int]:
        """Replace the full participant list (de-duplicated), flush, reload.

        Returns:
            The participant ids actually written
        """
        ids = ordered_unique(participant_ids)
        await self.session.execute(
            delete(ConversationParticipant)
            .where(ConversationParticipant.conversation_id == conversation.id)
            .execution_options(synchronize_session="fetch")
        )
        if ids:
            await self.session.execute(
                insert(ConversationParticipant),
                [
                    {"conversation_id": conversation.id, "contact_id": contact_id, "position": position}
                    for position, contact_id in enumerate(ids)
                ],
            )
        await self.session.flush()
        await self.session.refresh(conversation, ["participants"])
        return ids

    async def replace_participant(
        self, conversation: Conversation, old_id: int, new_id: int
    ) -> bool:
        """Swap one participant for another: read, map, write back.

        Returns:
            True if the conversation contained ``old_id``
        """
        current = conversation.participant_ids
        if old_id not in current:
            return False
        await self.set_participants(
            conversation, [new_id if pid == old_id else pid for pid in current]
        )
        return True

    async def record_appended_message(
        self, conversation: Conversation, message_id: int
    ) -> None:
        """Point last_message at a new message and bump the version atomically."""
        await self.session.execute(
            update(Conversation)
            .where(Conversation.id == conversation.id)
            .values(last_message_id=message_id, version=Conversation.version + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        await self.session.refresh(conversation)

    async def bump_version(
        self, conversation: Conversation, last_message_id: int | None
    ) -> None:
        """Invalidate caches of a conversation whose messages changed (flush only)."""
        await self.session.execute(
            update(Conversation)
            .where(Conversation.id == conversation.id)
            .values(last_message_id=last_message_id, version=Conversation.version + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        await self.session.refresh(conversation)

    async def delete_many(self, tenant_id: str, conversation_ids: list[int]) -> int:
        """Delete conversations and their participant rows (flush only).

        Returns:
            Number of conversations deleted
        """
        if not conversation_ids:
            return 0
        await self.session.execute(
            delete(ConversationParticipant)
            .where(ConversationParticipant.conversation_id.in_(conversation_ids))
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(
            delete(Conversation)
            .where(
                Conversation.tenant_id == tenant_id,
                Conversation.id.in_(conversation_ids),
            )
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        return result.rowcount
