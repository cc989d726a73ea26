"""Conversation service: locating conversations and appending messages."""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from inbox.core.channels import Channel, parse_channel
from inbox.core.clock import to_naive_utc
from inbox.core.errors import InvalidArgumentError, NotFoundError
from inbox.persistence.models.conversation import (
    DIRECTION_INBOUND,
    DIRECTION_OUTBOUND,
    SENDER_CONTACT,
    SENDER_STAFF,
    Conversation,
    Message,
)
from inbox.persistence.repositories.conversation_repository import ConversationRepository
from inbox.persistence.repositories.message_repository import MessageRepository

logger = logging.getLogger(__name__)

_DIRECTIONS = (DIRECTION_INBOUND, DIRECTION_OUTBOUND)
_SENDER_TYPES = (SENDER_CONTACT, SENDER_STAFF)


class ConversationService:
    """Service for conversation and message management.

    Lookup-then-create is not serialized: two racing webhooks may each
    create a conversation for the same contact. Such duplicates are
    reconciled by the next contact merge, keeping this path cheap.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize conversation service."""
        self.session = session
        self.conversation_repo = ConversationRepository(session)
        self.message_repo = MessageRepository(session)

    async def locate(
        self, tenant_id: str, channel: str | Channel, contact_id: int
    ) -> Conversation:
        """Get the active conversation of a contact on a channel, creating it if absent.

        Args:
            tenant_id: Tenant ID
            channel: Channel name
            contact_id: Contact ID

        Returns:
            Existing or newly created direct conversation
        """
        channel = parse_channel(channel)
        conversation = await self.conversation_repo.find_active_for_contact(
            tenant_id, channel, contact_id
        )
        if conversation:
            return conversation

        conversation = await self.conversation_repo.create_with_participants(
            tenant_id, channel, [contact_id]
        )
        logger.info(
            f"Created {channel.value} conversation {conversation.id} for contact {contact_id}",
            extra={"conversation_id": conversation.id, "contact_id": contact_id},
        )
        return conversation

    async def append_message(
        self,
        tenant_id: str,
        conversation: Conversation,
        sender_type: str,
        sender_id: int | str,
        content: str,
        direction: str,
        timestamp: datetime | None = None,
        status: str = "sent",
        message_type: str = "text",
        external_id: str | None = None,
    ) -> Message:
        """Create a message and advance the conversation's last message and version.

        Raises:
            InvalidArgumentError: If direction or sender type is unknown
            ConflictError: If external_id was already stored
        """
        if direction not in _DIRECTIONS:
            raise InvalidArgumentError(f"Unknown message direction: {direction!r}")
        if sender_type not in _SENDER_TYPES:
            raise InvalidArgumentError(f"Unknown sender type: {sender_type!r}")

        message = await self.message_repo.create(
            tenant_id,
            conversation_id=conversation.id,
            sender_type=sender_type,
            sender_id=str(sender_id),
            content=content,
            direction=direction,
            status=status,
            message_type=message_type,
            external_id=external_id,
            timestamp=to_naive_utc(timestamp),
        )
        await self.conversation_repo.record_appended_message(conversation, message.id)
        return message

    async def get_conversation(
        self, tenant_id: str, conversation_id: int
    ) -> Conversation:
        """Get a conversation by ID.

        Raises:
            NotFoundError: If the conversation does not exist
        """
        conversation = await self.conversation_repo.get_by_id(tenant_id, conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    async def get_conversation_history(
        self, tenant_id: str, conversation_id: int
    ) -> list[Message]:
        """Get conversation messages in chronological order."""
        await self.get_conversation(tenant_id, conversation_id)
        return await self.message_repo.get_by_conversation(tenant_id, conversation_id)

    async def list_for_contact(
        self, tenant_id: str, contact_id: int
    ) -> list[Conversation]:
        """List every conversation a contact participates in, oldest first."""
        return await self.conversation_repo.list_for_contacts(tenant_id, [contact_id])

    async def search_messages(
        self, tenant_id: str, query: str, limit: int = 50
    ) -> list[Message]:
        """Find tenant messages whose content contains the query, ignoring case.

        Raises:
            InvalidArgumentError: If the query is blank
        """
        query = (query or "").strip()
        if not query:
            raise InvalidArgumentError("Search query must not be empty")
        return await self.message_repo.search(tenant_id, query, limit=limit)
