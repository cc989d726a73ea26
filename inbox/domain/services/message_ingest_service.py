"""Inbound and outbound message recording for channel adapters."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from inbox.core.channels import Channel
from inbox.core.clock import to_naive_utc
from inbox.core.errors import ConflictError
from inbox.domain.services.conversation_service import ConversationService
from inbox.domain.services.identity_resolver import IdentityResolver, NameFetcher
from inbox.persistence.models.contact import Contact
from inbox.persistence.models.conversation import (
    DIRECTION_INBOUND,
    DIRECTION_OUTBOUND,
    SENDER_CONTACT,
    SENDER_STAFF,
    Conversation,
    Message,
)
from inbox.persistence.repositories.contact_repository import ContactRepository
from inbox.persistence.repositories.message_repository import MessageRepository

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Records touched by one inbound message."""

    contact: Contact
    conversation: Conversation
    message: Message
    duplicate: bool = False


class MessageIngestService:
    """Runs resolve -> locate -> append for messages from channel adapters."""

    def __init__(
        self, session: AsyncSession, name_fetcher: NameFetcher | None = None
    ) -> None:
        """Initialize ingest service."""
        self.session = session
        self.identity_resolver = IdentityResolver(session, name_fetcher=name_fetcher)
        self.conversation_service = ConversationService(session)
        self.contact_repo = ContactRepository(session)
        self.message_repo = MessageRepository(session)

    async def ingest_inbound(
        self,
        tenant_id: str,
        channel: str | Channel,
        raw_identifier: str,
        content: str,
        timestamp: datetime | None = None,
        name_hint: str | None = None,
        external_id: str | None = None,
        message_type: str = "text",
    ) -> IngestResult:
        """Store an inbound message from a platform sender.

        Args:
            tenant_id: Tenant ID
            channel: Channel the message arrived on
            raw_identifier: Provider sender id
            content: Message text
            timestamp: Provider timestamp, aware values stored as UTC (defaults to now)
            name_hint: Sender display name from the payload
            external_id: Provider message id; a repeat returns the stored message
            message_type: text, image, file or template

        Returns:
            IngestResult with contact, conversation and message
        """
        if external_id:
            existing = await self._find_delivered(tenant_id, external_id)
            if existing:
                return existing

        contact = await self.identity_resolver.resolve(
            tenant_id, channel, raw_identifier, name_hint=name_hint
        )
        conversation = await self.conversation_service.locate(tenant_id, channel, contact.id)
        timestamp = to_naive_utc(timestamp)

        try:
            message = await self.conversation_service.append_message(
                tenant_id,
                conversation,
                sender_type=SENDER_CONTACT,
                sender_id=contact.id,
                content=content,
                direction=DIRECTION_INBOUND,
                timestamp=timestamp,
                status="sent",
                message_type=message_type,
                external_id=external_id,
            )
        except ConflictError:
            # Same provider message delivered twice concurrently
            existing = await self._find_delivered(tenant_id, external_id) if external_id else None
            if existing is None:
                raise
            return existing

        await self.contact_repo.touch_last_interaction(contact, timestamp)
        logger.info(
            f"Stored inbound message {message.id} in conversation {conversation.id}",
            extra={"message_id": message.id, "conversation_id": conversation.id},
        )
        return IngestResult(contact=contact, conversation=conversation, message=message)

    async def record_outbound(
        self,
        tenant_id: str,
        conversation_id: int,
        content: str,
        staff_id: str,
        message_type: str = "text",
    ) -> Message:
        """Store an outbound message written by a staff member (delivery happens elsewhere)."""
        conversation = await self.conversation_service.get_conversation(tenant_id, conversation_id)
        return await self.conversation_service.append_message(
            tenant_id,
            conversation,
            sender_type=SENDER_STAFF,
            sender_id=staff_id,
            content=content,
            direction=DIRECTION_OUTBOUND,
            status="pending",
            message_type=message_type,
        )

    async def _find_delivered(self, tenant_id: str, external_id: str) -> IngestResult | None:
        """Rebuild the result of an already stored provider message."""
        message = await self.message_repo.get_by_external_id(tenant_id, external_id)
        if message is None:
            return None
        conversation = await self.conversation_service.get_conversation(
            tenant_id, message.conversation_id
        )
        contact = None
        if message.sender_type == SENDER_CONTACT:
            contact = await self.contact_repo.get_by_id_any_status(tenant_id, int(message.sender_id))
        logger.info(f"Duplicate delivery of provider message, returning message {message.id}")
        return IngestResult(contact=contact, conversation=conversation, message=message, duplicate=True)
