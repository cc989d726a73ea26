"""Response models shared by the contact and conversation endpoints."""

from typing import Any

from pydantic import BaseModel

from inbox.persistence.models.contact import Contact
from inbox.persistence.models.conversation import Conversation, Message


class ContactResponse(BaseModel):
    """Contact response model."""

    id: int
    tenant_id: str
    name: str
    email: str | None
    status: str
    whatsapp_phone_number: str | None
    instagram_id: str | None
    messenger_id: str | None
    crm_partner_id: str | None
    crm_lead_id: str | None
    crm_stage: str | None
    attributes: dict[str, Any] | None
    merged_into_contact_id: int | None
    created_at: str


class ConversationResponse(BaseModel):
    """Conversation response model."""

    id: int
    channel: str
    type: str
    status: str
    participants: list[int]
    last_message_id: int | None
    version: int
    created_at: str


class MessageResponse(BaseModel):
    """Message response model."""

    id: int
    conversation_id: int
    sender_type: str
    sender_id: str
    content: str
    direction: str
    status: str
    timestamp: str


def contact_to_response(contact: Contact) -> ContactResponse:
    """Convert a contact model to response."""
    return ContactResponse(
        id=contact.id,
        tenant_id=contact.tenant_id,
        name=contact.name,
        email=contact.email,
        status=contact.status,
        whatsapp_phone_number=contact.whatsapp_phone_number,
        instagram_id=contact.instagram_id,
        messenger_id=contact.messenger_id,
        crm_partner_id=contact.crm_partner_id,
        crm_lead_id=contact.crm_lead_id,
        crm_stage=contact.crm_stage,
        attributes=contact.attributes,
        merged_into_contact_id=contact.merged_into_contact_id,
        created_at=contact.created_at.isoformat() if contact.created_at else "",
    )


def conversation_to_response(conversation: Conversation) -> ConversationResponse:
    """Convert a conversation model to response."""
    return ConversationResponse(
        id=conversation.id,
        channel=conversation.channel,
        type=conversation.type,
        status=conversation.status,
        participants=conversation.participant_ids,
        last_message_id=conversation.last_message_id,
        version=conversation.version,
        created_at=conversation.created_at.isoformat() if conversation.created_at else "",
    )


def message_to_response(message: Message) -> MessageResponse:
    """Convert a message model to response."""
    return MessageResponse(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_type=message.sender_type,
        sender_id=message.sender_id,
        content=message.content,
        direction=message.direction,
        status=message.status,
        timestamp=message.timestamp.isoformat(),
    )
