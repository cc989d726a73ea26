"""Conversation, participant and Message models."""

from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from inbox.persistence.database import Base

CONVERSATION_STATUS_ACTIVE = "active"
CONVERSATION_STATUS_ARCHIVED = "archived"

SENDER_CONTACT = "contact"
SENDER_STAFF = "staff"

DIRECTION_INBOUND = "inbound"
DIRECTION_OUTBOUND = "outbound"


class Conversation(Base):
    """Thread between the tenant and its participants on one channel."""

    __tablename__ = "conversations"
    __table_args__ = (
        Index("ix_conversations_tenant_channel_status", "tenant_id", "channel", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    channel = Column(String(20), nullable=False)  # whatsapp, instagram, messenger
    type = Column(String(20), nullable=False, default="direct")  # direct, group, bot
    status = Column(String(20), nullable=False, default=CONVERSATION_STATUS_ACTIVE)
    last_message_id = Column(Integer, nullable=True)
    version = Column(Integer, nullable=False, default=0)  # bumped per appended message
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    participants = relationship(
        "ConversationParticipant",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ConversationParticipant.position",
        lazy="selectin",
    )

    @property
    def participant_ids(self) -> list[int]:
        """Participant contact ids in insertion order."""
        return [p.contact_id for p in self.participants]

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, tenant_id={self.tenant_id}, channel={self.channel}, version={self.version})>"


class ConversationParticipant(Base):
    """Membership of a contact in a conversation, ordered by position."""

    __tablename__ = "conversation_participants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "contact_id", name="uq_conversation_participant"),
    )

    id = Column(Integer, primary_key=True)
    conversation_id = Column(
        Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    contact_id = Column(Integer, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    conversation = relationship("Conversation", back_populates="participants")

    def __repr__(self) -> str:
        return f"<ConversationParticipant(conversation_id={self.conversation_id}, contact_id={self.contact_id})>"


class Message(Base):
    """Message owned by exactly one conversation."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_conversation_timestamp", "conversation_id", "timestamp"),
        Index("ix_messages_sender", "sender_type", "sender_id"),
        Index(
            "uq_messages_tenant_external_id",
            "tenant_id",
            "external_id",
            unique=True,
            postgresql_where=text("external_id IS NOT NULL"),
            sqlite_where=text("external_id IS NOT NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    # No FK: merge may leave a message briefly pointing at a conversation about to be deleted
    conversation_id = Column(Integer, nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    sender_type = Column(String(20), nullable=False, default=SENDER_CONTACT)  # contact, staff
    sender_id = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(20), nullable=False, default="text")  # text, image, file, template
    direction = Column(String(20), nullable=False)  # inbound, outbound
    status = Column(String(20), nullable=False, default="pending")  # pending, sending, sent, failed
    external_id = Column(String(255), nullable=True)  # provider message id
    timestamp = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, conversation_id={self.conversation_id}, direction={self.direction})>"
