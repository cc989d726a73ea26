"""Database models."""

from inbox.persistence.models.contact import Contact
from inbox.persistence.models.contact_merge_log import ContactMergeLog
from inbox.persistence.models.conversation import Conversation, ConversationParticipant, Message

__all__ = [
    "Contact",
    "ContactMergeLog",
    "Conversation",
    "ConversationParticipant",
    "Message",
]
