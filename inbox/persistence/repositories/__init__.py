"""Repository implementations."""

from inbox.persistence.repositories.base import BaseRepository
from inbox.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository
from inbox.persistence.repositories.contact_repository import ContactRepository
from inbox.persistence.repositories.conversation_repository import ConversationRepository
from inbox.persistence.repositories.message_repository import MessageRepository

__all__ = [
    "BaseRepository",
    "ContactMergeLogRepository",
    "ContactRepository",
    "ConversationRepository",
    "MessageRepository",
]
