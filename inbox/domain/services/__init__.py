"""Domain services."""

from inbox.domain.services.contact_merge_service import ContactMergeService
from inbox.domain.services.contact_service import ContactService
from inbox.domain.services.conversation_service import ConversationService
from inbox.domain.services.identity_resolver import IdentityResolver
from inbox.domain.services.message_ingest_service import MessageIngestService

__all__ = [
    "ContactMergeService",
    "ContactService",
    "ConversationService",
    "IdentityResolver",
    "MessageIngestService",
]
