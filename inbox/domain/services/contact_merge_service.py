"""Contact merge service: consolidates duplicate contacts and their conversations."""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.core.errors import InvalidArgumentError, MergeFailedError, NotFoundError
from inbox.domain.services.consolidation import (
    group_by_channel,
    relevant_conversations,
    select_canonical,
)
from inbox.domain.services.field_merge import contact_values, merge_fields
from inbox.persistence.models.contact import Contact
from inbox.persistence.models.conversation import Conversation
from inbox.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository
from inbox.persistence.repositories.contact_repository import ContactRepository
from inbox.persistence.repositories.conversation_repository import ConversationRepository
from inbox.persistence.repositories.message_repository import MessageRepository
from inbox.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class MergeStats:
    """Counters reported by a merge (partial when the merge failed)."""

    conversations_consolidated: int = 0
    messages_reassigned: int = 0
    message_senders_updated: int = 0
    participants_rewritten: int = 0
    channels_processed: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class MergeResult:
    """Surviving contact plus merge counters."""

    merged_contact: Contact
    stats: MergeStats


@dataclass
class ChannelPlan:
    """What a merge would do to one channel's conversations."""

    channel: str
    canonical_conversation_id: int | None
    duplicate_conversation_ids: list[int] = field(default_factory=list)
    messages_to_move: int = 0
    rewrites_participant: bool = False


@dataclass
class MergePreview:
    """Dry run of a merge: per-channel plan and resulting attributes."""

    from_contact: Contact
    to_contact: Contact
    channels: list[ChannelPlan]
    merged_fields: dict[str, Any]


def _json_ready(values: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value.isoformat() if isinstance(value, datetime) else value
        for key, value in values.items()
    }


class ContactMergeService:
    """Merges a duplicate contact into a canonical survivor.

    The merge runs channel group by channel group and is not wrapped in a
    single transaction unless ``settings.merge_single_transaction`` is
    set. Every step is idempotent given the same duplicate set, so a
    failed merge is recovered by re-running the whole call. Callers must
    serialize merges that touch the same contact.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize merge service."""
        self.session = session
        self.contact_repo = ContactRepository(session)
        self.conversation_repo = ConversationRepository(session)
        self.message_repo = MessageRepository(session)
        self.merge_log_repo = ContactMergeLogRepository(session)

    async def merge(
        self,
        tenant_id: str,
        from_contact_id: int,
        to_contact_id: int,
        merged_by: str | None = None,
    ) -> MergeResult:
        """Merge ``from`` into ``to``; ``from`` is retired, ``to`` survives.

        Steps:
        1. Load every conversation including either contact
        2. Group by channel and, per channel, keep the oldest conversation,
           moving messages out of the others and deleting them
        3. Re-attribute remaining messages sent by ``from`` to ``to``
        4. Coalesce attributes onto ``to`` and retire ``from``

        Args:
            tenant_id: Tenant ID
            from_contact_id: Duplicate contact to retire
            to_contact_id: Canonical contact that survives
            merged_by: Operator performing the merge, for the audit log

        Returns:
            MergeResult with the updated survivor and counters

        Raises:
            InvalidArgumentError: If both ids are the same contact
            NotFoundError: If either contact is missing or already inactive
            MergeFailedError: If persistence failed; carries partial counters
        """
        if from_contact_id == to_contact_id:
            raise InvalidArgumentError("Cannot merge contact with itself")

        from_contact, to_contact = await self._load_pair(tenant_id, from_contact_id, to_contact_id)
        logger.info(
            f"Starting merge of contact {from_contact_id} into {to_contact_id}",
            extra={"from_contact_id": from_contact_id, "to_contact_id": to_contact_id},
        )

        stats = MergeStats()
        try:
            conversations = await self.conversation_repo.list_for_contacts(
                tenant_id, [from_contact_id, to_contact_id]
            )
            for channel, group in group_by_channel(conversations).items():
                await self._consolidate_channel(
                    tenant_id, channel, group, from_contact_id, to_contact_id, stats
                )
                stats.channels_processed += 1
                await self._checkpoint()

            stats.message_senders_updated = await self.message_repo.reassign_contact_sender(
                tenant_id, from_contact_id, to_contact_id
            )
            await self._checkpoint()

            merged_contact = await self._merge_contact_records(
                tenant_id, from_contact, to_contact, merged_by, stats
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception(
                f"Merge of contact {from_contact_id} into {to_contact_id} failed",
                extra={"stats": stats.as_dict()},
            )
            raise MergeFailedError(
                f"Merge of contact {from_contact_id} into {to_contact_id} failed: {e}", stats
            ) from e

        logger.info(
            f"Merged contact {from_contact_id} into {to_contact_id}",
            extra={"stats": stats.as_dict()},
        )
        return MergeResult(merged_contact=merged_contact, stats=stats)

    async def preview_merge(
        self, tenant_id: str, from_contact_id: int, to_contact_id: int
    ) -> MergePreview:
        """Describe what ``merge`` would do without writing anything.

        Raises:
            InvalidArgumentError: If both ids are the same contact
            NotFoundError: If either contact is missing or already inactive
        """
        if from_contact_id == to_contact_id:
            raise InvalidArgumentError("Cannot merge contact with itself")

        from_contact, to_contact = await self._load_pair(tenant_id, from_contact_id, to_contact_id)
        conversations = await self.conversation_repo.list_for_contacts(
            tenant_id, [from_contact_id, to_contact_id]
        )
        counts = await self.message_repo.count_by_conversation(
            tenant_id, [c.id for c in conversations]
        )

        channels = []
        for channel, group in group_by_channel(conversations).items():
            relevant = relevant_conversations(group, [from_contact_id, to_contact_id])
            plan = select_canonical(relevant)
            channels.append(ChannelPlan(
                channel=channel,
                canonical_conversation_id=plan.canonical.id,
                duplicate_conversation_ids=plan.duplicate_ids,
                messages_to_move=sum(counts[d] for d in plan.duplicate_ids),
                rewrites_participant=any(
                    from_contact_id in c.participant_ids for c in relevant
                ),
            ))

        return MergePreview(
            from_contact=from_contact,
            to_contact=to_contact,
            channels=channels,
            merged_fields=merge_fields(contact_values(from_contact), contact_values(to_contact)),
        )

    async def get_merge_history(self, tenant_id: str, contact_id: int) -> list[dict]:
        """Get merge history for a contact, newest first."""
        logs = await self.merge_log_repo.get_merge_history_for_contact(tenant_id, contact_id)
        return [
            {
                "id": log.id,
                "primary_contact_id": log.primary_contact_id,
                "merged_contact_id": log.secondary_contact_id,
                "merged_contact_data": log.secondary_data_snapshot,
                "merged_by": log.merged_by,
                "merged_at": log.merged_at.isoformat() if log.merged_at else None,
                "stats": log.stats,
            }
            for log in logs
        ]

    async def _load_pair(
        self, tenant_id: str, from_contact_id: int, to_contact_id: int
    ) -> tuple[Contact, Contact]:
        from_contact = await self.contact_repo.get_by_id(tenant_id, from_contact_id)
        if from_contact is None:
            raise NotFoundError(f"Contact {from_contact_id} not found")
        to_contact = await self.contact_repo.get_by_id(tenant_id, to_contact_id)
        if to_contact is None:
            raise NotFoundError(f"Contact {to_contact_id} not found")
        return from_contact, to_contact

    async def _consolidate_channel(
        self,
        tenant_id: str,
        channel: str,
        conversations: list[Conversation],
        from_contact_id: int,
        to_contact_id: int,
        stats: MergeStats,
    ) -> None:
        """Collapse one channel's conversations into its canonical conversation."""
        relevant = relevant_conversations(conversations, [from_contact_id, to_contact_id])

        if len(relevant) <= 1:
            if relevant and await self.conversation_repo.replace_participant(
                relevant[0], from_contact_id, to_contact_id
            ):
                stats.participants_rewritten += 1
                logger.info(f"{channel}: rewrote participant of conversation {relevant[0].id}")
            return

        plan = select_canonical(relevant)
        canonical = plan.canonical
        logger.info(
            f"{channel}: canonical conversation {canonical.id}, duplicates {plan.duplicate_ids}"
        )

        moved = 0
        for duplicate in plan.duplicates:
            count = await self.message_repo.reassign_conversation(
                tenant_id, duplicate.id, canonical.id
            )
            moved += count
            logger.info(f"{channel}: moved {count} messages from {duplicate.id} to {canonical.id}")
        stats.messages_reassigned += moved

        if await self.conversation_repo.replace_participant(
            canonical, from_contact_id, to_contact_id
        ):
            stats.participants_rewritten += 1

        stats.conversations_consolidated += await self.conversation_repo.delete_many(
            tenant_id, plan.duplicate_ids
        )

        if moved:
            latest = await self.message_repo.get_latest(tenant_id, canonical.id)
            await self.conversation_repo.bump_version(canonical, latest.id if latest else None)

    async def _merge_contact_records(
        self,
        tenant_id: str,
        from_contact: Contact,
        to_contact: Contact,
        merged_by: str | None,
        stats: MergeStats,
    ) -> Contact:
        """Coalesce attributes onto the survivor, retire the duplicate, audit; one commit.

        The duplicate is retired (identifiers cleared) before the survivor
        takes over its identifiers, so the active-uniqueness indexes never
        see two holders.
        """
        from_values = contact_values(from_contact)
        merged = merge_fields(from_values, contact_values(to_contact))

        await self.contact_repo.retire(from_contact, to_contact.id, settings.merged_name_prefix)
        await self.contact_repo.apply_fields(to_contact, merged)
        self.merge_log_repo.add_merge_log(
            tenant_id=tenant_id,
            primary_contact_id=to_contact.id,
            secondary_contact_id=from_contact.id,
            merged_by=merged_by,
            secondary_data_snapshot=_json_ready(from_values),
            stats=stats.as_dict(),
        )
        await self.session.commit()
        await self.session.refresh(to_contact)
        return to_contact

    async def _checkpoint(self) -> None:
        """Commit a finished step unless the merge runs as one transaction."""
        if settings.merge_single_transaction:
            await self.session.flush()
        else:
            await self.session.commit()
