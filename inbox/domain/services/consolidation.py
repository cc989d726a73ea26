"""Grouping and canonical selection of duplicate conversations.

Pure functions over conversation-like objects exposing ``id``,
``channel``, ``created_at`` and ``participant_ids``.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass
class ConsolidationPlan:
    """Outcome of canonical selection within one channel."""

    canonical: Any
    duplicates: list[Any] = field(default_factory=list)

    @property
    def duplicate_ids(self) -> list[int]:
        return [conversation.id for conversation in self.duplicates]


def group_by_channel(conversations: Iterable[Any]) -> dict[str, list[Any]]:
    """Group conversations by channel, preserving input order within a group."""
    groups: dict[str, list[Any]] = {}
    for conversation in conversations:
        groups.setdefault(conversation.channel, []).append(conversation)
    return groups


def relevant_conversations(
    conversations: Iterable[Any], contact_ids: Iterable[int]
) -> list[Any]:
    """Keep conversations with at least one of the given contacts as participant."""
    wanted = set(contact_ids)
    return [c for c in conversations if wanted.intersection(c.participant_ids)]


def select_canonical(conversations: list[Any]) -> ConsolidationPlan:
    """Oldest conversation wins; equal creation times fall back to smallest id.

    Raises:
        ValueError: If no conversations are given
    """
    if not conversations:
        raise ValueError("Cannot select a canonical conversation from an empty list")
    ordered = sorted(conversations, key=lambda c: (c.created_at, c.id))
    return ConsolidationPlan(canonical=ordered[0], duplicates=ordered[1:])
