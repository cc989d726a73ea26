"""Error taxonomy shared by the persistence and domain layers."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from inbox.domain.services.contact_merge_service import MergeStats


class InboxError(Exception):
    """Base class for all inbox errors."""


class NotFoundError(InboxError):
    """A referenced contact, conversation or message does not exist."""


class InvalidArgumentError(InboxError, ValueError):
    """Caller supplied an unusable argument (empty identifier, self-merge...)."""


class ConflictError(InboxError):
    """A write lost a race against a uniqueness constraint."""


class InternalError(InboxError):
    """Persistence failure."""


class MergeFailedError(InternalError):
    """A merge aborted part-way; carries the counters accumulated so far.

    Steps committed before the failure are not rolled back. Retrying the
    whole merge converges to the same end state.
    """

    def __init__(self, message: str, stats: "MergeStats"):
        super().__init__(message)
        self.stats = stats
