"""Identity resolution: platform sender identifiers to tenant contacts."""

import logging
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from inbox.core.channels import Channel, normalize_identifier, parse_channel, placeholder_name
from inbox.core.errors import ConflictError
from inbox.persistence.models.contact import CONTACT_STATUS_ACTIVE, Contact
from inbox.persistence.repositories.contact_repository import ContactRepository

logger = logging.getLogger(__name__)

# Async callable returning a provider profile name, or None
NameFetcher = Callable[[Channel, str], Awaitable[str | None]]


class IdentityResolver:
    """Maps (tenant, channel, identifier) to exactly one active contact."""

    def __init__(
        self, session: AsyncSession, name_fetcher: NameFetcher | None = None
    ) -> None:
        """Initialize identity resolver.

        Args:
            session: Database session
            name_fetcher: Optional provider profile lookup used for new contacts
        """
        self.session = session
        self.contact_repo = ContactRepository(session)
        self.name_fetcher = name_fetcher

    async def resolve(
        self,
        tenant_id: str,
        channel: str | Channel,
        raw_identifier: str,
        name_hint: str | None = None,
    ) -> Contact:
        """Get the contact behind a sender identifier, creating it if absent.

        An existing active contact is returned unchanged, which makes
        repeated webhook delivery idempotent. Concurrent creations for the
        same identifier are settled by the unique index: the losing writer
        re-reads the winner's contact.

        Args:
            tenant_id: Tenant ID
            channel: whatsapp, instagram or messenger
            raw_identifier: Provider sender id (phone number, IGSID, PSID)
            name_hint: Display name supplied by the provider payload

        Returns:
            The active contact for this identifier

        Raises:
            InvalidArgumentError: If the identifier is empty or the channel unsupported
            ConflictError: If creation conflicted and the winner could not be read back
        """
        channel = parse_channel(channel)
        identifier = normalize_identifier(raw_identifier)

        existing = await self.contact_repo.get_active_by_identifier(tenant_id, channel, identifier)
        if existing:
            return existing

        name = await self._display_name(channel, identifier, name_hint)
        try:
            contact = await self.contact_repo.create(
                tenant_id,
                name=name,
                status=CONTACT_STATUS_ACTIVE,
                **{channel.contact_field: identifier},
            )
        except ConflictError:
            logger.info(
                f"Concurrent creation for {channel.value} identifier in tenant {tenant_id}, re-reading"
            )
            winner = await self.contact_repo.get_active_by_identifier(tenant_id, channel, identifier)
            if winner is None:
                raise
            return winner

        logger.info(
            f"Created contact {contact.id} for {channel.value} sender",
            extra={"contact_id": contact.id, "channel": channel.value},
        )
        return contact

    async def find_by_identifier(
        self, tenant_id: str, channel: str | Channel, raw_identifier: str
    ) -> Contact | None:
        """Look up the active contact for an identifier without creating one."""
        channel = parse_channel(channel)
        identifier = normalize_identifier(raw_identifier)
        return await self.contact_repo.get_active_by_identifier(tenant_id, channel, identifier)

    async def _display_name(
        self, channel: Channel, identifier: str, name_hint: str | None
    ) -> str:
        """Hint, then provider profile name, then a placeholder."""
        if name_hint and name_hint.strip():
            return name_hint.strip()
        if self.name_fetcher is not None:
            try:
                fetched = await self.name_fetcher(channel, identifier)
            except Exception as e:
                logger.warning(f"Could not fetch {channel.value} profile name: {e}")
                fetched = None
            if fetched and fetched.strip():
                return fetched.strip()
        return placeholder_name(channel, identifier)
