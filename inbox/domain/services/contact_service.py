"""Contact service for reading and updating contacts."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from inbox.core.channels import Channel, normalize_identifier
from inbox.core.errors import InvalidArgumentError, NotFoundError
from inbox.domain.services.field_merge import MERGEABLE_FIELDS, is_absent
from inbox.persistence.models.contact import Contact
from inbox.persistence.repositories.contact_repository import ContactRepository

UPDATABLE_FIELDS = frozenset(MERGEABLE_FIELDS) - {"last_interaction_at"}


class ContactService:
    """Service for contact management by external callers (CRM sync, operators)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize contact service."""
        self.session = session
        self.contact_repo = ContactRepository(session)

    async def list_contacts(
        self, tenant_id: str, skip: int = 0, limit: int = 100
    ) -> list[Contact]:
        """List active contacts for a tenant."""
        return await self.contact_repo.list_by_tenant(tenant_id, skip=skip, limit=limit)

    async def get_contact(self, tenant_id: str, contact_id: int) -> Contact:
        """Get a contact by ID, including retired ones.

        Raises:
            NotFoundError: If the contact does not exist
        """
        contact = await self.contact_repo.get_by_id_any_status(tenant_id, contact_id)
        if contact is None:
            raise NotFoundError(f"Contact {contact_id} not found")
        return contact

    async def update_contact(
        self, tenant_id: str, contact_id: int, **fields: Any
    ) -> Contact:
        """Update attributes of an active contact.

        Channel identifiers are normalized; taking one held by another
        active contact raises ConflictError.

        Raises:
            InvalidArgumentError: If a field is not updatable or the name is blank
            NotFoundError: If no active contact has this ID
            ConflictError: If an identifier is already taken
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidArgumentError(f"Fields cannot be updated: {sorted(unknown)}")
        if "name" in fields and is_absent(fields["name"]):
            raise InvalidArgumentError("Contact name must not be empty")

        for channel in Channel:
            value = fields.get(channel.contact_field)
            if value is not None:
                fields[channel.contact_field] = normalize_identifier(value)

        if await self.contact_repo.get_by_id(tenant_id, contact_id) is None:
            raise NotFoundError(f"Contact {contact_id} not found")
        return await self.contact_repo.update(tenant_id, contact_id, **fields)
