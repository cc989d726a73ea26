"""Contact repository."""

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.core.channels import IDENTIFIER_FIELDS, Channel
from inbox.persistence.models.contact import (
    CONTACT_STATUS_ACTIVE,
    CONTACT_STATUS_INACTIVE,
    Contact,
)
from inbox.persistence.repositories.base import BaseRepository


class ContactRepository(BaseRepository[Contact]):
    """Repository for Contact entities."""

    def __init__(self, session: AsyncSession):
        """Initialize contact repository."""
        super().__init__(Contact, session)

    async def get_by_id(self, tenant_id: str, id: int) -> Contact | None:
        """Get active contact by ID (excludes merged and inactive).

        Args:
            tenant_id: Tenant ID
            id: Contact ID

        Returns:
            Contact or None if not found or inactive
        """
        stmt = select(Contact).where(
            Contact.id == id,
            Contact.tenant_id == tenant_id,
            Contact.status == CONTACT_STATUS_ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id_any_status(self, tenant_id: str, id: int) -> Contact | None:
        """Get contact by ID regardless of status (includes merged)."""
        return await super().get_by_id(tenant_id, id)

    async def get_active_by_identifier(
        self, tenant_id: str, channel: Channel, identifier: str
    ) -> Contact | None:
        """Get the active contact holding a channel identifier.

        Args:
            tenant_id: Tenant ID
            channel: Channel the identifier belongs to
            identifier: Normalized identifier

        Returns:
            Contact or None if no active contact holds it
        """
        column = getattr(Contact, channel.contact_field)
        stmt = (
            select(Contact)
            .where(
                Contact.tenant_id == tenant_id,
                Contact.status == CONTACT_STATUS_ACTIVE,
                column == identifier,
            )
            .order_by(Contact.created_at, Contact.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_tenant(
        self, tenant_id: str, skip: int = 0, limit: int = 100
    ) -> list[Contact]:
        """List active contacts for a tenant, newest first."""
        stmt = (
            select(Contact)
            .where(
                Contact.tenant_id == tenant_id,
                Contact.status == CONTACT_STATUS_ACTIVE,
            )
            .order_by(Contact.created_at.desc(), Contact.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def touch_last_interaction(self, contact: Contact, at: datetime) -> None:
        """Record the latest inbound activity of a contact."""
        if contact.last_interaction_at is None or contact.last_interaction_at < at:
            contact.last_interaction_at = at
            await self.session.commit()

    async def apply_fields(self, contact: Contact, values: dict[str, Any]) -> None:
        """Write attribute values onto a contact and flush (no commit)."""
        for key, value in values.items():
            setattr(contact, key, value)
        await self.session.flush()

    async def retire(
        self, contact: Contact, merged_into_id: int, name_prefix: str
    ) -> None:
        """Soft-delete a merged-away contact and flush (no commit).

        The contact becomes inactive and loses every channel identifier
        and its email, so identity resolution can never match it again.
        """
        if not (contact.name or "").startswith(name_prefix):
            contact.name = f"{name_prefix}{contact.name or ''}"
        contact.status = CONTACT_STATUS_INACTIVE
        contact.email = None
        for field in IDENTIFIER_FIELDS:
            setattr(contact, field, None)
        contact.merged_into_contact_id = merged_into_id
        contact.merged_at = datetime.utcnow()
        await self.session.flush()
