"""Contact model."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, text

from inbox.persistence.database import Base

CONTACT_STATUS_ACTIVE = "active"
CONTACT_STATUS_INACTIVE = "inactive"

_ACTIVE = text("status = 'active'")


def _active_unique_index(name: str, column: str) -> Index:
    """Unique (tenant, column) among active contacts holding a value."""
    return Index(
        name,
        "tenant_id",
        column,
        unique=True,
        postgresql_where=_ACTIVE,
        sqlite_where=_ACTIVE,
    )


class Contact(Base):
    """External person reaching the tenant through one or more channels."""

    __tablename__ = "contacts"
    __table_args__ = (
        _active_unique_index("uq_contacts_tenant_whatsapp_active", "whatsapp_phone_number"),
        _active_unique_index("uq_contacts_tenant_instagram_active", "instagram_id"),
        _active_unique_index("uq_contacts_tenant_messenger_active", "messenger_id"),
        _active_unique_index("uq_contacts_tenant_crm_partner_active", "crm_partner_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)

    # One identifier per channel
    whatsapp_phone_number = Column(String(50), nullable=True)
    instagram_id = Column(String(255), nullable=True)
    messenger_id = Column(String(255), nullable=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=CONTACT_STATUS_ACTIVE, index=True)

    # CRM linkage, passed through untouched
    crm_partner_id = Column(String(100), nullable=True)
    crm_lead_id = Column(String(100), nullable=True)
    crm_stage = Column(String(100), nullable=True)
    sync_status = Column(String(20), nullable=True)  # not_synced, synced, error

    assigned_staff_id = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    observations = Column(Text, nullable=True)
    attributes = Column(JSON, nullable=True)  # free-form, e.g. {"preferences": {"language": "es"}}
    last_interaction_at = Column(DateTime, nullable=True)

    merged_into_contact_id = Column(Integer, nullable=True, index=True)
    merged_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status == CONTACT_STATUS_ACTIVE

    def __repr__(self) -> str:
        return (
            f"<Contact(id={self.id}, tenant_id={self.tenant_id}, status={self.status}, "
            f"whatsapp={self.whatsapp_phone_number}, instagram={self.instagram_id}, "
            f"messenger={self.messenger_id})>"
        )
