"""ContactMergeLog model for audit trail of contact merges."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String

from inbox.persistence.database import Base


class ContactMergeLog(Base):
    """Audit log for contact merge operations."""

    __tablename__ = "contact_merge_logs"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    primary_contact_id = Column(Integer, nullable=False, index=True)
    secondary_contact_id = Column(Integer, nullable=False)
    merged_by = Column(String(64), nullable=True)
    merged_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Backup of the retired contact's data before merge
    # Example: {"name": "Old Name", "whatsapp_phone_number": "+5491100000000"}
    secondary_data_snapshot = Column(JSON, nullable=True)

    # Counters reported by the merge, e.g. {"messages_reassigned": 3}
    stats = Column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<ContactMergeLog(id={self.id}, primary={self.primary_contact_id}, secondary={self.secondary_contact_id}, at={self.merged_at})>"
