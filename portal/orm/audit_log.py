"""
portal/orm/audit_log.py
Append-only audit trail of administrative actions
"""
from sqlalchemy import Column, String, Text, DateTime

from portal.orm.base import Base, id_factory, utcnow


class AuditLogEntry(Base):
    """
    Immutable audit record. No updated_at: entries are never edited.
    """
    __tablename__ = "audit_logs"

    id = Column(String(64), primary_key=True, default=id_factory("log"))
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
    username = Column(String(64), nullable=False, index=True)
    action_type = Column(String(64), nullable=False, index=True)
    target_entity_type = Column(String(64), nullable=True)
    target_entity_id = Column(String(64), nullable=True)
    ip_address = Column(String(64), nullable=True)
    details = Column(Text, nullable=True)

    def __repr__(self):
        return f"<AuditLogEntry(id='{self.id}', action='{self.action_type}')>"
