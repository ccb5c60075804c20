"""Audit trail for admin actions on accounts and sessions."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.core.database import Base

# Recorded actions
ACTION_UPDATE_USER_ROLE = "update_user_role"
ACTION_PURGE_REFRESH_TOKENS = "purge_refresh_tokens"


class AuditEvent(Base):
    """
    Append-only record of an admin action

    ``user_id`` is the acting admin (NULL for scheduled jobs such as the
    refresh-token sweep). ``target_type`` is ``"user"`` for role changes and
    ``"refresh_token"`` for purges; ``metadata_json`` carries the new role or
    the purged row count.
    """

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(64), nullable=False, index=True)
    target_type = Column(String(64), nullable=True, index=True)
    target_id = Column(String(128), nullable=True, index=True)
    ip_address = Column(String(64), nullable=True)
    metadata_json = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    actor = relationship("User", back_populates="audit_events")

    __table_args__ = (
        Index("idx_audit_events_created_at", "created_at"),
    )
