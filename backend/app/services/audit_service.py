"""Audit service for sensitive admin events."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from app.models.audit import AuditEvent


class AuditService:
    """Persist and read back the audit trail."""

    @staticmethod
    def log_event(
        db: Session,
        *,
        user_id: Optional[int],
        action: str,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        event = AuditEvent(
            user_id=user_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            ip_address=ip_address,
            metadata_json=json.dumps(metadata or {}, ensure_ascii=False),
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def list_events(db: Session, action: Optional[str] = None, limit: int = 100) -> List[AuditEvent]:
        query = db.query(AuditEvent).options(joinedload(AuditEvent.actor))
        if action:
            query = query.filter(AuditEvent.action == action)
        return query.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(limit).all()

    @staticmethod
    def to_response(event: AuditEvent) -> Dict[str, Any]:
        return {
            "id": event.id,
            "user_id": event.user_id,
            "actor_email": event.actor.email if event.actor else None,
            "action": event.action,
            "target_type": event.target_type,
            "target_id": event.target_id,
            "ip_address": event.ip_address,
            "metadata": json.loads(event.metadata_json) if event.metadata_json else {},
            "created_at": event.created_at,
        }


audit_service = AuditService()
