"""Audit trail response schemas."""

from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel


class AuditEventResponse(BaseModel):
    """One admin action; ``user_id``/``actor_email`` identify the acting admin."""

    id: int
    user_id: Optional[int]
    actor_email: Optional[str] = None
    action: str
    target_type: Optional[str]
    target_id: Optional[str]
    ip_address: Optional[str]
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime]
