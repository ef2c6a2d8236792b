"""Audit trail of engine actions applied to a user's cache."""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from habitloop.db.models.activity_log import ActivityLog
from habitloop.services.user_service import ensure_user


def record_activity(
    db: Session,
    user_id: UUID,
    action_type: str,
    payload: Dict[str, Any],
    *,
    reason: Optional[str] = None,
    request_id: Optional[str] = None,
    commit: bool = True,
) -> ActivityLog:
    ensure_user(db, user_id)
    if request_id:
        payload = {**payload, "request_id": request_id}
    log = ActivityLog(user_id=user_id, action_type=action_type, action_payload=payload, reason=reason)
    db.add(log)
    if commit:
        db.commit()
    return log
