"""User rows backing the per-user cache namespaces."""
from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from habitloop.db.models.user import User


def ensure_user(db: Session, user_id: UUID) -> User:
    """Return the user row, inserting it on first sight of ``user_id``."""
    user = db.get(User, user_id)
    if user is not None:
        return user

    db.add(User(id=user_id))
    try:
        db.flush()
    except IntegrityError:
        # Inserted concurrently by another session.
        db.rollback()
    user = db.get(User, user_id)
    if user is None:
        raise LookupError(f"User {user_id} could not be created")
    return user


def mark_synced(db: Session, user_id: UUID, when: datetime) -> User:
    user = ensure_user(db, user_id)
    user.last_synced_at = when
    return user


def list_user_ids(db: Session) -> List[UUID]:
    return list(db.scalars(select(User.id).order_by(User.created_at.asc(), User.id.asc())))
