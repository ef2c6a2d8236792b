"""Key-value persistence for the local agenda/task cache."""
from __future__ import annotations

import json
import logging
from datetime import date
from typing import Callable, Dict, List, Mapping, Optional, Sequence, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from habitloop.db.models.kv_entry import KeyValueEntry
from habitloop.services.gamification import UserStats
from habitloop.services.types import Agenda, DailyTask

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyValueStore:
    """Base interface for string key/value stores holding JSON strings."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, str]) -> None:
        """Write all ``items`` at once; either every key is written or none is."""
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_many(self, items: Mapping[str, str]) -> None:
        self.data.update(items)


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the ``kv_entries`` table; each write is one transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        entry = self.db.get(KeyValueEntry, key)
        return entry.value if entry else None

    def set_many(self, items: Mapping[str, str]) -> None:
        try:
            for key, value in items.items():
                entry = self.db.get(KeyValueEntry, key)
                if entry is None:
                    self.db.add(KeyValueEntry(key=key, value=value))
                else:
                    entry.value = value
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class LocalCache:
    """Typed view over a :class:`KeyValueStore` for one user's collections."""

    def __init__(self, store: KeyValueStore, user_id: UUID | str):
        self.store = store
        self.namespace = str(user_id)

    def key(self, name: str) -> str:
        return f"{self.namespace}:{name}"

    def load_agendas(self, today: date | None = None) -> List[Agenda]:
        return self._load_list("agendas", lambda item: Agenda.from_dict(item, today=today))

    def load_tasks(self, today: date | None = None) -> List[DailyTask]:
        return self._load_list("tasks", lambda item: DailyTask.from_dict(item, today=today))

    def load_stats(self) -> Optional[UserStats]:
        raw = self._load_json("stats")
        if not isinstance(raw, dict):
            return None
        return UserStats.from_dict(raw)

    def save(
        self,
        *,
        agendas: Optional[Sequence[Agenda]] = None,
        tasks: Optional[Sequence[DailyTask]] = None,
        stats: Optional[UserStats] = None,
    ) -> None:
        items: Dict[str, str] = {}
        if agendas is not None:
            items[self.key("agendas")] = json.dumps([agenda.to_dict() for agenda in agendas])
        if tasks is not None:
            items[self.key("tasks")] = json.dumps([task.to_dict() for task in tasks])
        if stats is not None:
            items[self.key("stats")] = json.dumps(stats.to_dict())
        if items:
            self.store.set_many(items)

    def _load_json(self, name: str):
        raw = self.store.get(self.key(name))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding corrupt cache entry %s", self.key(name))
            return None

    def _load_list(self, name: str, parse: Callable[[dict], T]) -> List[T]:
        raw = self._load_json(name)
        if not isinstance(raw, list):
            return []
        items: List[T] = []
        for entry in raw:
            try:
                items.append(parse(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed %s entry in %s: %s", name, self.key(name), exc)
        return items


def cache_for(db: Session, user_id: UUID | str) -> LocalCache:
    return LocalCache(SqlKeyValueStore(db), user_id)
