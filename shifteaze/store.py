from __future__ import annotations

import logging
from typing import Protocol

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from shifteaze.blocks import Scope, ScheduleBlock
from shifteaze.models import StoredValue

logger = logging.getLogger(__name__)

STORE_PREFIX = "scheduleBlocks"

_BLOCK_LIST = TypeAdapter(list[ScheduleBlock])


def scope_storage_key(scope: Scope) -> str:
    return f"{STORE_PREFIX}-{scope.job_title}-{scope.month}"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqlKeyValueStore:
    """Key-value space of a single manager, kept in the ``stored_values`` table."""

    def __init__(self, db: Session, owner_id: int):
        self.db = db
        self.owner_id = owner_id

    def get(self, key: str) -> str | None:
        entry = self.db.get(StoredValue, (self.owner_id, key))
        return entry.value if entry is not None else None

    def set(self, key: str, value: str) -> None:
        entry = self.db.get(StoredValue, (self.owner_id, key))
        if entry is None:
            self.db.add(StoredValue(owner_id=self.owner_id, key=key, value=value))
        else:
            entry.value = value
        self.db.commit()

    def delete(self, key: str) -> None:
        entry = self.db.get(StoredValue, (self.owner_id, key))
        if entry is not None:
            self.db.delete(entry)
            self.db.commit()


class ScopedBlockStore:
    """Block lists keyed by scope; every save overwrites the whole list."""

    def __init__(self, backend: KeyValueStore):
        self.backend = backend

    def save(self, scope: Scope, blocks: list[ScheduleBlock]) -> None:
        payload = _BLOCK_LIST.dump_json(list(blocks), by_alias=True).decode("utf-8")
        self.backend.set(scope_storage_key(scope), payload)

    def load(self, scope: Scope) -> list[ScheduleBlock]:
        key = scope_storage_key(scope)
        raw = self.backend.get(key)
        if not raw:
            return []
        try:
            return _BLOCK_LIST.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring undecodable block list under %s: %s", key, exc.errors()[:1])
            return []

    def clear(self, scope: Scope) -> None:
        self.backend.delete(scope_storage_key(scope))
