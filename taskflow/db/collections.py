# db/collections.py

import abc
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Type, TypeVar

from taskflow.exceptions import DuplicateRecordError
from taskflow.models.models import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

MEMBERSHIP_TYPES = (set, frozenset, list, tuple)


def utcnow() -> datetime:
    """Creation timestamp, truncated to milliseconds so every backend stores it exactly."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class Collection(abc.ABC, Generic[R]):
    """
    Keyed storage for one entity type.

    The collection is the only place ids and creation timestamps are assigned.
    Writes are serialized with one lock per collection.
    """

    def __init__(self, name: str, model: Type[R], mutable_fields: Iterable[str] = ()):
        self.name = name
        self.model = model
        self.mutable_fields = frozenset(mutable_fields)
        self._lock = asyncio.Lock()

    def _check_mutable(self, field: str) -> None:
        if field not in self.mutable_fields:
            raise ValueError(f"{self.name}.{field} cannot be updated")

    @abc.abstractmethod
    async def get(self, record_id: int) -> Optional[R]:
        ...

    @abc.abstractmethod
    async def insert(self, fields: Mapping[str, Any], *, unique: Iterable[str] = ()) -> R:
        ...

    @abc.abstractmethod
    async def list(self) -> List[R]:
        ...

    @abc.abstractmethod
    async def update_field(self, record_id: int, field: str, value: Any) -> Optional[R]:
        ...

    @abc.abstractmethod
    async def find(self, **criteria: Any) -> List[R]:
        """Equality filter; a set/list/tuple value matches any of its members."""

    async def count(self, **criteria: Any) -> int:
        return len(await self.find(**criteria))


def _matches(record: Record, criteria: Dict[str, Any]) -> bool:
    for key, expected in criteria.items():
        value = getattr(record, key)
        if isinstance(expected, MEMBERSHIP_TYPES):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class MemoryCollection(Collection[R]):
    """In-process arena: id -> record, ids handed out from a private counter."""

    def __init__(self, name: str, model: Type[R], mutable_fields: Iterable[str] = ()):
        super().__init__(name, model, mutable_fields)
        self._rows: Dict[int, R] = {}
        self._next_id = 1

    async def get(self, record_id: int) -> Optional[R]:
        return self._rows.get(record_id)

    async def insert(self, fields: Mapping[str, Any], *, unique: Iterable[str] = ()) -> R:
        async with self._lock:
            for key in unique:
                if any(getattr(row, key) == fields[key] for row in self._rows.values()):
                    raise DuplicateRecordError(self.name, key, fields[key])

            record = self.model(id=self._next_id, created_at=utcnow(), **fields)
            self._rows[record.id] = record
            self._next_id += 1

        logger.debug("Inserted %s id=%s", self.name, record.id)
        return record

    async def list(self) -> List[R]:
        return list(self._rows.values())

    async def update_field(self, record_id: int, field: str, value: Any) -> Optional[R]:
        self._check_mutable(field)
        async with self._lock:
            current = self._rows.get(record_id)
            if current is None:
                return None
            updated = current.model_copy(update={field: value})
            self._rows[record_id] = updated
        return updated

    async def find(self, **criteria: Any) -> List[R]:
        return [row for row in self._rows.values() if _matches(row, criteria)]

    async def count(self, **criteria: Any) -> int:
        if not criteria:
            return len(self._rows)
        return await super().count(**criteria)
