# db/mongo.py

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument

from taskflow.db.collections import MEMBERSHIP_TYPES, Collection, R, utcnow
from taskflow.exceptions import DuplicateRecordError

logger = logging.getLogger(__name__)

COUNTERS_COLLECTION = "counters"
NO_OBJECT_ID = {"_id": 0}
ID_ORDER = [("id", 1)]


def _to_query(criteria: Dict[str, Any]) -> Dict[str, Any]:
    query = {}
    for key, expected in criteria.items():
        if isinstance(expected, MEMBERSHIP_TYPES):
            query[key] = {"$in": list(expected)}
        else:
            query[key] = expected
    return query


class MongoCollection(Collection[R]):
    """
    One MongoDB collection per entity type.

    Documents keep the Python field names plus an integer ``id``; ids come
    from an atomic ``$inc`` on a shared counters collection, so they are
    never reused even across processes.
    """

    def __init__(self, db, name: str, model: Type[R], mutable_fields: Iterable[str] = ()):
        super().__init__(name, model, mutable_fields)
        self._coll = db[name]
        self._counters = db[COUNTERS_COLLECTION]

    def _to_record(self, doc: Optional[Mapping[str, Any]]) -> Optional[R]:
        if doc is None:
            return None
        return self.model.model_validate(doc)

    async def _next_id(self) -> int:
        counter = await self._counters.find_one_and_update(
            {"_id": self.name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    async def get(self, record_id: int) -> Optional[R]:
        doc = await self._coll.find_one({"id": record_id}, NO_OBJECT_ID)
        return self._to_record(doc)

    async def insert(self, fields: Mapping[str, Any], *, unique: Iterable[str] = ()) -> R:
        async with self._lock:
            for key in unique:
                if await self._coll.find_one({key: fields[key]}, NO_OBJECT_ID) is not None:
                    raise DuplicateRecordError(self.name, key, fields[key])

            record = self.model(id=await self._next_id(), created_at=utcnow(), **fields)
            await self._coll.insert_one(record.model_dump())

        logger.debug("Inserted %s id=%s", self.name, record.id)
        return record

    async def list(self) -> List[R]:
        docs = await self._coll.find({}, NO_OBJECT_ID, sort=ID_ORDER).to_list(length=None)
        return [self._to_record(doc) for doc in docs]

    async def update_field(self, record_id: int, field: str, value: Any) -> Optional[R]:
        self._check_mutable(field)
        async with self._lock:
            doc = await self._coll.find_one_and_update(
                {"id": record_id},
                {"$set": {field: value}},
                projection=NO_OBJECT_ID,
                return_document=ReturnDocument.AFTER,
            )
        return self._to_record(doc)

    async def find(self, **criteria: Any) -> List[R]:
        cursor = self._coll.find(_to_query(criteria), NO_OBJECT_ID, sort=ID_ORDER)
        docs = await cursor.to_list(length=None)
        return [self._to_record(doc) for doc in docs]

    async def count(self, **criteria: Any) -> int:
        return await self._coll.count_documents(_to_query(criteria))


def connect(url: str) -> AsyncIOMotorClient:
    logger.info("Connecting to MongoDB at %s", url.split("@")[-1])
    return AsyncIOMotorClient(url, tz_aware=True)
