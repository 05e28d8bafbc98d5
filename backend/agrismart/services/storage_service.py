# backend/agrismart/services/storage_service.py

"""
Recommendation storage.

RecordStore.save() returns the new record id, or None when the record could
not be stored. Saving is best effort: callers still answer the user.
"""

import uuid
from datetime import datetime
from threading import Lock
from typing import Any, Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from agrismart.core.database import AsyncSessionLocal
from agrismart.core.logger import logger
from agrismart.models.recommendation import RecommendationRecord


class RecordStore(Protocol):
    async def save(self, kind: str, data: Dict[str, Any]) -> Optional[str]:
        ...


class SqlRecordStore:
    def __init__(self, session_factory=AsyncSessionLocal):
        self._session_factory = session_factory

    async def save(self, kind: str, data: Dict[str, Any]) -> Optional[str]:
        record = RecommendationRecord(kind=kind, payload=data)
        try:
            async with self._session_factory() as db:
                db.add(record)
                await db.commit()
        except SQLAlchemyError:
            logger.exception("Error saving recommendation", extra={"kind": kind})
            return None
        logger.info("Recommendation saved", extra={"kind": kind, "record_id": record.id})
        return record.id


class InMemoryRecordStore:
    def __init__(self):
        self._lock = Lock()
        self.records: Dict[str, Dict[str, Any]] = {}

    async def save(self, kind: str, data: Dict[str, Any]) -> Optional[str]:
        record_id = str(uuid.uuid4())
        with self._lock:
            self.records[record_id] = {
                "id": record_id,
                "kind": kind,
                "payload": dict(data),
                "created_at": datetime.utcnow(),
            }
        return record_id
