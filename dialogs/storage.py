# dialogs/storage.py
# Key/value persistence contract for bot state plus two backends:
#  - MemoryStorage: process-local dict of JSON strings (tests, demo runs)
#  - SqlStorage: SQLModel table (see db.StateRecord), survives restarts
#
# Documents are plain JSON objects. Backend errors are not caught here; a
# failed write means the turn is not durable and the caller sees the exception.
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from sqlmodel import Session, col, select

from db import StateRecord
from .errors import require

logger = logging.getLogger(__name__)


def dumps_document(doc: Dict[str, Any]) -> str:
    # sorted keys: an unchanged document always serializes to the same text
    return json.dumps(doc, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


class Storage:
    async def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        raise NotImplementedError

    async def write(self, changes: Dict[str, Dict[str, Any]]) -> None:
        raise NotImplementedError

    async def delete(self, keys: Iterable[str]) -> None:
        raise NotImplementedError


class MemoryStorage(Storage):
    def __init__(self):
        # Store structure: {storage_key: serialized_document}
        self._store: Dict[str, str] = {}

    async def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        # decode on every read so callers never share mutable objects
        return {k: json.loads(self._store[k]) for k in keys if k in self._store}

    async def write(self, changes: Dict[str, Dict[str, Any]]) -> None:
        for key, doc in changes.items():
            self._store[key] = dumps_document(doc)

    async def delete(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._store.pop(key, None)

    def snapshot(self, key: str) -> Optional[str]:
        """Serialized document as last written, or None."""
        return self._store.get(key)


class SqlStorage(Storage):
    def __init__(self, engine):
        self.engine = require(engine, "engine")

    async def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        keys = list(keys)
        if not keys:
            return {}
        with Session(self.engine) as s:
            rows = s.exec(select(StateRecord).where(col(StateRecord.key).in_(keys))).all()
        return {r.key: json.loads(r.document_json) for r in rows}

    async def write(self, changes: Dict[str, Dict[str, Any]]) -> None:
        with Session(self.engine) as s:
            for key, doc in changes.items():
                rec = s.get(StateRecord, key)
                if rec is None:
                    rec = StateRecord(key=key)
                rec.document_json = dumps_document(doc)
                rec.updated_at = datetime.utcnow()
                s.add(rec)
            s.commit()

    async def delete(self, keys: Iterable[str]) -> None:
        with Session(self.engine) as s:
            for key in keys:
                rec = s.get(StateRecord, key)
                if rec is not None:
                    s.delete(rec)
            s.commit()

    def snapshot(self, key: str) -> Optional[str]:
        with Session(self.engine) as s:
            rec = s.get(StateRecord, key)
            return rec.document_json if rec is not None else None
