"""
Armazenamento chave/valor injetável para registros locais
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import async_sessionmaker

from database.models import StoredRecord


class RecordStore(ABC):
    """Contrato get/set/clear de registros por chave"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def clear(self, key: str) -> None:
        ...


class InMemoryRecordStore(RecordStore):
    """Armazenamento em memória (testes e sessões efêmeras)"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._records: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._records.get(key)

    async def set(self, key: str, value: str) -> None:
        self._records[key] = value

    async def clear(self, key: str) -> None:
        self._records.pop(key, None)


class SQLRecordStore(RecordStore):
    """Armazenamento durável em SQLite via SQLAlchemy"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        if session_factory is None:
            from database.sqlite_db import AsyncSessionLocal
            session_factory = AsyncSessionLocal
        self._session_factory = session_factory

    async def get(self, key: str) -> Optional[str]:
        async with self._session_factory() as session:
            record = await session.get(StoredRecord, key)
            return record.value if record else None

    async def set(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            record = await session.get(StoredRecord, key)
            if record:
                record.value = value
            else:
                session.add(StoredRecord(key=key, value=value))
            await session.commit()

    async def clear(self, key: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(StoredRecord).where(StoredRecord.key == key))
            await session.commit()
