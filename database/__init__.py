"""
Database package - SQLite storage for device-local records
"""

from .models import StoredRecord, Base
from .sqlite_db import init_database
from .record_store import RecordStore, InMemoryRecordStore, SQLRecordStore

__all__ = [
    'StoredRecord',
    'Base',
    'init_database',
    'RecordStore',
    'InMemoryRecordStore',
    'SQLRecordStore'
]
