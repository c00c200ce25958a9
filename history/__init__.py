"""
History Package.

Durable, whole-snapshot persistence for the significant-change log, the
trip log, the activity log and the tracking-enabled flag.
"""

from history.record_store import InMemoryRecordStore, RecordStore, RedisRecordStore
from history.store import HistoryStore

__all__ = [
    "HistoryStore",
    "InMemoryRecordStore",
    "RecordStore",
    "RedisRecordStore",
]
