"""
核心层：结构校验、数据模型、导入流水线和快照存储
"""

from .importer import import_database, load_database
from .models import Database, Label, LabelCandidate, Text, TextCandidate
from .store import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore, SnapshotRepository
from .typecheck import ValidationFailure

__all__ = [
    'Database',
    'Label',
    'LabelCandidate',
    'Text',
    'TextCandidate',
    'ValidationFailure',
    'import_database',
    'load_database',
    'KeyValueStore',
    'MemoryKeyValueStore',
    'FileKeyValueStore',
    'SnapshotRepository',
]
