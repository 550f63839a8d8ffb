"""测试辅助函数"""

import json
from datetime import datetime, timezone

from domains.label_hub.core.models import LabelCandidate, TextCandidate
from domains.label_hub.core.store import MemoryKeyValueStore, SnapshotRepository

FIXED_NOW = datetime(2026, 3, 14, 15, 9, 26, 535000, tzinfo=timezone.utc)


def make_repository(snapshot) -> SnapshotRepository:
    """以给定快照（dict 或原始字符串）预置一个内存仓库"""
    state = snapshot if isinstance(snapshot, str) else json.dumps(snapshot)
    return SnapshotRepository(MemoryKeyValueStore({"database": state, "history": "[]"}))


def add_label(service, name, ancestors=(), **kwargs):
    failure = service.create_edit_label(LabelCandidate(name=name, ancestors=list(ancestors), **kwargs))
    assert failure is None, failure
    return service.get_label(name)


def add_text(service, text, labels=()):
    failure = service.create_edit_text(TextCandidate(text=text, labels=list(labels)))
    assert failure is None, failure
    return service.list_texts()[-1]


def names(labels):
    return [label.name for label in labels]


def raw_label(name, ancestors=(), color=(1, 2, 3), description=""):
    return {"name": name, "color": list(color), "description": description, "ancestors": list(ancestors)}


def raw_text(text_id, labels=(), text="body", date="2026-01-02T03:04:05.678Z"):
    return {"id": text_id, "text": text, "date": date, "labels": list(labels)}
