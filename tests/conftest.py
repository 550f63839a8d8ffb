"""
公共测试夹具

Run: python -m pytest tests -q
"""

import pytest

from domains.label_hub.core.store import MemoryKeyValueStore, SnapshotRepository
from domains.label_hub.services.label_service import LabelService

from helpers import FIXED_NOW


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def repository(kv):
    return SnapshotRepository(kv)


@pytest.fixture
def service(repository):
    return LabelService(repository=repository, clock=lambda: FIXED_NOW)
