"""Snapshot and store status schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FailureDetail(BaseModel):
    """Located validation failure."""

    path: Optional[List[Any]] = Field(None, description="出错位置，None 表示不带路径")
    expected: str
    got: Any = None
    message: str


class StoreStatus(BaseModel):
    """Store statistics and terminal load error."""

    labels_count: int
    texts_count: int
    history_count: int
    error: Optional[FailureDetail] = None


class HistoryEntry(BaseModel):
    """Summary of one history snapshot."""

    index: int
    labels_count: int
    texts_count: int


class SnapshotDocument(BaseModel):
    """Raw persisted snapshot."""

    labels: List[Dict[str, Any]] = Field(default_factory=list)
    texts: List[Dict[str, Any]] = Field(default_factory=list)
