"""Pydantic schemas for API requests and responses."""

from app.schemas.common import ApiResponse, ErrorResponse, PaginatedResponse
from app.schemas.label import Label, LabelDependents, LabelWrite
from app.schemas.snapshot import FailureDetail, HistoryEntry, SnapshotDocument, StoreStatus
from app.schemas.text import Text, TextWrite

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "PaginatedResponse",
    "Label",
    "LabelWrite",
    "LabelDependents",
    "Text",
    "TextWrite",
    "FailureDetail",
    "HistoryEntry",
    "SnapshotDocument",
    "StoreStatus",
]
