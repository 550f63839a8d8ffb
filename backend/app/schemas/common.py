"""Common schemas for API responses."""

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar, Optional, List, Dict, Union

from pydantic import BaseModel, Field

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utc_now)


class ErrorResponse(BaseModel):
    """
    Error envelope.

    被拒绝的修改与不可用的库携带出错位置: path 为从快照根到出错值的
    键/下标列表，expected 描述期望内容，got 为实际值。
    """

    success: bool = False
    error: str
    code: str
    path: Optional[List[Union[str, int]]] = None
    expected: Optional[str] = None
    got: Any = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=_utc_now)


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list response."""

    items: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def create(
        cls,
        items: List[T],
        total: int,
        page: int,
        page_size: int,
    ) -> "PaginatedResponse[T]":
        """按页切分后的笔记列表；page 从 1 开始"""
        total_pages = (total + page_size - 1) // page_size if page_size > 0 else 0
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next=page * page_size < total,
            has_prev=page > 1,
        )
