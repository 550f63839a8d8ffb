"""Snapshot API routes.

提供快照导出、加载状态、撤销历史与恢复接口。
状态接口在库处于终止性错误时仍可访问。
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path

from app.core.deps import get_label_service, get_usable_service
from app.schemas.common import ApiResponse
from app.schemas.snapshot import FailureDetail, HistoryEntry, SnapshotDocument, StoreStatus
from domains.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def _status(service) -> StoreStatus:
    db = service.db
    return StoreStatus(
        labels_count=len(db.labels),
        texts_count=len(db.texts),
        history_count=len(service.repository.history()),
        error=FailureDetail(**db.error.to_dict()) if db.error is not None else None,
    )


@router.get("/status", response_model=ApiResponse[StoreStatus])
async def get_status(service=Depends(get_label_service)):
    """获取库状态（含加载错误）"""
    return ApiResponse(data=_status(service))


@router.get("/", response_model=ApiResponse[SnapshotDocument])
async def export_snapshot(service=Depends(get_usable_service)):
    """导出当前快照"""
    return ApiResponse(data=SnapshotDocument(**service.db.to_raw()))


@router.post("/reload", response_model=ApiResponse[StoreStatus])
async def reload_snapshot(service=Depends(get_label_service)):
    """从存储重新加载"""
    service.load()
    return ApiResponse(data=_status(service))


@router.get("/history", response_model=ApiResponse[List[HistoryEntry]])
async def list_history(service=Depends(get_label_service)):
    """列出撤销历史（最近的在前）"""
    entries = [
        HistoryEntry(
            index=index,
            labels_count=len(entry.get("labels", [])) if isinstance(entry, dict) else 0,
            texts_count=len(entry.get("texts", [])) if isinstance(entry, dict) else 0,
        )
        for index, entry in enumerate(service.repository.history())
    ]
    return ApiResponse(data=entries)


@router.post("/history/{index}/restore", response_model=ApiResponse[StoreStatus])
async def restore_history(
    index: int = Path(..., ge=0, description="历史条目下标"),
    service=Depends(get_label_service),
):
    """把历史快照恢复为当前快照，并重新加载"""
    history = service.repository.history()
    if index >= len(history):
        raise NotFoundError("历史快照", index)

    service.repository.edit_raw(lambda last_saved, history: history[index])
    service.load()
    logger.info(f"恢复历史快照: {index}")
    return ApiResponse(data=_status(service))
