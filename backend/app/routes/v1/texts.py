"""Text API routes.

提供笔记的创建、编辑和查询接口。笔记没有删除操作。
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_text_or_404, get_usable_service
from app.schemas.common import ApiResponse, PaginatedResponse
from app.schemas.text import Text, TextWrite
from domains.core.exceptions import InvariantError
from domains.label_hub.core.models import Text as TextModel

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=ApiResponse[PaginatedResponse[Text]])
async def list_texts(
    label: Optional[str] = Query(None, description="按标签筛选（包含所有后代标签的笔记）"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service=Depends(get_usable_service),
):
    """获取笔记列表（按 ID 顺序）"""
    texts = service.list_texts(label=label)
    offset = (page - 1) * page_size
    items = [Text.from_model(t) for t in texts[offset:offset + page_size]]

    return ApiResponse(
        data=PaginatedResponse.create(
            items=items,
            total=len(texts),
            page=page,
            page_size=page_size,
        )
    )


@router.get("/{text_id}", response_model=ApiResponse[Text])
async def get_text(text: TextModel = Depends(get_text_or_404)):
    """获取笔记详情"""
    return ApiResponse(data=Text.from_model(text))


@router.post("/", response_model=ApiResponse[Text])
async def create_text(request: TextWrite, service=Depends(get_usable_service)):
    """创建笔记，标签自动向上闭合"""
    failure = service.create_edit_text(request.to_candidate())
    if failure is not None:
        raise InvariantError(failure)

    created = service.list_texts()[-1]
    return ApiResponse(data=Text.from_model(created), message="创建成功")


@router.put("/{text_id}", response_model=ApiResponse[Text])
async def update_text(
    request: TextWrite,
    text: TextModel = Depends(get_text_or_404),
    service=Depends(get_usable_service),
):
    """编辑笔记正文与标签"""
    failure = service.create_edit_text(request.to_candidate(), text)
    if failure is not None:
        raise InvariantError(failure)

    return ApiResponse(data=Text.from_model(text), message="更新成功")
