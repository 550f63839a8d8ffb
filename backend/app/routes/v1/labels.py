"""Label API routes.

提供标签的创建、编辑、删除和查询接口。

NOTE: 修改操作直接在事件循环中同步执行，保证单写者顺序。
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from app.core.deps import get_label_or_404, get_usable_service
from app.schemas.common import ApiResponse
from app.schemas.label import Label, LabelDependents, LabelWrite
from domains.core.exceptions import InvariantError
from domains.label_hub.core.models import Label as LabelModel

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=ApiResponse[List[Label]])
async def list_labels(service=Depends(get_usable_service)):
    """获取全部标签（按插入顺序）"""
    return ApiResponse(data=[Label.from_model(label) for label in service.list_labels()])


@router.get("/{name}", response_model=ApiResponse[Label])
async def get_label(label: LabelModel = Depends(get_label_or_404)):
    """获取标签详情"""
    return ApiResponse(data=Label.from_model(label))


@router.get("/{name}/dependents", response_model=ApiResponse[LabelDependents])
async def get_dependents(
    label: LabelModel = Depends(get_label_or_404),
    service=Depends(get_usable_service),
):
    """获取引用该标签的标签与笔记"""
    return ApiResponse(data=LabelDependents(**service.dependents_of(label.name)))


@router.post("/", response_model=ApiResponse[Label])
async def create_label(request: LabelWrite, service=Depends(get_usable_service)):
    """创建标签，祖先自动闭包"""
    failure = service.create_edit_label(request.to_candidate())
    if failure is not None:
        raise InvariantError(failure)

    return ApiResponse(data=Label.from_model(service.get_label(request.name)), message="创建成功")


@router.put("/{name}", response_model=ApiResponse[Label])
async def update_label(
    request: LabelWrite,
    label: LabelModel = Depends(get_label_or_404),
    service=Depends(get_usable_service),
):
    """编辑标签（可重命名），新的祖先闭包会传播到引用方"""
    failure = service.create_edit_label(request.to_candidate(), label)
    if failure is not None:
        raise InvariantError(failure)

    return ApiResponse(data=Label.from_model(service.get_label(request.name)), message="更新成功")


@router.delete("/{name}", response_model=ApiResponse[None])
async def delete_label(
    label: LabelModel = Depends(get_label_or_404),
    service=Depends(get_usable_service),
):
    """删除标签，不修复后代的闭包"""
    failure = service.delete_label(label.name)
    if failure is not None:
        raise InvariantError(failure)

    return ApiResponse(message="删除成功")
