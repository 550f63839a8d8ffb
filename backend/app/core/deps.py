"""Dependency injection for FastAPI routes.

所有路由共用同一个 LabelService 实例（单写者）。
"""

from fastapi import Depends, Path

from domains.core.exceptions import DatabaseUnavailableError, LabelNotFoundError, TextNotFoundError
from domains.label_hub.core.models import Label, Text
from domains.label_hub.services.label_service import LabelService, get_label_service as _get_label_service


def get_label_service() -> LabelService:
    """Get LabelService singleton instance."""
    return _get_label_service()


def get_usable_service(service: LabelService = Depends(get_label_service)) -> LabelService:
    """Get LabelService, refusing access while the database carries a load error."""
    if service.db.error is not None:
        raise DatabaseUnavailableError(service.db.error)
    return service


def get_label_or_404(
    name: str = Path(..., description="标签名"),
    service: LabelService = Depends(get_usable_service),
) -> Label:
    """Get label by name or raise 404."""
    label = service.get_label(name)
    if label is None:
        raise LabelNotFoundError(name)
    return label


def get_text_or_404(
    text_id: int = Path(..., description="笔记 ID"),
    service: LabelService = Depends(get_usable_service),
) -> Text:
    """Get text by id or raise 404."""
    text = service.get_text(text_id)
    if text is None:
        raise TextNotFoundError(text_id)
    return text
