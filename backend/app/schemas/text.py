"""Text-related Pydantic schemas."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from domains.label_hub.core.models import Text as TextModel, TextCandidate


class TextWrite(BaseModel):
    """Text create/edit request."""

    text: str = Field(..., description="正文")
    labels: List[str] = Field(default_factory=list, description="标签名（无需包含祖先）")

    def to_candidate(self) -> TextCandidate:
        return TextCandidate(text=self.text, labels=list(self.labels))


class Text(BaseModel):
    """Complete text model for API responses."""

    id: int = Field(..., description="笔记 ID")
    text: str
    date: datetime = Field(..., description="创建时间（UTC）")
    labels: List[str] = Field(default_factory=list, description="标签（向上闭合）")

    @classmethod
    def from_model(cls, text: TextModel) -> "Text":
        return cls(id=text.id, text=text.text, date=text.date, labels=text.label_names)
