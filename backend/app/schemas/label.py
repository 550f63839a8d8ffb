"""Label-related Pydantic schemas."""

from typing import List, Tuple

from pydantic import BaseModel, Field

from domains.label_hub.core.models import DEFAULT_COLOR, Label as LabelModel, LabelCandidate


class LabelWrite(BaseModel):
    """Label create/edit request.

    ancestors 只需列出直接祖先，服务端自动补全传递祖先。
    """

    name: str = Field(..., description="标签名", min_length=1)
    color: Tuple[int, int, int] = Field(DEFAULT_COLOR, description="RGB 颜色（0..255）")
    description: str = Field("", description="描述")
    ancestors: List[str] = Field(default_factory=list, description="直接祖先标签名")

    def to_candidate(self) -> LabelCandidate:
        return LabelCandidate(
            name=self.name,
            color=self.color,
            description=self.description,
            ancestors=list(self.ancestors),
        )


class Label(BaseModel):
    """Complete label model for API responses."""

    name: str
    color: Tuple[int, int, int]
    description: str = ""
    ancestors: List[str] = Field(default_factory=list, description="全部祖先（已闭包）")

    @classmethod
    def from_model(cls, label: LabelModel) -> "Label":
        return cls(**label.to_raw())


class LabelDependents(BaseModel):
    """Labels and texts referencing a label."""

    labels: List[str] = Field(default_factory=list, description="以该标签为祖先的标签")
    texts: List[int] = Field(default_factory=list, description="带有该标签的笔记 ID")
