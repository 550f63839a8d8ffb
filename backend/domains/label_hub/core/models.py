"""
标签知识库数据模型

- Label: 标签，通过 ancestors 声明更宽泛的上级分类，构成有向无环图
- Text: 文本笔记，携带一组标签
- Database: 标签与笔记的内存容器

不变量:
- 标签的 ancestors 始终传递闭包且无环
- 笔记的 labels 始终向上闭合（包含其中每个标签的全部祖先）

标签与笔记之间持有实时对象引用，重命名只需在 labels 字典中重新挂键。
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .schema import format_timestamp
from .typecheck import ValidationFailure

Color = Tuple[int, int, int]

DEFAULT_COLOR: Color = (128, 128, 128)


@dataclass(eq=False)
class Label:
    """
    标签

    Attributes:
        name: 标签名（可变，作为查找键）
        color: RGB 颜色，三个 0..255 的整数
        description: 描述
        ancestors: 祖先标签（有序、无重复、传递闭包）
    """
    name: str
    color: Color = DEFAULT_COLOR
    description: str = ""
    ancestors: List["Label"] = field(default_factory=list)

    def to_raw(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "color": list(self.color),
            "description": self.description,
            "ancestors": [ancestor.name for ancestor in self.ancestors],
        }

    def has_ancestor(self, label: "Label") -> bool:
        return any(ancestor is label for ancestor in self.ancestors)

    def __repr__(self) -> str:
        return f"Label({self.name!r})"


@dataclass(eq=False)
class Text:
    """
    文本笔记

    Attributes:
        id: 顺序分配的整数 ID，创建后不变、不复用
        text: 正文
        date: 创建时间（UTC）
        labels: 标签（有序、无重复、向上闭合）
    """
    id: int
    text: str
    date: datetime
    labels: List[Label] = field(default_factory=list)

    def to_raw(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "date": format_timestamp(self.date),
            "labels": [label.name for label in self.labels],
        }

    def has_label(self, label: Label) -> bool:
        return any(own is label for own in self.labels)

    @property
    def label_names(self) -> List[str]:
        return [label.name for label in self.labels]

    def __repr__(self) -> str:
        return f"Text(id={self.id}, labels={self.label_names!r})"


@dataclass
class LabelCandidate:
    """标签创建/编辑请求，ancestors 只需给出直接祖先的名称"""
    name: str
    color: Color = DEFAULT_COLOR
    description: str = ""
    ancestors: List[str] = field(default_factory=list)

    def to_raw(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "color": list(self.color),
            "description": self.description,
            "ancestors": list(self.ancestors),
        }


@dataclass
class TextCandidate:
    """笔记创建/编辑请求"""
    text: str
    labels: List[str] = field(default_factory=list)

    def to_raw(self) -> Dict[str, Any]:
        return {"text": self.text, "labels": list(self.labels)}


def union_into(target: List[Label], extra: Iterable[Label]) -> None:
    """把 extra 中尚未出现的标签按顺序追加到 target"""
    for label in extra:
        if not any(own is label for own in target):
            target.append(label)


def close_upwards(labels: Iterable[Label]) -> List[Label]:
    """
    计算向上闭包

    每个标签之后紧跟它自己的祖先，按首次出现顺序去重。
    由于祖先集合本身已传递闭包，一层展开即可。
    """
    closed: List[Label] = []
    for label in labels:
        union_into(closed, [label])
        union_into(closed, label.ancestors)
    return closed


class Database:
    """
    内存中的标签知识库

    labels 以名称为键，插入顺序即导出顺序；texts 按 id 排序。
    error 为加载阶段的终止性错误，存在时库不可再修改。
    """

    def __init__(self):
        self.labels: Dict[str, Label] = {}
        self.texts: List[Text] = []
        self.error: Optional[ValidationFailure] = None

    @property
    def is_usable(self) -> bool:
        return self.error is None

    def get_text(self, text_id: int) -> Optional[Text]:
        for text in self.texts:
            if text.id == text_id:
                return text
        return None

    def next_text_id(self) -> int:
        return max((text.id for text in self.texts), default=0) + 1

    def rename_label(self, label: Label, new_name: str) -> None:
        """原位重命名，保持插入顺序"""
        if label.name == new_name:
            return
        self.labels = {
            (new_name if key == label.name else key): value
            for key, value in self.labels.items()
        }
        label.name = new_name

    def clear(self) -> None:
        self.labels = {}
        self.texts = []
        self.error = None

    def to_raw(self) -> Dict[str, Any]:
        """导出快照"""
        return {
            "labels": [label.to_raw() for label in self.labels.values()],
            "texts": [text.to_raw() for text in self.texts],
        }

    def stats(self) -> Dict[str, Any]:
        return {
            "labels_count": len(self.labels),
            "texts_count": len(self.texts),
            "error": str(self.error) if self.error else None,
        }
