"""
标签知识库领域模块

文本笔记由层级标签标注，标签通过"祖先"关系声明更宽泛的分类，
整体构成有向无环图。

核心功能：
- 结构校验：持久化数据在使用前按声明的形状逐层校验，错误带精确路径
- 导入流水线：名称唯一、引用可解析、无环、传递闭包，按固定顺序检查
- 一致性引擎：标签/笔记的创建、编辑、删除，自动闭包并传播到引用方
- 快照存储：键值存储之上的完整快照与有界撤销历史
"""

from .core.models import Database, Label, LabelCandidate, Text, TextCandidate
from .core.store import SnapshotRepository
from .core.typecheck import ValidationFailure
from .services.label_service import LabelService, get_label_service

__all__ = [
    'Database',
    'Label',
    'LabelCandidate',
    'Text',
    'TextCandidate',
    'ValidationFailure',
    'SnapshotRepository',
    'LabelService',
    'get_label_service',
]
