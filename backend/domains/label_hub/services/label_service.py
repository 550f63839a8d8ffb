"""
标签库服务层（一致性引擎）

所有修改操作都是原子的:
- 成功: 内存库已修改，并已保存完整快照
- 拒绝: 内存库与持久化状态均未改动，也不发生任何 I/O

祖先集合由引擎自动闭包，调用方只需给出直接祖先。编辑标签后，
新的闭包集合会并入所有引用它的标签和笔记。查找引用方采用全量扫描，
每次编辑的复杂度为 O(标签数 + 笔记数)。
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from domains.core.exceptions import StorageError

from ..core.importer import import_database, load_database
from ..core.models import (
    Database,
    Label,
    LabelCandidate,
    Text,
    TextCandidate,
    close_upwards,
    union_into,
)
from ..core.schema import snapshot_validator
from ..core.store import SnapshotRepository
from ..core.typecheck import ValidationFailure

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """当前 UTC 时间，截断到毫秒（与快照日期精度一致）"""
    moment = datetime.now(timezone.utc)
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


class LabelService:
    """
    标签库服务层

    封装标签与笔记的修改逻辑，维护 DAG 不变量并负责持久化。
    """

    def __init__(
        self,
        repository: SnapshotRepository | None = None,
        db: Database | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        初始化服务

        Args:
            repository: 快照仓库，默认按配置创建
            db: 已加载的库，默认首次访问时从仓库加载
            clock: 笔记创建时间来源
        """
        self._repository = repository
        self._db = db
        self._clock = clock

    @property
    def repository(self) -> SnapshotRepository:
        """延迟获取快照仓库"""
        if self._repository is None:
            self._repository = SnapshotRepository.from_settings()
        return self._repository

    @property
    def db(self) -> Database:
        """延迟加载知识库"""
        if self._db is None:
            self._db = load_database(self.repository)
        return self._db

    def load(self) -> Database:
        """重新从仓库加载"""
        self._db = load_database(self.repository, self._db)
        return self._db

    # ==================== 标签 ====================

    def create_edit_label(
        self,
        candidate: LabelCandidate,
        existing: Label | None = None,
    ) -> ValidationFailure | None:
        """
        创建或编辑标签

        Args:
            candidate: 请求内容（直接祖先名称）
            existing: 被编辑的标签，None 表示创建

        Returns:
            None 表示成功，否则为拒绝原因
        """
        db = self.db
        if db.error is not None:
            return db.error

        shape_failure = snapshot_validator.validate(candidate.to_raw(), "label")
        if isinstance(shape_failure, ValidationFailure):
            return shape_failure

        if existing is not None and db.labels.get(existing.name) is not existing:
            return ValidationFailure(None, "an existing label", existing.name)

        other = db.labels.get(candidate.name)
        if other is not None and other is not existing:
            return ValidationFailure(["name"], "a unique label name", candidate.name)

        requested: List[Label] = []
        for index, ancestor_name in enumerate(candidate.ancestors):
            ancestor = db.labels.get(ancestor_name)
            if ancestor is None:
                return ValidationFailure(["ancestors", index], "an existing label", ancestor_name)
            requested.append(ancestor)

        closed = close_upwards(requested)

        if existing is not None and any(ancestor is existing for ancestor in closed):
            return ValidationFailure(
                ["ancestors"],
                "an acyclic graph of ancestors",
                f'a cycle containing the label "{existing.name}"',
            )

        previous = db.to_raw()
        color = tuple(int(c) for c in candidate.color)

        if existing is not None:
            old_name = existing.name
            db.rename_label(existing, candidate.name)
            existing.color = color
            existing.description = candidate.description
            existing.ancestors = closed
            touched = self._propagate(existing, closed)
            self._commit(previous)
            logger.info(
                f"编辑标签成功: {old_name} -> {existing.name} "
                f"(祖先: {[a.name for a in closed]}, 传播: {touched})"
            )
        else:
            db.labels[candidate.name] = Label(
                name=candidate.name,
                color=color,
                description=candidate.description,
                ancestors=closed,
            )
            self._commit(previous)
            logger.info(f"创建标签成功: {candidate.name} (祖先: {[a.name for a in closed]})")

        return None

    def _propagate(self, edited: Label, closed: List[Label]) -> int:
        """把 edited 的新闭包并入所有引用它的标签与笔记，返回受影响数量"""
        touched = 0
        for label in self.db.labels.values():
            if label is not edited and label.has_ancestor(edited):
                union_into(label.ancestors, closed)
                touched += 1
        for text in self.db.texts:
            if text.has_label(edited):
                union_into(text.labels, closed)
                touched += 1
        return touched

    def delete_label(self, name: str) -> ValidationFailure | None:
        """
        删除标签

        从所有笔记和其他标签的祖先中移除该标签，不重新计算或修复闭包:
        原本经由该标签获得的祖先仍然保留。
        """
        db = self.db
        if db.error is not None:
            return db.error

        label = db.labels.get(name)
        if label is None:
            return ValidationFailure(None, "an existing label", name)

        previous = db.to_raw()
        for text in db.texts:
            text.labels = [own for own in text.labels if own is not label]
        for other in db.labels.values():
            other.ancestors = [a for a in other.ancestors if a is not label]
        del db.labels[name]

        self._commit(previous)
        logger.info(f"删除标签成功: {name}")
        return None

    # ==================== 笔记 ====================

    def create_edit_text(
        self,
        candidate: TextCandidate,
        existing: Text | None = None,
    ) -> ValidationFailure | None:
        """
        创建或编辑笔记

        Args:
            candidate: 请求内容（标签名称，无需包含祖先）
            existing: 被编辑的笔记，None 表示创建

        Returns:
            None 表示成功，否则为拒绝原因
        """
        db = self.db
        if db.error is not None:
            return db.error

        shape_failure = snapshot_validator.validate(candidate.to_raw(), "text_candidate")
        if isinstance(shape_failure, ValidationFailure):
            return shape_failure

        if existing is not None and db.get_text(existing.id) is not existing:
            return ValidationFailure(None, "an existing text", existing.id)

        requested: List[Label] = []
        for index, label_name in enumerate(candidate.labels):
            label = db.labels.get(label_name)
            if label is None:
                return ValidationFailure(["labels", index], "an existing label", label_name)
            requested.append(label)

        closed = close_upwards(requested)
        previous = db.to_raw()

        if existing is not None:
            existing.text = candidate.text
            existing.labels = closed
            self._commit(previous)
            logger.info(f"编辑笔记成功: {existing.id} (标签: {existing.label_names})")
        else:
            text = Text(id=db.next_text_id(), text=candidate.text, date=self._clock(), labels=closed)
            db.texts.append(text)
            self._commit(previous)
            logger.info(f"创建笔记成功: {text.id} (标签: {text.label_names})")

        return None

    # ==================== 持久化 ====================

    def _commit(self, previous: Dict[str, Any]) -> None:
        """
        保存完整快照

        存储失败时从修改前的快照恢复内存库，再抛出 StorageError。
        """
        try:
            self.repository.save(self.db.to_raw())
        except Exception as e:
            import_database(previous, self.db)
            logger.error(f"保存快照失败，已回滚内存修改: {e}")
            if isinstance(e, StorageError):
                raise
            raise StorageError(f"保存快照失败: {e}", key=self.repository.database_key, cause=e) from e

    # ==================== 查询 ====================

    def get_label(self, name: str) -> Label | None:
        return self.db.labels.get(name)

    def list_labels(self) -> List[Label]:
        return list(self.db.labels.values())

    def get_text(self, text_id: int) -> Text | None:
        return self.db.get_text(text_id)

    def list_texts(self, label: str | None = None) -> List[Text]:
        """
        列出笔记

        Args:
            label: 按标签筛选，None 表示全部
        """
        if label is None:
            return list(self.db.texts)
        return self.texts_with_label(label)

    def texts_with_label(self, name: str) -> List[Text]:
        """带有该标签的笔记；标签集合向上闭合，按祖先筛选即包含所有后代标签的笔记"""
        target = self.db.labels.get(name)
        if target is None:
            return []
        return [text for text in self.db.texts if text.has_label(target)]

    def dependents_of(self, name: str) -> Dict[str, List[Any]]:
        """引用该标签的标签名和笔记 ID"""
        target = self.db.labels.get(name)
        if target is None:
            return {"labels": [], "texts": []}
        return {
            "labels": [label.name for label in self.db.labels.values() if label.has_ancestor(target)],
            "texts": [text.id for text in self.db.texts if text.has_label(target)],
        }

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.db.stats(),
            "history_count": len(self.repository.history()),
        }


# 单例实例
_label_service: LabelService | None = None


def get_label_service() -> LabelService:
    """获取标签库服务单例"""
    global _label_service
    if _label_service is None:
        _label_service = LabelService()
    return _label_service


def reset_label_service(service: LabelService | None = None) -> None:
    """替换或清除服务单例（测试时使用）"""
    global _label_service
    _label_service = service
