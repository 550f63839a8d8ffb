"""
快照导入流水线

把通过结构校验的原始快照构建为内存中的 Database。各步骤依次执行，
每一步完整扫描输入后才进入下一步，遇到第一个违反不变量的情况立即中止:

1. 注册标签: 名称必须唯一
2. 解析祖先: 祖先名必须存在，且同一标签内不能重复
3. 环检测: 以标签总数为预算沿祖先边深度优先下行，预算耗尽即存在环
4. 传递闭包检查: 祖先的祖先必须已在自身祖先集合中
5. 导入笔记: 标签必须存在、不能重复，且必须向上闭合（严格模式）
"""

import json
import logging
import math
from collections import deque
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .models import Database, Label, Text
from .schema import parse_timestamp, snapshot_validator
from .typecheck import ValidationFailure

if TYPE_CHECKING:
    from .store import SnapshotRepository

logger = logging.getLogger(__name__)


def import_bare_labels(db: Database, raw: Dict[str, Any]) -> Optional[ValidationFailure]:
    for index, raw_label in enumerate(raw["labels"]):
        name = raw_label["name"]
        if name in db.labels:
            return ValidationFailure(["labels", index], "a unique label name", name)

        db.labels[name] = Label(
            name=name,
            color=tuple(int(c) for c in raw_label["color"]),
            description=raw_label["description"],
        )
    return None


def import_label_ancestors(db: Database, raw: Dict[str, Any]) -> Optional[ValidationFailure]:
    for l_index, raw_label in enumerate(raw["labels"]):
        label = db.labels[raw_label["name"]]

        for a_index, ancestor_name in enumerate(raw_label["ancestors"]):
            ancestor = db.labels.get(ancestor_name)
            if ancestor is None:
                return ValidationFailure(
                    ["labels", l_index, "ancestors", a_index],
                    "an existing label",
                    ancestor_name,
                )
            if label.has_ancestor(ancestor):
                return ValidationFailure(
                    ["labels", l_index, "ancestors", a_index],
                    "a unique ancestor",
                    ancestor.name,
                )
            label.ancestors.append(ancestor)
    return None


def ancestor_heights(labels: List[Label]) -> Dict[Label, float]:
    """
    计算每个标签沿祖先边的最长路径长度

    能到达环的标签高度为无穷大。
    """
    pending = {label: len(label.ancestors) for label in labels}
    dependents: Dict[Label, List[Label]] = {label: [] for label in labels}
    for label in labels:
        for ancestor in label.ancestors:
            dependents[ancestor].append(label)

    heights: Dict[Label, float] = {}
    ready = deque(label for label in labels if not label.ancestors)
    while ready:
        label = ready.popleft()
        heights[label] = max((heights[a] + 1 for a in label.ancestors), default=0)
        for dependent in dependents[label]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                ready.append(dependent)

    for label in labels:
        heights.setdefault(label, math.inf)
    return heights


def validate_label_cycles(db: Database) -> Optional[ValidationFailure]:
    """
    环检测

    对每个标签以 len(labels) 为预算做深度优先下行，预算归零即存在环。
    下行不在首次归零处停止，同一起点后续的归零会覆盖先前的结果，
    因此报告的是深度优先顺序中最后一个归零的标签。
    借助最长路径长度，每一层直接选出最后一个仍能耗尽预算的祖先，
    与逐条路径遍历的结果一致，复杂度为线性。
    """
    labels = list(db.labels.values())
    budget = len(labels)
    heights = ancestor_heights(labels)

    for root in labels:
        if heights[root] < budget:
            continue

        current, remaining = root, budget
        while remaining > 0:
            current = [a for a in current.ancestors if heights[a] >= remaining - 1][-1]
            remaining -= 1

        return ValidationFailure(
            ["labels"],
            "an acyclic graph of ancestors",
            f'a cycle containing the label "{current.name}"',
        )
    return None


def validate_label_transitivity(db: Database) -> Optional[ValidationFailure]:
    for label in db.labels.values():
        own = set(label.ancestors)
        for ancestor in label.ancestors:
            for grand_ancestor in ancestor.ancestors:
                if grand_ancestor not in own:
                    return ValidationFailure(
                        ["labels"],
                        "transitive ancestorship",
                        f'label "{label.name}" without ancestor "{grand_ancestor.name}"'
                        f' (related through "{ancestor.name}")',
                    )
    return None


def import_texts(db: Database, raw: Dict[str, Any]) -> Optional[ValidationFailure]:
    seen_ids = set()

    for t_index, raw_text in enumerate(raw["texts"]):
        text_id = int(raw_text["id"])
        if text_id in seen_ids:
            return ValidationFailure(["texts", t_index, "id"], "a unique text id", text_id)
        seen_ids.add(text_id)

        label_names = raw_text["labels"]
        labels: List[Label] = []
        for l_index, label_name in enumerate(label_names):
            label = db.labels.get(label_name)
            if label is None:
                return ValidationFailure(
                    ["texts", t_index, "labels", l_index],
                    "an existing label",
                    label_name,
                )
            if label in labels:
                return ValidationFailure(
                    ["texts", t_index, "labels", l_index],
                    "a unique label",
                    label_name,
                )

            for ancestor in label.ancestors:
                if ancestor.name not in label_names:
                    return ValidationFailure(
                        ["texts", t_index, "labels", l_index],
                        "ancestor labels to be present",
                        f'"{label_name}" without its ancestor "{ancestor.name}"',
                    )
            labels.append(label)

        db.texts.append(Text(
            id=text_id,
            text=raw_text["text"],
            date=parse_timestamp(raw_text["date"]),
            labels=labels,
        ))
    return None


def import_validated(db: Database, raw: Dict[str, Any]) -> Database:
    """对已通过结构校验的快照执行导入流水线（首错即停）"""
    db.error = (
        import_bare_labels(db, raw)
        or import_label_ancestors(db, raw)
        or validate_label_cycles(db)
        or validate_label_transitivity(db)
        or import_texts(db, raw)
    )
    return db


def import_database(unvalidated: Any, db: Optional[Database] = None) -> Database:
    """
    校验并导入原始快照

    Args:
        unvalidated: 解码后的 JSON 数据
        db: 目标容器，默认新建

    Returns:
        Database，失败时 error 字段被设置且内容不可使用
    """
    db = db if db is not None else Database()
    db.clear()

    raw = snapshot_validator.validate(unvalidated, "database")
    if isinstance(raw, ValidationFailure):
        db.error = raw
        return db

    return import_validated(db, raw)


def load_database(repository: "SnapshotRepository", db: Optional[Database] = None) -> Database:
    """
    启动加载

    键不存在时初始化空库与空历史；否则解码、校验并导入。
    JSON 解码失败作为不带路径的终止性错误记录。
    """
    db = db if db is not None else Database()
    db.clear()

    state = repository.boot()
    if state is None:
        logger.info("database_initialized_empty")
        return db

    try:
        decoded = json.loads(state)
    except json.JSONDecodeError as e:
        db.error = ValidationFailure(None, "valid JSON", str(e))
    else:
        import_database(decoded, db)

    if db.error is not None:
        logger.error("database_load_failed: %s", db.error)
    else:
        logger.info("database_loaded: labels=%d texts=%d", len(db.labels), len(db.texts))
    return db
