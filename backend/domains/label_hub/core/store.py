"""
快照存储层

在键值存储之上维护当前快照与有界撤销历史:
- database: 当前快照（JSON 文本）
- history: 历史快照列表（最近的在前）
- saveHistoryCounter: 历史合并计数

合并窗口由保存计数驱动，与真实时间无关：窗口内的连续保存只覆盖
history[0]；窗口结束后的下一次保存在头部插入新条目并截断到最大长度。
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from domains.core.exceptions import StorageError

from ..settings import LabelHubSettings, StorageBackend, get_settings
from .schema import empty_snapshot

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """键值存储接口，值为字符串"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """读取键，不存在返回 None"""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """写入键"""

    @abstractmethod
    def delete(self, key: str) -> None:
        """删除键，不存在时忽略"""


class MemoryKeyValueStore(KeyValueStore):
    """内存键值存储（测试与临时会话）"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class FileKeyValueStore(KeyValueStore):
    """
    文件键值存储

    每个键对应目录下的一个 UTF-8 文件，写入通过临时文件原子替换完成。
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"读取 {key} 失败: {e}", key=key, cause=e) from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(path.suffix + f".tmp.{os.getpid()}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise StorageError(f"写入 {key} 失败: {e}", key=key, cause=e) from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"删除 {key} 失败: {e}", key=key, cause=e) from e


class SnapshotRepository:
    """
    快照仓库

    Args:
        kv: 键值存储
        history_every: 合并窗口（连续覆盖次数）
        max_history: 历史最大条数
    """

    def __init__(
        self,
        kv: KeyValueStore,
        history_every: int = 15,
        max_history: int = 80,
        database_key: str = "database",
        history_key: str = "history",
        counter_key: str = "saveHistoryCounter",
    ):
        self.kv = kv
        self.history_every = history_every
        self.max_history = max_history
        self.database_key = database_key
        self.history_key = history_key
        self.counter_key = counter_key

    @classmethod
    def from_settings(cls, settings: Optional[LabelHubSettings] = None) -> "SnapshotRepository":
        settings = settings or get_settings()
        if settings.storage_backend == StorageBackend.MEMORY:
            kv: KeyValueStore = MemoryKeyValueStore()
        else:
            kv = FileKeyValueStore(settings.data_dir)
        return cls(
            kv,
            history_every=settings.history_every,
            max_history=settings.max_history,
            database_key=settings.database_key,
            history_key=settings.history_key,
            counter_key=settings.counter_key,
        )

    # ==================== 读取 ====================

    def boot(self) -> Optional[str]:
        """
        启动读取当前快照

        Returns:
            快照 JSON 文本；首次启动时写入空库与空历史并返回 None
        """
        state = self.kv.get(self.database_key)
        if state is None:
            self.kv.set(self.database_key, json.dumps(empty_snapshot()))
            self.kv.set(self.history_key, "[]")
            logger.info("snapshot_store_initialized")
        return state

    def last_saved(self) -> Any:
        state = self.kv.get(self.database_key)
        return json.loads(state) if state is not None else empty_snapshot()

    def history(self) -> List[Any]:
        """历史快照（最近的在前）"""
        state = self.kv.get(self.history_key)
        return json.loads(state) if state is not None else []

    def save_counter(self) -> int:
        state = self.kv.get(self.counter_key)
        if state is None:
            self.kv.set(self.counter_key, "0")
            return 0
        return int(state)

    # ==================== 写入 ====================

    def save(self, raw: Dict[str, Any]) -> None:
        """
        保存完整快照并维护历史

        计数未到窗口时覆盖 history[0]；否则计数归零，
        在头部插入上一份快照并截断历史。

        任一写入失败时，已写入的键恢复为保存前的内容，再重新抛出异常。
        """
        history = self.history()
        last_saved = self.last_saved()
        previous = {key: self.kv.get(key) for key in (self.counter_key, self.history_key)}
        counter = int(previous[self.counter_key] or 0)

        if counter < self.history_every:
            next_counter = counter + 1
            if history:
                history[0] = last_saved
            else:
                history.append(last_saved)
        else:
            next_counter = 0
            history.insert(0, last_saved)
            del history[self.max_history:]

        writes = [
            (self.counter_key, str(next_counter)),
            (self.history_key, json.dumps(history)),
            (self.database_key, json.dumps(raw)),
        ]
        written: List[str] = []
        try:
            for key, value in writes:
                self.kv.set(key, value)
                written.append(key)
        except Exception:
            self._restore(written, previous)
            raise

        logger.debug("snapshot_saved: counter=%d history=%d", counter, len(history))

    def _restore(self, keys: List[str], previous: Dict[str, Optional[str]]) -> None:
        """把已写入的键恢复为保存前的内容（原本不存在的键被删除）"""
        for key in reversed(keys):
            if previous[key] is None:
                self.kv.delete(key)
            else:
                self.kv.set(key, previous[key])
        logger.warning("snapshot_save_rolled_back: keys=%s", keys)

    def edit_raw(self, editor: Callable[[Any, List[Any]], Dict[str, Any]]) -> Dict[str, Any]:
        """
        直接编辑原始快照

        editor 接收 (当前快照, 历史) 返回新快照，结果按普通保存写入。
        新快照不经过校验，下次加载时才会被检查。
        """
        raw = editor(self.last_saved(), self.history())
        self.save(raw)
        logger.warning("snapshot_edited_raw")
        return raw
