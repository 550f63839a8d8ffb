"""
标签库配置管理（基于 pydantic-settings）

提供:
- 类型安全的配置
- 环境变量自动绑定（前缀 LABEL_HUB_）
- 配置校验
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """键值存储后端"""
    FILE = "file"
    MEMORY = "memory"


class LabelHubSettings(BaseSettings):
    """
    标签库主配置

    支持从环境变量和 .env 文件加载，例如:
        LABEL_HUB_DATA_DIR=/var/lib/label-hub
        LABEL_HUB_HISTORY_EVERY=15
    """
    model_config = SettingsConfigDict(
        env_prefix="LABEL_HUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Field(default=Path("data") / "label_hub", description="键值存储目录")
    storage_backend: StorageBackend = Field(default=StorageBackend.FILE, description="存储后端")

    # 历史合并窗口：窗口内的连续保存只覆盖最近一条历史
    history_every: int = Field(default=15, ge=0, description="历史合并窗口（保存次数）")
    max_history: int = Field(default=80, ge=1, description="历史最大条数")

    database_key: str = Field(default="database", description="快照键")
    history_key: str = Field(default="history", description="历史键")
    counter_key: str = Field(default="saveHistoryCounter", description="保存计数键")

    @field_validator("database_key", "history_key", "counter_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        if not v or "/" in v or v.startswith("."):
            raise ValueError(f"Invalid storage key: {v!r}")
        return v


@lru_cache
def get_settings() -> LabelHubSettings:
    """
    获取配置单例

    使用 lru_cache 确保只加载一次配置。
    """
    return LabelHubSettings()


def reload_settings() -> LabelHubSettings:
    """清除缓存并重新加载配置"""
    get_settings.cache_clear()
    return get_settings()
