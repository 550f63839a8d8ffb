"""
快照形状声明

持久化快照的结构:
    {
      "labels": [{"name", "color", "description", "ancestors"}],
      "texts":  [{"id", "text", "date", "labels"}]
    }

日期使用固定的规范形式 YYYY-MM-DDTHH:MM:SS.mmmZ（UTC，毫秒精度），
解析后再序列化必须得到完全相同的字符串。
"""

from datetime import datetime, timezone
from typing import Any, Optional

from .typecheck import RArray, RNumber, RObject, RString, Validator

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
DATE_EXPECTATION = "a canonical `YYYY-MM-DDTHH:MM:SS.mmmZ` date"


def format_timestamp(moment: datetime) -> str:
    """序列化为规范日期字符串（毫秒精度，UTC）"""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    millis = moment.microsecond // 1000
    return f"{moment.strftime(DATE_FORMAT)}.{millis:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """
    解析规范日期字符串

    Raises:
        ValueError: 格式不符
    """
    if not value.endswith("Z"):
        raise ValueError(f"缺少 UTC 标记 Z: {value}")
    return datetime.strptime(value[:-1], DATE_FORMAT + ".%f").replace(tzinfo=timezone.utc)


def check_canonical_date(value: str) -> Optional[str]:
    try:
        canonical = format_timestamp(parse_timestamp(value))
    except ValueError:
        return DATE_EXPECTATION
    return None if canonical == value else DATE_EXPECTATION


def check_color_component(value: Any) -> Optional[str]:
    if isinstance(value, float) and not value.is_integer():
        return "an integer between 0 and 255"
    if 0 <= value <= 255:
        return None
    return "an integer between 0 and 255"


def check_color_length(value: list) -> Optional[str]:
    return None if len(value) == 3 else "a color of three components"


def check_text_id(value: Any) -> Optional[str]:
    if isinstance(value, float) and not value.is_integer():
        return "an integer id"
    return None if value >= 0 else "an integer id"


LABEL_SHAPE = RObject({
    "name": RString(),
    "color": RArray(RNumber(check_color_component), check_color_length),
    "description": RString(),
    "ancestors": RArray(RString()),
})

TEXT_SHAPE = RObject({
    "id": RNumber(check_text_id),
    "text": RString(),
    "date": RString(check_canonical_date),
    "labels": RArray(RString()),
})

TEXT_CANDIDATE_SHAPE = RObject({
    "text": RString(),
    "labels": RArray(RString()),
})

DATABASE_SHAPE = RObject({
    "labels": RArray(LABEL_SHAPE),
    "texts": RArray(TEXT_SHAPE),
})

snapshot_validator = Validator({
    "database": DATABASE_SHAPE,
    "label": LABEL_SHAPE,
    "text": TEXT_SHAPE,
    "text_candidate": TEXT_CANDIDATE_SHAPE,
})


def empty_snapshot() -> dict:
    """空库快照"""
    return {"labels": [], "texts": []}
