"""
结构校验器

在把持久化数据当作领域数据使用之前，按声明的形状（shape）逐层校验：
- 基本类型: boolean / null / number / string
- 复合类型: object（封闭键集合）/ array（同构元素）
- number / string / array 可附加细化校验函数

校验遵循"首错即返回"：不聚合错误，对象按声明顺序、数组按下标升序遍历，
因此错误路径可以稳定复现。错误以返回值形式给出，不抛异常。
"""

from typing import Any, Callable, Dict, List, Optional, Union

PathItem = Union[str, int]


class _Missing:
    """对象中缺失的键，对应 JSON 语义中的 undefined"""

    def __repr__(self) -> str:
        return "undefined"

    __str__ = __repr__


MISSING = _Missing()


def get_basic_type(value: Any) -> str:
    """
    获取 JSON 值的基本类型名

    Raises:
        TypeError: 值不是解码后的 JSON 数据
    """
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    # bool 是 int 的子类，必须先判断
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    raise TypeError(f"只能校验 JSON 数据, 实际类型: {type(value).__name__}")


class ValidationFailure:
    """
    校验失败结果

    Attributes:
        path: 从根到出错位置的键/下标列表；None 表示不带路径的临时错误
        expected: 期望内容的描述
        got: 实际值（对象越界键报告其基本类型名）
    """

    def __init__(self, path: Optional[List[PathItem]], expected: str, got: Any):
        self.path = path
        self.expected = expected
        self.got = got

    def shift(self, prop: PathItem) -> "ValidationFailure":
        """在路径头部插入上层的键或下标（自底向上拼装路径）"""
        if self.path is None:
            raise ValueError(f'无法为不带路径的错误插入 "{prop}"')
        self.path.insert(0, prop)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": list(self.path) if self.path is not None else None,
            "expected": self.expected,
            "got": self.got if self.got is not MISSING else str(MISSING),
            "message": str(self),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationFailure):
            return NotImplemented
        return (self.path, self.expected, self.got) == (other.path, other.expected, other.got)

    def __repr__(self) -> str:
        return f"ValidationFailure(path={self.path!r}, expected={self.expected!r}, got={self.got!r})"

    def __str__(self) -> str:
        if self.path is not None:
            start = "In " + ".".join(str(p) for p in self.path) + ", expected "
        else:
            start = "Expected "
        return f"{start}{self.expected}, but got {self.got}."


def _no_refinement(value: Any) -> Optional[str]:
    return None


class ValidatorCase:
    """形状基类"""

    def validate(self, value: Any) -> Optional[ValidationFailure]:
        raise NotImplementedError


class RBoolean(ValidatorCase):
    def validate(self, value: Any) -> Optional[ValidationFailure]:
        if isinstance(value, bool):
            return None
        return ValidationFailure([], "boolean", value)


class RNull(ValidatorCase):
    def validate(self, value: Any) -> Optional[ValidationFailure]:
        if value is None:
            return None
        return ValidationFailure([], "null", value)


class RNumber(ValidatorCase):
    """
    数值形状

    Args:
        custom_validate: 细化校验，返回 None 表示通过，否则返回期望描述
    """

    def __init__(self, custom_validate: Callable[[Any], Optional[str]] = _no_refinement):
        self.custom_validate = custom_validate

    def validate(self, value: Any) -> Optional[ValidationFailure]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return ValidationFailure([], "number", value)

        custom_error = self.custom_validate(value)
        if custom_error is not None:
            return ValidationFailure([], custom_error, value)
        return None


class RString(ValidatorCase):
    """字符串形状，可附加细化校验"""

    def __init__(self, custom_validate: Callable[[str], Optional[str]] = _no_refinement):
        self.custom_validate = custom_validate

    def validate(self, value: Any) -> Optional[ValidationFailure]:
        if not isinstance(value, str):
            return ValidationFailure([], "string", value)

        custom_error = self.custom_validate(value)
        if custom_error is not None:
            return ValidationFailure([], custom_error, value)
        return None


class RObject(ValidatorCase):
    """
    对象形状（封闭键集合）

    先拒绝任何未声明的键，再按声明顺序逐键校验。
    缺失的键以 MISSING 交给对应形状校验。
    """

    def __init__(self, shape: Dict[str, ValidatorCase]):
        self.shape = shape

    def validate(self, value: Any) -> Optional[ValidationFailure]:
        basic_type = get_basic_type(value)
        if basic_type != "object":
            return ValidationFailure([], "object", basic_type)

        for prop in value:
            if prop not in self.shape:
                return ValidationFailure([prop], "undefined", get_basic_type(value[prop]))

        for prop, validator in self.shape.items():
            failure = validator.validate(value.get(prop, MISSING))
            if failure is not None:
                return failure.shift(prop)
        return None


class RArray(ValidatorCase):
    """
    数组形状（同构元素）

    元素按下标升序校验；全部通过后才运行整体细化校验。
    """

    def __init__(
        self,
        of: ValidatorCase,
        custom_validate: Callable[[list], Optional[str]] = _no_refinement,
    ):
        self.of = of
        self.custom_validate = custom_validate

    def validate(self, value: Any) -> Optional[ValidationFailure]:
        basic_type = get_basic_type(value)
        if basic_type != "array":
            return ValidationFailure([], "array", basic_type)

        for index, element in enumerate(value):
            failure = self.of.validate(element)
            if failure is not None:
                return failure.shift(index)

        custom_error = self.custom_validate(value)
        if custom_error is not None:
            return ValidationFailure([], custom_error, value)
        return None


class Validator:
    """
    命名形状注册表

    使用示例:
        validator = Validator({"point": RObject({"x": RNumber(), "y": RNumber()})})
        result = validator.validate({"x": 1, "y": 2}, "point")
        if isinstance(result, ValidationFailure):
            ...
    """

    def __init__(self, types: Dict[str, ValidatorCase]):
        self.types = types

    def validate(self, value: Any, as_: str) -> Union[Any, ValidationFailure]:
        failure = self.types[as_].validate(value)
        return failure if failure is not None else value
