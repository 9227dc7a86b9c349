"""
管理注册表模块

统计对象（bean）按结构化对象名注册在管理注册表中，导出器通过对象名
判断统计是否可用并读取计数属性。

核心内容:
- ObjectName: 不可变的结构化对象名 ``domain:key=value,...``
- ManagementRegistry: 导出器依赖的最小能力（是否注册、读取属性），便于测试替换
- PlatformManagementRegistry: 默认的进程内实现，线程安全

使用示例:
    >>> registry = get_platform_registry()
    >>> name = ObjectName.parse("javax.cache:type=CacheStatistics,CacheManager=mgr,Cache=users")
    >>> registry.register_bean(name, {"CacheHits": 10, "CacheMisses": 3})
    >>> registry.get_attribute(name, "CacheHits")
    10
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .exceptions import (
    AttributeNotFoundError,
    BeanOperationError,
    InstanceAlreadyExistsError,
    InstanceNotFoundError,
    MalformedObjectNameError,
)

logger = logging.getLogger(__name__)

# 键中不允许出现的字符
_ILLEGAL_KEY_CHARS = frozenset(',=:"*?\n')
# 值中不允许出现的字符，值中的 * 和 ? 表示通配模式
_ILLEGAL_VALUE_CHARS = frozenset(',=:"\n')
_PATTERN_CHARS = frozenset("*?")
_ILLEGAL_DOMAIN_CHARS = frozenset(":\n")


@dataclass(frozen=True)
class ObjectName:
    """
    结构化对象名

    由域和一组键属性组成，字符串形式为 ``domain:key1=value1,key2=value2``。
    相等性只取决于域和键属性集合，与属性书写顺序无关。

    校验规则:
    - 域不能包含冒号和换行，可以为空
    - 至少包含一个键属性，键不能为空且不能重复
    - 键不能包含 ``, = : " * ?`` 和换行
    - 值不能包含 ``, = : "`` 和换行，可以为空
    - 值中的 ``*`` 和 ``?`` 使对象名成为通配模式，模式不能注册，也不会匹配已注册的对象

    示例:
        >>> a = ObjectName.parse("d:b=2,a=1")
        >>> b = ObjectName.of("d", {"a": "1", "b": "2"})
        >>> a == b
        True
        >>> str(a)
        'd:a=1,b=2'
    """

    domain: str
    properties: tuple[tuple[str, str], ...]

    def __post_init__(self) -> None:
        """校验并规范化键属性顺序"""
        if any(ch in _ILLEGAL_DOMAIN_CHARS for ch in self.domain):
            msg = f"对象名的域包含非法字符: {self.domain!r}"
            raise MalformedObjectNameError(msg)

        if not self.properties:
            msg = f"对象名缺少键属性: {self.domain!r}"
            raise MalformedObjectNameError(msg)

        seen: set[str] = set()
        for key, value in self.properties:
            if not key:
                msg = "对象名的键不能为空"
                raise MalformedObjectNameError(msg)
            if key in seen:
                msg = f"对象名的键重复: {key!r}"
                raise MalformedObjectNameError(msg)
            seen.add(key)
            if any(ch in _ILLEGAL_KEY_CHARS for ch in key) or any(
                ch in _ILLEGAL_VALUE_CHARS for ch in value
            ):
                msg = f"对象名的键属性包含非法字符: {key!r}={value!r}"
                raise MalformedObjectNameError(msg)

        # 规范形式按键排序
        object.__setattr__(self, "properties", tuple(sorted(self.properties)))

    @classmethod
    def of(cls, domain: str, properties: Mapping[str, str] | Iterable[tuple[str, str]]) -> ObjectName:
        """
        由域和键属性创建对象名

        Args:
            domain: 域
            properties: 键属性（字典或键值对序列，序列中重复的键会被拒绝）

        Returns:
            ObjectName 实例

        Raises:
            MalformedObjectNameError: 对象名不合法
        """
        pairs = properties.items() if isinstance(properties, Mapping) else properties
        return cls(domain, tuple((str(k), str(v)) for k, v in pairs))

    @classmethod
    def parse(cls, text: str) -> ObjectName:
        """
        解析字符串形式的对象名

        Args:
            text: 形如 ``domain:key=value,...`` 的字符串

        Returns:
            ObjectName 实例

        Raises:
            MalformedObjectNameError: 字符串格式不合法
        """
        domain, sep, rest = text.partition(":")
        if not sep or not rest:
            msg = f"对象名缺少键属性列表: {text!r}"
            raise MalformedObjectNameError(msg)

        pairs = []
        for item in rest.split(","):
            key, eq, value = item.partition("=")
            if not eq:
                msg = f"对象名的键属性缺少等号: {item!r}"
                raise MalformedObjectNameError(msg)
            pairs.append((key, value))

        return cls(domain, tuple(pairs))

    def get_key_property(self, key: str) -> str | None:
        """获取键属性的值，不存在返回 None"""
        for k, v in self.properties:
            if k == key:
                return v
        return None

    @property
    def is_pattern(self) -> bool:
        """键属性值中是否包含通配符"""
        return any(ch in _PATTERN_CHARS for _, v in self.properties for ch in v)

    @property
    def canonical_name(self) -> str:
        """规范字符串形式（键按字典序排列）"""
        props = ",".join(f"{k}={v}" for k, v in self.properties)
        return f"{self.domain}:{props}"

    def __str__(self) -> str:
        return self.canonical_name


@runtime_checkable
class ManagementRegistry(Protocol):
    """
    管理注册表能力

    导出器只依赖这两个操作，测试中可以用任意实现替换。
    """

    def is_registered(self, object_name: ObjectName) -> bool:
        """对象名下是否注册了统计对象"""
        ...

    def get_attribute(self, object_name: ObjectName, attribute: str) -> Any:
        """
        读取统计对象的属性

        Raises:
            InstanceNotFoundError: 对象名下没有统计对象
            AttributeNotFoundError: 统计对象没有该属性
            BeanOperationError: 统计对象读取属性时抛出异常
        """
        ...


class PlatformManagementRegistry:
    """
    进程内管理注册表

    以对象名为键保存统计对象，所有操作由 RLock 保护。

    统计对象可以是:
    - 映射: 属性名即键
    - 任意对象: 属性名即 Python 属性（包括 property）

    如果属性值是可调用对象，读取时会调用它（无参数）并返回结果，
    便于注册实时计算的计数器。

    使用示例:
        >>> registry = PlatformManagementRegistry()
        >>> registry.register_bean("javax.cache:type=CacheStatistics,Cache=users", stats)
        >>> registry.is_registered(ObjectName.parse("javax.cache:type=CacheStatistics,Cache=users"))
        True
    """

    def __init__(self) -> None:
        self._beans: dict[ObjectName, Any] = {}
        self._lock = threading.RLock()

    @staticmethod
    def _to_object_name(object_name: ObjectName | str) -> ObjectName:
        if isinstance(object_name, ObjectName):
            return object_name
        return ObjectName.parse(object_name)

    def register_bean(self, object_name: ObjectName | str, bean: Any) -> ObjectName:
        """
        注册统计对象

        Args:
            object_name: 对象名（字符串会被解析）
            bean: 统计对象

        Returns:
            实际注册使用的对象名

        Raises:
            InstanceAlreadyExistsError: 对象名已被注册
            MalformedObjectNameError: 对象名不合法或是通配模式
        """
        name = self._to_object_name(object_name)
        if name.is_pattern:
            msg = f"不能以通配模式注册统计对象: {name}"
            raise MalformedObjectNameError(msg)
        with self._lock:
            if name in self._beans:
                msg = f"对象名已注册: {name}"
                raise InstanceAlreadyExistsError(msg)
            self._beans[name] = bean
        logger.debug("Registered statistics bean %s", name)
        return name

    def unregister_bean(self, object_name: ObjectName | str) -> Any:
        """
        注销统计对象

        Returns:
            被注销的统计对象

        Raises:
            InstanceNotFoundError: 对象名未注册
        """
        name = self._to_object_name(object_name)
        with self._lock:
            try:
                bean = self._beans.pop(name)
            except KeyError:
                msg = f"对象名未注册: {name}"
                raise InstanceNotFoundError(msg) from None
        logger.debug("Unregistered statistics bean %s", name)
        return bean

    def is_registered(self, object_name: ObjectName) -> bool:
        """对象名下是否注册了统计对象，通配模式总是返回 False"""
        if object_name.is_pattern:
            return False
        with self._lock:
            return object_name in self._beans

    def get_attribute(self, object_name: ObjectName, attribute: str) -> Any:
        """
        读取统计对象的属性

        读取在锁外进行，统计对象的读取方法可以安全地访问注册表。

        Raises:
            InstanceNotFoundError: 对象名下没有统计对象
            AttributeNotFoundError: 统计对象没有该属性
            BeanOperationError: 统计对象读取属性时抛出异常
        """
        with self._lock:
            try:
                bean = self._beans[object_name]
            except KeyError:
                msg = f"对象名未注册: {object_name}"
                raise InstanceNotFoundError(msg) from None

        if isinstance(bean, Mapping):
            if attribute not in bean:
                msg = f"{object_name} 没有属性 {attribute}"
                raise AttributeNotFoundError(msg)
            value = bean[attribute]
        else:
            try:
                value = getattr(bean, attribute)
            except AttributeError as e:
                msg = f"{object_name} 没有属性 {attribute}"
                raise AttributeNotFoundError(msg) from e
            except Exception as e:
                msg = f"读取 {object_name} 的属性 {attribute} 失败: {e}"
                raise BeanOperationError(msg) from e

        if callable(value):
            try:
                value = value()
            except Exception as e:
                msg = f"读取 {object_name} 的属性 {attribute} 失败: {e}"
                raise BeanOperationError(msg) from e

        return value

    def query_names(self, domain: str | None = None) -> set[ObjectName]:
        """
        查询已注册的对象名

        Args:
            domain: 只返回该域下的对象名，None 表示全部

        Returns:
            对象名集合
        """
        with self._lock:
            if domain is None:
                return set(self._beans)
            return {name for name in self._beans if name.domain == domain}

    def __len__(self) -> int:
        with self._lock:
            return len(self._beans)

    def __repr__(self) -> str:
        return f"PlatformManagementRegistry(beans={len(self)})"


_platform_registry: PlatformManagementRegistry | None = None
_platform_lock = threading.Lock()


def get_platform_registry() -> PlatformManagementRegistry:
    """
    获取进程级管理注册表

    首次调用时创建，之后所有调用返回同一个实例。
    未注入注册表的导出器使用它。
    """
    global _platform_registry
    if _platform_registry is None:
        with _platform_lock:
            if _platform_registry is None:
                _platform_registry = PlatformManagementRegistry()
    return _platform_registry


__all__ = [
    "ObjectName",
    "ManagementRegistry",
    "PlatformManagementRegistry",
    "get_platform_registry",
]
