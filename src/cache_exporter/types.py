"""
类型定义模块

本模块定义了导出器使用的协议、常量和类型别名。
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# ========== 统计属性名 ==========

CACHE_HITS = "CacheHits"  # 命中次数
CACHE_MISSES = "CacheMisses"  # 未命中次数
CACHE_GETS = "CacheGets"  # 读取次数（命中 + 未命中）
CACHE_PUTS = "CachePuts"  # 写入次数
CACHE_EVICTIONS = "CacheEvictions"  # 淘汰次数（不含手动删除）
CACHE_REMOVALS = "CacheRemovals"  # 手动删除次数

STATISTICS_ATTRIBUTES: tuple[str, ...] = (
    CACHE_HITS,
    CACHE_MISSES,
    CACHE_GETS,
    CACHE_PUTS,
    CACHE_EVICTIONS,
    CACHE_REMOVALS,
)
"""统计对象必须提供的六个计数属性，顺序与导出的指标族一致"""


# ========== 协议定义 ==========


@runtime_checkable
class CacheManagerHandle(Protocol):
    """
    缓存管理器句柄

    只需要提供 ``uri``，导出器用它组成统计对象名。
    ``uri`` 可以是任意对象，使用时转为字符串。
    """

    @property
    def uri(self) -> Any: ...


@runtime_checkable
class MonitoredCache(Protocol):
    """
    被监控的缓存

    导出器只读取缓存名和所属管理器，不持有缓存的生命周期。

    示例:
        >>> class UserCache:
        ...     name = "users"
        ...     cache_manager = manager
        >>> collector.add_cache(UserCache())
    """

    @property
    def name(self) -> str | None: ...

    @property
    def cache_manager(self) -> CacheManagerHandle: ...


__all__ = [
    "CACHE_HITS",
    "CACHE_MISSES",
    "CACHE_GETS",
    "CACHE_PUTS",
    "CACHE_EVICTIONS",
    "CACHE_REMOVALS",
    "STATISTICS_ATTRIBUTES",
    "CacheManagerHandle",
    "MonitoredCache",
]
