"""
缓存统计采集模块

从管理注册表读取缓存的统计对象，并以 Prometheus Counter 指标族的形式导出。
导出器只转发缓存已经计算好的计数，不自行计算或保存任何统计。

使用示例:
    >>> from prometheus_client import generate_latest
    >>> collector = CacheMetricsCollector().register()
    >>> collector.add_cache(users_cache)
    >>> print(generate_latest().decode())

以上示例导出的指标形如:

    jcache_cache_hit_total{cache="users"} 10.0
    jcache_cache_miss_total{cache="users"} 3.0
    jcache_cache_requests_total{cache="users"} 13.0
    jcache_cache_put_total{cache="users"} 5.0
    jcache_cache_eviction_total{cache="users"} 1.0
    jcache_cache_remove_total{cache="users"} 1.0

注意: 缓存必须开启统计，其统计对象才会出现在管理注册表中；
未开启统计的缓存不会产生任何样本。
"""

from __future__ import annotations

import logging
import re
import threading
from typing import TYPE_CHECKING, Any

from prometheus_client.core import REGISTRY, CounterMetricFamily
from prometheus_client.registry import Collector

from .config import ExporterConfig
from .exceptions import MalformedObjectNameError, StatisticsReadError
from .management import ObjectName, get_platform_registry
from .types import (
    CACHE_EVICTIONS,
    CACHE_GETS,
    CACHE_HITS,
    CACHE_MISSES,
    CACHE_PUTS,
    CACHE_REMOVALS,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prometheus_client.registry import CollectorRegistry

    from .management import ManagementRegistry
    from .types import MonitoredCache

logger = logging.getLogger(__name__)

LABEL_NAMES = ["cache"]

# (指标名, 帮助文本, 统计属性)，顺序即导出顺序
METRIC_DEFINITIONS: tuple[tuple[str, str, str], ...] = (
    ("jcache_cache_hit_total", "Cache hit totals", CACHE_HITS),
    ("jcache_cache_miss_total", "Cache miss totals", CACHE_MISSES),
    ("jcache_cache_requests_total", "Cache request totals, hits + misses", CACHE_GETS),
    (
        "jcache_cache_put_total",
        "Cache put totals, the number of manually added entries",
        CACHE_PUTS,
    ),
    (
        "jcache_cache_eviction_total",
        "Cache eviction totals, doesn't include manually removed entries",
        CACHE_EVICTIONS,
    ),
    (
        "jcache_cache_remove_total",
        "Cache removal totals, the number of manually removed entries",
        CACHE_REMOVALS,
    ),
)

_SANITIZE_PATTERN = re.compile(r"[,:=\n]")


def sanitize(value: Any) -> str:
    """
    清洗对象名中的键属性值

    将逗号、冒号、等号和换行替换为句点，None 清洗为空字符串。

    示例:
        >>> sanitize("a,b:c=d")
        'a.b.c.d'
        >>> sanitize(None)
        ''
    """
    if value is None:
        return ""
    return _SANITIZE_PATTERN.sub(".", str(value))


def cache_statistics_object_name(
    cache_manager_uri: str,
    cache_name: str,
    *,
    domain: str = "javax.cache",
    statistics_type: str = "CacheStatistics",
) -> ObjectName:
    """
    组成缓存统计对象名

    参数应当已经过 ``sanitize`` 清洗。

    Args:
        cache_manager_uri: 缓存管理器 URI
        cache_name: 缓存名
        domain: 对象名的域
        statistics_type: type 键属性的值

    Returns:
        ``<domain>:type=<statistics_type>,CacheManager=<uri>,Cache=<name>``

    Raises:
        MalformedObjectNameError: 缓存名导致对象名不合法
    """
    try:
        return ObjectName.of(
            domain,
            (
                ("type", statistics_type),
                ("CacheManager", cache_manager_uri),
                ("Cache", cache_name),
            ),
        )
    except MalformedObjectNameError as e:
        msg = f"Cache name '{cache_name}' results in an invalid object name"
        raise MalformedObjectNameError(msg) from e


class _StatisticsLookup:
    """按对象名查询并读取一个统计对象"""

    def __init__(self, registry: ManagementRegistry, object_name: ObjectName) -> None:
        self._registry = registry
        self._object_name = object_name

    def is_registered(self) -> bool:
        try:
            return bool(self._registry.is_registered(self._object_name))
        except Exception as e:
            msg = f"查询 {self._object_name} 是否注册失败: {e}"
            raise StatisticsReadError(msg) from e

    def get(self, attribute: str) -> int:
        try:
            value = self._registry.get_attribute(self._object_name, attribute)
        except Exception as e:
            msg = f"读取 {self._object_name} 的属性 {attribute} 失败: {e}"
            raise StatisticsReadError(msg) from e

        # bool 是 int 的子类，但不是计数
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"{self._object_name} 的属性 {attribute} 不是整数: {value!r}"
            raise StatisticsReadError(msg)
        return value


class CacheMetricsCollector(Collector):
    """
    缓存统计采集器

    维护被监控缓存的集合，每次采集时读取各缓存统计对象的六个计数，
    生成以缓存名为标签的 Counter 指标族。

    - 缓存按名字注册，同名注册会替换之前的缓存
    - 导出的标签值是未清洗的原始缓存名，None 视为空字符串
    - 含 * 或 ? 的缓存名组成通配模式，不产生样本
    - 六个指标族总会返回，即使没有任何样本
    - 读取统计失败默认中止整次采集（见 ExporterConfig.isolate_failures）

    线程安全: 注册、注销和采集可以在任意线程并发调用。

    使用示例:
        >>> collector = CacheMetricsCollector().register(registry)
        >>> collector.add_cache(cache)
        >>> registry.get_sample_value("jcache_cache_hit_total", {"cache": "users"})
        10.0
    """

    def __init__(
        self,
        management_registry: ManagementRegistry | None = None,
        config: ExporterConfig | None = None,
    ) -> None:
        """
        初始化采集器

        Args:
            management_registry: 管理注册表，None 表示每次采集时使用进程级注册表
            config: 导出器配置，None 表示使用默认配置
        """
        self._management_registry = management_registry
        self.config = config or ExporterConfig()
        self._children: dict[str, MonitoredCache] = {}
        self._lock = threading.RLock()

    # ========== 缓存注册 ==========

    def add_cache(self, cache: MonitoredCache) -> None:
        """
        添加缓存，或替换同名的已有缓存

        缓存名即指标的标签值，None 与空字符串视为同一个名字。
        对同名旧缓存的引用随之失效。

        Args:
            cache: 被监控的缓存
        """
        name = "" if cache.name is None else cache.name
        with self._lock:
            previous = self._children.get(name)
            self._children[name] = cache
        if previous is not None and previous is not cache:
            logger.debug("Replaced monitored cache %r", name)
        else:
            logger.debug("Added monitored cache %r", name)

    def remove_cache(self, cache_name: str | None) -> MonitoredCache | None:
        """
        移除指定名字的缓存

        Args:
            cache_name: 缓存名，None 与空字符串等价

        Returns:
            被移除的缓存，未注册时返回 None
        """
        if cache_name is None:
            cache_name = ""
        with self._lock:
            cache = self._children.pop(cache_name, None)
        if cache is not None:
            logger.debug("Removed monitored cache %r", cache_name)
        return cache

    def clear(self) -> None:
        """移除所有缓存"""
        with self._lock:
            self._children.clear()
        logger.debug("Cleared all monitored caches")

    # ========== 采集 ==========

    @staticmethod
    def _new_families() -> list[CounterMetricFamily]:
        return [
            CounterMetricFamily(name, documentation, labels=LABEL_NAMES)
            for name, documentation, _ in METRIC_DEFINITIONS
        ]

    def _object_name_for(self, cache: MonitoredCache, cache_name: str) -> ObjectName:
        cache_manager_uri = sanitize(cache.cache_manager.uri)
        return cache_statistics_object_name(
            cache_manager_uri,
            sanitize(cache_name),
            domain=self.config.object_name_domain,
            statistics_type=self.config.statistics_type,
        )

    def _read_statistics(
        self, registry: ManagementRegistry, object_name: ObjectName
    ) -> list[int] | None:
        """读取六个计数，统计对象未注册时返回 None"""
        # 通配模式不对应任何统计对象
        if object_name.is_pattern:
            return None
        lookup = _StatisticsLookup(registry, object_name)
        if not lookup.is_registered():
            return None
        return [lookup.get(attribute) for _, _, attribute in METRIC_DEFINITIONS]

    def collect(self) -> Iterable[CounterMetricFamily]:
        """
        采集所有已注册缓存的统计

        Returns:
            六个 Counter 指标族（hit、miss、requests、put、eviction、remove）

        Raises:
            StatisticsReadError: 读取统计失败（isolate_failures 为 False 时）
            MalformedObjectNameError: 缓存名无法组成合法的对象名
        """
        families = self._new_families()
        registry = self._management_registry
        if registry is None:
            registry = get_platform_registry()

        with self._lock:
            children = list(self._children.items())

        for cache_name, cache in children:
            object_name = self._object_name_for(cache, cache_name)
            try:
                values = self._read_statistics(registry, object_name)
            except StatisticsReadError:
                if not self.config.isolate_failures:
                    raise
                logger.warning(
                    "Skipping cache %r: failed to read statistics from %s",
                    cache_name,
                    object_name,
                    exc_info=True,
                )
                continue

            if values is None:
                logger.debug("No statistics registered for cache %r (%s)", cache_name, object_name)
                continue

            label_values = [cache_name]
            for family, value in zip(families, values):
                family.add_metric(label_values, value)

        return families

    def describe(self) -> Iterable[CounterMetricFamily]:
        """返回不含样本的指标族，供注册表检查指标名冲突"""
        return self._new_families()

    def register(self, registry: CollectorRegistry = REGISTRY) -> CacheMetricsCollector:
        """
        注册到 Prometheus 注册表

        Args:
            registry: 目标注册表，默认是全局注册表

        Returns:
            采集器自身，便于链式调用
        """
        registry.register(self)
        return self

    # ========== 调试方法 ==========

    def __len__(self) -> int:
        with self._lock:
            return len(self._children)

    def __contains__(self, cache_name: object) -> bool:
        with self._lock:
            return cache_name in self._children

    def __repr__(self) -> str:
        with self._lock:
            names = sorted(str(name) for name in self._children)
        return f"CacheMetricsCollector(caches={names!r}, config={self.config!r})"


__all__ = [
    "CacheMetricsCollector",
    "METRIC_DEFINITIONS",
    "cache_statistics_object_name",
    "sanitize",
]
