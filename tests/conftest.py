"""
Pytest 配置和全局 fixtures

本模块提供测试所需的公共 fixtures 和桩缓存实现。

缓存引擎不属于导出器，这里的 StubCache 只用于在测试中产生真实的统计：
基于 OrderedDict 的 LRU 缓存，开启统计时把统计对象注册到管理注册表。
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from cache_exporter import (
    CacheMetricsCollector,
    ObjectName,
    PlatformManagementRegistry,
    cache_statistics_object_name,
    sanitize,
)


@dataclass
class StubStatistics:
    """桩缓存的统计计数，通过 Cache* 属性暴露给管理注册表"""

    hits: int = 0
    misses: int = 0
    gets: int = 0
    puts: int = 0
    evictions: int = 0
    removals: int = 0

    @property
    def CacheHits(self) -> int:  # noqa: N802
        return self.hits

    @property
    def CacheMisses(self) -> int:  # noqa: N802
        return self.misses

    @property
    def CacheGets(self) -> int:  # noqa: N802
        return self.gets

    @property
    def CachePuts(self) -> int:  # noqa: N802
        return self.puts

    @property
    def CacheEvictions(self) -> int:  # noqa: N802
        return self.evictions

    @property
    def CacheRemovals(self) -> int:  # noqa: N802
        return self.removals


class StubCache:
    """容量受限的 LRU 桩缓存"""

    def __init__(self, name: str | None, cache_manager: StubCacheManager, max_size: int) -> None:
        self.name = name
        self.cache_manager = cache_manager
        self.statistics = StubStatistics()
        self.object_name: ObjectName | None = None
        self._max_size = max_size
        self._data: OrderedDict[Any, Any] = OrderedDict()

    def get(self, key: Any) -> Any:
        self.statistics.gets += 1
        if key not in self._data:
            self.statistics.misses += 1
            return None
        self.statistics.hits += 1
        self._data.move_to_end(key)
        return self._data[key]

    def put(self, key: Any, value: Any) -> None:
        self.statistics.puts += 1
        if key in self._data:
            self._data.move_to_end(key)
        elif len(self._data) >= self._max_size:
            self._data.popitem(last=False)
            self.statistics.evictions += 1
        self._data[key] = value

    def remove(self, key: Any) -> bool:
        if key in self._data:
            del self._data[key]
            self.statistics.removals += 1
            return True
        return False


class StubCacheManager:
    """创建桩缓存，开启统计时注册统计对象"""

    def __init__(self, registry: PlatformManagementRegistry, uri: str = "stub://default") -> None:
        self.uri = uri
        self._registry = registry
        self._caches: list[StubCache] = []

    def create_cache(
        self,
        name: str | None,
        *,
        max_size: int = 10000,
        statistics_enabled: bool = True,
    ) -> StubCache:
        cache = StubCache(name, self, max_size)
        if statistics_enabled:
            cache.object_name = cache_statistics_object_name(sanitize(self.uri), sanitize(name))
            self._registry.register_bean(cache.object_name, cache.statistics)
        self._caches.append(cache)
        return cache

    def close(self) -> None:
        for cache in self._caches:
            if cache.object_name is not None and self._registry.is_registered(cache.object_name):
                self._registry.unregister_bean(cache.object_name)
        self._caches.clear()


@pytest.fixture
def management_registry() -> PlatformManagementRegistry:
    """隔离的管理注册表"""
    return PlatformManagementRegistry()


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """隔离的 Prometheus 注册表"""
    return CollectorRegistry()


@pytest.fixture
def cache_manager(
    management_registry: PlatformManagementRegistry,
) -> Generator[StubCacheManager, None, None]:
    """桩缓存管理器，测试结束时注销所有统计对象"""
    manager = StubCacheManager(management_registry)
    yield manager
    manager.close()


@pytest.fixture
def cache_manager_factory(
    management_registry: PlatformManagementRegistry,
) -> Generator[Callable[..., StubCacheManager], None, None]:
    """创建额外的桩缓存管理器，可指定 URI 和管理注册表"""
    managers: list[StubCacheManager] = []

    def factory(
        uri: str = "stub://default",
        registry: PlatformManagementRegistry | None = None,
    ) -> StubCacheManager:
        if registry is None:
            registry = management_registry
        manager = StubCacheManager(registry, uri=uri)
        managers.append(manager)
        return manager

    yield factory
    for manager in managers:
        manager.close()


@pytest.fixture
def collector(
    management_registry: PlatformManagementRegistry,
    metrics_registry: CollectorRegistry,
) -> CacheMetricsCollector:
    """注册到隔离注册表的采集器"""
    return CacheMetricsCollector(management_registry).register(metrics_registry)
