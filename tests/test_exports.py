"""
全局导出器测试

测试全局采集器只创建并注册一次。
"""

from __future__ import annotations

import threading

import pytest
from prometheus_client import CollectorRegistry

import cache_exporter.exports as exports
from cache_exporter import CacheExports, CacheMetricsCollector, registered


@pytest.fixture
def fresh_exports(monkeypatch: pytest.MonkeyPatch) -> CollectorRegistry:
    """清空全局实例，并用隔离的注册表代替默认注册表"""
    registry = CollectorRegistry()
    monkeypatch.setattr(exports, "_instance", None)
    monkeypatch.setattr(exports, "REGISTRY", registry)
    return registry


class TestRegistered:
    """测试全局采集器"""

    def test_returns_same_instance(self, fresh_exports: CollectorRegistry) -> None:
        """测试多次调用返回同一实例"""
        first = registered()

        assert isinstance(first, CacheMetricsCollector)
        assert registered() is first
        assert CacheExports().registered() is first

    def test_registered_with_default_registry(self, fresh_exports: CollectorRegistry) -> None:
        """测试实例注册到默认注册表"""
        registered()

        names = {family.name for family in fresh_exports.collect()}

        assert "jcache_cache_hit" in names
        assert len(names) == 6

    def test_concurrent_first_access(self, fresh_exports: CollectorRegistry) -> None:
        """测试并发首次访问只创建并注册一个实例"""
        results: list[CacheMetricsCollector] = []
        errors: list[BaseException] = []
        start = threading.Barrier(8)

        def access() -> None:
            try:
                start.wait()
                results.append(registered())
            except BaseException as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=access) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # 重复注册会因指标名冲突抛出 ValueError
        assert errors == []
        assert len(results) == 8
        assert len({id(r) for r in results}) == 1
