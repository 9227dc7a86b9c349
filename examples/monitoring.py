"""
监控示例

演示如何把缓存的统计对象注册到管理注册表，并通过 CacheMetricsCollector
以 Prometheus 格式导出。
"""

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, generate_latest

from cache_exporter import (
    CacheMetricsCollector,
    ExporterConfig,
    cache_statistics_object_name,
    get_platform_registry,
    sanitize,
)


@dataclass
class DemoCacheManager:
    uri: str


@dataclass
class DemoCache:
    name: str
    cache_manager: DemoCacheManager


def main() -> None:
    manager = DemoCacheManager(uri="demo://default")
    users = DemoCache(name="users", cache_manager=manager)
    sessions = DemoCache(name="sessions:eu", cache_manager=manager)

    # 缓存开启统计后，由缓存自己把统计对象注册到管理注册表
    stats = {"hits": 10, "misses": 3}
    platform = get_platform_registry()
    platform.register_bean(
        cache_statistics_object_name(sanitize(manager.uri), sanitize(users.name)),
        {
            "CacheHits": lambda: stats["hits"],
            "CacheMisses": lambda: stats["misses"],
            "CacheGets": lambda: stats["hits"] + stats["misses"],
            "CachePuts": 5,
            "CacheEvictions": 1,
            "CacheRemovals": 1,
        },
    )
    # sessions:eu 没有开启统计，不会产生样本

    registry = CollectorRegistry()
    collector = CacheMetricsCollector(config=ExporterConfig()).register(registry)
    collector.add_cache(users)
    collector.add_cache(sessions)

    print("=== 第一次采集 ===")
    print(generate_latest(registry).decode())

    stats["hits"] += 5
    print("=== 命中 5 次后 ===")
    print(registry.get_sample_value("jcache_cache_hit_total", {"cache": "users"}))


if __name__ == "__main__":
    main()
