"""
全局导出器模块

提供进程级唯一的 CacheMetricsCollector，首次访问时创建并注册到
Prometheus 默认注册表，之后任何线程调用都返回同一个实例。
该实例在进程生命周期内不会注销。

使用示例:
    >>> from cache_exporter.exports import registered
    >>> registered().add_cache(users_cache)
"""

from __future__ import annotations

import logging
import threading

from prometheus_client import REGISTRY

from .collector import CacheMetricsCollector

logger = logging.getLogger(__name__)

_instance: CacheMetricsCollector | None = None
_lock = threading.Lock()


def registered() -> CacheMetricsCollector:
    """
    获取已注册到默认注册表的全局采集器

    并发首次调用时也只会创建并注册一个实例。

    Returns:
        全局 CacheMetricsCollector
    """
    global _instance
    if _instance is None:
        with _lock:
            if _instance is None:
                _instance = CacheMetricsCollector().register(REGISTRY)
                logger.info("Registered global cache metrics collector")
    return _instance


class CacheExports:
    """全局采集器的类形式访问入口，``registered()`` 与模块级函数返回同一实例"""

    def registered(self) -> CacheMetricsCollector:
        return registered()


__all__ = ["CacheExports", "registered"]
