"""
Cache Exporter - 缓存统计 Prometheus 导出器

从管理注册表读取缓存的统计对象（命中、未命中、读取、写入、淘汰、删除计数），
并以缓存名为标签导出为 Prometheus Counter 指标。

主要特性：
- 动态添加、替换、移除被监控的缓存
- 缓存名清洗后组成统计对象名，标签保留原始缓存名
- 每次采集实时读取，不缓存统计
- 进程级全局采集器
- 可注入的管理注册表，便于测试

示例：
    >>> from cache_exporter import CacheMetricsCollector
    >>>
    >>> collector = CacheMetricsCollector().register()
    >>> collector.add_cache(users_cache)
"""

from __future__ import annotations

from .__version__ import __version__
from .collector import CacheMetricsCollector, cache_statistics_object_name, sanitize
from .config import ExporterConfig
from .exceptions import (
    AttributeNotFoundError,
    BeanOperationError,
    CacheExporterError,
    ExporterConfigError,
    InstanceAlreadyExistsError,
    InstanceNotFoundError,
    MalformedObjectNameError,
    ManagementError,
    StatisticsReadError,
)
from .exports import CacheExports, registered
from .management import (
    ManagementRegistry,
    ObjectName,
    PlatformManagementRegistry,
    get_platform_registry,
)
from .types import STATISTICS_ATTRIBUTES, CacheManagerHandle, MonitoredCache

__all__ = [
    "__version__",
    # 采集器
    "CacheMetricsCollector",
    "cache_statistics_object_name",
    "sanitize",
    # 全局导出器
    "CacheExports",
    "registered",
    # 管理注册表
    "ObjectName",
    "ManagementRegistry",
    "PlatformManagementRegistry",
    "get_platform_registry",
    # 配置
    "ExporterConfig",
    # 类型
    "MonitoredCache",
    "CacheManagerHandle",
    "STATISTICS_ATTRIBUTES",
    # 异常
    "CacheExporterError",
    "ExporterConfigError",
    "MalformedObjectNameError",
    "ManagementError",
    "InstanceNotFoundError",
    "InstanceAlreadyExistsError",
    "AttributeNotFoundError",
    "BeanOperationError",
    "StatisticsReadError",
]
