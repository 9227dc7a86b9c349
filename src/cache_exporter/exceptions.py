"""
异常定义模块

本模块定义了导出器的所有自定义异常类。
所有异常都继承自 CacheExporterError 基类，便于统一捕获。
"""

from __future__ import annotations


class CacheExporterError(Exception):
    """
    导出器基础异常

    所有导出器相关的异常都继承自此类。

    示例:
        >>> try:
        ...     collector.collect()
        ... except CacheExporterError as e:
        ...     print(f"导出失败: {e}")
    """

    pass


class ExporterConfigError(CacheExporterError):
    """
    导出器配置错误

    当配置文件不存在、格式不支持或解析失败时抛出。

    示例:
        >>> raise ExporterConfigError("配置文件不存在: exporter.yaml")
    """

    pass


class MalformedObjectNameError(CacheExporterError):
    """
    对象名格式错误

    缓存名经过清洗后仍无法组成合法的统计对象名时抛出。
    属于致命的配置错误，不会重试，也不会按缓存隔离。

    示例:
        >>> raise MalformedObjectNameError("缓存名 'a*b' 无法组成合法的对象名")
    """

    pass


class ManagementError(CacheExporterError):
    """
    管理注册表操作错误

    查询或读取统计对象失败时抛出的异常基类。
    """

    pass


class InstanceNotFoundError(ManagementError):
    """对象名下没有已注册的统计对象"""

    pass


class InstanceAlreadyExistsError(ManagementError):
    """对象名下已经注册了统计对象"""

    pass


class AttributeNotFoundError(ManagementError):
    """统计对象不提供请求的属性"""

    pass


class BeanOperationError(ManagementError):
    """
    统计对象读取属性时自身抛出异常

    原始异常保存在 ``__cause__`` 中。
    """

    pass


class StatisticsReadError(CacheExporterError):
    """
    统计读取错误

    读取已发现的统计对象失败时抛出（属性缺失、对象缺失、
    读取方法抛错或返回值不是整数）。
    该异常会中止整次采集，原因通过 ``__cause__`` 链接。

    示例:
        >>> try:
        ...     registry.collect()
        ... except StatisticsReadError as e:
        ...     print(f"采集中止: {e} ({e.__cause__!r})")
    """

    pass


__all__ = [
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
