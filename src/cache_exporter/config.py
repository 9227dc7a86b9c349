"""
配置管理模块

使用 Pydantic 进行配置验证和管理,支持从配置文件、环境变量、字典加载。

使用示例:
    >>> # 从字典创建
    >>> config = ExporterConfig(isolate_failures=True)
    >>>
    >>> # 从 YAML 文件创建
    >>> config = ExporterConfig.from_file("exporter.yaml")
    >>>
    >>> # 从环境变量创建
    >>> config = ExporterConfig.from_env()
    >>>
    >>> collector = CacheMetricsCollector(config=config)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .exceptions import ExporterConfigError

_ILLEGAL_DOMAIN_CHARS = frozenset(":\n")
# 通配符会使每个查找对象名都成为模式
_ILLEGAL_VALUE_CHARS = frozenset(',=:"*?\n')


class ExporterConfig(BaseModel):
    """
    导出器配置类

    支持从多种来源加载:
    - 字典
    - YAML 文件
    - TOML 文件
    - JSON 文件
    - 环境变量

    属性:
        object_name_domain: 统计对象名的域
        statistics_type: 统计对象名中 type 键属性的值
        isolate_failures: 单个缓存读取失败时是否跳过它继续采集(默认中止整次采集)
    """

    object_name_domain: str = Field(
        default="javax.cache",
        description="统计对象名的域",
    )

    statistics_type: str = Field(
        default="CacheStatistics",
        description="统计对象名中 type 键属性的值",
    )

    isolate_failures: bool = Field(
        default=False,
        description="为 True 时单个缓存读取失败只跳过该缓存,否则中止整次采集",
    )

    # ========== Pydantic 配置 ==========

    model_config = {
        "validate_assignment": True,
        "extra": "forbid",  # 禁止额外字段
        "str_strip_whitespace": True,
    }

    # ========== 验证器 ==========

    @field_validator("object_name_domain")
    @classmethod
    def validate_domain(cls, value: str) -> str:
        """验证对象名的域"""
        if any(ch in _ILLEGAL_DOMAIN_CHARS for ch in value):
            msg = f"对象名的域包含非法字符: {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("statistics_type")
    @classmethod
    def validate_statistics_type(cls, value: str) -> str:
        """验证统计类型"""
        if not value:
            msg = "统计类型不能为空"
            raise ValueError(msg)
        if any(ch in _ILLEGAL_VALUE_CHARS for ch in value):
            msg = f"统计类型包含非法字符: {value!r}"
            raise ValueError(msg)
        return value

    # ========== 工厂方法 ==========

    @classmethod
    def from_file(cls, file_path: str | Path) -> ExporterConfig:
        """
        从配置文件创建配置

        支持的格式:
        - YAML (.yaml, .yml)
        - TOML (.toml)
        - JSON (.json)

        Args:
            file_path: 配置文件路径

        Returns:
            ExporterConfig 实例

        Raises:
            ExporterConfigError: 文件读取或解析失败

        示例:
            >>> config = ExporterConfig.from_file("config/exporter.yaml")
        """
        file_path = Path(file_path)

        if not file_path.exists():
            msg = f"配置文件不存在: {file_path}"
            raise ExporterConfigError(msg)

        suffix = file_path.suffix.lower()

        try:
            if suffix in {".yaml", ".yml"}:
                return cls._from_yaml(file_path)
            if suffix == ".toml":
                return cls._from_toml(file_path)
            if suffix == ".json":
                return cls._from_json(file_path)
            msg = f"不支持的配置文件格式: {suffix}"
            raise ExporterConfigError(msg)
        except Exception as e:
            if isinstance(e, ExporterConfigError):
                raise
            msg = f"读取配置文件失败: {file_path}"
            raise ExporterConfigError(msg) from e

    @classmethod
    def _from_yaml(cls, file_path: Path) -> ExporterConfig:
        """从 YAML 文件加载"""
        import yaml

        with file_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            msg = "YAML 配置文件必须是字典格式"
            raise ExporterConfigError(msg)

        return cls(**data)

    @classmethod
    def _from_toml(cls, file_path: Path) -> ExporterConfig:
        """从 TOML 文件加载"""
        try:
            import tomllib
        except ImportError:
            import tomli as tomllib  # Python < 3.11

        with file_path.open("rb") as f:
            data = tomllib.load(f)

        if not isinstance(data, dict):
            msg = "TOML 配置文件必须是字典格式"
            raise ExporterConfigError(msg)

        return cls(**data)

    @classmethod
    def _from_json(cls, file_path: Path) -> ExporterConfig:
        """从 JSON 文件加载"""
        import json

        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            msg = "JSON 配置文件必须是字典格式"
            raise ExporterConfigError(msg)

        return cls(**data)

    @classmethod
    def from_env(cls, prefix: str = "CACHE_EXPORTER_") -> ExporterConfig:
        """
        从环境变量创建配置

        环境变量命名规则:
        - CACHE_EXPORTER_OBJECT_NAME_DOMAIN=javax.cache
        - CACHE_EXPORTER_STATISTICS_TYPE=CacheStatistics
        - CACHE_EXPORTER_ISOLATE_FAILURES=true

        未设置的字段使用默认值。

        Args:
            prefix: 环境变量前缀

        Returns:
            ExporterConfig 实例

        Raises:
            ExporterConfigError: 环境变量值不合法
        """
        data: dict[str, Any] = {}
        for field_name, field in cls.model_fields.items():
            raw = os.environ.get(f"{prefix}{field_name.upper()}")
            if raw is None:
                continue
            # 只有布尔字段转换 true/on 等取值
            data[field_name] = cls._convert_env_value(raw) if field.annotation is bool else raw

        try:
            return cls(**data)
        except ValueError as e:
            msg = f"环境变量配置不合法: {e}"
            raise ExporterConfigError(msg) from e

    @staticmethod
    def _convert_env_value(value: str) -> Any:
        """转换布尔字段的环境变量值"""
        # 布尔值
        if value.lower() in {"true", "yes", "on"}:
            return True
        if value.lower() in {"false", "no", "off"}:
            return False

        # 字符串
        return value

    def __repr__(self) -> str:
        """字符串表示"""
        return (
            f"ExporterConfig(object_name_domain={self.object_name_domain!r}, "
            f"statistics_type={self.statistics_type!r}, "
            f"isolate_failures={self.isolate_failures!r})"
        )


__all__ = ["ExporterConfig"]
