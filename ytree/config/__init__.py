"""配置模块

提供配置管理功能：
- AppSettings: 应用配置聚合，支持 YAML + 环境变量
- 子配置类: DatabaseSettings, LoggingSettings, TreeSettings
- ConfigLoader: YAML 配置加载器

快速开始:
    from ytree.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/settings.yaml", AppSettings)

配置优先级: YAML 文件 > 环境变量 > 默认值
"""

from .settings import (
    AppSettings,
    DatabaseSettings,
    LoggingSettings,
    TreeSettings,
)

from .loader import (
    CONFIG_PATH_ENV,
    ConfigLoader,
    load_yaml_config,
    load_settings,
)

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "TreeSettings",
    "CONFIG_PATH_ENV",
    "ConfigLoader",
    "load_yaml_config",
    "load_settings",
]
