"""集中配置管理

提供统一的配置入口，支持从 YAML 文件加载 + 编程式覆盖。
CLI 参数优先于配置文件，配置文件优先于内置默认值。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

import yaml

from portlink.core.exceptions import ConfigError
from portlink.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/default.yml"


@dataclass
class Config:
    """全局配置"""

    # 包管理器名称，决定信号名 (*_NO_VCPKG / VCPKG_ALL_STATIC) 与根标记文件名
    tool_name: str = "vcpkg"

    # workspace 元数据: 预先导出的 YAML/JSON 文件，或交给 cargo metadata 读取的清单
    metadata_file: str = ""
    manifest_path: str = ""

    # vcpkg 树根目录，留空则按 VCPKG_ROOT / vcpkg.user.targets 查找
    tree_root: str = ""

    # 构建目标 triple，留空则取宿主平台
    target: str = ""

    verbose: bool = False

    # 放不到字段里的配置项
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认

        异常:
            ConfigError: 文件无法解析、过大或字段类型不符
        """
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"无法解析配置文件 {path}: {e}") from e
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k.replace("-", "_"): v for k, v in data.items()
                   if k.replace("-", "_") in known}
        extra = {k: v for k, v in data.items()
                 if k.replace("-", "_") not in known}
        for key, value in matched.items():
            expected = bool if key == "verbose" else str
            if not isinstance(value, expected):
                raise ConfigError(
                    f"配置项 {key} 类型错误: 期望 {expected.__name__}, "
                    f"实际 {type(value).__name__} ({path})"
                )
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path)
    return _current


def reset_config() -> None:
    """丢弃全局配置（测试用）"""
    global _current  # noqa: PLW0603
    _current = None
