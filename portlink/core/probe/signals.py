"""链接方式信号

信号名由包名确定性推导（转大写，`-` 换成 `_`）:

  FOO_NO_VCPKG       放弃探测 foo
  FOO_STATIC         静态链接 foo
  FOO_DYNAMIC        动态链接 foo
  VCPKG_ALL_STATIC   所有库静态链接
  VCPKG_ALL_DYNAMIC  所有库动态链接

信号以快照形式传入，判断逻辑不读取进程环境。
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

DEFAULT_TOOL = "vcpkg"


def envify(name: str) -> str:
    """包名 -> 环境变量名片段"""
    return name.upper().replace("-", "_")


@dataclass(frozen=True)
class LinkageSignals:
    """已设置的信号名集合（只关心是否存在，不关心取值）"""

    names: frozenset[str] = frozenset()

    @classmethod
    def from_names(cls, names: Iterable[str]) -> LinkageSignals:
        return cls(frozenset(names))

    @classmethod
    def from_mapping(cls, env: Mapping[str, str]) -> LinkageSignals:
        return cls(frozenset(env))

    def is_set(self, name: str) -> bool:
        return name in self.names


def no_probe_signal(package_key: str, tool: str = DEFAULT_TOOL) -> str:
    return f"{envify(package_key)}_NO_{envify(tool)}"


def linkage_signals(package_key: str, tool: str = DEFAULT_TOOL) -> list[tuple[str, bool]]:
    """按优先级排列的 (信号名, 是否静态)，越具体越靠前"""
    key = envify(package_key)
    prefix = envify(tool)
    return [
        (f"{key}_STATIC", True),
        (f"{key}_DYNAMIC", False),
        (f"{prefix}_ALL_STATIC", True),
        (f"{prefix}_ALL_DYNAMIC", False),
    ]


def infer_static(
    package_key: str, signals: LinkageSignals, tool: str = DEFAULT_TOOL,
) -> bool:
    """根据信号判断是否静态链接，第一个命中的信号生效，默认动态"""
    for name, is_static in linkage_signals(package_key, tool):
        if signals.is_set(name):
            return is_static
    return False


def select_linkage(
    package_key: str,
    signals: LinkageSignals,
    linkage_override: bool | None = None,
    tool: str = DEFAULT_TOOL,
) -> bool:
    """显式指定的链接方式优先于信号"""
    if linkage_override is not None:
        return linkage_override
    return infer_static(package_key, signals, tool)
