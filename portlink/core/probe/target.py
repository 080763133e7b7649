"""构建目标与 triplet 映射

只支持 MSVC ABI：x86_64 映射到 x64-windows，其余架构一律按 x86-windows 处理。
静态变体的后缀由探测引擎追加。
"""

from __future__ import annotations

import platform
from dataclasses import dataclass

from portlink.core.exceptions import UnsupportedBuildTargetError

MSVC_MARKER = "-pc-windows-msvc"


@dataclass(frozen=True)
class ArtifactNaming:
    """库文件扩展名: 静态库/导入库 与 运行时动态库"""

    static_ext: str
    dynamic_ext: str

    def static_name(self, stem: str) -> str:
        return f"{stem}.{self.static_ext}"

    def dynamic_name(self, stem: str) -> str:
        return f"{stem}.{self.dynamic_ext}"


MSVC_NAMING = ArtifactNaming(static_ext="lib", dynamic_ext="dll")


def msvc_variant(target: str) -> str:
    """构建目标 triple -> vcpkg 基础 triplet

    异常:
        UnsupportedBuildTargetError: 不是 *-pc-windows-msvc 目标
    """
    if MSVC_MARKER not in target:
        raise UnsupportedBuildTargetError(target)
    if target.startswith("x86_64-"):
        return "x64-windows"
    return "x86-windows"


def host_target() -> str:
    """按宿主平台猜测一个 triple，供未显式指定 --target 时使用"""
    machine = platform.machine().lower()
    arch = {
        "amd64": "x86_64",
        "x86_64": "x86_64",
        "arm64": "aarch64",
        "aarch64": "aarch64",
        "x86": "i686",
        "i386": "i686",
        "i686": "i686",
    }.get(machine, machine or "x86_64")

    system = platform.system()
    if system == "Windows":
        return f"{arch}{MSVC_MARKER}"
    if system == "Darwin":
        return f"{arch}-apple-darwin"
    return f"{arch}-unknown-linux-gnu"
