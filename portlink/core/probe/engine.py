"""库探测引擎

给定已安装的 vcpkg 树、triplet 和库名，确定静态/动态链接，
构造 include/lib/bin 路径，校验库文件存在，并生成 cargo 链接指令。

目录布局:
    {tree_root}/installed/{variant}[-static]/include
    {tree_root}/installed/{variant}[-static]/lib/{lib_stem}.lib
    {tree_root}/installed/{variant}[-static]/bin/{dll_stem}.dll   (仅动态)

每次调用独立失败，不做重试，也不做跨调用去重。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from portlink.core.exceptions import LibraryNotFoundError, ProbeDisabledError
from portlink.core.models import LibNames, ProbeResult
from portlink.core.probe.signals import (
    DEFAULT_TOOL,
    LinkageSignals,
    no_probe_signal,
    select_linkage,
)
from portlink.core.probe.target import MSVC_NAMING, ArtifactNaming

logger = logging.getLogger(__name__)


def link_search_directive(path: Path) -> str:
    return f"cargo:rustc-link-search=native={path}"


def link_lib_directive(stem: str, is_static: bool) -> str:
    if is_static:
        return f"cargo:rustc-link-lib=static={stem}"
    return f"cargo:rustc-link-lib={stem}"


def variant_dir(tree_root: Path, variant_id: str, is_static: bool) -> Path:
    """静态变体在 triplet 后追加 -static，这是唯一的变体选择规则"""
    suffix = "-static" if is_static else ""
    return Path(tree_root) / "installed" / f"{variant_id}{suffix}"


def check_probe_enabled(
    package_key: str, signals: LinkageSignals, tool: str = DEFAULT_TOOL,
) -> None:
    """异常: ProbeDisabledError —— 设置了 {KEY}_NO_VCPKG"""
    signal = no_probe_signal(package_key, tool)
    if signals.is_set(signal):
        raise ProbeDisabledError(signal)


def probe(
    tree_root: Path,
    variant_id: str,
    requested_names: Sequence[LibNames],
    linkage_override: bool | None,
    package_key: str,
    *,
    signals: LinkageSignals | None = None,
    naming: ArtifactNaming = MSVC_NAMING,
    tool: str = DEFAULT_TOOL,
) -> ProbeResult:
    """在 vcpkg 树中查找一个库

    参数:
        tree_root: vcpkg 树根目录
        variant_id: 基础 triplet，如 x64-windows
        requested_names: 需要的 (lib, dll) 名称对；为空时使用 package_key
        linkage_override: True/False 强制静态/动态，None 按信号推断
        package_key: vcpkg 端口名，用于推导信号名
        signals: 信号快照，默认为空（即默认动态链接）

    返回:
        ProbeResult，cargo_metadata 中先是 link-search 指令，再是每个库的 link-lib 指令

    异常:
        ProbeDisabledError: 设置了 {KEY}_NO_VCPKG，不访问文件系统
        LibraryNotFoundError: 期望的 .lib 或 .dll 不存在
    """
    signals = signals or LinkageSignals()
    check_probe_enabled(package_key, signals, tool)

    names = list(requested_names) or [LibNames.same(package_key)]
    is_static = select_linkage(package_key, signals, linkage_override, tool)

    base = variant_dir(tree_root, variant_id, is_static)
    lib_path = base / "lib"
    bin_path = base / "bin"
    include_path = base / "include"

    result = ProbeResult(is_static=is_static)
    result.cargo_metadata.append(link_search_directive(lib_path))
    if not is_static:
        result.cargo_metadata.append(link_search_directive(bin_path))
    result.include_paths.append(include_path)
    result.link_paths.append(lib_path)

    for lib in names:
        result.cargo_metadata.append(link_lib_directive(lib.lib_stem, is_static))

        lib_location = lib_path / naming.static_name(lib.lib_stem)
        if not lib_location.exists():
            raise LibraryNotFoundError(str(lib_location))
        result.found_libs.append(lib_location)

        if not is_static:
            dll_location = bin_path / naming.dynamic_name(lib.dll_stem)
            if not dll_location.exists():
                raise LibraryNotFoundError(str(dll_location))
            result.found_dlls.append(dll_location)

    logger.info(
        "找到 %s (%s): %s",
        package_key, result.linkage,
        ", ".join(str(p) for p in result.found_libs + result.found_dlls),
    )
    return result
