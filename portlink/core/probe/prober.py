"""构建脚本用的库探测入口

LibraryProber 把信号检查、目标映射、树定位、标记校验和探测引擎串起来，
成功后把 cargo 指令逐行写到 stdout。

用法:
    from portlink.core.probe import LibraryProber, probe_library

    lib = probe_library("zlib")

    lib = (
        LibraryProber(target="x86_64-pc-windows-msvc")
        .lib_names("libcurl_imp", "curl")
        .probe("curl")
    )
    for inc in lib.include_paths:
        ...
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import click

from portlink.core.models import LibNames, ProbeResult
from portlink.core.probe.engine import check_probe_enabled, probe
from portlink.core.probe.signals import DEFAULT_TOOL, LinkageSignals
from portlink.core.probe.target import msvc_variant
from portlink.core.probe.tree import find_tree_root, validate_tree_root

logger = logging.getLogger(__name__)


class LibraryProber:
    """可链式配置的库探测器

    target 默认取 TARGET 环境变量（cargo 运行构建脚本时设置），
    tree_root 默认按 VCPKG_ROOT / vcpkg.user.targets 查找。
    """

    def __init__(
        self,
        *,
        target: str | None = None,
        tree_root: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        tool: str = DEFAULT_TOOL,
    ) -> None:
        self.env: Mapping[str, str] = os.environ if env is None else env
        self.target = target if target is not None else self.env.get("TARGET", "")
        self.tree_root = Path(tree_root) if tree_root else None
        self.tool = tool
        self._static: bool | None = None
        self._emit_metadata = True
        self._required_libs: list[LibNames] = []

    def static(self, is_static: bool) -> LibraryProber:
        """强制静态或动态链接，覆盖环境信号"""
        self._static = is_static
        return self

    def lib_name(self, lib_stem: str) -> LibraryProber:
        """库名与包名不同时指定，可多次调用，所有库都必须找到"""
        self._required_libs.append(LibNames.same(lib_stem))
        return self

    def lib_names(self, lib_stem: str, dll_stem: str) -> LibraryProber:
        """.lib 与 .dll 名字不同时使用，如 lib_names("libcurl_imp", "curl")"""
        self._required_libs.append(LibNames(lib_stem=lib_stem, dll_stem=dll_stem))
        return self

    def emit_metadata(self, enabled: bool) -> LibraryProber:
        """是否把 cargo 指令打印到 stdout，默认打印"""
        self._emit_metadata = enabled
        return self

    def probe(self, port_name: str) -> ProbeResult:
        """在 vcpkg 树中查找 port_name

        异常:
            ProbeDisabledError / UnsupportedBuildTargetError /
            TreeNotFoundError / LibraryNotFoundError
        """
        signals = LinkageSignals.from_mapping(self.env)
        check_probe_enabled(port_name, signals, self.tool)

        variant = msvc_variant(self.target)
        root = self.tree_root or find_tree_root(self.env)
        validate_tree_root(root, self.tool)
        logger.debug("探测 %s: root=%s, triplet=%s", port_name, root, variant)

        lib = probe(
            root, variant, self._required_libs, self._static, port_name,
            signals=signals, tool=self.tool,
        )
        if self._emit_metadata:
            for line in lib.cargo_metadata:
                click.echo(line)
        return lib


def probe_library(name: str) -> ProbeResult:
    """使用默认配置查找一个库"""
    return LibraryProber().probe(name)
