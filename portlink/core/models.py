"""核心数据模型

清单聚合与库探测共用的数据类集中定义于此。
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# =========================================================================
# 清单声明
# =========================================================================


class FieldState(Enum):
    """可覆盖列表字段的三种状态"""

    ABSENT = "absent"
    PRESENT_EMPTY = "present_empty"
    PRESENT = "present"


@dataclass(frozen=True)
class OverrideField:
    """带 "是否出现" 语义的端口列表

    显式写出的空列表 (PRESENT_EMPTY) 与未写 (ABSENT) 含义不同:
    前者表示退出通用依赖，后者表示回退到通用依赖。
    """

    items: tuple[str, ...] | None = None

    @classmethod
    def absent(cls) -> OverrideField:
        return cls(None)

    @classmethod
    def of(cls, values: Iterable[str]) -> OverrideField:
        return cls(tuple(values))

    @property
    def state(self) -> FieldState:
        if self.items is None:
            return FieldState.ABSENT
        if not self.items:
            return FieldState.PRESENT_EMPTY
        return FieldState.PRESENT

    @property
    def is_present(self) -> bool:
        return self.items is not None

    def ports(self) -> list[str]:
        return list(self.items or ())


class RevKind(Enum):
    BRANCH = "branch"
    TAG = "tag"
    REV = "rev"


@dataclass(frozen=True)
class RevSelector:
    """git 版本选择器，branch / tag / rev 三选一"""

    kind: RevKind
    value: str

    @property
    def needs_pull(self) -> bool:
        """branch 检出后需要 pull 才能前进到最新提交"""
        return self.kind is RevKind.BRANCH


@dataclass(frozen=True)
class SourceLocator:
    """vcpkg 树的来源: 仓库地址 + 版本选择器"""

    git: str
    revision: RevSelector


@dataclass(frozen=True)
class TargetOverride:
    """某个构建目标对包依赖声明的覆盖"""

    triplet: str | None = None
    dependencies: OverrideField = field(default_factory=OverrideField)
    dev_dependencies: OverrideField = field(default_factory=OverrideField)


@dataclass(frozen=True)
class PackageDeclaration:
    """单个包的 [package.metadata.vcpkg] 声明

    git/branch/tag/rev 保持原样，只有根包的值会被校验和采用。
    """

    git: str | None = None
    branch: str | None = None
    tag: str | None = None
    rev: str | None = None
    dependencies: OverrideField = field(default_factory=OverrideField)
    dev_dependencies: OverrideField = field(default_factory=OverrideField)
    targets: dict[str, TargetOverride] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkspacePackage:
    """workspace 中的一个包；declaration 为 None 表示没有可识别的 vcpkg 段"""

    package_id: str
    name: str
    declaration: PackageDeclaration | None = None


@dataclass(frozen=True)
class WorkspaceMetadata:
    """已解码的 workspace 包图"""

    packages: tuple[WorkspacePackage, ...]
    root_id: str | None = None
    target_directory: str = ""


@dataclass(frozen=True)
class ResolvedInstallSet:
    """聚合结果，构造后不可变，交给安装步骤消费

    ports 保留发现顺序且不去重；安装前去重由调用方负责。
    """

    root_id: str
    ports: tuple[str, ...] = ()
    triplet: str | None = None
    source: SourceLocator | None = None

    def unique_ports(self) -> list[str]:
        """按首次出现顺序去重后的端口列表"""
        return list(dict.fromkeys(self.ports))


# =========================================================================
# 库探测
# =========================================================================


@dataclass(frozen=True)
class LibNames:
    """一个需要链接的库: 链接用的 .lib 名与运行时 .dll 名"""

    lib_stem: str
    dll_stem: str

    @classmethod
    def same(cls, stem: str) -> LibNames:
        return cls(lib_stem=stem, dll_stem=stem)


@dataclass
class ProbeResult:
    """一次探测的结果"""

    is_static: bool
    include_paths: list[Path] = field(default_factory=list)
    link_paths: list[Path] = field(default_factory=list)
    cargo_metadata: list[str] = field(default_factory=list)
    # 找到的静态库或导入库
    found_libs: list[Path] = field(default_factory=list)
    # 找到的 DLL
    found_dlls: list[Path] = field(default_factory=list)

    @property
    def linkage(self) -> str:
        return "static" if self.is_static else "dynamic"
