"""清单聚合器

把 workspace 中各包按构建目标声明的 vcpkg 依赖合并为一个安装集合。

合并规则:
  - 只有根包的 git/branch/tag/rev、triplet 覆盖和 dev-dependencies 生效
  - 目标覆盖中出现了 dependencies（即使是空列表）就整体替换通用依赖；
    未出现则回退到通用依赖
  - 端口按包的输入顺序、声明顺序追加，不去重

用法:
    from portlink.core.manifest.resolver import resolve_install_set

    install_set = resolve_install_set(workspace, "x86_64-pc-windows-msvc")
    ports = install_set.unique_ports()
"""

from __future__ import annotations

import logging

from portlink.core.exceptions import AmbiguousSourceRevisionError, NoRootPackageError
from portlink.core.models import (
    PackageDeclaration,
    ResolvedInstallSet,
    RevKind,
    RevSelector,
    SourceLocator,
    TargetOverride,
    WorkspaceMetadata,
    WorkspacePackage,
)

logger = logging.getLogger(__name__)


def select_revision(decl: PackageDeclaration) -> RevSelector:
    """从 branch / tag / rev 中选出唯一的版本选择器

    异常:
        AmbiguousSourceRevisionError: 一个都没有或多于一个
    """
    given = [
        (kind, value)
        for kind, value in (
            (RevKind.BRANCH, decl.branch),
            (RevKind.TAG, decl.tag),
            (RevKind.REV, decl.rev),
        )
        if value is not None
    ]
    if len(given) != 1:
        raise AmbiguousSourceRevisionError([kind.value for kind, _ in given])
    kind, value = given[0]
    return RevSelector(kind=kind, value=value)


class PackageRole:
    """参与合并的包，默认行为即非根包的行为"""

    def __init__(self, package: WorkspacePackage, declaration: PackageDeclaration) -> None:
        self.package = package
        self.declaration = declaration

    def source(self) -> SourceLocator | None:
        return None

    def triplet(self, override: TargetOverride) -> str | None:
        return None

    def dev_ports(self, override: TargetOverride | None) -> list[str]:
        return []

    def ports(self, target: str) -> list[str]:
        """本包对安装集合的贡献"""
        decl = self.declaration
        override = decl.targets.get(target)
        if override is not None and override.dependencies.is_present:
            ports = override.dependencies.ports()
        else:
            ports = decl.dependencies.ports()
        return ports + self.dev_ports(override)


class DependencyPackage(PackageRole):
    """workspace 中的非根包：只贡献依赖，从不贡献 dev 依赖和根级字段"""


class RootPackage(PackageRole):
    """被构建的根包：决定 vcpkg 来源、triplet，并贡献 dev 依赖"""

    def source(self) -> SourceLocator | None:
        decl = self.declaration
        if decl.git is None:
            return None
        return SourceLocator(git=decl.git, revision=select_revision(decl))

    def triplet(self, override: TargetOverride) -> str | None:
        return override.triplet

    def dev_ports(self, override: TargetOverride | None) -> list[str]:
        if override is not None:
            return override.dev_dependencies.ports()
        return self.declaration.dev_dependencies.ports()


def _roles(workspace: WorkspaceMetadata, root_id: str) -> list[PackageRole]:
    roles: list[PackageRole] = []
    for pkg in workspace.packages:
        if pkg.declaration is None:
            logger.debug("跳过未声明 vcpkg 元数据的包: %s", pkg.name)
            continue
        cls = RootPackage if pkg.package_id == root_id else DependencyPackage
        roles.append(cls(pkg, pkg.declaration))
    return roles


def resolve_install_set(workspace: WorkspaceMetadata, target: str) -> ResolvedInstallSet:
    """按构建目标合并 workspace 中所有包声明的 vcpkg 依赖

    参数:
        workspace: 已解码的包图，包的顺序即合并顺序
        target: 当前构建目标 triple，用于匹配 target 覆盖；空串表示无覆盖

    异常:
        NoRootPackageError: virtual workspace，没有根包
        AmbiguousSourceRevisionError: 根包 git 来源的版本选择器不唯一
    """
    root_id = workspace.root_id
    if not root_id:
        raise NoRootPackageError()

    ports: list[str] = []
    triplet: str | None = None
    source: SourceLocator | None = None

    for role in _roles(workspace, root_id):
        located = role.source()
        if located is not None:
            source = located

        override = role.declaration.targets.get(target)
        if override is not None:
            chosen = role.triplet(override)
            if chosen is not None:
                triplet = chosen

        contribution = role.ports(target)
        logger.debug(
            "%s (%s) 贡献端口: %s",
            role.package.name, type(role).__name__, contribution,
        )
        ports.extend(contribution)

    logger.info(
        "依赖解析完成: target=%s, %d 个端口, triplet=%s",
        target or "<none>", len(ports), triplet or "<default>",
    )
    return ResolvedInstallSet(
        root_id=root_id,
        ports=tuple(ports),
        triplet=triplet,
        source=source,
    )
