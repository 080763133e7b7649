"""CLI — 解析 workspace 依赖并安装 vcpkg 端口"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click

from portlink.cli import _cfg
from portlink.core.exceptions import TreeNotFoundError
from portlink.core.manifest.resolver import resolve_install_set
from portlink.core.models import ResolvedInstallSet, WorkspaceMetadata
from portlink.core.probe.target import host_target
from portlink.core.probe.tree import find_tree_root

logger = logging.getLogger(__name__)


def register(group: click.Group) -> None:
    group.add_command(build)


def _tree_root(explicit: str, workspace: WorkspaceMetadata) -> Path:
    """显式指定 > VCPKG_ROOT / vcpkg.user.targets > <target_directory>/vcpkg"""
    if explicit:
        return Path(explicit)
    try:
        return find_tree_root(os.environ)
    except TreeNotFoundError as e:
        logger.debug("%s，使用 target 目录下的 vcpkg 树", e)
    target_dir = workspace.target_directory or "target"
    return Path(target_dir) / "vcpkg"


def _root_name(workspace: WorkspaceMetadata, install_set: ResolvedInstallSet) -> str:
    for pkg in workspace.packages:
        if pkg.package_id == install_set.root_id:
            return pkg.name
    return install_set.root_id


def _show_plan(root: Path, install_set: ResolvedInstallSet) -> None:
    click.echo(f"vcpkg root: {root}")
    if install_set.source is not None:
        rev = install_set.source.revision
        click.echo(f"source:     {install_set.source.git} ({rev.kind.value} {rev.value})")
    click.echo(f"triplet:    {install_set.triplet or '<default>'}")
    click.echo(f"ports:      {' '.join(install_set.unique_ports()) or '<none>'}")


@click.command()
@click.option("--manifest-path", default=None, help="Cargo.toml 路径")
@click.option("--metadata-file", default=None,
              help="预先导出的 cargo metadata 输出 (JSON/YAML)，指定后不再运行 cargo")
@click.option("--target", default=None, help="构建目标 triple")
@click.option("--root", "tree_root", default=None, help="vcpkg 树根目录")
@click.option("--dry-run", is_flag=True, help="只显示解析结果，不执行 git/vcpkg")
@click.pass_context
def build(
    ctx: click.Context,
    manifest_path: str | None,
    metadata_file: str | None,
    target: str | None,
    tree_root: str | None,
    dry_run: bool,
) -> None:
    """检出正确版本的 vcpkg 树并安装 workspace 需要的端口"""
    from portlink.services.installer import TreeInstaller
    from portlink.services.metadata import read_workspace

    cfg = _cfg(ctx)
    target = target if target is not None else (cfg.target or host_target())

    workspace = read_workspace(
        metadata_file=metadata_file or cfg.metadata_file,
        manifest_path=manifest_path or cfg.manifest_path,
        tool=cfg.tool_name,
    )
    install_set = resolve_install_set(workspace, target)
    root = _tree_root(tree_root or cfg.tree_root, workspace)

    if cfg.verbose or dry_run:
        _show_plan(root, install_set)
    if dry_run:
        return

    installer = TreeInstaller(tool=cfg.tool_name, verbose=cfg.verbose)
    installer.ensure(root, install_set, _root_name(workspace, install_set))
