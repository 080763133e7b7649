"""vcpkg 树定位

查找顺序:
  1. VCPKG_ROOT 环境变量
  2. `vcpkg integrate install` 写入的 %LOCALAPPDATA%/vcpkg/vcpkg.user.targets，
     其中 Project="<root>/scripts/buildsystems/msbuild/vcpkg.targets"，
     去掉末尾四级路径即为树根

树根下必须存在 .vcpkg-root 标记文件。
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path

from portlink.core.exceptions import TreeNotFoundError

logger = logging.getLogger(__name__)

_PROJECT_RE = re.compile(r'Project="([^"]*)"')


def marker_path(root: Path, tool: str = "vcpkg") -> Path:
    return root / f".{tool}-root"


def _strip_components(project: str, count: int = 4) -> Path:
    path = Path(project)
    if len(path.parts) <= count:
        raise TreeNotFoundError(f"无法在 {project} 之上找到 vcpkg 根目录")
    return path.parents[count - 1]


def read_user_targets(path: Path) -> Path:
    """从 vcpkg.user.targets 中解析树根"""
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise TreeNotFoundError(
            "没有找到 vcpkg.user.targets，请运行 'vcpkg integrate install' "
            "或设置 VCPKG_ROOT 环境变量"
        ) from e

    for line in text.splitlines():
        match = _PROJECT_RE.search(line)
        if match:
            return _strip_components(match.group(1))
    raise TreeNotFoundError(f"解析 {path} 时没有找到 Project 位置")


def find_tree_root(env: Mapping[str, str] | None = None) -> Path:
    """按环境变量定位 vcpkg 树根（不校验标记文件）

    异常:
        TreeNotFoundError: 两种途径都找不到
    """
    env = os.environ if env is None else env
    root = env.get("VCPKG_ROOT")
    if root:
        logger.debug("使用 VCPKG_ROOT: %s", root)
        return Path(root)

    local_app_data = env.get("LOCALAPPDATA")
    if not local_app_data:
        raise TreeNotFoundError("无法读取 LOCALAPPDATA 环境变量")
    user_targets = Path(local_app_data) / "vcpkg" / "vcpkg.user.targets"
    root_path = read_user_targets(user_targets)
    logger.debug("从 %s 解析到 vcpkg 树: %s", user_targets, root_path)
    return root_path


def validate_tree_root(root: Path, tool: str = "vcpkg") -> None:
    """校验树根下的标记文件

    异常:
        TreeNotFoundError: 标记文件不存在
    """
    marker = marker_path(root, tool)
    if not marker.exists():
        raise TreeNotFoundError(f"{marker} 不存在")
