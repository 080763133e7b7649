"""workspace 元数据来源

优先读取预先导出的元数据文件；否则运行 `cargo metadata` 读取清单。
"""

from __future__ import annotations

import logging

from portlink.core.manifest.loader import load_workspace, parse_workspace
from portlink.core.models import WorkspaceMetadata
from portlink.utils.shell import CommandExecutor, get_executor, run_checked

logger = logging.getLogger(__name__)


def cargo_metadata_command(manifest_path: str = "") -> list[str]:
    cmd = ["cargo", "metadata", "--format-version", "1"]
    if manifest_path:
        cmd += ["--manifest-path", manifest_path]
    return cmd


def read_workspace(
    *,
    metadata_file: str = "",
    manifest_path: str = "",
    tool: str = "vcpkg",
    executor: CommandExecutor | None = None,
) -> WorkspaceMetadata:
    """获取已解码的 workspace 包图

    异常:
        ConfigError: 元数据文件不存在或内容无法解析
        CommandError: cargo metadata 执行失败
    """
    if metadata_file:
        logger.debug("读取 workspace 元数据文件: %s", metadata_file)
        return load_workspace(metadata_file, tool)

    r = run_checked(
        executor or get_executor(),
        cargo_metadata_command(manifest_path),
        label="cargo metadata",
    )
    return parse_workspace(r.stdout, tool)
