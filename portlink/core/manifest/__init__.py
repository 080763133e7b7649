"""workspace 清单聚合

- loader.py: 解码 cargo metadata / YAML 中的 vcpkg 声明
- resolver.py: 按构建目标合并为安装集合
"""

from portlink.core.manifest.loader import (
    decode_declaration,
    load_workspace,
    parse_workspace,
    workspace_from_dict,
)
from portlink.core.manifest.resolver import resolve_install_set, select_revision

__all__ = [
    "decode_declaration",
    "load_workspace",
    "parse_workspace",
    "workspace_from_dict",
    "resolve_install_set",
    "select_revision",
]
