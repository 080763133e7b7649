"""workspace 元数据加载

职责:
- 从 `cargo metadata --format-version 1` 的输出（或同形状的 YAML）构建 WorkspaceMetadata
- 把每个包的 metadata.vcpkg 段解码为 PackageDeclaration
- 无法识别的 vcpkg 段视为未声明依赖，只记录警告

清单格式本身由 cargo 解析，这里只处理已解码的结构。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from portlink.core.exceptions import ConfigError
from portlink.core.models import (
    OverrideField,
    PackageDeclaration,
    TargetOverride,
    WorkspaceMetadata,
    WorkspacePackage,
)
from portlink.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

_DECLARATION_KEYS = frozenset(
    ("git", "branch", "tag", "rev", "dependencies", "install",
     "dev-dependencies", "target"),
)
_TARGET_KEYS = frozenset(("triplet", "dependencies", "install", "dev-dependencies"))


def _optional_str(block: dict[str, Any], key: str, where: str) -> str | None:
    value = block.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{where}.{key} 必须是字符串")
    return value


def _port_list(block: dict[str, Any], key: str, where: str) -> OverrideField:
    if key not in block or block[key] is None:
        return OverrideField.absent()
    value = block[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{where}.{key} 必须是字符串列表")
    return OverrideField.of(value)


def _dependencies(block: dict[str, Any], where: str) -> OverrideField:
    """dependencies 字段，install 是它的别名，两者不能同时出现"""
    if "dependencies" in block and "install" in block:
        raise ConfigError(f"{where} 同时指定了 dependencies 和 install")
    key = "install" if "install" in block else "dependencies"
    return _port_list(block, key, where)


def _check_keys(block: dict[str, Any], allowed: frozenset[str], where: str) -> None:
    unknown = sorted(set(block) - allowed)
    if unknown:
        logger.debug("%s 包含未知字段, 已忽略: %s", where, ", ".join(unknown))


def decode_target_override(block: Any, where: str) -> TargetOverride:
    if not isinstance(block, dict):
        raise ConfigError(f"{where} 必须是表")
    _check_keys(block, _TARGET_KEYS, where)
    return TargetOverride(
        triplet=_optional_str(block, "triplet", where),
        dependencies=_dependencies(block, where),
        dev_dependencies=_port_list(block, "dev-dependencies", where),
    )


def decode_declaration(block: Any, where: str = "vcpkg") -> PackageDeclaration:
    """把一个包的 metadata.vcpkg 段解码为 PackageDeclaration

    异常:
        ConfigError: 字段类型不符
    """
    if not isinstance(block, dict):
        raise ConfigError(f"{where} 必须是表")
    _check_keys(block, _DECLARATION_KEYS, where)

    raw_targets = block.get("target") or {}
    if not isinstance(raw_targets, dict):
        raise ConfigError(f"{where}.target 必须是表")
    targets = {
        str(triple): decode_target_override(info, f"{where}.target.{triple}")
        for triple, info in raw_targets.items()
    }

    return PackageDeclaration(
        git=_optional_str(block, "git", where),
        branch=_optional_str(block, "branch", where),
        tag=_optional_str(block, "tag", where),
        rev=_optional_str(block, "rev", where),
        dependencies=_dependencies(block, where),
        dev_dependencies=_port_list(block, "dev-dependencies", where),
        targets=targets,
    )


def _package_declaration(
    pkg: dict[str, Any], tool_name: str,
) -> PackageDeclaration | None:
    metadata = pkg.get("metadata")
    if not isinstance(metadata, dict) or tool_name not in metadata:
        return None
    where = f"{pkg.get('name', pkg.get('id'))}: package.metadata.{tool_name}"
    try:
        return decode_declaration(metadata[tool_name], where)
    except ConfigError as e:
        logger.warning("跳过无法识别的元数据段: %s", e)
        return None


def workspace_from_dict(
    data: dict[str, Any], tool_name: str = "vcpkg",
) -> WorkspaceMetadata:
    """从已解析的元数据字典构建 WorkspaceMetadata

    根包 id 取自 resolve.root（cargo metadata 形状），或顶层 root 字段。
    """
    raw_packages = data.get("packages") or []
    if not isinstance(raw_packages, list):
        raise ConfigError("workspace 元数据中的 packages 必须是列表")

    packages: list[WorkspacePackage] = []
    for index, pkg in enumerate(raw_packages):
        if not isinstance(pkg, dict) or not pkg.get("id"):
            raise ConfigError(f"packages[{index}] 缺少 id")
        pkg_id = str(pkg["id"])
        packages.append(WorkspacePackage(
            package_id=pkg_id,
            name=str(pkg.get("name", pkg_id)),
            declaration=_package_declaration(pkg, tool_name),
        ))

    resolve = data.get("resolve")
    root_id = resolve.get("root") if isinstance(resolve, dict) else None
    if root_id is None:
        root_id = data.get("root")

    declared = sum(1 for p in packages if p.declaration is not None)
    logger.info(
        "已加载 workspace 元数据: %d 个包, %d 个声明了 %s 依赖",
        len(packages), declared, tool_name,
    )
    return WorkspaceMetadata(
        packages=tuple(packages),
        root_id=str(root_id) if root_id is not None else None,
        target_directory=str(data.get("target_directory") or ""),
    )


def load_workspace(path: str | Path, tool_name: str = "vcpkg") -> WorkspaceMetadata:
    """从文件加载 workspace 元数据，.json 按 JSON 解析，其余按 YAML"""
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"workspace 元数据文件不存在: {p}")
    if p.suffix == ".json":
        return parse_workspace(p.read_text(encoding="utf-8"), tool_name)
    try:
        data = load_yaml(p)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"无法解析 workspace 元数据文件 {p}: {e}") from e
    return workspace_from_dict(data, tool_name)


def parse_workspace(text: str, tool_name: str = "vcpkg") -> WorkspaceMetadata:
    """从 cargo metadata 的 JSON 输出构建 WorkspaceMetadata"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"无法解析 cargo metadata 输出: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("cargo metadata 输出不是 JSON 对象")
    return workspace_from_dict(data, tool_name)
