"""元数据文件读写工具

配置文件与 YAML 形式的 workspace 元数据都经由这里读取，
统一 encoding="utf-8"、空值保护、原子写入。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# cargo metadata 对大型 workspace 输出可达数 MB，限制 64MB 防止误读
MAX_DOCUMENT_SIZE = 64 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入文件：先写临时文件再 rename，防止中途崩溃导致损坏"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def parse_yaml(text: str, *, source: str = "<string>") -> dict[str, Any]:
    """解析 YAML/JSON 文本，非字典内容返回空字典"""
    try:
        result = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.error("解析元数据失败: %s, 错误: %s", source, e)
        raise
    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            source, type(result).__name__,
        )
        return {}
    return result


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML/JSON 文件

    返回:
        dict: 解析后的字典。文件不存在、为空、或内容不是字典时返回空字典

    异常:
        yaml.YAMLError: 格式错误
        OSError: IO 错误
        ValueError: 文件过大（超过 MAX_DOCUMENT_SIZE）
    """
    p = Path(path)
    if not p.exists():
        return {}

    file_size = p.stat().st_size
    if file_size > MAX_DOCUMENT_SIZE:
        raise ValueError(
            f"元数据文件过大: {p} ({file_size} 字节), "
            f"超过限制 {MAX_DOCUMENT_SIZE} 字节"
        )

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("读取文件失败: %s, 错误: %s", path, e)
        raise
    return parse_yaml(text, source=str(p))
