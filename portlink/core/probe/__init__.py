"""vcpkg 库探测

- signals.py: 由包名推导的链接方式信号
- target.py: 构建目标 -> triplet，库文件扩展名
- tree.py: vcpkg 树定位与校验
- engine.py: 路径构造、文件校验、cargo 指令生成
- prober.py: 构建脚本使用的链式入口
"""

from portlink.core.probe.engine import probe
from portlink.core.probe.prober import LibraryProber, probe_library
from portlink.core.probe.signals import LinkageSignals, envify, infer_static
from portlink.core.probe.target import msvc_variant
from portlink.core.probe.tree import find_tree_root, validate_tree_root

__all__ = [
    "LibraryProber",
    "LinkageSignals",
    "envify",
    "find_tree_root",
    "infer_static",
    "msvc_variant",
    "probe",
    "probe_library",
    "validate_tree_root",
]
