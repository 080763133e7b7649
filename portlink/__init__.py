"""portlink - vcpkg 原生依赖解析与库探测工具"""

__version__ = "0.4.0"
