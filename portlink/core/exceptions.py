"""统一异常体系

所有业务异常继承 PortlinkError，每个子类携带可打印的上下文
（信号名、路径、字段），CLI 层据此输出友好提示并以非零状态退出。
异常一律不在内部重试。
"""

from __future__ import annotations


class PortlinkError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(PortlinkError):
    """配置或 workspace 元数据缺失、内容无效"""

    code = "CONFIG_ERROR"


class NoRootPackageError(PortlinkError):
    """workspace 没有可构建的根包（virtual manifest）"""

    code = "NO_ROOT_PACKAGE"

    def __init__(self) -> None:
        super().__init__(
            "无法在 virtual manifest 上运行，"
            "需要针对 workspace 中的实际包执行"
        )


class AmbiguousSourceRevisionError(PortlinkError):
    """git 来源需要且只能指定 branch / tag / rev 之一"""

    code = "AMBIGUOUS_SOURCE_REVISION"

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        given = ", ".join(self.fields) if self.fields else "无"
        super().__init__(
            f"git 来源必须指定 branch、rev、tag 之一 (实际指定: {given})"
        )


class ProbeDisabledError(PortlinkError):
    """*_NO_VCPKG 信号已设置，放弃探测"""

    code = "PROBE_DISABLED"

    def __init__(self, signal: str) -> None:
        self.signal = signal
        super().__init__(f"已中止，因为设置了 {signal}")


class UnsupportedBuildTargetError(PortlinkError):
    """目标平台不是 MSVC ABI，无法选择 triplet"""

    code = "UNSUPPORTED_BUILD_TARGET"

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(
            f"只能为 MSVC ABI 构建的目标查找库 (target={target or '<未设置>'})"
        )


class TreeNotFoundError(PortlinkError):
    """找不到 vcpkg 树或其根标记文件"""

    code = "TREE_NOT_FOUND"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"找不到 vcpkg 树: {detail}")


class LibraryNotFoundError(PortlinkError):
    """期望路径上缺少库文件"""

    code = "LIBRARY_NOT_FOUND"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"vcpkg 树中找不到库 {path}")


class CommandError(PortlinkError):
    """外部命令执行失败"""

    code = "COMMAND_ERROR"

    def __init__(self, message: str, returncode: int = -1) -> None:
        super().__init__(message)
        self.returncode = returncode
