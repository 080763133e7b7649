"""Shell 命令执行工具 — 统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，安装器中的 git / vcpkg /
bootstrap 调用都经由它完成，测试时可注入假实现。
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from portlink.core.exceptions import CommandError

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 — 抽象子进程调用"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果；命令无法启动时抛 OSError"""
        ...

    def stream(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        on_line: Callable[[str], None],
    ) -> CommandResult:
        """执行命令，每产生一行输出就回调 on_line（stderr 合并到 stdout）"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        r = subprocess.run(
            cmd, capture_output=True, text=True, errors="replace",
            cwd=cwd, env=env, check=False, timeout=timeout,
        )
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )

    def stream(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        on_line: Callable[[str], None],
    ) -> CommandResult:
        lines: list[str] = []
        with subprocess.Popen(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
            text=True, errors="replace", cwd=cwd, env=env,
        ) as proc:
            for raw in proc.stdout or ():
                line = raw.rstrip("\r\n")
                lines.append(line)
                on_line(line)
            returncode = proc.wait()
        return CommandResult(returncode=returncode, stdout="\n".join(lines), stderr="")


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


def run_checked(
    executor: CommandExecutor,
    cmd: list[str],
    *,
    cwd: str = ".",
    label: str = "cmd",
) -> CommandResult:
    """执行命令，失败抛 CommandError 并附带输出摘要

    Args:
        executor: 命令执行器
        cmd: 参数列表
        cwd: 工作目录
        label: 日志与错误信息中的标签
    """
    logger.info("  %s: %s (cwd=%s)", label, " ".join(cmd), cwd)
    try:
        r = executor.execute(cmd, cwd=cwd)
    except OSError as e:
        raise CommandError(f"{label}无法启动: {e}") from e
    if not r.success:
        raise CommandError(
            f"{label}失败 (rc={r.returncode})\n"
            f"-- stdout --\n{r.stdout[-2000:]}\n"
            f"-- stderr --\n{r.stderr[-2000:]}",
            returncode=r.returncode,
        )
    return r
