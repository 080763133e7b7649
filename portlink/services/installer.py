"""vcpkg 树安装器

职责:
- 树不存在时 git clone，已存在时 git fetch
- 检出根包指定的 branch / tag / rev（branch 额外 pull）
- vcpkg 可执行文件过期或缺失时运行 bootstrap
- vcpkg install --recurse 安装端口，并把进度行转成 Compiling 提示

所有子进程都经由 CommandExecutor 执行。
"""

from __future__ import annotations

import logging
import platform
import time
from pathlib import Path

import click

from portlink.core.exceptions import CommandError, TreeNotFoundError
from portlink.core.models import ResolvedInstallSet, RevSelector, SourceLocator
from portlink.core.probe.tree import marker_path
from portlink.utils.shell import CommandExecutor, CommandResult, get_executor, run_checked
from portlink.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

STALE_TOOL_WARNING = "Warning: Different source is available for vcpkg"
CONFIG_MARKER = "# This file was created automatically by cargo-vcpkg\n"

_MISSING_SOURCE_HINT = """\
找不到 vcpkg 安装，且根包 {root} 没有指定可以 clone 的 git 仓库。

请在根包 Cargo.toml 中添加 [package.metadata.vcpkg] 段，并指定 'git'
以及 'branch'、'tag'、'rev' 之一，例如:

[package.metadata.vcpkg]
git = "https://github.com/microsoft/vcpkg"
branch = "master\""""


def print_tag(tag: str, detail: str) -> None:
    """以 cargo 风格输出一行进度: 右对齐的绿色标签 + 说明"""
    click.secho(f"{tag:>12} ", fg="green", bold=True, nl=False)
    click.echo(detail)


def parse_build_line(line: str) -> tuple[str, str, int, int] | None:
    """解析 vcpkg 的进度行

    "Starting package 3/10: zlib:x64-windows" -> ("zlib", "x64-windows", 3, 10)
    计数无法解析时为 (0, 0)。
    """
    prefix = "Starting package "
    if not line.startswith(prefix):
        return None
    progress, sep, pkg_with_triplet = line[len(prefix):].partition(":")
    if not sep:
        return None

    pkg, sep, triplet = pkg_with_triplet.strip().rpartition(":")
    if not sep:
        return None

    counts = progress.split("/", 1)
    try:
        cnt, tot = (int(counts[0]), int(counts[1])) if len(counts) == 2 else (0, 0)
    except ValueError:
        cnt, tot = 0, 0
    return pkg, triplet, cnt, tot


def parse_apple_clang_version(output: str) -> int | None:
    """从 clang --version 输出中取 Apple clang 主版本号"""
    prefix = "Apple clang version "
    for line in output.splitlines():
        if line.startswith(prefix):
            major = line[len(prefix):].split(".", 1)[0]
            return int(major) if major.isdigit() else None
    return None


class TreeInstaller:
    """准备 vcpkg 树并安装端口"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        *,
        tool: str = "vcpkg",
        verbose: bool = False,
        system: str | None = None,
    ) -> None:
        self.executor = executor or get_executor()
        self.tool = tool
        self.verbose = verbose
        self.system = system or platform.system()

    # ---- 命令执行 ----

    def _run(self, cmd: list[str], *, cwd: Path | str = ".", label: str) -> CommandResult:
        r = run_checked(self.executor, cmd, cwd=str(cwd), label=label)
        self._echo_output(r)
        return r

    def _echo_output(self, r: CommandResult) -> None:
        if self.verbose:
            if r.stdout:
                click.echo(r.stdout.rstrip("\n"))
            if r.stderr:
                click.echo(r.stderr.rstrip("\n"), err=True)

    def tool_command(self, root: Path, triplet: str | None) -> list[str]:
        exe = f"{self.tool}.exe" if self.system == "Windows" else self.tool
        cmd = [str(root / exe)]
        if triplet:
            cmd += ["--triplet", triplet]
        return cmd

    # ---- 树准备 ----

    def clone_or_fetch(self, root: Path, source: SourceLocator | None, root_name: str = "") -> None:
        """标记文件不存在时 clone，否则 fetch

        异常:
            TreeNotFoundError: 需要 clone 但根包没有指定 git 来源
        """
        if not marker_path(root, self.tool).exists():
            if source is None:
                raise TreeNotFoundError(_MISSING_SOURCE_HINT.format(root=root_name or "<root>"))
            print_tag("Cloning", source.git)
            self._run(["git", "clone", source.git, str(root)], label="git clone")
        else:
            print_tag("Fetching", self.tool)
            self._run(["git", "fetch", "--verbose", "--all"], cwd=root, label="git fetch")

    def write_config_marker(self, root: Path) -> Path:
        """在 downloads/ 下留一个 cargo-vcpkg.toml，已存在则不动"""
        path = root / "downloads" / "cargo-vcpkg.toml"
        if not path.exists():
            atomic_write(path, CONFIG_MARKER)
            logger.debug("已创建 %s", path)
        return path

    def checkout(self, root: Path, revision: RevSelector) -> None:
        print_tag("Checkout", f"{revision.kind.value} {revision.value}")
        self._run(["git", "checkout", revision.value], cwd=root, label="git checkout")
        if revision.needs_pull:
            print_tag("Pulling", f"{revision.kind.value} {revision.value}")
            self._run(["git", "pull"], cwd=root, label="git pull")

    def needs_bootstrap(self, root: Path, triplet: str | None) -> bool:
        """vcpkg update 无法运行、失败或提示源码已变化时需要重新 bootstrap"""
        cmd = self.tool_command(root, triplet) + ["update"]
        try:
            r = self.executor.execute(cmd, cwd=str(root))
        except OSError as e:
            logger.debug("无法运行 %s: %s", cmd[0], e)
            return True
        self._echo_output(r)
        return not r.success or STALE_TOOL_WARNING in r.stdout

    def apple_clang_version(self) -> int | None:
        try:
            r = self.executor.execute(["clang", "--version"])
        except OSError:
            return None
        return parse_apple_clang_version(r.stdout)

    def bootstrap(self, root: Path) -> None:
        """编译 vcpkg 可执行文件

        macOS 上 Apple clang >= 11 时先尝试 -allowAppleClang，失败再回退到默认编译器。
        """
        print_tag("Compiling", self.tool)
        label = f"{self.tool} bootstrap"

        if self.system == "Windows":
            self._run(
                ["cmd", "/C", f"bootstrap-{self.tool}.bat", "-disableMetrics"],
                cwd=root, label=label,
            )
            return

        script = f"./bootstrap-{self.tool}.sh -disableMetrics"
        if self.system == "Darwin":
            version = self.apple_clang_version()
            if version is not None and version >= 11:
                try:
                    self._run(["sh", "-c", f"{script} -allowAppleClang"], cwd=root, label=label)
                    return
                except CommandError:
                    click.echo(
                        "note: 使用 Apple clang 构建 vcpkg 失败，回退到其他编译器。"
                    )
        self._run(["sh", "-c", script], cwd=root, label=label)

    # ---- 端口安装 ----

    def install(self, root: Path, ports: list[str], triplet: str | None) -> list[tuple[str, str]]:
        """安装端口，返回 vcpkg 报告开始编译的 (端口, triplet) 列表

        进度行随 vcpkg 输出逐行处理，不等待安装结束。
        """
        print_tag("Installing", " ".join(ports))
        cmd = self.tool_command(root, triplet) + ["install", "--recurse", *ports]
        logger.info("  install: %s (cwd=%s)", " ".join(cmd), root)
        compiled: list[tuple[str, str]] = []

        def on_line(line: str) -> None:
            parsed = parse_build_line(line)
            if parsed is not None:
                pkg, pkg_triplet, _cnt, _tot = parsed
                print_tag("Compiling", f"{pkg} (triplet {pkg_triplet})")
                compiled.append((pkg, pkg_triplet))
            if self.verbose:
                click.echo(line)

        try:
            r = self.executor.stream(cmd, cwd=str(root), on_line=on_line)
        except OSError as e:
            raise CommandError(f"{self.tool} install 无法启动: {e}") from e

        if not r.success:
            if not self.verbose:
                click.echo(f"-- output --\n{r.stdout}")
            raise CommandError(
                f"{self.tool} install 失败 (rc={r.returncode})",
                returncode=r.returncode,
            )
        return compiled

    # ---- 完整流程 ----

    def ensure(self, root: Path, install_set: ResolvedInstallSet, root_name: str = "") -> float:
        """准备树并安装解析出的端口，返回耗时秒数"""
        start = time.monotonic()

        self.clone_or_fetch(root, install_set.source, root_name)
        self.write_config_marker(root)

        if install_set.source is not None:
            self.checkout(root, install_set.source.revision)
        else:
            logger.warning("根包未指定 git 来源，保持 %s 当前检出的版本", root)

        if self.needs_bootstrap(root, install_set.triplet):
            self.bootstrap(root)

        ports = install_set.unique_ports()
        if ports:
            self.install(root, ports, install_set.triplet)
        else:
            logger.info("没有需要安装的端口")

        elapsed = time.monotonic() - start
        print_tag("Finished", f"in {elapsed:0.2f}s")
        return elapsed
