"""共享 fixture — workspace 元数据构造 + 假 vcpkg 树

  make_workspace("top", [pkg("top", {...}), pkg("dep", {...})])
      构造 cargo metadata 形状的字典，再解码为 WorkspaceMetadata

  make_tree(libs=["zlib"], dlls=["zlib"], variant="x64-windows")
      在 tmp_path 下生成带 .vcpkg-root 标记的 vcpkg 树
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from portlink.core.config import reset_config
from portlink.core.manifest.loader import workspace_from_dict
from portlink.core.models import WorkspaceMetadata
from portlink.utils.shell import CommandResult

WIN64 = "x86_64-pc-windows-msvc"


def pkg(name: str, vcpkg: dict[str, Any] | None = None) -> dict[str, Any]:
    """cargo metadata 中的一个包；vcpkg 为 None 表示没有 metadata.vcpkg 段"""
    entry: dict[str, Any] = {
        "id": f"{name} 0.1.0 (path+file:///ws/{name})",
        "name": name,
        "metadata": None,
    }
    if vcpkg is not None:
        entry["metadata"] = {"vcpkg": vcpkg}
    return entry


def _make_workspace(root: str | None, packages: list[dict[str, Any]]) -> WorkspaceMetadata:
    root_id = None
    if root is not None:
        root_id = next(p["id"] for p in packages if p["name"] == root)
    return workspace_from_dict({
        "packages": packages,
        "resolve": {"root": root_id},
        "target_directory": "/ws/target",
    })


@pytest.fixture()
def make_workspace():
    return _make_workspace


@pytest.fixture()
def make_tree(tmp_path: Path):
    """vcpkg 树工厂，返回树根"""

    def _make(
        *,
        libs: tuple[str, ...] | list[str] = (),
        dlls: tuple[str, ...] | list[str] = (),
        variant: str = "x64-windows",
        marker: bool = True,
    ) -> Path:
        root = tmp_path / "vcpkg"
        base = root / "installed" / variant
        for sub in ("include", "lib", "bin"):
            (base / sub).mkdir(parents=True, exist_ok=True)
        for stem in libs:
            (base / "lib" / f"{stem}.lib").write_bytes(b"")
        for stem in dlls:
            (base / "bin" / f"{stem}.dll").write_bytes(b"")
        if marker:
            (root / ".vcpkg-root").write_text("", encoding="utf-8")
        return root

    return _make


class FakeExecutor:
    """记录调用的命令执行器；命令包含某个模式时返回（或抛出）预设结果"""

    def __init__(self, responses: dict[str, CommandResult | Exception] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[list[str], str]] = []

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        self.calls.append((list(cmd), cwd))
        joined = " ".join(cmd)
        for pattern, result in self.responses.items():
            if pattern in joined:
                if isinstance(result, Exception):
                    raise result
                return result
        return CommandResult(returncode=0, stdout="", stderr="")

    def stream(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        on_line: Callable[[str], None],
    ) -> CommandResult:
        """逐行回放预设结果的 stdout"""
        result = self.execute(cmd, cwd=cwd, env=env)
        for line in result.stdout.splitlines():
            on_line(line)
        return result

    def commands(self) -> list[str]:
        return [" ".join(cmd) for cmd, _ in self.calls]


@pytest.fixture()
def fake_executor():
    return FakeExecutor()


@pytest.fixture(autouse=True)
def _clean_config():
    reset_config()
    yield
    reset_config()
