"""CLI — 查看构建脚本在 vcpkg 树中会找到什么"""

from __future__ import annotations

import click

from portlink.cli import _cfg
from portlink.core.models import ProbeResult


def register(group: click.Group) -> None:
    group.add_command(probe_cmd)


def _parse_lib_name(value: str) -> tuple[str, str]:
    """'libcurl_imp:curl' -> (lib, dll)；不带冒号时两者相同"""
    lib_stem, _, dll_stem = value.partition(":")
    return lib_stem, dll_stem or lib_stem


def _echo_section(title: str, lines: list) -> None:
    if lines:
        click.echo(f"{title}:")
        for line in lines:
            click.echo(f"  {line}")


def _show_result(name: str, lib: ProbeResult) -> None:
    click.echo(f"Found library {name} ({lib.linkage})")
    _echo_section("Include paths", lib.include_paths)
    _echo_section("Library paths", lib.link_paths)
    _echo_section("Cargo metadata", lib.cargo_metadata)
    _echo_section("Found DLLs", lib.found_dlls)
    _echo_section("Found libs", lib.found_libs)


@click.command(name="probe")
@click.argument("package")
@click.option("--target", "-t", default=None,
              help="要查找库的构建目标 triple [默认: x86_64-pc-windows-msvc]")
@click.option("--linkage", "-l", type=click.Choice(["dll", "static"]), default=None,
              help="强制链接方式，不指定则按环境信号推断")
@click.option("--lib-name", "lib_names", multiple=True,
              help="库名，格式 lib 或 lib:dll，可多次指定")
@click.option("--root", "tree_root", default=None, help="vcpkg 树根目录")
@click.option("--metadata-only", is_flag=True, help="只输出 cargo: 指令")
@click.pass_context
def probe_cmd(
    ctx: click.Context,
    package: str,
    target: str | None,
    linkage: str | None,
    lib_names: tuple[str, ...],
    tree_root: str | None,
    metadata_only: bool,
) -> None:
    """查找一个库并显示路径与 cargo 元数据"""
    from portlink.core.probe.prober import LibraryProber

    cfg = _cfg(ctx)
    prober = LibraryProber(
        target=target or cfg.target or "x86_64-pc-windows-msvc",
        tree_root=tree_root or cfg.tree_root or None,
        tool=cfg.tool_name,
    ).emit_metadata(metadata_only)

    if linkage is not None:
        prober.static(linkage == "static")
    for value in lib_names:
        prober.lib_names(*_parse_lib_name(value))

    lib = prober.probe(package)
    if not metadata_only:
        _show_result(package, lib)
