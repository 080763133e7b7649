"""构建目标映射、vcpkg 树定位与 LibraryProber 测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from portlink.core.exceptions import (
    LibraryNotFoundError,
    ProbeDisabledError,
    TreeNotFoundError,
    UnsupportedBuildTargetError,
)
from portlink.core.probe.prober import LibraryProber
from portlink.core.probe.target import MSVC_NAMING, msvc_variant
from portlink.core.probe.tree import find_tree_root, read_user_targets, validate_tree_root

WIN64 = "x86_64-pc-windows-msvc"


class TestMsvcVariant:

    @pytest.mark.parametrize("target,variant", [
        ("x86_64-pc-windows-msvc", "x64-windows"),
        ("i686-pc-windows-msvc", "x86-windows"),
        ("i586-pc-windows-msvc", "x86-windows"),
    ])
    def test_supported(self, target: str, variant: str) -> None:
        assert msvc_variant(target) == variant

    @pytest.mark.parametrize("target", [
        "", "x86_64-pc-windows-gnu", "x86_64-unknown-linux-gnu", "aarch64-apple-darwin",
    ])
    def test_unsupported(self, target: str) -> None:
        with pytest.raises(UnsupportedBuildTargetError) as exc:
            msvc_variant(target)
        assert exc.value.target == target

    def test_artifact_names(self) -> None:
        assert MSVC_NAMING.static_name("zlib") == "zlib.lib"
        assert MSVC_NAMING.dynamic_name("zlib1") == "zlib1.dll"


class TestTreeLocator:

    def test_vcpkg_root_env(self, tmp_path: Path) -> None:
        assert find_tree_root({"VCPKG_ROOT": str(tmp_path)}) == tmp_path

    def test_user_targets(self, tmp_path: Path) -> None:
        targets = tmp_path / "appdata" / "vcpkg" / "vcpkg.user.targets"
        targets.parent.mkdir(parents=True)
        project = tmp_path / "src" / "vcpkg" / "scripts" / "buildsystems" / "msbuild" / "vcpkg.targets"
        targets.write_text(
            '<?xml version="1.0" encoding="utf-8"?>\n'
            '<Project ToolsVersion="4.0">\n'
            f'  <Import Condition="Exists(\'{project}\')" Project="{project}" />\n'
            '</Project>\n',
            encoding="utf-8",
        )
        root = find_tree_root({"LOCALAPPDATA": str(tmp_path / "appdata")})
        assert root == tmp_path / "src" / "vcpkg"

    def test_user_targets_without_project(self, tmp_path: Path) -> None:
        targets = tmp_path / "vcpkg.user.targets"
        targets.write_text("<Project />\n", encoding="utf-8")
        with pytest.raises(TreeNotFoundError, match="Project"):
            read_user_targets(targets)

    def test_user_targets_path_too_short(self, tmp_path: Path) -> None:
        targets = tmp_path / "vcpkg.user.targets"
        targets.write_text('<Import Project="a/b/c" />\n', encoding="utf-8")
        with pytest.raises(TreeNotFoundError):
            read_user_targets(targets)

    def test_missing_user_targets(self, tmp_path: Path) -> None:
        with pytest.raises(TreeNotFoundError, match="integrate install"):
            find_tree_root({"LOCALAPPDATA": str(tmp_path)})

    def test_no_env_at_all(self) -> None:
        with pytest.raises(TreeNotFoundError, match="LOCALAPPDATA"):
            find_tree_root({})

    def test_validate_marker(self, make_tree) -> None:
        validate_tree_root(make_tree())

    def test_validate_missing_marker(self, make_tree) -> None:
        root = make_tree(marker=False)
        with pytest.raises(TreeNotFoundError, match=".vcpkg-root"):
            validate_tree_root(root)


class TestLibraryProber:

    def test_probe_prints_metadata(self, make_tree, capsys) -> None:
        root = make_tree(libs=["zlib"], dlls=["zlib"])
        lib = LibraryProber(target=WIN64, env={"VCPKG_ROOT": str(root)}).probe("zlib")

        out = capsys.readouterr().out.splitlines()
        assert out == lib.cargo_metadata
        assert out[-1] == "cargo:rustc-link-lib=zlib"

    def test_emit_metadata_off(self, make_tree, capsys) -> None:
        root = make_tree(libs=["zlib"], dlls=["zlib"])
        LibraryProber(target=WIN64, tree_root=root, env={}).emit_metadata(False).probe("zlib")
        assert capsys.readouterr().out == ""

    def test_target_from_env(self, make_tree) -> None:
        root = make_tree(libs=["zlib"], dlls=["zlib"], variant="x86-windows")
        env = {"TARGET": "i686-pc-windows-msvc", "VCPKG_ROOT": str(root)}
        lib = LibraryProber(env=env).emit_metadata(False).probe("zlib")
        assert lib.found_libs[0].parent.parent.name == "x86-windows"

    def test_static_builder(self, make_tree) -> None:
        root = make_tree(libs=["zlib"], variant="x64-windows-static")
        lib = (
            LibraryProber(target=WIN64, tree_root=root, env={"ZLIB_DYNAMIC": "1"})
            .static(True)
            .emit_metadata(False)
            .probe("zlib")
        )
        assert lib.is_static

    def test_lib_name_builders(self, make_tree) -> None:
        root = make_tree(libs=["libcurl_imp", "zlib"], dlls=["curl", "zlib"])
        lib = (
            LibraryProber(target=WIN64, tree_root=root, env={})
            .lib_names("libcurl_imp", "curl")
            .lib_name("zlib")
            .emit_metadata(False)
            .probe("curl")
        )
        assert [p.name for p in lib.found_dlls] == ["curl.dll", "zlib.dll"]

    def test_disabled_before_target_check(self) -> None:
        prober = LibraryProber(target="x86_64-unknown-linux-gnu", env={"ZLIB_NO_VCPKG": ""})
        with pytest.raises(ProbeDisabledError):
            prober.probe("zlib")

    def test_signals_default_to_process_environment(self, make_tree, monkeypatch) -> None:
        monkeypatch.setenv("ZLIB_STATIC", "")
        root = make_tree(libs=["zlib"], variant="x64-windows-static")
        lib = LibraryProber(target=WIN64, tree_root=root).emit_metadata(False).probe("zlib")
        assert lib.is_static

    def test_non_msvc_target(self, make_tree) -> None:
        prober =LibraryProber(target="x86_64-unknown-linux-gnu", tree_root=make_tree(), env={})
        with pytest.raises(UnsupportedBuildTargetError):
            prober.probe("zlib")

    def test_missing_marker(self, make_tree) -> None:
        root = make_tree(libs=["zlib"], dlls=["zlib"], marker=False)
        with pytest.raises(TreeNotFoundError):
            LibraryProber(target=WIN64, tree_root=root, env={}).probe("zlib")

    def test_missing_library_prints_nothing(self, make_tree, capsys) -> None:
        root = make_tree()
        with pytest.raises(LibraryNotFoundError):
            LibraryProber(target=WIN64, tree_root=root, env={}).probe("zlib")
        assert capsys.readouterr().out == ""
