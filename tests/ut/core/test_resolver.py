"""清单聚合器测试 — 目标覆盖、根包专属字段、dev 依赖"""

from __future__ import annotations

import pytest

from conftest import WIN64, pkg
from portlink.core.exceptions import AmbiguousSourceRevisionError, NoRootPackageError
from portlink.core.manifest.resolver import resolve_install_set
from portlink.core.models import RevKind


class TestRootPackage:

    def test_virtual_workspace_raises(self, make_workspace) -> None:
        ws = make_workspace(None, [
            pkg("top", {"dependencies": ["z85"]}),
            pkg("dep", {}),
        ])
        with pytest.raises(NoRootPackageError, match="virtual manifest"):
            resolve_install_set(ws, "")

    def test_install_alias_in_root(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {"install": ["z85"]}),
            pkg("dep", {}),
        ])
        result = resolve_install_set(ws, "")
        assert list(result.ports) == ["z85"]
        assert result.triplet is None
        assert result.source is None

    def test_packages_without_metadata_are_skipped(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {"dependencies": ["a"]}),
            pkg("plain"),
            pkg("dep", {"dependencies": ["b"]}),
        ])
        assert list(resolve_install_set(ws, "").ports) == ["a", "b"]

    def test_duplicates_are_kept_in_discovery_order(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {"dependencies": ["zlib", "curl"]}),
            pkg("dep", {"dependencies": ["zlib"]}),
        ])
        result = resolve_install_set(ws, "")
        assert result.ports == ("zlib", "curl", "zlib")
        assert result.unique_ports() == ["zlib", "curl"]


class TestTargetOverride:

    def test_triplet_without_dependencies_keeps_general_list(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {
                "install": ["z85"],
                "target": {WIN64: {"triplet": "x64-windows-static-md"}},
            }),
            pkg("dep", {}),
        ])
        result = resolve_install_set(ws, WIN64)
        assert list(result.ports) == ["z85"]
        assert result.triplet == "x64-windows-static-md"

    def test_empty_dependency_override_opts_out(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {
                "install": ["z85"],
                "target": {WIN64: {"triplet": "x64-windows-static-md", "dependencies": []}},
            }),
            pkg("dep", {}),
        ])
        result = resolve_install_set(ws, WIN64)
        assert list(result.ports) == []
        assert result.triplet == "x64-windows-static-md"

    def test_dependency_override_replaces_not_merges(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {
                "dependencies": ["a", "b"],
                "target": {WIN64: {"dependencies": ["c"]}},
            }),
        ])
        assert list(resolve_install_set(ws, WIN64).ports) == ["c"]

    def test_override_for_other_target_is_ignored(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {
                "dependencies": ["a"],
                "target": {"i686-pc-windows-msvc": {"dependencies": [], "triplet": "x86-windows"}},
            }),
        ])
        result = resolve_install_set(ws, WIN64)
        assert list(result.ports) == ["a"]
        assert result.triplet is None

    def test_non_root_override_replaces_its_own_dependencies(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {"dependencies": ["a"]}),
            pkg("dep", {
                "dependencies": ["m"],
                "target": {WIN64: {"dependencies": []}},
            }),
        ])
        assert list(resolve_install_set(ws, WIN64).ports) == ["a"]


class TestCombinedWorkspace:
    """根包与依赖包同时声明通用依赖、dev 依赖和目标覆盖"""

    @pytest.fixture()
    def workspace(self, make_workspace):
        return make_workspace("top", [
            pkg("top", {
                "dependencies": ["a"],
                "dev-dependencies": ["d"],
                "target": {WIN64: {"triplet": "x64-windows-static-md", "dev-dependencies": ["b", "c"]}},
            }),
            pkg("dep", {
                "dependencies": ["m"],
                "dev-dependencies": ["n"],
                "target": {WIN64: {
                    "triplet": "x64-windows-static-md",
                    "dependencies": ["o"],
                    "dev-dependencies": ["p"],
                }},
            }),
        ])

    def test_with_active_target(self, workspace) -> None:
        result = resolve_install_set(workspace, WIN64)
        assert list(result.ports) == ["a", "b", "c", "o"]
        assert result.triplet == "x64-windows-static-md"

    def test_without_target(self, workspace) -> None:
        result = resolve_install_set(workspace, "")
        assert list(result.ports) == ["a", "d", "m"]
        assert result.triplet is None

    def test_dependency_package_listed_first(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("dep", {"dependencies": ["m"]}),
            pkg("top", {
                "dependencies": ["a"],
                "dev-dependencies": ["d"],
                "target": {WIN64: {"triplet": "x64-windows-static", "dev-dependencies": ["b", "c"]}},
            }),
        ])
        result = resolve_install_set(ws, WIN64)
        assert list(result.ports) == ["m", "a", "b", "c"]
        assert result.triplet == "x64-windows-static"

        result = resolve_install_set(ws, "")
        assert list(result.ports) == ["m", "a", "d"]
        assert result.triplet is None


class TestRootOnlyFields:

    def test_dev_dependencies_of_non_root_never_collected(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {}),
            pkg("dep", {
                "dev-dependencies": ["n"],
                "target": {WIN64: {"dependencies": ["o"], "dev-dependencies": ["p"]}},
            }),
        ])
        assert list(resolve_install_set(ws, "").ports) == []
        assert list(resolve_install_set(ws, WIN64).ports) == ["o"]

    def test_non_root_source_and_triplet_ignored(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {"dependencies": ["a"]}),
            pkg("dep", {
                "git": "https://example.com/vcpkg",
                "branch": "master",
                "target": {WIN64: {"triplet": "x64-windows-static"}},
            }),
        ])
        result = resolve_install_set(ws, WIN64)
        assert result.source is None
        assert result.triplet is None

    def test_non_root_ambiguous_source_is_not_validated(self, make_workspace) -> None:
        ws = make_workspace("top", [
            pkg("top", {}),
            pkg("dep", {"git": "https://example.com/vcpkg", "branch": "a", "tag": "b"}),
        ])
        assert resolve_install_set(ws, "").source is None


class TestSourceLocator:

    @pytest.mark.parametrize("field,kind", [
        ("branch", RevKind.BRANCH),
        ("tag", RevKind.TAG),
        ("rev", RevKind.REV),
    ])
    def test_single_selector_adopted(self, make_workspace, field: str, kind: RevKind) -> None:
        ws = make_workspace("top", [
            pkg("top", {"git": "https://github.com/microsoft/vcpkg", field: "2020.11"}),
        ])
        source = resolve_install_set(ws, "").source
        assert source is not None
        assert source.git == "https://github.com/microsoft/vcpkg"
        assert source.revision.kind is kind
        assert source.revision.value == "2020.11"
        assert source.revision.needs_pull is (kind is RevKind.BRANCH)

    @pytest.mark.parametrize("selectors", [
        {},
        {"branch": "master", "tag": "2020.11"},
        {"tag": "2020.11", "rev": "abc123"},
        {"branch": "master", "tag": "2020.11", "rev": "abc123"},
    ])
    def test_zero_or_many_selectors_fail(self, make_workspace, selectors: dict) -> None:
        ws = make_workspace("top", [
            pkg("top", {"git": "https://github.com/microsoft/vcpkg", **selectors}),
        ])
        with pytest.raises(AmbiguousSourceRevisionError) as exc:
            resolve_install_set(ws, "")
        assert exc.value.fields == [k for k in ("branch", "tag", "rev") if k in selectors]

    def test_selector_without_git_is_ignored(self, make_workspace) -> None:
        ws = make_workspace("top", [pkg("top", {"branch": "master", "tag": "x"})])
        assert resolve_install_set(ws, "").source is None
