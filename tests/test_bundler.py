"""Tests for extbundle.bundler -- per-module standalone bundles."""

from __future__ import annotations

from pathlib import Path

import pytest

from extbundle.bundler import bundle_all, bundle_module, bundler_args
from extbundle.compiler import compile_project
from extbundle.exceptions import BundleError, ModuleSkipped
from extbundle.fsutil import reset_dir
from extbundle.models import BuildConfig


@pytest.fixture
def compiled(config: BuildConfig, toolchain, quiet_output) -> BuildConfig:
    """Config whose project has been compiled into a fresh build dir."""
    reset_dir(config.build_path)
    compile_project(config)
    reset_dir(config.bundles_path)
    return config


class TestBundlerArgs:
    def test_default_command_line(self, config: BuildConfig) -> None:
        entry = Path("/p/temp_build/Guya/Guya.js")
        out = Path("/p/bundles/Guya/source.js")
        assert bundler_args(config, entry, out) == [
            "npx", "browserify", str(entry),
            "--standalone", "Sources",
            "--ignore", "./node_modules/paperback-extensions-common/dist/APIWrapper.js",
            "--external", "axios",
            "--external", "cheerio",
            "--external", "fs",
            "--outfile", str(out),
        ]

    def test_configured_externals(self, config: BuildConfig) -> None:
        config = config.model_copy(update={"external_modules": ["axios"], "ignored_modules": []})
        args = bundler_args(config, Path("a.js"), Path("b.js"))
        assert "--ignore" not in args
        assert args.count("--external") == 1


class TestBundleModule:
    def test_writes_bundle_and_copies_includes(self, compiled: BuildConfig, toolchain) -> None:
        output = bundle_module(compiled, "MangaDex")

        assert output == compiled.bundles_path / "MangaDex" / "source.js"
        assert output.read_text() == "// bundle of MangaDex\n"
        assert (compiled.bundles_path / "MangaDex" / "includes" / "icon.png").is_file()

    def test_module_without_includes(self, compiled: BuildConfig, toolchain) -> None:
        import shutil

        shutil.rmtree(compiled.source_path / "Guya" / "includes")
        bundle_module(compiled, "Guya")
        assert not (compiled.bundles_path / "Guya" / "includes").exists()

    def test_tests_entry_is_skipped(self, compiled: BuildConfig) -> None:
        (compiled.build_path / "tests").mkdir()
        with pytest.raises(ModuleSkipped):
            bundle_module(compiled, "tests")
        assert not (compiled.bundles_path / "tests").exists()

    def test_file_entry_is_skipped(self, compiled: BuildConfig) -> None:
        (compiled.build_path / "index.js").write_text("")
        with pytest.raises(ModuleSkipped):
            bundle_module(compiled, "index.js")

    def test_missing_entry_point_is_skipped(self, compiled: BuildConfig) -> None:
        (compiled.build_path / "Helpers").mkdir()
        (compiled.build_path / "Helpers" / "util.js").write_text("")
        with pytest.raises(ModuleSkipped, match="Helpers.js"):
            bundle_module(compiled, "Helpers")
        assert not (compiled.bundles_path / "Helpers").exists()

    def test_failure_removes_partial_output(self, compiled: BuildConfig, toolchain) -> None:
        toolchain.fail_bundles.add("Guya")
        with pytest.raises(BundleError, match="Cannot find module"):
            bundle_module(compiled, "Guya")
        assert not (compiled.bundles_path / "Guya").exists()

    def test_asset_copy_failure_removes_output(
        self, compiled: BuildConfig, toolchain, monkeypatch
    ) -> None:
        def _fail_copy(src: Path, dst: Path) -> None:
            raise PermissionError(f"cannot read {src}")

        monkeypatch.setattr("extbundle.bundler.copy_tree", _fail_copy)
        with pytest.raises(PermissionError):
            bundle_module(compiled, "Guya")
        assert not (compiled.bundles_path / "Guya").exists()

    def test_asset_copy_failure_is_isolated(
        self, compiled: BuildConfig, toolchain, monkeypatch
    ) -> None:
        from extbundle.fsutil import copy_tree

        def _copy(src: Path, dst: Path) -> None:
            if src.parent.name == "Guya":
                raise PermissionError(f"cannot read {src}")
            copy_tree(src, dst)

        monkeypatch.setattr("extbundle.bundler.copy_tree", _copy)
        results = bundle_all(compiled)
        assert results.failed_keys == ["Guya"]
        assert [p.name for p in compiled.bundles_path.iterdir()] == ["MangaDex"]

    def test_missing_output_file_is_an_error(self, compiled: BuildConfig, monkeypatch) -> None:
        import subprocess

        monkeypatch.setattr(
            subprocess, "run", lambda args, **kw: subprocess.CompletedProcess(args, 0, "", "")
        )
        with pytest.raises(BundleError, match="produced no source.js"):
            bundle_module(compiled, "Guya")

    def test_missing_bundler_binary(self, compiled: BuildConfig, monkeypatch) -> None:
        import subprocess

        def _raise(*args, **kwargs):
            raise FileNotFoundError("npx")

        monkeypatch.setattr(subprocess, "run", _raise)
        with pytest.raises(BundleError, match="Bundler not found"):
            bundle_module(compiled, "Guya")


class TestBundleAll:
    def test_bundles_every_module(self, compiled: BuildConfig, toolchain) -> None:
        results = bundle_all(compiled)
        assert sorted(results.succeeded) == ["Guya", "MangaDex"]
        assert results.failed == []
        assert sorted(p.name for p in compiled.bundles_path.iterdir()) == ["Guya", "MangaDex"]

    def test_one_failure_does_not_stop_others(self, compiled: BuildConfig, toolchain) -> None:
        toolchain.fail_bundles.add("MangaDex")
        results = bundle_all(compiled)
        assert list(results.succeeded) == ["Guya"]
        assert results.failed_keys == ["MangaDex"]
        assert [p.name for p in compiled.bundles_path.iterdir()] == ["Guya"]

    def test_skips_are_reported(self, compiled: BuildConfig, toolchain) -> None:
        (compiled.build_path / "tests").mkdir()
        results = bundle_all(compiled)
        assert results.skipped == ["tests"]

    def test_missing_build_dir_is_empty(self, config: BuildConfig, quiet_output) -> None:
        results = bundle_all(config)
        assert results.succeeded == {}
