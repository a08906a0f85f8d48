"""Tests for the rustup-backed channel provider."""

from pathlib import Path
from unittest.mock import patch

import pytest

from wasmbuild.errors import ResolutionError
from wasmbuild.tests.fakes import result
from wasmbuild.toolchain.composer import compose_toolchain
from wasmbuild.toolchain.rustup import RustupChannelProvider, toolchain_name


class TestToolchainName:
    def test_latest_tracks_channel(self):
        assert toolchain_name("nightly") == "nightly"
        assert toolchain_name("stable", "latest") == "stable"

    def test_pinned_stable_is_bare_version(self):
        assert toolchain_name("stable", "1.78.0") == "1.78.0"

    def test_pinned_nightly_is_dated(self):
        assert toolchain_name("nightly", "2024-05-01") == "nightly-2024-05-01"


class FakeRustup:
    """Answers rustup invocations from a sysroot on disk."""

    def __init__(self, sysroot: Path, missing_target: bool = False):
        self.sysroot = sysroot
        self.missing_target = missing_target
        self.commands: list[list[str]] = []

    def __call__(self, cmd, cwd=None, env=None, echo=False, timeout=None):
        self.commands.append(cmd)
        args = cmd[1:]
        if args[:2] == ["toolchain", "install"]:
            return result(cmd)
        if args[0] == "which":
            return result(cmd, output=f"{self.sysroot}/bin/{args[1]}\n")
        if args[:2] == ["target", "add"]:
            if self.missing_target:
                message = f"error: toolchain does not support target '{args[2]}'"
                return result(cmd, 1, message)
            (self.sysroot / "lib" / "rustlib" / args[2]).mkdir(parents=True)
            return result(cmd)
        if args[0] == "run":
            return result(cmd, output=f"{self.sysroot}\n")
        return result(cmd, 1, "unexpected")


class TestRustupChannelProvider:
    def test_composes_minimal_toolchain(self, tmp_path: Path):
        rustup = FakeRustup(tmp_path)
        with patch("wasmbuild.toolchain.rustup.run_command", rustup):
            spec = compose_toolchain(RustupChannelProvider(), "nightly")

        assert spec.compiler.path == tmp_path / "bin" / "rustc"
        assert spec.build_tool.path == tmp_path / "bin" / "cargo"
        assert (
            spec.components[2].path
            == tmp_path / "lib" / "rustlib" / "wasm32-unknown-unknown"
        )
        installs = [c for c in rustup.commands if c[1:3] == ["toolchain", "install"]]
        # installed once per provider, with the minimal profile
        assert installs == [
            [
                "rustup",
                "toolchain",
                "install",
                "nightly",
                "--profile",
                "minimal",
                "--no-self-update",
            ]
        ]

    def test_unsupported_target_is_resolution_error(self, tmp_path: Path):
        rustup = FakeRustup(tmp_path, missing_target=True)
        with patch("wasmbuild.toolchain.rustup.run_command", rustup):
            with pytest.raises(ResolutionError) as exc_info:
                compose_toolchain(
                    RustupChannelProvider(), "nightly", target="wasm32-bogus"
                )

        assert exc_info.value.component == "wasm32-bogus"
        assert "does not support target" in exc_info.value.failures[0].output

    def test_missing_rustup(self):
        def not_found(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        with patch("wasmbuild.toolchain.rustup.run_command", not_found):
            with pytest.raises(ResolutionError, match="rustup not found"):
                compose_toolchain(RustupChannelProvider(), "stable")

    def test_no_install_skips_rustup_install(self, tmp_path: Path):
        (tmp_path / "lib" / "rustlib" / "wasm32-unknown-unknown").mkdir(parents=True)
        rustup = FakeRustup(tmp_path)
        with patch("wasmbuild.toolchain.rustup.run_command", rustup):
            compose_toolchain(RustupChannelProvider(install=False), "stable")

        assert not any(c[1] in ("toolchain", "target") for c in rustup.commands)
