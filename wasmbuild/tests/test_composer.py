"""Tests for toolchain composition."""

from pathlib import Path

import pytest

from wasmbuild.errors import ResolutionError
from wasmbuild.tests.fakes import FakeProvider
from wasmbuild.toolchain.composer import (
    combine,
    compose_toolchain,
    minimal_selectors,
    target_std_selector,
)
from wasmbuild.toolchain.static import StaticChannelProvider
from wasmbuild.toolchain.types import (
    WASM32_UNKNOWN_UNKNOWN,
    ComponentRef,
    ComponentRole,
)


class TestComposeToolchain:
    def test_selects_minimal_pair_and_target_std(self):
        provider = FakeProvider()
        spec = compose_toolchain(provider, "nightly", target=WASM32_UNKNOWN_UNKNOWN)

        assert [s.name for s in provider.calls] == ["rustc", "cargo", "rust-std"]
        assert provider.calls[0].profile == "minimal"
        assert provider.calls[1].profile == "minimal"
        assert provider.calls[2].target == WASM32_UNKNOWN_UNKNOWN
        assert spec.compiler.path == Path("/fake/nightly/rustc")
        assert spec.build_tool.path == Path("/fake/nightly/cargo")
        assert spec.targets == (WASM32_UNKNOWN_UNKNOWN,)
        assert spec.supports(WASM32_UNKNOWN_UNKNOWN)

    def test_identical_inputs_give_identical_specs(self):
        first = compose_toolchain(FakeProvider(), "stable", version="1.78.0")
        second = compose_toolchain(FakeProvider(), "stable", version="1.78.0")

        assert first == second
        assert first.fingerprint() == second.fingerprint()

    def test_different_version_changes_fingerprint(self):
        latest = compose_toolchain(FakeProvider(), "nightly")
        pinned = compose_toolchain(FakeProvider(), "nightly", version="2024-05-01")

        assert latest.fingerprint() != pinned.fingerprint()
        assert pinned.compiler.toolchain == "nightly-2024-05-01"

    def test_missing_target_std_names_the_target(self):
        provider = FakeProvider(missing={"wasm32-unknown-unknown"})

        with pytest.raises(ResolutionError) as exc_info:
            compose_toolchain(provider, "nightly")

        assert exc_info.value.component == "wasm32-unknown-unknown"

    def test_missing_compiler_names_the_component(self):
        with pytest.raises(ResolutionError) as exc_info:
            compose_toolchain(FakeProvider(missing={"cargo"}), "nightly")

        assert exc_info.value.component == "cargo"

    def test_extra_selectors_add_targets(self):
        extra = [target_std_selector("nightly", "wasm32-wasip1")]
        spec = compose_toolchain(FakeProvider(), "nightly", extra=extra)

        assert spec.targets == (WASM32_UNKNOWN_UNKNOWN, "wasm32-wasip1")


class TestCombine:
    def _refs(self, channel: str) -> list[ComponentRef]:
        provider = FakeProvider()
        return [provider.resolve(s) for s in minimal_selectors(channel)]

    def test_last_declared_wins_in_place(self):
        refs = self._refs("stable")
        replacement = FakeProvider().resolve(minimal_selectors("beta")[0])

        spec = combine(refs + [replacement])

        assert len(spec.components) == 2
        assert spec.components[0].role is ComponentRole.COMPILER
        assert spec.compiler.toolchain == "beta"
        assert spec.build_tool.toolchain == "stable"

    def test_requires_build_tool(self):
        compiler_only = self._refs("stable")[:1]

        with pytest.raises(ResolutionError) as exc_info:
            combine(compiler_only)

        assert exc_info.value.component == "cargo"

    def test_requires_compiler(self):
        with pytest.raises(ResolutionError) as exc_info:
            combine(self._refs("stable")[1:])

        assert exc_info.value.component == "rustc"


class TestStaticChannelProvider:
    MANIFEST = {
        "nightly": {
            "profiles": {
                "minimal": {"rustc": "/opt/rust/bin/rustc", "cargo": "/opt/rust/bin/cargo"}
            },
            "targets": {
                "wasm32-unknown-unknown": "/opt/rust/lib/rustlib/wasm32-unknown-unknown"
            },
        }
    }

    def test_composes_from_manifest(self):
        spec = compose_toolchain(StaticChannelProvider(self.MANIFEST), "nightly")

        assert spec.compiler.path == Path("/opt/rust/bin/rustc")
        assert spec.build_tool.path == Path("/opt/rust/bin/cargo")

    def test_unknown_target_fails_at_resolution(self):
        provider = StaticChannelProvider(self.MANIFEST)

        with pytest.raises(ResolutionError) as exc_info:
            compose_toolchain(provider, "nightly", target="wasm64-unknown-unknown")

        assert exc_info.value.component == "wasm64-unknown-unknown"

    def test_unknown_channel(self):
        with pytest.raises(ResolutionError, match="Unknown channel"):
            compose_toolchain(StaticChannelProvider(self.MANIFEST), "stable")
