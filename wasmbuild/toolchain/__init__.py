"""Toolchain composition and channel providers."""

from wasmbuild.toolchain.composer import (
    combine,
    compose_toolchain,
    minimal_selectors,
    target_std_selector,
)
from wasmbuild.toolchain.rustup import RustupChannelProvider, toolchain_name
from wasmbuild.toolchain.static import StaticChannelProvider
from wasmbuild.toolchain.types import (
    LATEST,
    WASM32_UNKNOWN_UNKNOWN,
    ChannelProvider,
    ComponentRef,
    ComponentRole,
    ComponentSelector,
    ToolchainSpec,
)


__all__ = [
    "LATEST",
    "WASM32_UNKNOWN_UNKNOWN",
    "ChannelProvider",
    "ComponentRef",
    "ComponentRole",
    "ComponentSelector",
    "RustupChannelProvider",
    "StaticChannelProvider",
    "ToolchainSpec",
    "combine",
    "compose_toolchain",
    "minimal_selectors",
    "target_std_selector",
    "toolchain_name",
]
