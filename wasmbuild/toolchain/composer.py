"""
Toolchain composition.

Selects a minimal compiler, a minimal build tool and the standard library for a
cross-compilation target from one channel, and merges them into a single
ToolchainSpec. All fetching happens behind the ChannelProvider; the merge itself
is pure.
"""

import logging
from typing import Iterable, Sequence

from wasmbuild.errors import ResolutionError
from wasmbuild.toolchain.types import (
    LATEST,
    MINIMAL_PROFILE,
    WASM32_UNKNOWN_UNKNOWN,
    ChannelProvider,
    ComponentRef,
    ComponentRole,
    ComponentSelector,
    ToolchainSpec,
)


logger = logging.getLogger(__name__)


def minimal_selectors(channel: str, version: str = LATEST) -> list[ComponentSelector]:
    """rustc and cargo from the channel's minimal profile."""
    return [
        ComponentSelector(
            role=ComponentRole.COMPILER,
            name="rustc",
            channel=channel,
            version=version,
            profile=MINIMAL_PROFILE,
        ),
        ComponentSelector(
            role=ComponentRole.BUILD_TOOL,
            name="cargo",
            channel=channel,
            version=version,
            profile=MINIMAL_PROFILE,
        ),
    ]


def target_std_selector(
    channel: str, target: str, version: str = LATEST
) -> ComponentSelector:
    """rust-std for a single target triple."""
    return ComponentSelector(
        role=ComponentRole.CROSS_STD,
        name="rust-std",
        channel=channel,
        version=version,
        target=target,
    )


def combine(components: Iterable[ComponentRef]) -> ToolchainSpec:
    """
    Merge components into one toolchain.

    Components are keyed by (role, target). A later component with the same key
    replaces the earlier one in its original position.

    Raises:
        ResolutionError: If no compiler or no build tool is present
    """
    merged: dict[tuple[ComponentRole, object], ComponentRef] = {}
    for ref in components:
        if ref.selector.key in merged:
            logger.debug(f"Replacing {merged[ref.selector.key].selector.describe()}")
        merged[ref.selector.key] = ref

    roles = {key[0] for key in merged}
    for required, name in (
        (ComponentRole.COMPILER, "rustc"),
        (ComponentRole.BUILD_TOOL, "cargo"),
    ):
        if required not in roles:
            raise ResolutionError(
                f"Toolchain has no {required.value} component ({name})",
                component=name,
            )

    return ToolchainSpec(components=tuple(merged.values()))


def compose_toolchain(
    provider: ChannelProvider,
    channel: str,
    target: str = WASM32_UNKNOWN_UNKNOWN,
    version: str = LATEST,
    extra: Sequence[ComponentSelector] = (),
) -> ToolchainSpec:
    """
    Compose a cross-compiling toolchain.

    Args:
        provider: Resolves selectors to installable components
        channel: Release channel ("stable", "beta", "nightly")
        target: Target triple whose standard library is added
        version: "latest" or a pinned version/date
        extra: Additional selectors merged after the defaults

    Returns:
        ToolchainSpec usable in place of a default toolchain

    Raises:
        ResolutionError: If any component cannot be resolved
    """
    selectors = minimal_selectors(channel, version)
    selectors.append(target_std_selector(channel, target, version))
    selectors.extend(extra)

    refs: list[ComponentRef] = []
    for selector in selectors:
        logger.debug(f"Resolving {selector.describe()}")
        refs.append(provider.resolve(selector))

    spec = combine(refs)
    logger.info(
        f"Composed toolchain {spec.compiler.toolchain} "
        f"(targets: {', '.join(spec.targets) or 'host'})"
    )
    return spec
