"""Channel provider over an in-memory manifest."""

from pathlib import Path
from typing import Any, Mapping

from wasmbuild.errors import ResolutionError
from wasmbuild.toolchain.rustup import toolchain_name
from wasmbuild.toolchain.types import ComponentRef, ComponentRole, ComponentSelector


class StaticChannelProvider:
    """
    Resolves components from a manifest shaped like::

        {
            "nightly": {
                "profiles": {"minimal": {"rustc": "/opt/rust/bin/rustc", ...}},
                "targets": {"wasm32-unknown-unknown": "/opt/rust/lib/rustlib/..."},
            }
        }

    Versions are not distinguished; the manifest is the pin.
    """

    def __init__(self, manifest: Mapping[str, Mapping[str, Any]]):
        self.manifest = manifest

    def resolve(self, selector: ComponentSelector) -> ComponentRef:
        channel = self.manifest.get(selector.channel)
        if channel is None:
            raise ResolutionError(
                f"Unknown channel {selector.channel!r}", component=selector.name
            )

        if selector.role is ComponentRole.CROSS_STD:
            targets = channel.get("targets", {})
            if selector.target not in targets:
                raise ResolutionError(
                    f"Channel {selector.channel!r} has no rust-std for target "
                    f"{selector.target!r}",
                    component=selector.target,
                )
            path = targets[selector.target]
        else:
            profile = channel.get("profiles", {}).get(selector.profile or "minimal")
            if profile is None or selector.name not in profile:
                raise ResolutionError(
                    f"Channel {selector.channel!r} has no {selector.name} in profile "
                    f"{selector.profile!r}",
                    component=selector.name,
                )
            path = profile[selector.name]

        return ComponentRef(
            selector=selector,
            toolchain=toolchain_name(selector.channel, selector.version),
            path=Path(path),
        )
