"""Value types for composed Rust toolchains."""

import hashlib
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from typeguard import typechecked


WASM32_UNKNOWN_UNKNOWN = "wasm32-unknown-unknown"
LATEST = "latest"
MINIMAL_PROFILE = "minimal"


class ComponentRole(Enum):
    """Role a component plays inside a toolchain"""

    COMPILER = "compiler"
    BUILD_TOOL = "build-tool"
    CROSS_STD = "cross-std"


@typechecked
@dataclass(frozen=True)
class ComponentSelector:
    """What is asked of a channel provider for one component"""

    role: ComponentRole
    name: str
    channel: str
    version: str = LATEST
    profile: Optional[str] = None
    target: Optional[str] = None

    @property
    def key(self) -> tuple[ComponentRole, Optional[str]]:
        # compiler and build tool are unique per toolchain, std per target
        return (self.role, self.target)

    def describe(self) -> str:
        where = f"{self.channel}/{self.version}"
        if self.target:
            return f"{self.name} ({self.target}) from {where}"
        return f"{self.name} from {where}"


@typechecked
@dataclass(frozen=True)
class ComponentRef:
    """A component as returned by a channel provider"""

    selector: ComponentSelector
    toolchain: str
    path: Path

    @property
    def role(self) -> ComponentRole:
        return self.selector.role

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "role": self.selector.role.value,
            "name": self.selector.name,
            "channel": self.selector.channel,
            "version": self.selector.version,
            "profile": self.selector.profile,
            "target": self.selector.target,
            "toolchain": self.toolchain,
            "path": str(self.path),
        }


@dataclass(frozen=True)
class ToolchainSpec:
    """
    One logical toolchain made of a compiler, a build tool and any number of
    target standard libraries. Built by `combine()`; never mutated.
    """

    components: tuple[ComponentRef, ...]

    def _single(self, role: ComponentRole) -> ComponentRef:
        matches = [c for c in self.components if c.role is role]
        if len(matches) != 1:
            raise ValueError(
                f"Toolchain must contain exactly one {role.value}, found {len(matches)}"
            )
        return matches[0]

    @property
    def compiler(self) -> ComponentRef:
        return self._single(ComponentRole.COMPILER)

    @property
    def build_tool(self) -> ComponentRef:
        return self._single(ComponentRole.BUILD_TOOL)

    @property
    def targets(self) -> tuple[str, ...]:
        return tuple(
            c.selector.target
            for c in self.components
            if c.role is ComponentRole.CROSS_STD and c.selector.target
        )

    def supports(self, target: str) -> bool:
        return target in self.targets

    def to_dict(self) -> dict[str, list[dict[str, Optional[str]]]]:
        return {"components": [c.to_dict() for c in self.components]}

    def fingerprint(self) -> str:
        """sha256 of the canonical JSON form; equal inputs give equal fingerprints."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ChannelProvider(Protocol):
    """Source of installable toolchain components."""

    def resolve(self, selector: ComponentSelector) -> ComponentRef:
        """Resolve one component or raise ResolutionError naming it."""
        ...
