"""Host system names and per-system output fan-out."""

import platform
import sys
from typing import Callable, Iterable, Optional, TypeVar

from wasmbuild.errors import ResolutionError


T = TypeVar("T")

DEFAULT_SYSTEMS = (
    "x86_64-linux",
    "aarch64-linux",
    "x86_64-darwin",
    "aarch64-darwin",
)

_MACHINE_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


def detect_host_system(
    machine: Optional[str] = None, os_name: Optional[str] = None
) -> str:
    """
    Name the host as "<arch>-<os>", e.g. "x86_64-linux".

    Raises:
        ResolutionError: If the architecture or OS is not recognised
    """
    machine = (machine or platform.machine()).lower()
    os_name = os_name or sys.platform

    arch = _MACHINE_ALIASES.get(machine)
    if arch is None:
        raise ResolutionError(f"Unsupported architecture: {machine}", component=machine)

    if os_name.startswith("linux"):
        kernel = "linux"
    elif os_name == "darwin":
        kernel = "darwin"
    else:
        raise ResolutionError(f"Unsupported platform: {os_name}", component=os_name)

    return f"{arch}-{kernel}"


def each_system(systems: Iterable[str], fn: Callable[[str], T]) -> dict[str, T]:
    """Evaluate fn once per system, keeping declaration order."""
    return {system: fn(system) for system in systems}
