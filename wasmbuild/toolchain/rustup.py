#!/usr/bin/env python3
"""
Channel provider backed by rustup.

Installs the requested toolchain with the minimal profile, locates the compiler
and build tool inside it, and adds target standard libraries on demand.
"""

import logging
from pathlib import Path
from typing import Optional

from wasmbuild.errors import FailureInfo, ResolutionError
from wasmbuild.toolchain.types import (
    LATEST,
    MINIMAL_PROFILE,
    ComponentRef,
    ComponentRole,
    ComponentSelector,
)
from wasmbuild.util.process import CommandResult, run_command


logger = logging.getLogger(__name__)


def toolchain_name(channel: str, version: str = LATEST) -> str:
    """
    Map (channel, version) to a rustup toolchain name.

    "latest" tracks the channel itself. A pinned stable release is addressed by
    its version number; other channels are pinned by date.

    Examples:
        ("stable", "latest") -> "stable"
        ("stable", "1.78.0") -> "1.78.0"
        ("nightly", "2024-05-01") -> "nightly-2024-05-01"
    """
    if version == LATEST:
        return channel
    if channel == "stable":
        return version
    return f"{channel}-{version}"


class RustupChannelProvider:
    """ChannelProvider that resolves components through the rustup CLI."""

    def __init__(self, rustup: str = "rustup", install: bool = True):
        """
        Args:
            rustup: rustup executable
            install: Install missing toolchains/targets instead of failing
        """
        self.rustup = rustup
        self.install = install
        self._installed: set[str] = set()

    def _run(self, args: list[str], subject: str) -> CommandResult:
        cmd = [self.rustup, *args]
        try:
            return run_command(cmd)
        except FileNotFoundError as e:
            raise ResolutionError(
                f"rustup not found while resolving {subject}: {e}",
                component=subject,
            ) from e

    def _fail(
        self, message: str, selector: ComponentSelector, result: CommandResult
    ) -> ResolutionError:
        subject = selector.target or selector.name
        return ResolutionError(
            message,
            component=subject,
            failures=[
                FailureInfo(
                    subject=subject,
                    command=result.command,
                    return_code=result.returncode,
                    output=result.output,
                )
            ],
        )

    def _ensure_toolchain(self, selector: ComponentSelector, toolchain: str) -> None:
        if not self.install or toolchain in self._installed:
            return
        profile = selector.profile or MINIMAL_PROFILE
        logger.info(f"Installing toolchain {toolchain} (profile {profile})")
        result = self._run(
            [
                "toolchain",
                "install",
                toolchain,
                "--profile",
                profile,
                "--no-self-update",
            ],
            selector.name,
        )
        if not result.ok:
            raise self._fail(
                f"Channel {selector.channel!r} has no toolchain {toolchain!r}",
                selector,
                result,
            )
        self._installed.add(toolchain)

    def _which(self, selector: ComponentSelector, toolchain: str) -> Path:
        result = self._run(
            ["which", selector.name, "--toolchain", toolchain], selector.name
        )
        if not result.ok or not result.output.strip():
            raise self._fail(
                f"Toolchain {toolchain!r} has no {selector.name} component",
                selector,
                result,
            )
        return Path(result.output.strip().splitlines()[-1])

    def _target_std(self, selector: ComponentSelector, toolchain: str) -> Path:
        target: Optional[str] = selector.target
        assert target is not None, "rust-std selector must name a target"

        if self.install:
            result = self._run(
                ["target", "add", target, "--toolchain", toolchain], target
            )
            if not result.ok:
                raise self._fail(
                    f"Channel {selector.channel!r} has no rust-std for target {target!r}",
                    selector,
                    result,
                )

        result = self._run(
            ["run", toolchain, "rustc", "--print", "sysroot"], selector.name
        )
        if not result.ok:
            raise self._fail(
                f"Could not query sysroot of toolchain {toolchain!r}", selector, result
            )
        sysroot = Path(result.output.strip().splitlines()[-1])
        std_dir = sysroot / "lib" / "rustlib" / target
        if not std_dir.is_dir():
            raise ResolutionError(
                f"rust-std for target {target!r} is not installed in {toolchain!r}",
                component=target,
            )
        return std_dir

    def resolve(self, selector: ComponentSelector) -> ComponentRef:
        toolchain = toolchain_name(selector.channel, selector.version)
        self._ensure_toolchain(selector, toolchain)

        if selector.role is ComponentRole.CROSS_STD:
            path = self._target_std(selector, toolchain)
        else:
            path = self._which(selector, toolchain)

        logger.debug(f"Resolved {selector.describe()} -> {path}")
        return ComponentRef(selector=selector, toolchain=toolchain, path=path)
