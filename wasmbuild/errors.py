#!/usr/bin/env python3
"""Exceptions raised by toolchain resolution, builds and dev-shell assembly."""

import subprocess
from dataclasses import dataclass
from typing import List, Optional, Union


@dataclass
class FailureInfo:
    """Information about a single failed step"""

    subject: str
    command: Union[str, List[str], None] = None
    return_code: Optional[int] = None
    output: str = ""


class WasmBuildException(Exception):
    """Base exception for wasmbuild failures"""

    def __init__(self, message: str, failures: Optional[List[FailureInfo]] = None):
        super().__init__(message)
        self.failures = failures or []
        self.message = message

    def get_failure_summary(self) -> str:
        """Get a summary of all failures"""
        if not self.failures:
            return self.message

        summary = [self.message]
        for failure in self.failures:
            code = (
                f" (exit code {failure.return_code})"
                if failure.return_code is not None
                else ""
            )
            summary.append(f"  - {failure.subject}{code}")
        return "\n".join(summary)

    def get_detailed_failure_info(self) -> str:
        """Get the summary plus the command and output of every failure"""
        if not self.failures:
            return self.message

        details = [self.message]
        for i, failure in enumerate(self.failures, 1):
            details.append(f"\n{i}. {failure.subject}")
            if failure.command is not None:
                cmd_str = (
                    subprocess.list2cmdline(failure.command)
                    if isinstance(failure.command, list)
                    else failure.command
                )
                details.append(f"   Command: {cmd_str}")
            if failure.return_code is not None:
                details.append(f"   Exit Code: {failure.return_code}")
            if failure.output:
                details.append("   Output:")
                for line in failure.output.split("\n"):
                    details.append(f"     {line}")
        return "\n".join(details)


class ConfigError(WasmBuildException):
    """Raised when wasmbuild.toml is malformed"""


class ResolutionError(WasmBuildException):
    """A channel component, target triple, package or library could not be resolved"""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        failures: Optional[List[FailureInfo]] = None,
    ):
        super().__init__(message, failures)
        self.component = component


class EnvironmentConstructionError(ResolutionError):
    """The dev-shell library path could not be assembled"""

    def __init__(
        self,
        message: str,
        library: Optional[str] = None,
        failures: Optional[List[FailureInfo]] = None,
    ):
        super().__init__(message, component=library, failures=failures)
        self.library = library


class BuildError(WasmBuildException):
    """The package builder failed. `output` holds its diagnostics verbatim."""

    def __init__(
        self,
        message: str = "Build failed",
        output: str = "",
        return_code: Optional[int] = None,
        failures: Optional[List[FailureInfo]] = None,
    ):
        super().__init__(message, failures)
        self.output = output
        self.return_code = return_code
