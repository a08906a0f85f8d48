#!/usr/bin/env python3
"""
Development shell assembly.

Resolves the declared native libraries to their library directories and
derives a single search-path variable from them. The result is returned as a
value; nothing here writes to os.environ. Callers bind it into a child
process environment (enter_dev_shell), print it, or render a launcher script.
"""

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from wasmbuild.build.builder import BuildRequest
from wasmbuild.errors import EnvironmentConstructionError, FailureInfo, ResolutionError
from wasmbuild.util.process import run_command


logger = logging.getLogger(__name__)

LIBRARY_PATH_VAR = "LD_LIBRARY_PATH"

# Package names that differ from their pkg-config module name
PKG_CONFIG_MODULES = {
    "glib": "glib-2.0",
    "gtk2": "gtk+-2.0",
    "gtk3": "gtk+-3.0",
    "libsoup_3": "libsoup-3.0",
    "webkitgtk_4_1": "webkit2gtk-4.1",
    "webkitgtk_6_0": "webkitgtk-6.0",
}

# Packages that ship a program rather than a .pc file
TOOL_PACKAGES = {"pkg-config"}


class LibraryResolver(Protocol):
    def resolve(self, name: str) -> Path:
        """Return the directory holding the package's shared libraries."""
        ...


class StaticLibraryResolver:
    """Resolves package names from an explicit table."""

    def __init__(self, library_dirs: Mapping[str, str | Path]):
        self.library_dirs = {name: Path(d) for name, d in library_dirs.items()}

    def resolve(self, name: str) -> Path:
        if name not in self.library_dirs:
            raise ResolutionError(f"No library directory for {name!r}", component=name)
        return self.library_dirs[name]


class PkgConfigResolver:
    """Resolves packages through pkg-config's libdir variable."""

    def __init__(
        self,
        pkg_config: str = "pkg-config",
        modules: Optional[Mapping[str, str]] = None,
    ):
        self.pkg_config = pkg_config
        self.modules = dict(PKG_CONFIG_MODULES)
        if modules:
            self.modules.update(modules)

    def _resolve_tool(self, name: str) -> Path:
        exe = shutil.which(name)
        if exe is None:
            raise ResolutionError(f"{name} is not installed", component=name)
        return Path(exe).resolve().parent.parent / "lib"

    def resolve(self, name: str) -> Path:
        if name in TOOL_PACKAGES and name not in self.modules:
            return self._resolve_tool(name)

        module = self.modules.get(name, name)
        cmd = [self.pkg_config, "--variable=libdir", module]
        try:
            result = run_command(cmd)
        except FileNotFoundError as e:
            raise ResolutionError(
                f"pkg-config not found while resolving {name!r}", component=name
            ) from e

        libdir = result.output.strip()
        if not result.ok or not libdir:
            raise ResolutionError(
                f"pkg-config cannot find module {module!r} for {name!r}",
                component=name,
                failures=[
                    FailureInfo(
                        subject=name,
                        command=cmd,
                        return_code=result.returncode,
                        output=result.output,
                    )
                ],
            )
        return Path(libdir.splitlines()[-1])


class ChainedLibraryResolver:
    """Tries each resolver in order; the first success wins."""

    def __init__(self, resolvers: Sequence[LibraryResolver]):
        self.resolvers = list(resolvers)

    def resolve(self, name: str) -> Path:
        errors: list[ResolutionError] = []
        for resolver in self.resolvers:
            try:
                return resolver.resolve(name)
            except ResolutionError as e:
                errors.append(e)
        message = "; ".join(e.message for e in errors) or "no resolvers configured"
        raise ResolutionError(
            f"Cannot resolve {name!r}: {message}",
            component=name,
            failures=[f for e in errors for f in e.failures],
        )


def make_library_path(directories: Iterable[Path | str]) -> str:
    """Join directories with the host path separator, keeping order and duplicates."""
    return os.pathsep.join(str(d) for d in directories)


@dataclass(frozen=True)
class DevEnvironment:
    """Everything a development session needs, as plain values."""

    inputs: tuple[BuildRequest, ...]
    libraries: tuple[str, ...]
    library_dirs: tuple[Path, ...]
    library_path: str
    variable: str = LIBRARY_PATH_VAR

    def environ(self, base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        """A new environment mapping: base (default os.environ) plus the library path."""
        env = dict(base if base is not None else os.environ)
        env[self.variable] = self.library_path
        return env

    def launcher_script(self) -> str:
        return f"export {self.variable}={shlex.quote(self.library_path)}\n"


def assemble_dev_shell(
    inputs_from: Sequence[BuildRequest],
    libraries: Sequence[str],
    resolver: LibraryResolver,
    variable: str = LIBRARY_PATH_VAR,
) -> DevEnvironment:
    """
    Resolve every library, in declaration order, into one search path.

    All libraries are resolved before anything is returned, so a failure
    never yields a partially configured environment.

    Raises:
        EnvironmentConstructionError: If any library cannot be resolved
    """
    directories: list[Path] = []
    for name in libraries:
        try:
            directory = resolver.resolve(name)
        except ResolutionError as e:
            raise EnvironmentConstructionError(
                f"Cannot assemble dev shell: {e.message}",
                library=name,
                failures=e.failures,
            ) from e
        logger.debug(f"{name} -> {directory}")
        directories.append(directory)

    env = DevEnvironment(
        inputs=tuple(inputs_from),
        libraries=tuple(libraries),
        library_dirs=tuple(directories),
        library_path=make_library_path(directories),
        variable=variable,
    )
    logger.info(f"{variable}: {len(directories)} library dir(s)")
    return env


def default_shell() -> list[str]:
    shell = os.environ.get("SHELL")
    if shell:
        return [shell]
    return ["/bin/sh"]


def enter_dev_shell(
    env: DevEnvironment,
    command: Optional[Sequence[str]] = None,
    base: Optional[Mapping[str, str]] = None,
) -> int:
    """
    Run an interactive shell (or command) with the library path set.

    The variable lives only in the child's environment and goes away with it.

    Returns:
        The child's exit status
    """
    cmd = list(command) if command else default_shell()
    logger.info(f"Entering dev shell: {' '.join(cmd)}")
    # inherits the terminal; RunningProcess would capture stdin/stdout
    completed = subprocess.run(cmd, env=env.environ(base), check=False)
    return completed.returncode
