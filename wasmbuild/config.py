#!/usr/bin/env python3
"""
wasmbuild.toml loading.

Every key is optional. With no file at all the defaults describe a nightly
minimal toolchain targeting wasm32-unknown-unknown, and a dev shell exposing
the GTK/WebKit stack on LD_LIBRARY_PATH.
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from typeguard import typechecked

from wasmbuild.errors import ConfigError
from wasmbuild.systems import DEFAULT_SYSTEMS
from wasmbuild.toolchain.types import LATEST, WASM32_UNKNOWN_UNKNOWN


CONFIG_FILENAME = "wasmbuild.toml"

DEFAULT_LIBRARIES = (
    "pkg-config",
    "glib",
    "cairo",
    "gtk2",
    "libsoup_3",
    "webkitgtk_4_1",
    "openssl",
)


@typechecked
@dataclass
class ToolchainConfig:
    channel: str = "nightly"
    version: str = LATEST
    target: str = WASM32_UNKNOWN_UNKNOWN


@typechecked
@dataclass
class BuildConfig:
    src: Path = Path(".")
    out_dir: Path = Path("result")
    release: bool = True
    cargo_build_options: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)


@typechecked
@dataclass
class DevShellConfig:
    variable: str = "LD_LIBRARY_PATH"
    libraries: list[str] = field(default_factory=lambda: list(DEFAULT_LIBRARIES))
    library_dirs: dict[str, str] = field(default_factory=dict)
    pkg_config_modules: dict[str, str] = field(default_factory=dict)


@typechecked
@dataclass
class WasmBuildConfig:
    """Type-safe project configuration"""

    root: Path = Path(".")
    systems: list[str] = field(default_factory=lambda: list(DEFAULT_SYSTEMS))
    toolchain: ToolchainConfig = field(default_factory=ToolchainConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    dev_shell: DevShellConfig = field(default_factory=DevShellConfig)

    @property
    def src_dir(self) -> Path:
        return (self.root / self.build.src).resolve()

    @property
    def out_dir(self) -> Path:
        return (self.root / self.build.out_dir).resolve()


def _table(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{key}] must be a table")
    return value


def _get(
    table: dict[str, Any], section: str, key: str, kind: type, default: Any
) -> Any:
    if key not in table:
        return default
    value = table[key]
    # bool is an int subclass; never accept it where another type is wanted
    if not isinstance(value, kind) or (kind is not bool and isinstance(value, bool)):
        raise ConfigError(
            f"{section}.{key} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _get_str_list(
    table: dict[str, Any], section: str, key: str, default: list[str]
) -> list[str]:
    value = _get(table, section, key, list, default)
    if not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{section}.{key} must be a list of strings")
    return list(value)


def _get_str_map(table: dict[str, Any], section: str, key: str) -> dict[str, str]:
    value = _get(table, section, key, dict, {})
    for k, v in value.items():
        if not isinstance(v, str):
            raise ConfigError(f"{section}.{key}.{k} must be str")
    return dict(value)


@typechecked
def parse_config(data: dict[str, Any], root: Path) -> WasmBuildConfig:
    """Build a WasmBuildConfig from parsed TOML data."""
    defaults = WasmBuildConfig()

    tc = _table(data, "toolchain")
    toolchain = ToolchainConfig(
        channel=_get(tc, "toolchain", "channel", str, defaults.toolchain.channel),
        version=_get(tc, "toolchain", "version", str, defaults.toolchain.version),
        target=_get(tc, "toolchain", "target", str, defaults.toolchain.target),
    )

    b = _table(data, "build")
    build = BuildConfig(
        src=Path(_get(b, "build", "src", str, str(defaults.build.src))),
        out_dir=Path(_get(b, "build", "out_dir", str, str(defaults.build.out_dir))),
        release=_get(b, "build", "release", bool, defaults.build.release),
        cargo_build_options=_get_str_list(b, "build", "cargo_build_options", []),
        env=_get_str_map(b, "build", "env"),
    )

    ds = _table(data, "dev_shell")
    dev_shell = DevShellConfig(
        variable=_get(ds, "dev_shell", "variable", str, defaults.dev_shell.variable),
        libraries=_get_str_list(
            ds, "dev_shell", "libraries", defaults.dev_shell.libraries
        ),
        library_dirs=_get_str_map(ds, "dev_shell", "library_dirs"),
        pkg_config_modules=_get_str_map(ds, "dev_shell", "pkg_config_modules"),
    )

    return WasmBuildConfig(
        root=root,
        systems=_get_str_list(data, "wasmbuild", "systems", defaults.systems),
        toolchain=toolchain,
        build=build,
        dev_shell=dev_shell,
    )


@typechecked
def load_config(path: Optional[Path] = None) -> WasmBuildConfig:
    """
    Load configuration.

    Args:
        path: wasmbuild.toml to read, or a directory containing one.
              None means the current directory.

    Returns:
        WasmBuildConfig rooted at the file's directory. A missing file yields
        the defaults.

    Raises:
        ConfigError: If the file cannot be parsed or has wrong types
    """
    if path is None:
        path = Path.cwd()
    if path.is_dir():
        root = path
        path = path / CONFIG_FILENAME
    else:
        root = path.parent

    if not path.exists():
        return WasmBuildConfig(root=root.resolve())

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    return parse_config(data, root.resolve())
