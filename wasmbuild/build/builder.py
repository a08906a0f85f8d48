#!/usr/bin/env python3
"""
Cargo package builder and its specialisations.

CargoBuilder is the generic "build a package from source" function. It is bound
to a cargo/rustc pair and can be re-bound with override(). TargetBuilder wraps
any builder and pins the cross-compilation target for every call.
"""

import hashlib
import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from wasmbuild.errors import BuildError, FailureInfo
from wasmbuild.toolchain.types import ToolchainSpec
from wasmbuild.util.process import run_command


logger = logging.getLogger(__name__)

TARGET_ENV_KEY = "CARGO_BUILD_TARGET"
TARGET_OPTION = "--target"
COMPILER_ENV_KEY = "RUSTC"

# Build arguments spelled like environment variables are exported to cargo
_ENV_KEY_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

PackageBuilder = Callable[[Mapping[str, Any]], "PackageArtifact"]


@dataclass(frozen=True)
class BuildRequest:
    """One build invocation: source tree, toolchain, target and extra arguments"""

    src: Path
    toolchain: ToolchainSpec
    target: str
    args: Mapping[str, Any] = field(default_factory=dict)
    release: bool = True

    def __post_init__(self) -> None:
        # read-only view; the request is never mutated after construction
        object.__setattr__(self, "args", MappingProxyType(dict(self.args)))

    def as_args(self) -> dict[str, Any]:
        """Argument mapping handed to the builder (target is applied by TargetBuilder)."""
        args: dict[str, Any] = dict(self.args)
        args["src"] = self.src
        args["release"] = self.release
        return args


@dataclass(frozen=True)
class PackageArtifact:
    """Output of a successful build"""

    name: str
    target: Optional[str]
    out_path: Path
    files: tuple[Path, ...]
    digest: str


def _is_artifact(path: Path) -> bool:
    # cargo leaves dep-info (.d) files and a .cargo-lock next to the outputs
    return path.is_file() and not path.name.startswith(".") and path.suffix != ".d"


def _digest(files: list[Path]) -> str:
    sha = hashlib.sha256()
    for path in sorted(files, key=lambda p: p.name):
        sha.update(path.name.encode("utf-8"))
        sha.update(b"\0")
        sha.update(path.read_bytes())
    return sha.hexdigest()


def split_target_options(options: Iterable[Any]) -> tuple[list[str], list[str]]:
    """
    Separate `--target X` and `--target=X` from other cargo options.

    Returns:
        (remaining options, requested targets)
    """
    remaining: list[str] = []
    targets: list[str] = []
    it = iter(str(opt) for opt in options)
    for opt in it:
        if opt == TARGET_OPTION:
            value = next(it, None)
            if value is not None:
                targets.append(value)
        elif opt.startswith(TARGET_OPTION + "="):
            targets.append(opt[len(TARGET_OPTION) + 1 :])
        else:
            remaining.append(opt)
    return remaining, targets


def _clear_outputs(profile_dir: Path) -> None:
    # cargo re-links up-to-date outputs, so anything left after the build is fresh
    if not profile_dir.is_dir():
        return
    for path in profile_dir.iterdir():
        if _is_artifact(path):
            path.unlink()


def _publish(outputs: list[Path], out_dir: Path) -> list[Path]:
    """
    Copy outputs into out_dir so that out_dir either holds the complete new
    artifact set or is left as it was.
    """
    out_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = out_dir.with_name(f".{out_dir.name}.tmp-{os.getpid()}")
    if staging.exists():
        shutil.rmtree(staging)
    staging.mkdir()
    try:
        for src in outputs:
            shutil.copy2(src, staging / src.name)
        if out_dir.exists():
            shutil.rmtree(out_dir)
        staging.rename(out_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    return [out_dir / src.name for src in outputs]


class CargoBuilder:
    """Generic source-to-package builder running `cargo build`."""

    def __init__(
        self,
        cargo: Union[str, Path] = "cargo",
        rustc: Union[str, Path] = "rustc",
        out_dir: Optional[Path] = None,
        echo: bool = False,
        base_env: Optional[Mapping[str, str]] = None,
    ):
        """
        Args:
            cargo: cargo executable
            rustc: rustc executable (exported to cargo as RUSTC)
            out_dir: Where artifacts are published (default: <src>/result)
            echo: Stream cargo output while building
            base_env: Environment for cargo (default: current environment)
        """
        self.cargo = cargo
        self.rustc = rustc
        self.out_dir = out_dir
        self.echo = echo
        self.base_env = base_env

    def override(self, **kwargs: Any) -> "CargoBuilder":
        """Return a copy of this builder with some settings replaced."""
        settings: dict[str, Any] = {
            "cargo": self.cargo,
            "rustc": self.rustc,
            "out_dir": self.out_dir,
            "echo": self.echo,
            "base_env": self.base_env,
        }
        unknown = set(kwargs) - set(settings)
        if unknown:
            raise TypeError(f"Unknown builder settings: {', '.join(sorted(unknown))}")
        settings.update(kwargs)
        return CargoBuilder(**settings)

    def override_toolchain(self, toolchain: ToolchainSpec) -> "CargoBuilder":
        """Bind this builder to the compiler and build tool of a composed toolchain."""
        return self.override(
            cargo=toolchain.build_tool.path, rustc=toolchain.compiler.path
        )

    def command(self, args: Mapping[str, Any]) -> list[str]:
        cmd = [str(self.cargo), "build"]
        if args.get("release", True):
            cmd.append("--release")
        cmd.extend(str(opt) for opt in args.get("cargo_build_options", []))
        return cmd

    def environment(self, args: Mapping[str, Any]) -> dict[str, str]:
        env = dict(self.base_env if self.base_env is not None else os.environ)
        for key, value in args.items():
            if _ENV_KEY_RE.match(key):
                env[key] = str(value)
        requested = args.get(COMPILER_ENV_KEY)
        if requested is not None and str(requested) != str(self.rustc):
            logger.warning(
                f"Ignoring {COMPILER_ENV_KEY}={str(requested)!r}: this builder is "
                f"bound to {str(self.rustc)!r}"
            )
        # the bound compiler always wins
        env[COMPILER_ENV_KEY] = str(self.rustc)
        return env

    def target(self, args: Mapping[str, Any], env: Mapping[str, str]) -> Optional[str]:
        """The triple cargo will build for; --target beats CARGO_BUILD_TARGET."""
        _, targets = split_target_options(args.get("cargo_build_options", []))
        if len(set(targets)) > 1:
            raise BuildError(f"Cannot build for several targets: {', '.join(targets)}")
        if targets:
            return targets[0]
        return env.get(TARGET_ENV_KEY)

    def profile_dir(
        self, src: Path, args: Mapping[str, Any], env: Mapping[str, str]
    ) -> Path:
        target_dir = Path(env.get("CARGO_TARGET_DIR") or src / "target")
        if not target_dir.is_absolute():
            target_dir = src / target_dir
        target = self.target(args, env)
        if target:
            target_dir = target_dir / target
        return target_dir / ("release" if args.get("release", True) else "debug")

    def __call__(self, args: Mapping[str, Any]) -> PackageArtifact:
        """
        Build the package described by args.

        Recognised keys: src (required), name, release, cargo_build_options,
        and UPPER_CASE keys which become environment variables of cargo.

        Raises:
            ValueError: If args has no src
            BuildError: If cargo fails or produces nothing
        """
        if "src" not in args:
            raise ValueError("Build arguments must include 'src'")
        src = Path(args["src"]).resolve()
        name = str(args.get("name") or src.name)
        cmd = self.command(args)
        env = self.environment(args)
        target = self.target(args, env)
        profile_dir = self.profile_dir(src, args, env)
        _clear_outputs(profile_dir)

        logger.info(f"Building {name} with {self.cargo}")
        logger.debug(f"Command: {' '.join(cmd)}")
        try:
            result = run_command(cmd, cwd=src, env=env, echo=self.echo)
        except FileNotFoundError as e:
            raise BuildError(f"cargo not found: {e}") from e

        if not result.ok:
            raise BuildError(
                f"Build of {name} failed with return code {result.returncode}",
                output=result.output,
                return_code=result.returncode,
                failures=[
                    FailureInfo(
                        subject=name,
                        command=cmd,
                        return_code=result.returncode,
                        output=result.output,
                    )
                ],
            )

        outputs = (
            sorted(p for p in profile_dir.iterdir() if _is_artifact(p))
            if profile_dir.is_dir()
            else []
        )
        if not outputs:
            raise BuildError(
                f"Build of {name} produced no artifacts in {profile_dir}",
                output=result.output,
                return_code=result.returncode,
            )

        out_dir = self.out_dir if self.out_dir is not None else src / "result"
        try:
            files = _publish(outputs, out_dir)
        except OSError as e:
            raise BuildError(
                f"Cannot publish {name} to {out_dir}: {e}",
                output=result.output,
                return_code=result.returncode,
            ) from e
        artifact = PackageArtifact(
            name=name,
            target=target,
            out_path=out_dir,
            files=tuple(files),
            digest=_digest(files),
        )
        logger.info(f"Built {name} -> {out_dir} ({len(files)} file(s))")
        return artifact


class TargetBuilder:
    """Wraps a builder so that every call is pinned to one target triple."""

    def __init__(self, builder: PackageBuilder, target: str):
        self.builder = builder
        self.target = target

    def __call__(self, args: Mapping[str, Any]) -> PackageArtifact:
        merged = dict(args)
        requested = merged.get(TARGET_ENV_KEY)
        if requested is not None and requested != self.target:
            logger.warning(
                f"Ignoring {TARGET_ENV_KEY}={requested!r}: this build is pinned to "
                f"{self.target!r}"
            )
        # the pinned target always wins
        merged[TARGET_ENV_KEY] = self.target

        if "cargo_build_options" in merged:
            options, targets = split_target_options(merged["cargo_build_options"])
            for option_target in targets:
                if option_target != self.target:
                    logger.warning(
                        f"Ignoring {TARGET_OPTION} {option_target!r}: this build is "
                        f"pinned to {self.target!r}"
                    )
            merged["cargo_build_options"] = options
        return self.builder(merged)


def build_package(
    builder: PackageBuilder, target: str, args: Mapping[str, Any]
) -> PackageArtifact:
    return TargetBuilder(builder, target)(args)
