#!/usr/bin/env python3
"""
wasmbuild command line.

Usage:
  wasmbuild build [PACKAGE] [--out-dir DIR]
  wasmbuild develop [--print-env | --script] [-- CMD ...]
  wasmbuild show
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.tree import Tree

from wasmbuild.build.builder import CargoBuilder
from wasmbuild.build.pipeline import ArtifactPipeline
from wasmbuild.config import WasmBuildConfig, load_config
from wasmbuild.devshell import (
    ChainedLibraryResolver,
    LibraryResolver,
    PkgConfigResolver,
    StaticLibraryResolver,
    enter_dev_shell,
)
from wasmbuild.errors import BuildError, ConfigError, ResolutionError
from wasmbuild.systems import each_system
from wasmbuild.toolchain.rustup import RustupChannelProvider, toolchain_name
from wasmbuild.toolchain.types import ChannelProvider
from wasmbuild.util.color_output import get_color_output


logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wasmbuild",
        description="Build a Rust crate for WebAssembly and provide a dev shell",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="wasmbuild.toml or the directory containing it (default: .)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Build a package (default: the wasm package)")
    build.add_argument("package", nargs="?", default=None, help="Package name")
    build.add_argument(
        "--out-dir", type=Path, default=None, help="Where to publish the artifact"
    )

    develop = sub.add_parser(
        "develop",
        help="Enter the development shell",
        description=(
            "Run a shell or command with the native library path set. Only that "
            "one variable is set: cargo inside the shell uses rustup's default "
            "toolchain, not the composed wasm toolchain. Use `wasmbuild build` "
            "for the pinned build."
        ),
    )
    mode = develop.add_mutually_exclusive_group()
    mode.add_argument(
        "--print-env",
        action="store_true",
        help="Print VARIABLE=value instead of spawning a shell",
    )
    mode.add_argument(
        "--script",
        action="store_true",
        help="Print a POSIX export line for sourcing",
    )
    develop.add_argument(
        "cmd", nargs=argparse.REMAINDER, help="Command to run instead of $SHELL"
    )

    sub.add_parser("show", help="List outputs per system")

    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO, format="%(message)s"
    )


def make_resolver(config: WasmBuildConfig) -> LibraryResolver:
    ds = config.dev_shell
    pkg_config = PkgConfigResolver(modules=ds.pkg_config_modules)
    if not ds.library_dirs:
        return pkg_config
    return ChainedLibraryResolver(
        [StaticLibraryResolver(ds.library_dirs), pkg_config]
    )


def cmd_build(
    args: argparse.Namespace, config: WasmBuildConfig, provider: ChannelProvider
) -> int:
    out = get_color_output()
    out_dir = args.out_dir.resolve() if args.out_dir else config.out_dir
    builder = CargoBuilder(out_dir=out_dir, echo=args.verbose)
    pipeline = ArtifactPipeline(config, provider, builder=builder)
    try:
        artifact = pipeline.build(args.package)
    except BuildError as e:
        out.print_red(e.message)
        if not args.verbose and e.output:
            out.print_raw(e.output, stderr=True)
        return e.return_code or 1

    out.print_green(f"Built {artifact.name} ({artifact.target})")
    for path in artifact.files:
        print(path)
    logger.debug(f"sha256 {artifact.digest}")
    return 0


def cmd_develop(
    args: argparse.Namespace, config: WasmBuildConfig, provider: ChannelProvider
) -> int:
    pipeline = ArtifactPipeline(config, provider)
    env = pipeline.dev_shell(make_resolver(config))

    if args.print_env:
        print(f"{env.variable}={env.library_path}")
        return 0
    if args.script:
        sys.stdout.write(env.launcher_script())
        return 0

    command = list(args.cmd)
    if command and command[0] == "--":
        command = command[1:]
    return enter_dev_shell(env, command or None)


def cmd_show(config: WasmBuildConfig) -> int:
    tc = config.toolchain
    tree = Tree(f"[bold]{config.root}[/bold]")

    def describe(system: str) -> Tree:
        node = Tree(system)
        packages = node.add("packages")
        packages.add(f"{tc.target} (default)")
        node.add(
            f"toolchain: {toolchain_name(tc.channel, tc.version)} "
            f"rustc+cargo (minimal), rust-std {tc.target}"
        )
        node.add(
            f"devShell: {config.dev_shell.variable} <- "
            f"{' '.join(config.dev_shell.libraries) or '(none)'}"
        )
        return node

    for node in each_system(config.systems, describe).values():
        tree.add(node)
    get_color_output().print_tree(tree)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for command-line usage."""
    args = parse_args(argv)
    configure_logging(args.verbose)
    out = get_color_output()

    try:
        config = load_config(args.config)
        if args.command == "show":
            return cmd_show(config)

        provider = RustupChannelProvider()
        if args.command == "build":
            return cmd_build(args, config, provider)
        return cmd_develop(args, config, provider)
    except KeyboardInterrupt:
        out.print_yellow("Interrupted")
        return 130
    except (ConfigError, ResolutionError) as e:
        if args.verbose:
            out.print_red(e.get_detailed_failure_info())
        else:
            out.print_red(e.get_failure_summary())
        return 1


if __name__ == "__main__":
    sys.exit(main())
