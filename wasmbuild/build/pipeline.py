"""
Project outputs: the cross-compiled package and the development shell.

ArtifactPipeline wires the composed toolchain into a target-pinned builder and
exposes exactly one package, which is also the default. The dev shell inherits
the package's build request.
"""

import logging
from typing import Any, Optional

from wasmbuild.build.builder import (
    BuildRequest,
    CargoBuilder,
    PackageArtifact,
    TargetBuilder,
)
from wasmbuild.config import WasmBuildConfig
from wasmbuild.devshell import DevEnvironment, LibraryResolver, assemble_dev_shell
from wasmbuild.errors import ResolutionError
from wasmbuild.systems import detect_host_system
from wasmbuild.toolchain.composer import compose_toolchain
from wasmbuild.toolchain.types import ChannelProvider, ToolchainSpec


logger = logging.getLogger(__name__)


class ArtifactPipeline:
    """Outputs of one project for the host system."""

    def __init__(
        self,
        config: WasmBuildConfig,
        provider: ChannelProvider,
        builder: Optional[CargoBuilder] = None,
        system: Optional[str] = None,
    ):
        """
        Args:
            config: Project configuration
            provider: Channel provider used to compose the toolchain
            builder: Generic builder to specialise (default: CargoBuilder
                     publishing into config.out_dir)
            system: Host system name (default: detected)
        """
        self.config = config
        self.provider = provider
        self.builder = builder or CargoBuilder(out_dir=config.out_dir)
        self.system = system or detect_host_system()
        self._toolchain: Optional[ToolchainSpec] = None

    @property
    def target(self) -> str:
        return self.config.toolchain.target

    @property
    def packages(self) -> list[str]:
        return [self.target]

    @property
    def default_package(self) -> str:
        return self.target

    @property
    def toolchain(self) -> ToolchainSpec:
        """Composed on first use, then reused for this pipeline."""
        if self._toolchain is None:
            if self.system not in self.config.systems:
                raise ResolutionError(
                    f"System {self.system!r} is not one of "
                    f"{', '.join(self.config.systems)}",
                    component=self.system,
                )
            tc = self.config.toolchain
            self._toolchain = compose_toolchain(
                self.provider, tc.channel, target=tc.target, version=tc.version
            )
        return self._toolchain

    def _check_package(self, name: Optional[str]) -> str:
        name = name or self.default_package
        if name not in self.packages:
            raise ResolutionError(
                f"No package {name!r}; available: {', '.join(self.packages)}",
                component=name,
            )
        return name

    def build_request(self, name: Optional[str] = None) -> BuildRequest:
        """A fresh request for the named (or default) package."""
        name = self._check_package(name)
        args: dict[str, Any] = dict(self.config.build.env)
        if self.config.build.cargo_build_options:
            args["cargo_build_options"] = list(self.config.build.cargo_build_options)
        return BuildRequest(
            src=self.config.src_dir,
            toolchain=self.toolchain,
            target=name,
            args=args,
            release=self.config.build.release,
        )

    def specialised_builder(self, request: BuildRequest) -> TargetBuilder:
        return TargetBuilder(
            self.builder.override_toolchain(request.toolchain), request.target
        )

    def build(self, name: Optional[str] = None) -> PackageArtifact:
        """
        Build the named (or default) package.

        Raises:
            ResolutionError: If the package or toolchain cannot be resolved
            BuildError: If the build fails; diagnostics are carried verbatim
        """
        request = self.build_request(name)
        logger.info(f"Building package {request.target} for {self.system}")
        return self.specialised_builder(request)(request.as_args())

    def dev_shell(self, resolver: LibraryResolver) -> DevEnvironment:
        """
        Assemble the development environment.

        Raises:
            EnvironmentConstructionError: If a declared library cannot be resolved
        """
        ds = self.config.dev_shell
        return assemble_dev_shell(
            inputs_from=[self.build_request()],
            libraries=ds.libraries,
            resolver=resolver,
            variable=ds.variable,
        )
