"""Package builders and the artifact pipeline."""

from wasmbuild.build.builder import (
    TARGET_ENV_KEY,
    BuildRequest,
    CargoBuilder,
    PackageArtifact,
    TargetBuilder,
    build_package,
)


__all__ = [
    "TARGET_ENV_KEY",
    "BuildRequest",
    "CargoBuilder",
    "PackageArtifact",
    "TargetBuilder",
    "build_package",
]
