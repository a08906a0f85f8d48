"""Tests for wasmbuild.toml loading."""

from pathlib import Path

import pytest

from wasmbuild.config import DEFAULT_LIBRARIES, load_config
from wasmbuild.errors import ConfigError
from wasmbuild.systems import DEFAULT_SYSTEMS


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path):
        config = load_config(tmp_path)

        assert config.root == tmp_path.resolve()
        assert config.toolchain.channel == "nightly"
        assert config.toolchain.version == "latest"
        assert config.toolchain.target == "wasm32-unknown-unknown"
        assert config.dev_shell.libraries == list(DEFAULT_LIBRARIES)
        assert config.dev_shell.variable == "LD_LIBRARY_PATH"
        assert config.systems == list(DEFAULT_SYSTEMS)
        assert config.out_dir == tmp_path.resolve() / "result"

    def test_reads_all_sections(self, tmp_path: Path):
        (tmp_path / "wasmbuild.toml").write_text(
            """
systems = ["x86_64-linux"]

[toolchain]
channel = "stable"
version = "1.78.0"

[build]
src = "crates/app"
out_dir = "dist"
release = false
cargo_build_options = ["--locked"]

[build.env]
RUSTFLAGS = "-C opt-level=z"

[dev_shell]
libraries = ["glib"]
library_dirs = { glib = "/opt/glib/lib" }
pkg_config_modules = { openssl = "openssl3" }
""",
            encoding="utf-8",
        )

        config = load_config(tmp_path / "wasmbuild.toml")

        assert config.systems == ["x86_64-linux"]
        assert config.toolchain.channel == "stable"
        assert config.toolchain.version == "1.78.0"
        assert config.src_dir == (tmp_path / "crates" / "app").resolve()
        assert config.out_dir == (tmp_path / "dist").resolve()
        assert config.build.release is False
        assert config.build.cargo_build_options == ["--locked"]
        assert config.build.env == {"RUSTFLAGS": "-C opt-level=z"}
        assert config.dev_shell.libraries == ["glib"]
        assert config.dev_shell.library_dirs == {"glib": "/opt/glib/lib"}
        assert config.dev_shell.pkg_config_modules == {"openssl": "openssl3"}

    def test_empty_library_list_is_allowed(self, tmp_path: Path):
        (tmp_path / "wasmbuild.toml").write_text("[dev_shell]\nlibraries = []\n")

        assert load_config(tmp_path).dev_shell.libraries == []

    @pytest.mark.parametrize(
        "body, key",
        [
            ("[toolchain]\nchannel = 3\n", "toolchain.channel"),
            ("[build]\nrelease = \"yes\"\n", "build.release"),
            ("[dev_shell]\nlibraries = [\"glib\", 1]\n", "dev_shell.libraries"),
            ("[build.env]\nOPT = 2\n", "build.env.OPT"),
            ("toolchain = \"nightly\"\n", "[toolchain]"),
        ],
    )
    def test_wrong_types_name_the_key(self, tmp_path: Path, body: str, key: str):
        (tmp_path / "wasmbuild.toml").write_text(body)

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        assert key in exc_info.value.message

    def test_invalid_toml(self, tmp_path: Path):
        (tmp_path / "wasmbuild.toml").write_text("[toolchain\n")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(tmp_path)

    def test_repository_config_matches_defaults(self):
        repo_root = Path(__file__).resolve().parent.parent.parent
        config = load_config(repo_root / "wasmbuild.toml")
        defaults = load_config(repo_root / "does-not-exist" / "wasmbuild.toml")

        assert config.toolchain == defaults.toolchain
        assert config.dev_shell.libraries == defaults.dev_shell.libraries
        assert config.systems == defaults.systems
