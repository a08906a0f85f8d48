import pytest

from wasmbuild.errors import ResolutionError
from wasmbuild.systems import DEFAULT_SYSTEMS, detect_host_system, each_system


class TestDetectHostSystem:
    @pytest.mark.parametrize(
        "machine, os_name, expected",
        [
            ("x86_64", "linux", "x86_64-linux"),
            ("AMD64", "linux", "x86_64-linux"),
            ("aarch64", "linux", "aarch64-linux"),
            ("arm64", "darwin", "aarch64-darwin"),
            ("x86_64", "darwin", "x86_64-darwin"),
        ],
    )
    def test_known_hosts(self, machine: str, os_name: str, expected: str):
        assert detect_host_system(machine, os_name) == expected

    def test_unknown_arch(self):
        with pytest.raises(ResolutionError, match="architecture"):
            detect_host_system("riscv64", "linux")

    def test_unknown_os(self):
        with pytest.raises(ResolutionError, match="platform"):
            detect_host_system("x86_64", "win32")


def test_each_system_keeps_order():
    outputs = each_system(DEFAULT_SYSTEMS, lambda s: s.split("-")[1])

    assert list(outputs) == list(DEFAULT_SYSTEMS)
    assert outputs["aarch64-darwin"] == "darwin"
