"""Subprocess execution through RunningProcess."""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from running_process import RunningProcess


@dataclass(frozen=True)
class CommandResult:
    command: list[str]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(
    cmd: list[str],
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    echo: bool = False,
    timeout: Optional[int] = None,
) -> CommandResult:
    """
    Run a command to completion and capture its output.

    stderr is merged into stdout by RunningProcess, so `output` is exactly what
    the tool printed, in order.

    Args:
        cmd: Command and arguments
        cwd: Working directory (None = current directory)
        env: Full environment for the child (None = inherit)
        echo: Stream output to the console while the command runs
        timeout: Seconds before the process is killed (None = no limit)

    Raises:
        FileNotFoundError: If the executable does not exist
    """
    proc = RunningProcess(
        cmd,
        cwd=cwd,
        check=False,  # callers map the return code to their own error kind
        auto_run=True,
        timeout=timeout,
        env=dict(env) if env is not None else None,
    )
    returncode = proc.wait(echo=echo)
    return CommandResult(command=list(cmd), returncode=returncode, output=proc.stdout)
