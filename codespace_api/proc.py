from __future__ import annotations

from dataclasses import dataclass
import logging
import subprocess
from typing import Protocol

from codespace_api.services.errors import CommandFailure

logger = logging.getLogger(__name__)

TIMEOUT_RETURNCODE = -9


class CommandRunner(Protocol):
    def __call__(
        self,
        command: list[str],
        *,
        input: str | None = None,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[str]: ...


@dataclass(frozen=True)
class CommandResult:
    command: list[str]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def default_runner(
    command: list[str],
    *,
    input: str | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    return subprocess.run(command, input=input, capture_output=True, text=True, check=False, timeout=timeout)


def execute(
    command: list[str],
    *,
    runner: CommandRunner | None = None,
    input: str | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run ``command`` and return its result without interpreting the exit code."""
    active_runner = runner or default_runner
    logger.debug("Running command: %s", " ".join(command))
    try:
        completed = active_runner(command, input=input, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        logger.warning("Command timed out after %ss: %s", timeout, " ".join(command))
        return CommandResult(
            command=command,
            returncode=TIMEOUT_RETURNCODE,
            stdout=_decode(exc.stdout),
            stderr=_decode(exc.stderr),
            timed_out=True,
        )
    except OSError as exc:
        # Missing binary or permission denied on exec.
        return CommandResult(command=command, returncode=127, stdout="", stderr=str(exc))
    return CommandResult(
        command=command,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def run_command(
    command: list[str],
    *,
    runner: CommandRunner | None = None,
    input: str | None = None,
    timeout: float | None = None,
    error_message: str,
) -> CommandResult:
    result = execute(command, runner=runner, input=input, timeout=timeout)
    if not result.ok:
        raise CommandFailure(message=error_message, result=result)
    return result


def _decode(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
