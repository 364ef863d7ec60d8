from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codespace_api.proc import CommandResult


class CodespaceException(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        # Failures of compensating actions, filled in by the create workflow.
        self.diagnostics: list[str] = []


class ValidationError(CodespaceException):
    pass


class NotFoundError(CodespaceException):
    pass


class ConflictError(CodespaceException):
    pass


class CommandFailure(CodespaceException):
    def __init__(self, *, message: str, result: CommandResult) -> None:
        self.result = result
        super().__init__(self._build_message(message))

    @property
    def stderr(self) -> str:
        return self.result.stderr

    def _build_message(self, message: str) -> str:
        if self.result.timed_out:
            return f"{message}: command timed out"
        detail = (self.result.stderr or self.result.stdout).strip()
        if len(detail) > 400:
            detail = f"{detail[:397]}..."
        return f"{message}: {detail}" if detail else f"{message} (exit code {self.result.returncode})"
