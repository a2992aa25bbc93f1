"""Error types raised by publish-manager.

Each error carries the process exit code the CLI should return for it.
"""
from __future__ import annotations

from pathlib import Path


class PublishError(Exception):
    exit_code = 1


class ValidationError(PublishError, ValueError):
    """Invalid request parameters, detected before any side effect."""

    exit_code = 2


class ConfigError(PublishError, ValueError):
    exit_code = 2


class ToolchainUnavailableError(PublishError):
    exit_code = 127

    def __init__(self, executable: str, cause: OSError) -> None:
        super().__init__(f"Cannot run toolchain '{executable}': {cause}")
        self.executable = executable
        self.cause = cause


class CleanError(PublishError):
    exit_code = 1

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Failed to remove {path}: {cause}")
        self.path = path
        self.cause = cause


class BuildFailure(PublishError):
    def __init__(self, action: str, returncode: int) -> None:
        super().__init__(f"dotnet {action} failed with exit code {returncode}")
        self.action = action
        self.returncode = returncode

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        # Popen reports death by signal N as -N; shells report 128 + N.
        if self.returncode < 0:
            return 128 + abs(self.returncode)
        return self.returncode
