"""Shared exception types for gitbridge."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitbridge.core.errors import ErrorKind
    from gitbridge.core.process import ExecutionResult


class GitBridgeError(Exception):
    """Base exception for all gitbridge errors."""


class ConfigError(GitBridgeError):
    """Configuration is invalid or missing."""


class GitSpawnError(GitBridgeError):
    """The git process could not be started at all."""

    def __init__(
        self, message: str, args: list[str] | None = None, kind: ErrorKind | None = None
    ) -> None:
        super().__init__(message)
        self.git_args = list(args or [])
        self.kind = kind


class GitNotFoundError(GitSpawnError):
    """No usable git executable exists where one was expected."""


class RepositoryDoesNotExistError(GitSpawnError):
    """The working directory for a git invocation is missing on disk."""


class GitExecutionError(GitBridgeError):
    """git ran but the outcome was not acceptable to the caller."""

    def __init__(
        self,
        result: ExecutionResult,
        args: list[str],
        kind: ErrorKind | None = None,
        description: str | None = None,
    ) -> None:
        super().__init__(_result_message(result, description))
        self.result = result
        self.git_args = list(args)
        self.kind = kind
        self.description = description


class CommitFailedError(GitExecutionError):
    """A commit was rejected, e.g. by a pre-commit hook."""


def _result_message(result: ExecutionResult, description: str | None) -> str:
    if description:
        return description
    if result.stderr:
        return result.stderr
    if result.stdout:
        return result.stdout
    return "Unknown error"
