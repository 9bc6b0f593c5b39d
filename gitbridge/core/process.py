"""Process execution core: run git, classify the outcome, raise on failure."""

from __future__ import annotations

import asyncio
import contextlib
import os
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Annotated, Literal, Protocol, runtime_checkable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from gitbridge.core.config import GitBridgeConfig
from gitbridge.core.errors import ErrorKind, classify_error, describe_error
from gitbridge.core.locator import ExecutableLocator
from gitbridge.exceptions import (
    ConfigError,
    GitExecutionError,
    GitNotFoundError,
    GitSpawnError,
    RepositoryDoesNotExistError,
)

logger = structlog.get_logger()

StdoutCallback = Callable[[bytes], None]

_STREAM_CHUNK_SIZE = 8192


class ExecutionResult(BaseModel):
    """Raw outcome of one git invocation."""

    model_config = ConfigDict(frozen=True)

    stdout: str
    stderr: str
    exit_code: int
    raw_stdout: bytes = b""
    # Only set when exit_code was not a success code for the policy.
    error_kind: ErrorKind | None = None
    error_description: str | None = None


class ExecutionPolicy(BaseModel):
    """What the caller considers acceptable, plus process inputs."""

    model_config = ConfigDict(frozen=True)

    success_exit_codes: frozenset[int] = frozenset({0})
    expected_errors: frozenset[ErrorKind] = frozenset()
    stdin: str | bytes | None = None
    env: dict[str, str] = Field(default_factory=dict)
    on_stdout: StdoutCallback | None = None


class Success(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: Literal["success"] = "success"
    result: ExecutionResult


class Failure(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: Literal["failure"] = "failure"
    result: ExecutionResult
    kind: ErrorKind | None = None
    description: str | None = None


CommandOutcome = Annotated[Success | Failure, Field(discriminator="outcome")]


def evaluate(result: ExecutionResult, policy: ExecutionPolicy) -> Success | Failure:
    """Decide whether *result* is acceptable under *policy*."""
    acceptable_exit_code = result.exit_code in policy.success_exit_codes

    kind: ErrorKind | None = None
    if not acceptable_exit_code:
        kind = classify_error(result.stderr) or classify_error(result.stdout)
    description = describe_error(kind) if kind is not None else None
    result = result.model_copy(
        update={"error_kind": kind, "error_description": description}
    )

    if acceptable_exit_code or (kind is not None and kind in policy.expected_errors):
        return Success(result=result)
    return Failure(result=result, kind=kind, description=description)


@runtime_checkable
class Transport(Protocol):
    """Anything able to run an executable and hand back its output."""

    async def run(
        self,
        executable: str,
        args: list[str],
        *,
        cwd: Path,
        env: dict[str, str],
        stdin: bytes | None,
        on_stdout: StdoutCallback | None,
    ) -> ExecutionResult: ...


class LocalTransport:
    """Runs git as a child process of this interpreter."""

    async def run(
        self,
        executable: str,
        args: list[str],
        *,
        cwd: Path,
        env: dict[str, str],
        stdin: bytes | None,
        on_stdout: StdoutCallback | None,
    ) -> ExecutionResult:
        proc = await asyncio.create_subprocess_exec(
            executable,
            *args,
            cwd=cwd,
            env=env,
            stdin=asyncio.subprocess.PIPE
            if stdin is not None
            else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        if on_stdout is None:
            stdout_bytes, stderr_bytes = await proc.communicate(stdin)
        else:
            try:
                stdout_bytes, stderr_bytes = await _stream(proc, stdin, on_stdout)
            except BaseException:
                # Nothing drains the pipes any more, so the child would block.
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()
                raise
            await proc.wait()

        return ExecutionResult(
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
            exit_code=proc.returncode or 0,
            raw_stdout=stdout_bytes,
        )


async def _stream(
    proc: asyncio.subprocess.Process,
    stdin: bytes | None,
    on_stdout: StdoutCallback,
) -> tuple[bytes, bytes]:
    """Drain both pipes concurrently, handing stdout chunks over as they arrive."""

    async def feed_stdin() -> None:
        if stdin is None or proc.stdin is None:
            return
        with contextlib.suppress(BrokenPipeError, ConnectionResetError):
            proc.stdin.write(stdin)
            await proc.stdin.drain()
        proc.stdin.close()

    async def read_stdout() -> bytes:
        assert proc.stdout is not None
        chunks: list[bytes] = []
        while True:
            chunk = await proc.stdout.read(_STREAM_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
            on_stdout(chunk)
        return b"".join(chunks)

    async def read_stderr() -> bytes:
        assert proc.stderr is not None
        return await proc.stderr.read()

    stdout_bytes, stderr_bytes, _ = await asyncio.gather(
        read_stdout(), read_stderr(), feed_stdin()
    )
    return stdout_bytes, stderr_bytes


def executable_in(directory: Path, platform: str | None = None) -> Path:
    """Location of the git binary inside a self-contained git distribution."""
    if (platform or sys.platform) == "win32":
        return directory / "cmd" / "git.exe"
    return directory / "bin" / "git"


class GitExecutor:
    """Runs git subcommands and turns their outcome into results or errors."""

    def __init__(
        self,
        config: GitBridgeConfig | None = None,
        locator: ExecutableLocator | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config or GitBridgeConfig()
        self._locator = locator or ExecutableLocator(hint=self._config.local_git_path)
        self._transport: Transport = transport or LocalTransport()

    @property
    def locator(self) -> ExecutableLocator:
        return self._locator

    async def resolve_executable(self) -> str:
        """Pick the git binary to spawn for the configured transport."""
        if not isinstance(self._transport, LocalTransport):
            # Discovery only probes this host, so remote runs need an explicit path.
            if self._config.local_git_path is None:
                raise ConfigError(
                    "local_git_path must be specified when using a non-local transport."
                )
            return str(self._config.local_git_path)

        directory = self._config.local_git_directory
        if directory is not None:
            return str(executable_in(directory))
        if not self._config.use_local_git:
            return "git"
        installation = await self._locator.locate()
        return installation.path

    async def execute(
        self,
        args: Sequence[str],
        cwd: Path | str,
        name: str,
        policy: ExecutionPolicy | None = None,
    ) -> ExecutionResult:
        """Run ``git <args>`` in *cwd*.

        *name* identifies the calling operation in logs. Returns the result when
        the exit code is a success code for *policy*, or when the parsed error is
        one the caller declared as expected; raises GitExecutionError otherwise.
        """
        policy = policy or ExecutionPolicy()
        args = list(args)
        cwd = Path(cwd)
        executable = await self.resolve_executable()

        stdin = policy.stdin
        if isinstance(stdin, str):
            stdin = stdin.encode("utf-8")
        env = {**os.environ, **policy.env}

        logger.debug("git_exec", name=name, command=["git", *args], cwd=str(cwd))
        try:
            result = await self._transport.run(
                executable,
                args,
                cwd=cwd,
                env=env,
                stdin=stdin,
                on_stdout=policy.on_stdout,
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise self._spawn_failure(executable, args, cwd) from exc
        except OSError as exc:
            logger.error(
                "git_exec_error", name=name, command=["git", *args], error=str(exc)
            )
            raise GitSpawnError(str(exc), args) from exc

        outcome = evaluate(result, policy)
        if isinstance(outcome, Success):
            return outcome.result

        logger.error(
            "git_exec_unexpected_exit",
            name=name,
            command=["git", *args],
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
            error_kind=outcome.kind.value if outcome.kind else None,
            error_description=outcome.description,
        )
        raise GitExecutionError(outcome.result, args, outcome.kind, outcome.description)

    async def version(self) -> str:
        """Return the banner of ``git --version``."""
        result = await self.execute(["--version"], Path.cwd(), "version")
        return result.stdout.strip()

    def _spawn_failure(
        self, executable: str, args: list[str], cwd: Path
    ) -> GitSpawnError:
        directory = self._config.local_git_directory
        if directory is not None and not Path(executable).exists():
            return GitNotFoundError(
                f"Git could not be found at the expected path: '{directory}'. This "
                "might be a problem with how the application is packaged, so confirm "
                "this folder hasn't been removed when packaging.",
                args,
                ErrorKind.EXECUTABLE_NOT_FOUND,
            )
        if not cwd.is_dir():
            return RepositoryDoesNotExistError(
                "Unable to find path to repository on disk.",
                args,
                ErrorKind.REPOSITORY_DOES_NOT_EXIST,
            )
        return GitNotFoundError(
            f"Git could not be found: '{executable}'.",
            args,
            ErrorKind.EXECUTABLE_NOT_FOUND,
        )
