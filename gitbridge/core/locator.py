"""Discovery of the git executable installed on the host."""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict

from gitbridge.core.errors import ErrorKind
from gitbridge.exceptions import GitNotFoundError

logger = structlog.get_logger()

_VERSION_PREFIX = "git version "
_DARWIN_SYSTEM_GIT = "/usr/bin/git"
# `xcode-select -p` exits with 2 when the command line tools are missing.
_XCODE_MISSING_EXIT_CODE = 2


class GitInstallation(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    version: str


class _CandidateRejected(Exception):
    """A discovery candidate is not a usable git."""


class ExecutableLocator:
    """Single-flight, memoized lookup of the git executable.

    The first call to :meth:`locate` starts one discovery task; concurrent
    callers await that same task. The outcome is kept for the lifetime of
    the locator, including a negative one.
    """

    def __init__(
        self, hint: str | Path | None = None, platform: str | None = None
    ) -> None:
        self._hint = str(hint) if hint else None
        self._platform = platform or sys.platform
        self._task: asyncio.Task[GitInstallation | None] | None = None
        self._searched = False
        self._installation: GitInstallation | None = None

    @property
    def searched(self) -> bool:
        return self._searched

    async def locate(self) -> GitInstallation:
        """Return the located git, raising GitNotFoundError when none is usable."""
        if not self._searched:
            if self._task is None:
                self._task = asyncio.ensure_future(self._discover())
            task = self._task
            installation = await asyncio.shield(task)
            # A reset() during the search replaced or dropped the task.
            if self._task is task:
                self._installation = installation
                self._searched = True
                self._task = None
            elif not self._searched:
                return await self.locate()

        if self._installation is None:
            raise GitNotFoundError(
                "Git could not be found on this machine.",
                kind=ErrorKind.EXECUTABLE_NOT_FOUND,
            )
        return self._installation

    def reset(self) -> None:
        """Forget the cached outcome so the next call searches again."""
        self._searched = False
        self._installation = None
        self._task = None

    async def _discover(self) -> GitInstallation | None:
        strategies: list[Callable[[], Awaitable[GitInstallation]]] = []
        hint = self._hint
        if hint:
            strategies.append(lambda: self._find_specific(hint))
        if self._platform == "darwin":
            strategies.append(self._find_darwin)
        elif self._platform == "win32":
            strategies.append(self._find_win32)
        strategies.append(lambda: self._find_specific("git"))

        for strategy in strategies:
            try:
                installation = await strategy()
            except _CandidateRejected as exc:
                logger.debug("git_locate_candidate_rejected", reason=str(exc))
                continue
            logger.info(
                "git_located", path=installation.path, version=installation.version
            )
            return installation

        logger.warning("git_not_found", platform=self._platform, hint=self._hint)
        return None

    async def _find_specific(self, path: str) -> GitInstallation:
        code, stdout = await _run_quiet(path, "--version")
        if code != 0:
            raise _CandidateRejected(f"{path} exited with {code}")
        return GitInstallation(path=path, version=parse_version(stdout))

    async def _find_darwin(self) -> GitInstallation:
        path = shutil.which("git")
        if not path:
            raise _CandidateRejected("git not on PATH")

        if path == _DARWIN_SYSTEM_GIT:
            # The stub at /usr/bin/git prompts for an install until Xcode exists.
            code, _ = await _run_quiet("xcode-select", "-p")
            if code == _XCODE_MISSING_EXIT_CODE:
                raise _CandidateRejected("xcode command line tools not installed")

        return await self._find_specific(path)

    async def _find_win32(self) -> GitInstallation:
        for env_name in ("ProgramW6432", "ProgramFiles(x86)", "ProgramFiles"):
            base = os.environ.get(env_name)
            if not base:
                continue
            try:
                return await self._find_specific(
                    str(Path(base) / "Git" / "cmd" / "git.exe")
                )
            except _CandidateRejected:
                continue

        try:
            return await self._find_specific("git")
        except _CandidateRejected:
            pass

        return await self._find_portable_win32()

    async def _find_portable_win32(self) -> GitInstallation:
        local_app_data = os.environ.get("LOCALAPPDATA")
        if not local_app_data:
            raise _CandidateRejected("LOCALAPPDATA not set")
        root = Path(local_app_data) / "GitHub"
        if not root.is_dir():
            raise _CandidateRejected(f"{root} does not exist")
        portable = sorted(p for p in root.iterdir() if p.name.startswith("PortableGit"))
        if not portable:
            raise _CandidateRejected(f"no PortableGit under {root}")
        return await self._find_specific(str(portable[0] / "cmd" / "git.exe"))


def parse_version(raw: str) -> str:
    """Strip the ``git version`` banner prefix."""
    raw = raw.strip()
    if raw.startswith(_VERSION_PREFIX):
        return raw[len(_VERSION_PREFIX) :]
    return raw


async def _run_quiet(*cmd: str) -> tuple[int, str]:
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout_bytes, _ = await proc.communicate()
    except OSError as exc:
        raise _CandidateRejected(f"{cmd[0]}: {exc}") from exc
    return proc.returncode or 0, stdout_bytes.decode("utf-8", errors="replace")
