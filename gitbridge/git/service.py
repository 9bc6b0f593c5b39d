"""Async wrappers for individual git commands."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

import structlog

from gitbridge.core.errors import ErrorKind
from gitbridge.core.process import ExecutionPolicy, GitExecutor
from gitbridge.exceptions import CommitFailedError, GitExecutionError
from gitbridge.git.models import (
    Branch,
    BranchType,
    CommitIdentity,
    CommitTip,
    ResetMode,
    StatusSnapshot,
    WorkingChange,
)
from gitbridge.git.status import STATUS_ARGS, parse_status

logger = structlog.get_logger()

AUTHENTICATION_ERRORS: frozenset[ErrorKind] = frozenset(
    {
        ErrorKind.AUTHENTICATION_FAILED,
        ErrorKind.SSH_KEY_AUDIT_UNVERIFIED,
        ErrorKind.REPOSITORY_NOT_FOUND,
    }
)

# Keep network commands from blocking on an interactive credential prompt.
NETWORK_ARGS = ["-c", "credential.helper="]

_REF_FIELD_SEP = "\0"
_REF_RECORD_SEP = "\x1f"
_FOR_EACH_REF_FORMAT = "%00".join(
    [
        "%(refname)",
        "%(refname:short)",
        "%(upstream:short)",
        "%(objectname)",
        "%(author)",
        "%(parent)",
        "%(subject)",
        "%(body)",
        "%1F",
    ]
)
_IDENTITY_RE = re.compile(r"^(.*?) <(.*?)> (\d+) ([+-]\d{4})")

BranchKind = Literal["local", "remote", "all"]


def auth_environment(
    username: str | None,
    endpoint: str | None = None,
    askpass: Path | str | None = None,
) -> dict[str, str]:
    """Environment overlay that lets git ask an askpass helper for credentials."""
    if not username:
        return {}
    env = {
        "GIT_TERMINAL_PROMPT": "0",
        "GITBRIDGE_USERNAME": username,
    }
    if endpoint:
        env["GITBRIDGE_ENDPOINT"] = endpoint
    if askpass:
        env["GIT_ASKPASS"] = str(askpass)
    return env


def parse_identity(raw: str) -> CommitIdentity | None:
    """Parse ``Name <email> 1700000000 +0100`` into a CommitIdentity."""
    m = _IDENTITY_RE.match(raw)
    if not m:
        return None
    return CommitIdentity(
        name=m.group(1),
        email=m.group(2),
        timestamp=int(m.group(3)),
        tz_offset=m.group(4),
    )


def parse_branches(output: str) -> list[Branch]:
    """Parse ``for-each-ref`` output produced with the module's record format."""
    branches: list[Branch] = []
    for record in output.split(_REF_RECORD_SEP):
        record = record.lstrip("\n")
        if not record:
            continue
        pieces = record.split(_REF_FIELD_SEP)
        if len(pieces) < 8:
            logger.warning("git_branch_record_malformed", record=record)
            continue
        ref, name, upstream, sha, author_raw, parents, summary, body = pieces[:8]
        author = parse_identity(author_raw)
        if author is None:
            raise ValueError(f"Couldn't parse author identity {author_raw!r}.")
        tip = CommitTip(
            sha=sha,
            summary=summary,
            body=body,
            author=author,
            parent_shas=parents.split() if parents else [],
        )
        branch_type = (
            BranchType.LOCAL if ref.startswith("refs/heads") else BranchType.REMOTE
        )
        branches.append(
            Branch(name=name, type=branch_type, tip=tip, upstream=upstream or None)
        )
    return branches


class GitService:
    """Async wrapper for git CLI operations."""

    def __init__(self, executor: GitExecutor | None = None) -> None:
        self._executor = executor or GitExecutor()

    @property
    def executor(self) -> GitExecutor:
        return self._executor

    async def version(self) -> str:
        return await self._executor.version()

    async def status(self, cwd: Path) -> StatusSnapshot:
        """Working-tree status, branch and upstream tracking information."""
        result = await self._executor.execute(STATUS_ARGS, cwd, "getStatus")
        return parse_status(result.stdout)

    async def current_branch(self, cwd: Path) -> Branch | None:
        """The checked out branch, or None for an unborn or detached HEAD."""
        result = await self._executor.execute(
            ["rev-parse", "--abbrev-ref", "HEAD"],
            cwd,
            "getCurrentBranch",
            ExecutionPolicy(success_exit_codes={0, 1, 128}),
        )
        # 1: no upstream, 128: unborn branch.
        if result.exit_code in (1, 128):
            return None
        name = result.stdout.strip().removeprefix("heads/")
        branches = await self._branches(cwd, f"refs/heads/{name}")
        return branches[0] if branches else None

    async def list_branches(self, cwd: Path, kind: BranchKind = "all") -> list[Branch]:
        branches = await self._branches(cwd)
        if kind == "local":
            return [b for b in branches if b.type is BranchType.LOCAL]
        if kind == "remote":
            return [b for b in branches if b.type is BranchType.REMOTE]
        if kind == "all":
            return branches
        raise ValueError(f"Unhandled branch kind: {kind}")

    async def create_branch(
        self, cwd: Path, name: str, *, start_point: str | None = None
    ) -> None:
        args = ["branch", name]
        if start_point:
            args.append(start_point)
        await self._executor.execute(args, cwd, "createBranch")

    async def rename_branch(
        self, cwd: Path, name: str, new_name: str, *, force: bool = False
    ) -> None:
        await self._executor.execute(
            ["branch", "-M" if force else "-m", name, new_name], cwd, "renameBranch"
        )

    async def delete_branch(
        self, cwd: Path, name: str, *, force: bool = False, remote: bool = False
    ) -> None:
        """Delete a local branch, and optionally its upstream on the remote."""
        branches = await self._branches(cwd) if remote else []
        await self._executor.execute(
            ["branch", "-D" if force else "-d", name], cwd, "deleteBranch"
        )
        if not remote:
            return
        branch = next(
            (b for b in branches if b.name.removeprefix("heads/") == name), None
        )
        if branch and branch.remote and branch.upstream_without_remote:
            await self._executor.execute(
                ["push", branch.remote, f":{branch.upstream_without_remote}"],
                cwd,
                "deleteRemoteBranch",
            )

    async def checkout_branch(self, cwd: Path, name: str) -> None:
        await self._executor.execute(["checkout", name, "--"], cwd, "checkoutBranch")

    async def checkout_paths(self, cwd: Path, paths: list[str]) -> None:
        """Restore paths to their HEAD content."""
        await self._executor.execute(
            ["checkout", "HEAD", "--", *paths], cwd, "checkoutPaths"
        )

    async def commit(self, cwd: Path, message: str) -> None:
        """Commit the index with *message* passed over stdin."""
        try:
            await self._executor.execute(
                ["commit", "-F", "-"],
                cwd,
                "createCommit",
                ExecutionPolicy(stdin=message),
            )
        except GitExecutionError as exc:
            # Pre-commit hooks can reject commits, so surface their output.
            output = exc.result.stderr.strip()
            detail = f", with output: '{output}'" if output else ""
            raise CommitFailedError(
                exc.result,
                exc.git_args,
                exc.kind,
                f"Commit failed - exit code {exc.result.exit_code} received{detail}",
            ) from exc

    async def stage(self, cwd: Path, paths: list[str | Path]) -> None:
        """Add files to the index. Absolute paths are made relative to *cwd*."""
        await self._executor.execute(
            ["add", "--", *_relative_paths(cwd, paths)], cwd, "stage"
        )

    async def unstage(self, cwd: Path, paths: list[str | Path]) -> None:
        await self._executor.execute(
            ["reset", "--", *_relative_paths(cwd, paths)], cwd, "unstage"
        )

    async def staged_files(self, cwd: Path) -> list[WorkingChange]:
        snapshot = await self.status(cwd)
        return snapshot.staged_changes

    async def reset(
        self, cwd: Path, mode: ResetMode = ResetMode.MIXED, ref: str = "HEAD"
    ) -> None:
        await self._executor.execute(["reset", mode.value, ref, "--"], cwd, "reset")

    async def unstage_all(self, cwd: Path) -> None:
        await self._executor.execute(["reset", "--", "."], cwd, "unstageAll")

    async def merge(self, cwd: Path, branch: str) -> None:
        """Merge *branch* into the current branch."""
        await self._executor.execute(["merge", branch], cwd, "merge")

    async def push(
        self,
        cwd: Path,
        remote: str,
        branch: str,
        *,
        set_upstream: bool = False,
        env: dict[str, str] | None = None,
    ) -> None:
        args = [*NETWORK_ARGS, "push", remote, branch]
        if set_upstream:
            args.append("--set-upstream")
        await self._run_network(args, cwd, "push", env)

    async def pull(
        self,
        cwd: Path,
        remote: str,
        *,
        env: dict[str, str] | None = None,
    ) -> None:
        args = [*NETWORK_ARGS, "pull", "--no-rebase", remote]
        await self._run_network(args, cwd, "pull", env)

    async def show_blob(self, cwd: Path, commitish: str, path: str) -> bytes:
        """Raw contents of *path* at *commitish*."""
        result = await self._executor.execute(
            ["show", f"{commitish}:{path}"],
            cwd,
            "getBlobContents",
            ExecutionPolicy(success_exit_codes={0, 1}),
        )
        return result.raw_stdout

    async def log_commit_shas(
        self, cwd: Path, path: str | Path, branch: str | None = None
    ) -> list[str]:
        """Short SHAs touching *path*, newest first."""
        args = ["log", "--follow", "--pretty=%h"]
        if branch:
            args.append(branch)
        args.extend(["--", *_relative_paths(cwd, [path])])
        result = await self._executor.execute(args, cwd, "logCommitSHAs")
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    async def apply_patch_to_index(self, cwd: Path, patch: str) -> None:
        """Apply a unified diff to the index only."""
        await self._executor.execute(
            ["apply", "--cached", "--unidiff-zero", "--whitespace=nowarn", "-"],
            cwd,
            "applyPatchToIndex",
            ExecutionPolicy(stdin=patch),
        )

    async def _branches(self, cwd: Path, *prefixes: str) -> list[Branch]:
        refs = list(prefixes) or ["refs/heads", "refs/remotes"]
        result = await self._executor.execute(
            ["for-each-ref", f"--format={_FOR_EACH_REF_FORMAT}", *refs],
            cwd,
            "getBranches",
        )
        return parse_branches(result.stdout)

    async def _run_network(
        self,
        args: list[str],
        cwd: Path,
        name: str,
        env: dict[str, str] | None,
    ) -> None:
        policy = ExecutionPolicy(
            env=env or {},
            expected_errors=AUTHENTICATION_ERRORS,
        )
        result = await self._executor.execute(args, cwd, name, policy)
        # Authentication errors are tolerated by the policy only so they can be
        # reported here with their description.
        if result.error_description:
            logger.warning(
                "git_network_auth_failed",
                name=name,
                error_kind=result.error_kind.value if result.error_kind else None,
            )
            raise GitExecutionError(
                result, args, result.error_kind, result.error_description
            )


def _relative_paths(cwd: Path, paths: list[str | Path]) -> list[str]:
    relative: list[str] = []
    for p in paths:
        path = Path(p)
        relative.append(
            os.path.relpath(path, cwd) if path.is_absolute() else str(path)
        )
    return relative
