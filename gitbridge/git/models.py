"""Data models for git command results."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict


class FileVariant(Enum):
    ORDINARY_ADDED = "added"
    ORDINARY_MODIFIED = "modified"
    ORDINARY_DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    CONFLICTED = "conflicted"
    UNTRACKED = "untracked"


class GitStatusEntry(Enum):
    """State of one side (index or working tree) of a status code."""

    UNCHANGED = "."
    MODIFIED = "M"
    TYPE_CHANGED = "T"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UNMERGED = "U"
    UNTRACKED = "?"


class StatusHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["header"] = "header"
    key: str
    value: str


class StatusEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["entry"] = "entry"
    status_code: str
    path: str
    old_path: str | None = None


StatusLine = StatusHeader | StatusEntry


class MappedStatus(BaseModel):
    """Classification of a two-character status code."""

    model_config = ConfigDict(frozen=True)

    variant: FileVariant
    index: GitStatusEntry | None = None
    working_tree: GitStatusEntry | None = None


class WorkingChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    variant: FileVariant
    staged: bool
    old_path: str | None = None


class AheadBehind(BaseModel):
    model_config = ConfigDict(frozen=True)

    ahead: int
    behind: int


class StatusSnapshot(BaseModel):
    """Parsed output of git status --porcelain=2."""

    model_config = ConfigDict(frozen=True)

    current_branch: str | None = None
    current_upstream_branch: str | None = None
    current_tip: str | None = None
    ahead_behind: AheadBehind | None = None
    changes: list[WorkingChange] = []

    @property
    def staged_changes(self) -> list[WorkingChange]:
        return [c for c in self.changes if c.staged]

    @property
    def unstaged_changes(self) -> list[WorkingChange]:
        return [c for c in self.changes if not c.staged]

    @property
    def is_clean(self) -> bool:
        return not self.changes


class BranchType(Enum):
    # Local sorts before remote.
    LOCAL = 0
    REMOTE = 1


class CommitIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    timestamp: int
    tz_offset: str = "+0000"


class CommitTip(BaseModel):
    model_config = ConfigDict(frozen=True)

    sha: str
    summary: str
    body: str = ""
    author: CommitIdentity
    parent_shas: list[str] = []


class Branch(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: BranchType
    tip: CommitTip
    upstream: str | None = None

    @property
    def remote(self) -> str | None:
        """Remote part of the upstream, e.g. ``origin`` for ``origin/main``."""
        if not self.upstream or "/" not in self.upstream:
            return None
        return self.upstream.split("/", 1)[0]

    @property
    def upstream_without_remote(self) -> str | None:
        if not self.upstream:
            return None
        return remove_remote_prefix(self.upstream)

    @property
    def name_without_remote(self) -> str:
        if self.type is BranchType.LOCAL:
            return self.name
        return remove_remote_prefix(self.name) or self.name


class ResetMode(Enum):
    HARD = "--hard"
    SOFT = "--soft"
    MIXED = "--mixed"


def remove_remote_prefix(name: str) -> str | None:
    """``origin/feature/x`` -> ``feature/x``; None when there is no prefix."""
    _, sep, rest = name.partition("/")
    return rest if sep and rest else None
