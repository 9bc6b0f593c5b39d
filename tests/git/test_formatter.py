"""Tests for git display formatting functions."""

from gitbridge.core.errors import ErrorKind, describe_error
from gitbridge.core.process import ExecutionResult
from gitbridge.exceptions import (
    ConfigError,
    GitExecutionError,
    GitNotFoundError,
    GitSpawnError,
)
from gitbridge.git import formatter
from gitbridge.git.models import (
    AheadBehind,
    Branch,
    BranchType,
    CommitIdentity,
    CommitTip,
    FileVariant,
    StatusSnapshot,
    WorkingChange,
)


def _branch(name, upstream=None, summary="Initial commit"):
    tip = CommitTip(
        sha="0123456789abcdef0123456789abcdef01234567",
        summary=summary,
        author=CommitIdentity(name="Jane", email="jane@example.com", timestamp=0),
    )
    return Branch(name=name, type=BranchType.LOCAL, tip=tip, upstream=upstream)


class TestFormatStatus:
    def test_clean_working_tree(self):
        result = formatter.format_status(StatusSnapshot(current_branch="main"))
        assert "Branch: main" in result
        assert "Working tree clean" in result

    def test_detached_head(self):
        result = formatter.format_status(StatusSnapshot(current_tip="abcdef1234"))
        assert "HEAD (detached)" in result
        assert "Tip: abcdef1" in result

    def test_branch_with_tracking(self):
        snapshot = StatusSnapshot(
            current_branch="main", current_upstream_branch="origin/main"
        )
        assert "tracking origin/main" in formatter.format_status(snapshot)

    def test_branch_ahead_behind(self):
        snapshot = StatusSnapshot(
            current_branch="main",
            current_upstream_branch="origin/main",
            ahead_behind=AheadBehind(ahead=3, behind=2),
        )
        result = formatter.format_status(snapshot)
        assert "(tracking origin/main, 3 ahead, 2 behind)" in result

    def test_branch_only_ahead(self):
        snapshot = StatusSnapshot(
            current_branch="main",
            current_upstream_branch="origin/main",
            ahead_behind=AheadBehind(ahead=5, behind=0),
        )
        result = formatter.format_status(snapshot)
        assert "5 ahead" in result
        assert "behind" not in result

    def test_sections(self):
        snapshot = StatusSnapshot(
            current_branch="main",
            changes=[
                WorkingChange(
                    path="a.py", variant=FileVariant.ORDINARY_MODIFIED, staged=True
                ),
                WorkingChange(
                    path="b.py", variant=FileVariant.ORDINARY_DELETED, staged=False
                ),
                WorkingChange(
                    path="notes.md", variant=FileVariant.UNTRACKED, staged=False
                ),
            ],
        )
        result = formatter.format_status(snapshot)
        assert result.split("\n") == [
            "Branch: main",
            "",
            "Staged:",
            "  M a.py",
            "",
            "Unstaged:",
            "  D b.py",
            "",
            "Untracked:",
            "  ? notes.md",
        ]

    def test_rename_shows_both_paths(self):
        change = WorkingChange(
            path="new.py", old_path="old.py", variant=FileVariant.RENAMED, staged=True
        )
        assert formatter.format_change(change) == "R old.py -> new.py"


class TestFormatBranches:
    def test_empty(self):
        assert formatter.format_branches([]) == "No branches found."

    def test_branch_lines(self):
        result = formatter.format_branches(
            [_branch("main", upstream="origin/main"), _branch("wip", summary="WIP")]
        )
        assert result.split("\n") == [
            "Branches:",
            "  main 0123456 Initial commit [origin/main]",
            "  wip 0123456 WIP",
        ]

    def test_truncation(self):
        branches = [_branch(f"b{i}") for i in range(5)]
        result = formatter.format_branches(branches, max_display=3)
        assert "b2" in result
        assert "b3" not in result
        assert "... and 2 more" in result


class TestFormatError:
    def test_execution_error_with_description(self):
        result = ExecutionResult(stdout="", stderr="fatal: x", exit_code=128)
        error = GitExecutionError(
            result,
            ["push", "origin", "main"],
            ErrorKind.AUTHENTICATION_FAILED,
            describe_error(ErrorKind.AUTHENTICATION_FAILED),
        )
        text = formatter.format_error(error)
        assert text.startswith(describe_error(ErrorKind.AUTHENTICATION_FAILED))
        assert text.endswith("(`git push origin main` exited with code 128)")

    def test_execution_error_without_description(self):
        result = ExecutionResult(stdout="", stderr="weird failure\n", exit_code=2)
        error = GitExecutionError(result, ["frob"])
        assert formatter.format_error(error) == (
            "weird failure\n(`git frob` exited with code 2)"
        )

    def test_spawn_error_with_kind(self):
        error = GitNotFoundError("gone", kind=ErrorKind.EXECUTABLE_NOT_FOUND)
        assert formatter.format_error(error) == (
            f"{describe_error(ErrorKind.EXECUTABLE_NOT_FOUND)}\ngone"
        )

    def test_spawn_error_without_kind(self):
        assert formatter.format_error(GitSpawnError("denied")) == "denied"

    def test_other_errors(self):
        assert formatter.format_error(ConfigError("bad config")) == "bad config"
