"""Tests for porcelain v2 status parsing."""

import pytest

from gitbridge.git.models import (
    AheadBehind,
    FileVariant,
    GitStatusEntry,
    StatusEntry,
    StatusHeader,
    WorkingChange,
)
from gitbridge.git.status import (
    is_change_in_index,
    is_change_in_working_tree,
    map_status,
    parse_porcelain,
    parse_status,
)

_HASH = "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"


def _changed(xy, path):
    return f"1 {xy} N... 100644 100644 100644 {_HASH} {_HASH} {path}"


def _renamed(xy, path, old_path, score="R100"):
    return f"2 {xy} N... 100644 100644 100644 {_HASH} {_HASH} {score} {path}\0{old_path}"


def _unmerged(xy, path):
    return f"u {xy} N... 100644 100644 100644 100644 {_HASH} {_HASH} {_HASH} {path}"


def _status(*records):
    return "".join(f"{r}\0" for r in records)


def _for_path(snapshot, path):
    return [c for c in snapshot.changes if c.path == path]


class TestParsePorcelain:
    def test_headers(self):
        lines = parse_porcelain(_status("# branch.oid abc123", "# branch.head main"))
        assert lines == [
            StatusHeader(key="branch.oid", value="abc123"),
            StatusHeader(key="branch.head", value="main"),
        ]

    def test_rename_consumes_following_token(self):
        lines = parse_porcelain(
            _status(_renamed("R.", "new.txt", "old.txt"), _changed(".M", "a.txt"))
        )
        assert lines == [
            StatusEntry(status_code="R.", path="new.txt", old_path="old.txt"),
            StatusEntry(status_code=".M", path="a.txt"),
        ]

    def test_untracked_gets_double_question_mark(self):
        lines = parse_porcelain(_status("? notes.md"))
        assert lines == [StatusEntry(status_code="??", path="notes.md")]

    def test_ignored_and_malformed_records_are_skipped(self):
        lines = parse_porcelain(
            _status("! build/", "1 garbage", "u XY nope", _changed("M.", "ok.txt"))
        )
        assert lines == [StatusEntry(status_code="M.", path="ok.txt")]

    def test_empty_output(self):
        assert parse_porcelain("") == []


class TestParseStatus:
    def test_branch_headers_and_modified_file(self):
        output = _status(
            "# branch.oid abc123",
            "# branch.head main",
            "# branch.upstream origin/main",
            "# branch.ab +1 -2",
            _changed("MM", "src/a.go"),
        )
        snapshot = parse_status(output)
        assert snapshot.current_tip == "abc123"
        assert snapshot.current_branch == "main"
        assert snapshot.current_upstream_branch == "origin/main"
        assert snapshot.ahead_behind == AheadBehind(ahead=1, behind=2)
        assert snapshot.changes == [
            WorkingChange(
                path="src/a.go", variant=FileVariant.ORDINARY_MODIFIED, staged=True
            ),
            WorkingChange(
                path="src/a.go", variant=FileVariant.ORDINARY_MODIFIED, staged=False
            ),
        ]

    def test_added_then_deleted_is_dropped(self):
        snapshot = parse_status(_status(_changed("AD", "tmp.txt")))
        assert snapshot.changes == []
        assert snapshot.is_clean

    def test_untracked_replaces_staged_delete(self):
        output = _status(_changed("D.", "old.txt"), "? old.txt")
        snapshot = parse_status(output)
        assert snapshot.changes == [
            WorkingChange(path="old.txt", variant=FileVariant.UNTRACKED, staged=False)
        ]

    def test_untracked_leaves_other_paths_alone(self):
        output = _status(_changed("D.", "gone.txt"), "? fresh.txt")
        snapshot = parse_status(output)
        assert [(c.path, c.variant) for c in snapshot.changes] == [
            ("gone.txt", FileVariant.ORDINARY_DELETED),
            ("fresh.txt", FileVariant.UNTRACKED),
        ]

    def test_staged_only(self):
        snapshot = parse_status(_status(_changed("A.", "new.py")))
        assert snapshot.staged_changes == [
            WorkingChange(path="new.py", variant=FileVariant.ORDINARY_ADDED, staged=True)
        ]
        assert snapshot.unstaged_changes == []

    def test_unstaged_only(self):
        snapshot = parse_status(_status(_changed(".D", "lost.py")))
        assert snapshot.unstaged_changes == [
            WorkingChange(
                path="lost.py", variant=FileVariant.ORDINARY_DELETED, staged=False
            )
        ]
        assert snapshot.staged_changes == []

    def test_rename_keeps_old_path(self):
        snapshot = parse_status(_status(_renamed("R.", "b.txt", "a.txt")))
        assert snapshot.changes == [
            WorkingChange(
                path="b.txt",
                old_path="a.txt",
                variant=FileVariant.RENAMED,
                staged=True,
            )
        ]

    def test_renamed_and_modified(self):
        snapshot = parse_status(_status(_renamed("RM", "b.txt", "a.txt", "R87")))
        assert [(c.staged, c.variant) for c in snapshot.changes] == [
            (True, FileVariant.RENAMED),
            (False, FileVariant.RENAMED),
        ]

    def test_copy(self):
        snapshot = parse_status(_status(_renamed("C.", "dup.txt", "src.txt", "C100")))
        assert snapshot.changes[0].variant is FileVariant.COPIED
        assert snapshot.changes[0].old_path == "src.txt"

    def test_conflict_appears_on_both_sides(self):
        snapshot = parse_status(_status(_unmerged("UU", "clash.txt")))
        assert [(c.staged, c.variant) for c in snapshot.changes] == [
            (True, FileVariant.CONFLICTED),
            (False, FileVariant.CONFLICTED),
        ]

    def test_type_change(self):
        snapshot = parse_status(_status(_changed(".T", "link")))
        assert snapshot.changes == [
            WorkingChange(
                path="link", variant=FileVariant.ORDINARY_MODIFIED, staged=False
            )
        ]

    def test_path_with_spaces(self):
        snapshot = parse_status(_status(_changed(".M", "docs/my notes.md")))
        assert snapshot.changes[0].path == "docs/my notes.md"

    def test_detached_head(self):
        snapshot = parse_status(
            _status("# branch.oid abc123", "# branch.head (detached)")
        )
        assert snapshot.current_branch is None
        assert snapshot.current_tip == "abc123"

    def test_initial_commit(self):
        snapshot = parse_status(
            _status("# branch.oid (initial)", "# branch.head main", "? README.md")
        )
        assert snapshot.current_tip is None
        assert snapshot.current_branch == "main"
        assert len(snapshot.changes) == 1

    def test_no_upstream(self):
        snapshot = parse_status(_status("# branch.oid abc123", "# branch.head wip"))
        assert snapshot.current_upstream_branch is None
        assert snapshot.ahead_behind is None

    def test_malformed_ahead_behind_ignored(self):
        snapshot = parse_status(_status("# branch.ab +x -y"))
        assert snapshot.ahead_behind is None

    def test_unknown_headers_ignored(self):
        snapshot = parse_status(_status("# stash 3", "# branch.head main"))
        assert snapshot.current_branch == "main"
        assert snapshot.is_clean

    def test_parsing_is_repeatable(self):
        output = _status(
            "# branch.oid abc123",
            "# branch.head main",
            _changed("MM", "a.txt"),
            _renamed("R.", "c.txt", "b.txt"),
            "? d.txt",
        )
        assert parse_status(output) == parse_status(output)

    def test_staged_and_unstaged_pairs(self):
        output = _status(
            _changed("MM", "a.txt"), _changed("AM", "b.txt"), _changed("M.", "c.txt")
        )
        snapshot = parse_status(output)
        for path in ("a.txt", "b.txt"):
            records = _for_path(snapshot, path)
            assert sorted(c.staged for c in records) == [False, True]
        assert len(_for_path(snapshot, "c.txt")) == 1


class TestMapStatus:
    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("??", FileVariant.UNTRACKED),
            (".M", FileVariant.ORDINARY_MODIFIED),
            ("M.", FileVariant.ORDINARY_MODIFIED),
            ("MD", FileVariant.ORDINARY_MODIFIED),
            (".T", FileVariant.ORDINARY_MODIFIED),
            ("A.", FileVariant.ORDINARY_ADDED),
            ("AM", FileVariant.ORDINARY_ADDED),
            ("D.", FileVariant.ORDINARY_DELETED),
            (".D", FileVariant.ORDINARY_DELETED),
            ("R.", FileVariant.RENAMED),
            ("RM", FileVariant.RENAMED),
            ("C.", FileVariant.COPIED),
            ("CD", FileVariant.COPIED),
            ("DD", FileVariant.CONFLICTED),
            ("AU", FileVariant.CONFLICTED),
            ("UD", FileVariant.CONFLICTED),
            ("UA", FileVariant.CONFLICTED),
            ("DU", FileVariant.CONFLICTED),
            ("AA", FileVariant.CONFLICTED),
            ("UU", FileVariant.CONFLICTED),
            ("M", FileVariant.ORDINARY_MODIFIED),
        ],
    )
    def test_variant(self, code, expected):
        assert map_status(code).variant is expected

    def test_sides(self):
        status = map_status("AD")
        assert status.index is GitStatusEntry.ADDED
        assert status.working_tree is GitStatusEntry.DELETED

    def test_untracked_has_no_sides(self):
        status = map_status("??")
        assert status.index is None
        assert status.working_tree is None


class TestChangeSides:
    @pytest.mark.parametrize("code", ["M.", "A.", "D.", "R.", "C.", "T.", "UU"])
    def test_in_index(self, code):
        assert is_change_in_index(code)

    @pytest.mark.parametrize("code", [".M", "??", ".D"])
    def test_not_in_index(self, code):
        assert not is_change_in_index(code)

    @pytest.mark.parametrize("code", [".M", ".A", ".D", ".T", "UU"])
    def test_in_working_tree(self, code):
        assert is_change_in_working_tree(code)

    @pytest.mark.parametrize("code", ["M.", "??", "R."])
    def test_not_in_working_tree(self, code):
        assert not is_change_in_working_tree(code)
