"""Parsing of ``git status --porcelain=2 -z`` into a working-tree model.

See https://git-scm.com/docs/git-status#_porcelain_format_version_2 for the
record shapes handled here.
"""

import re

from gitbridge.git.models import (
    AheadBehind,
    FileVariant,
    GitStatusEntry,
    MappedStatus,
    StatusEntry,
    StatusHeader,
    StatusLine,
    StatusSnapshot,
    WorkingChange,
)

STATUS_ARGS = ["status", "--untracked-files=all", "--branch", "--porcelain=2", "-z"]

_CHANGED_ENTRY = "1"
_RENAMED_OR_COPIED_ENTRY = "2"
_UNMERGED_ENTRY = "u"
_UNTRACKED_ENTRY = "?"
_IGNORED_ENTRY = "!"
_HEADER = "#"

# 1 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <path>
_CHANGED_ENTRY_RE = re.compile(
    r"^1 ([MADRCUTX?!.]{2}) (N\.\.\.|S[C.][M.][U.]) (\d+) (\d+) (\d+) "
    r"([a-f0-9]+) ([a-f0-9]+) ([\s\S]*?)$"
)
# 2 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <X><score> <path>
_RENAMED_OR_COPIED_ENTRY_RE = re.compile(
    r"^2 ([MADRCUTX?!.]{2}) (N\.\.\.|S[C.][M.][U.]) (\d+) (\d+) (\d+) "
    r"([a-f0-9]+) ([a-f0-9]+) ([RC]\d+) ([\s\S]*?)$"
)
# u <XY> <sub> <m1> <m2> <m3> <mW> <h1> <h2> <h3> <path>
_UNMERGED_ENTRY_RE = re.compile(
    r"^u ([DAU]{2}) (N\.\.\.|S[C.][M.][U.]) (\d+) (\d+) (\d+) (\d+) "
    r"([a-f0-9]+) ([a-f0-9]+) ([a-f0-9]+) ([\s\S]*?)$"
)

# Deliberately does not match "branch.oid (initial)".
_OID_RE = re.compile(r"^[a-f0-9]+$")
_AHEAD_BEHIND_RE = re.compile(r"^\+(\d+) -(\d+)$")
_DETACHED_HEAD = "(detached)"

_CONFLICTED_CODES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})
_INDEX_CHANGE_CHARS = frozenset("MADURCT")
_WORKING_TREE_CHANGE_CHARS = frozenset("MADUT")


def parse_porcelain(output: str) -> list[StatusLine]:
    """Split NUL-delimited porcelain v2 output into headers and entries.

    Ignored files and records that do not match their documented shape are
    skipped.
    """
    lines: list[StatusLine] = []
    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        field = tokens[i]
        i += 1
        if not field:
            continue

        kind = field[0]
        if kind == _HEADER:
            key, _, value = field[2:].partition(" ")
            lines.append(StatusHeader(key=key, value=value))
        elif kind == _CHANGED_ENTRY:
            m = _CHANGED_ENTRY_RE.match(field)
            if m:
                lines.append(StatusEntry(status_code=m.group(1), path=m.group(8)))
        elif kind == _RENAMED_OR_COPIED_ENTRY:
            # The source path follows as its own NUL-terminated token.
            old_path = tokens[i] if i < len(tokens) else None
            i += 1
            m = _RENAMED_OR_COPIED_ENTRY_RE.match(field)
            if m:
                lines.append(
                    StatusEntry(
                        status_code=m.group(1), path=m.group(9), old_path=old_path
                    )
                )
        elif kind == _UNMERGED_ENTRY:
            m = _UNMERGED_ENTRY_RE.match(field)
            if m:
                lines.append(StatusEntry(status_code=m.group(1), path=m.group(10)))
        elif kind == _UNTRACKED_ENTRY:
            lines.append(StatusEntry(status_code="??", path=field[2:]))
        elif kind == _IGNORED_ENTRY:
            continue
    return lines


def _status_entry(char: str) -> GitStatusEntry | None:
    try:
        return GitStatusEntry(char)
    except ValueError:
        return None


def map_status(status_code: str) -> MappedStatus:
    """Classify a two-character XY status code."""
    if status_code == "??":
        return MappedStatus(variant=FileVariant.UNTRACKED)
    if len(status_code) != 2:
        return MappedStatus(variant=FileVariant.ORDINARY_MODIFIED)

    index = _status_entry(status_code[0])
    working_tree = _status_entry(status_code[1])

    if status_code in _CONFLICTED_CODES:
        variant = FileVariant.CONFLICTED
    elif "R" in status_code:
        variant = FileVariant.RENAMED
    elif "C" in status_code:
        variant = FileVariant.COPIED
    else:
        first = next((c for c in status_code if c != "."), "M")
        if first == "A":
            variant = FileVariant.ORDINARY_ADDED
        elif first == "D":
            variant = FileVariant.ORDINARY_DELETED
        else:
            # Anything else is some kind of modification.
            variant = FileVariant.ORDINARY_MODIFIED

    return MappedStatus(variant=variant, index=index, working_tree=working_tree)


def is_change_in_index(status_code: str) -> bool:
    return status_code[:1] in _INDEX_CHANGE_CHARS


def is_change_in_working_tree(status_code: str) -> bool:
    return status_code[1:2] in _WORKING_TREE_CHANGE_CHARS


def parse_status(output: str) -> StatusSnapshot:
    """Build a StatusSnapshot from raw ``git status --porcelain=2 -z`` output."""
    current_branch: str | None = None
    current_upstream_branch: str | None = None
    current_tip: str | None = None
    ahead_behind: AheadBehind | None = None
    changes: list[WorkingChange] = []

    for line in parse_porcelain(output):
        if isinstance(line, StatusHeader):
            if line.key == "branch.oid":
                if _OID_RE.match(line.value):
                    current_tip = line.value
            elif line.key == "branch.head":
                if line.value != _DETACHED_HEAD:
                    current_branch = line.value
            elif line.key == "branch.upstream":
                current_upstream_branch = line.value
            elif line.key == "branch.ab":
                m = _AHEAD_BEHIND_RE.match(line.value)
                if m:
                    ahead_behind = AheadBehind(
                        ahead=int(m.group(1)), behind=int(m.group(2))
                    )
            continue

        status = map_status(line.status_code)

        # Added to the index then deleted from disk: it won't be committed.
        if (
            status.index is GitStatusEntry.ADDED
            and status.working_tree is GitStatusEntry.DELETED
        ):
            continue

        # A staged delete plus a new untracked file at the same path should
        # show up once, as the untracked file.
        if status.variant is FileVariant.UNTRACKED:
            changes = [c for c in changes if c.path != line.path]

        in_index = is_change_in_index(line.status_code)
        in_working_tree = is_change_in_working_tree(line.status_code)

        if in_index:
            changes.append(_change(line, status, staged=True))
        if in_working_tree:
            changes.append(_change(line, status, staged=False))
        if not in_index and not in_working_tree:
            changes.append(_change(line, status, staged=False))

    return StatusSnapshot(
        current_branch=current_branch,
        current_upstream_branch=current_upstream_branch,
        current_tip=current_tip,
        ahead_behind=ahead_behind,
        changes=changes,
    )


def _change(entry: StatusEntry, status: MappedStatus, *, staged: bool) -> WorkingChange:
    return WorkingChange(
        path=entry.path,
        old_path=entry.old_path,
        variant=status.variant,
        staged=staged,
    )
