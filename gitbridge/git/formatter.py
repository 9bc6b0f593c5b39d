"""Pure functions to render git data as plain text."""

from gitbridge.core.errors import describe_error
from gitbridge.exceptions import GitBridgeError, GitExecutionError, GitSpawnError
from gitbridge.git.models import Branch, FileVariant, StatusSnapshot, WorkingChange

_VARIANT_MARKER = {
    FileVariant.ORDINARY_MODIFIED: "M",
    FileVariant.ORDINARY_ADDED: "A",
    FileVariant.ORDINARY_DELETED: "D",
    FileVariant.RENAMED: "R",
    FileVariant.COPIED: "C",
    FileVariant.CONFLICTED: "U",
    FileVariant.UNTRACKED: "?",
}


def format_change(change: WorkingChange) -> str:
    marker = _VARIANT_MARKER.get(change.variant, "?")
    if change.old_path:
        return f"{marker} {change.old_path} -> {change.path}"
    return f"{marker} {change.path}"


def format_status(snapshot: StatusSnapshot) -> str:
    """Format a StatusSnapshot for display."""
    lines: list[str] = []

    branch_line = f"Branch: {snapshot.current_branch or 'HEAD (detached)'}"
    if snapshot.current_upstream_branch:
        tracking_parts = [f"tracking {snapshot.current_upstream_branch}"]
        if snapshot.ahead_behind:
            if snapshot.ahead_behind.ahead:
                tracking_parts.append(f"{snapshot.ahead_behind.ahead} ahead")
            if snapshot.ahead_behind.behind:
                tracking_parts.append(f"{snapshot.ahead_behind.behind} behind")
        branch_line += f" ({', '.join(tracking_parts)})"
    lines.append(branch_line)
    if snapshot.current_tip:
        lines.append(f"Tip: {snapshot.current_tip[:7]}")

    staged = snapshot.staged_changes
    unstaged = [
        c for c in snapshot.unstaged_changes if c.variant is not FileVariant.UNTRACKED
    ]
    untracked = [
        c for c in snapshot.unstaged_changes if c.variant is FileVariant.UNTRACKED
    ]

    for title, changes in (
        ("Staged:", staged),
        ("Unstaged:", unstaged),
        ("Untracked:", untracked),
    ):
        if not changes:
            continue
        lines.append("")
        lines.append(title)
        for change in changes:
            lines.append(f"  {format_change(change)}")

    if snapshot.is_clean:
        lines.append("")
        lines.append("Working tree clean")

    return "\n".join(lines)


def format_branches(branches: list[Branch], max_display: int = 10) -> str:
    """Format a branch list for display."""
    if not branches:
        return "No branches found."

    lines: list[str] = ["Branches:"]
    for branch in branches[:max_display]:
        line = f"  {branch.name} {branch.tip.sha[:7]} {branch.tip.summary}"
        if branch.upstream:
            line += f" [{branch.upstream}]"
        lines.append(line)

    if len(branches) > max_display:
        lines.append(f"\n... and {len(branches) - max_display} more")
    return "\n".join(lines)


def format_error(error: GitBridgeError) -> str:
    """User-facing text for a failed git operation."""
    if isinstance(error, GitExecutionError):
        text = error.description or str(error).strip()
        command = " ".join(["git", *error.git_args])
        return f"{text}\n(`{command}` exited with code {error.result.exit_code})"
    if isinstance(error, GitSpawnError) and error.kind is not None:
        return f"{describe_error(error.kind)}\n{error}"
    return str(error)
