"""Classification of git diagnostics into a closed error taxonomy.

git reports failures as free text on stderr (sometimes stdout). Everything that
depends on that wording lives here: an ordered pattern table, a pure
``classify_error`` function and a total description table.
"""

import re
from enum import Enum


class ErrorKind(Enum):
    SSH_KEY_AUDIT_UNVERIFIED = "ssh_key_audit_unverified"
    AUTHENTICATION_FAILED = "authentication_failed"
    REPOSITORY_NOT_FOUND = "repository_not_found"
    REMOTE_DISCONNECTED = "remote_disconnected"
    HOST_UNREACHABLE = "host_unreachable"
    MERGE_CONFLICTS = "merge_conflicts"
    REBASE_CONFLICTS = "rebase_conflicts"
    REVERT_CONFLICTS = "revert_conflicts"
    PUSH_REJECTED_NOT_FAST_FORWARD = "push_rejected_not_fast_forward"
    PUSH_REJECTED_PROTECTED_BRANCH = "push_rejected_protected_branch"
    PROTECTED_BRANCH_REQUIRES_REVIEW = "protected_branch_requires_review"
    PROTECTED_BRANCH_REQUIRED_STATUS = "protected_branch_required_status"
    PROTECTED_BRANCH_DELETE_REJECTED = "protected_branch_delete_rejected"
    FORCE_PUSH_REJECTED = "force_push_rejected"
    PUSH_WITH_FILE_SIZE_EXCEEDING_LIMIT = "push_with_file_size_exceeding_limit"
    PUSH_WITH_PRIVATE_EMAIL = "push_with_private_email"
    HEX_BRANCH_NAME_REJECTED = "hex_branch_name_rejected"
    INVALID_REF_LENGTH = "invalid_ref_length"
    BRANCH_ALREADY_EXISTS = "branch_already_exists"
    BRANCH_DELETION_FAILED = "branch_deletion_failed"
    DEFAULT_BRANCH_DELETION_FAILED = "default_branch_deletion_failed"
    BRANCH_RENAME_FAILED = "branch_rename_failed"
    PATCH_DOES_NOT_APPLY = "patch_does_not_apply"
    BAD_REVISION = "bad_revision"
    INVALID_OBJECT_NAME = "invalid_object_name"
    NOT_A_REPOSITORY = "not_a_repository"
    OUTSIDE_REPOSITORY = "outside_repository"
    LOCK_FILE_EXISTS = "lock_file_exists"
    PATH_DOES_NOT_EXIST = "path_does_not_exist"
    EMPTY_REBASE_PATCH = "empty_rebase_patch"
    NO_MATCHING_REMOTE_BRANCH = "no_matching_remote_branch"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    NO_SUBMODULE_MAPPING = "no_submodule_mapping"
    SUBMODULE_REPOSITORY_DOES_NOT_EXIST = "submodule_repository_does_not_exist"
    INVALID_SUBMODULE_SHA = "invalid_submodule_sha"
    LOCAL_PERMISSION_DENIED = "local_permission_denied"
    INVALID_MERGE = "invalid_merge"
    INVALID_REBASE = "invalid_rebase"
    NON_FAST_FORWARD_MERGE_INTO_EMPTY_HEAD = "non_fast_forward_merge_into_empty_head"
    CANNOT_MERGE_UNRELATED_HISTORIES = "cannot_merge_unrelated_histories"
    LFS_ATTRIBUTE_DOES_NOT_MATCH = "lfs_attribute_does_not_match"
    MERGE_WITH_LOCAL_CHANGES = "merge_with_local_changes"
    NO_MERGE_TO_ABORT = "no_merge_to_abort"
    EXECUTABLE_NOT_FOUND = "executable_not_found"
    REPOSITORY_DOES_NOT_EXIST = "repository_does_not_exist"
    UNKNOWN = "unknown"


# Order matters: the first pattern that matches wins.
_ERROR_PATTERNS: list[tuple[str, ErrorKind]] = [
    (
        r"ERROR: ([\s\S]+?)\n+\[EPOLICYKEYAGE\]\n+fatal: Could not read from remote repository.",
        ErrorKind.SSH_KEY_AUDIT_UNVERIFIED,
    ),
    (r"fatal: Authentication failed", ErrorKind.AUTHENTICATION_FAILED),
    (r"fatal: Could not read from remote repository.", ErrorKind.AUTHENTICATION_FAILED),
    (r"The requested URL returned error: 403", ErrorKind.AUTHENTICATION_FAILED),
    (r"fatal: The remote end hung up unexpectedly", ErrorKind.REMOTE_DISCONNECTED),
    (
        r"fatal: unable to access '(.+)': Failed to connect to (.+): Host is down",
        ErrorKind.HOST_UNREACHABLE,
    ),
    (
        r"fatal: unable to access '(.+)': Could not resolve host: (.+)",
        ErrorKind.HOST_UNREACHABLE,
    ),
    (r"Failed to merge in the changes.", ErrorKind.REBASE_CONFLICTS),
    (
        r"(Merge conflict|Automatic merge failed; fix conflicts and then commit the result.)",
        ErrorKind.MERGE_CONFLICTS,
    ),
    (r"fatal: repository '(.+)' not found", ErrorKind.REPOSITORY_NOT_FOUND),
    (r"ERROR: Repository not found", ErrorKind.REPOSITORY_NOT_FOUND),
    (
        r"\((non-fast-forward|fetch first)\)\nerror: failed to push some refs to '.*'",
        ErrorKind.PUSH_REJECTED_NOT_FAST_FORWARD,
    ),
    (
        r"error: unable to delete '(.+)': remote ref does not exist",
        ErrorKind.BRANCH_DELETION_FAILED,
    ),
    (
        r"\[remote rejected\] (.+) \(deletion of the current branch prohibited\)",
        ErrorKind.DEFAULT_BRANCH_DELETION_FAILED,
    ),
    (
        r"error: could not revert .*\nhint: after resolving the conflicts, mark the corrected paths\n"
        r"hint: with 'git add <paths>' or 'git rm <paths>'\nhint: and commit the result with 'git commit'",
        ErrorKind.REVERT_CONFLICTS,
    ),
    (
        r"Applying: .*\nNo changes - did you forget to use 'git add'\?\n"
        r"If there is nothing left to stage, chances are that something else\n.*",
        ErrorKind.EMPTY_REBASE_PATCH,
    ),
    (
        r"There are no candidates for (rebasing|merging) among the refs that you just fetched.\n"
        r"Generally this means that you provided a wildcard refspec which had no\n"
        r"matches on the remote end.",
        ErrorKind.NO_MATCHING_REMOTE_BRANCH,
    ),
    (r"nothing to commit", ErrorKind.NOTHING_TO_COMMIT),
    (
        r"[Nn]o submodule mapping found in .gitmodules for path '(.+)'",
        ErrorKind.NO_SUBMODULE_MAPPING,
    ),
    (
        r"fatal: repository '(.+)' does not exist\n"
        r"fatal: clone of '.+' into submodule path '(.+)' failed",
        ErrorKind.SUBMODULE_REPOSITORY_DOES_NOT_EXIST,
    ),
    (
        r"Fetched in submodule path '(.+)', but it did not contain (.+). "
        r"Direct fetching of that commit failed.",
        ErrorKind.INVALID_SUBMODULE_SHA,
    ),
    (
        r"fatal: could not create work tree dir '(.+)'.*: Permission denied",
        ErrorKind.LOCAL_PERMISSION_DENIED,
    ),
    (r"merge: (.+) - not something we can merge", ErrorKind.INVALID_MERGE),
    (r"invalid upstream (.+)", ErrorKind.INVALID_REBASE),
    (
        r"fatal: Non-fast-forward commit does not make sense into an empty head",
        ErrorKind.NON_FAST_FORWARD_MERGE_INTO_EMPTY_HEAD,
    ),
    (
        r"error: (.+): (patch does not apply|already exists in working directory)",
        ErrorKind.PATCH_DOES_NOT_APPLY,
    ),
    (
        r"fatal: [Aa] branch named '(.+)' already exists\.?",
        ErrorKind.BRANCH_ALREADY_EXISTS,
    ),
    (r"fatal: bad revision '(.*)'", ErrorKind.BAD_REVISION),
    (
        r"fatal: [Nn]ot a git repository \(or any of the parent directories\): (.*)",
        ErrorKind.NOT_A_REPOSITORY,
    ),
    (
        r"fatal: refusing to merge unrelated histories",
        ErrorKind.CANNOT_MERGE_UNRELATED_HISTORIES,
    ),
    (r"The .+ attribute should be .+ but is .+", ErrorKind.LFS_ATTRIBUTE_DOES_NOT_MATCH),
    (r"fatal: Branch rename failed", ErrorKind.BRANCH_RENAME_FAILED),
    (r"fatal: [Pp]ath '(.+)' does not exist .+", ErrorKind.PATH_DOES_NOT_EXIST),
    (r"fatal: [Ii]nvalid object name '(.+)'.", ErrorKind.INVALID_OBJECT_NAME),
    (r"fatal: .+: '(.+)' is outside repository", ErrorKind.OUTSIDE_REPOSITORY),
    (
        r"Another git process seems to be running in this repository, e.g.",
        ErrorKind.LOCK_FILE_EXISTS,
    ),
    (r"fatal: There is no merge to abort", ErrorKind.NO_MERGE_TO_ABORT),
    (
        r"error: (?:Your local changes to the following|The following untracked working tree) "
        r"files would be overwritten by (?:checkout|merge):",
        ErrorKind.MERGE_WITH_LOCAL_CHANGES,
    ),
    # Hosting-provider hooks
    (r"error: GH001: ", ErrorKind.PUSH_WITH_FILE_SIZE_EXCEEDING_LIMIT),
    (r"error: GH002: ", ErrorKind.HEX_BRANCH_NAME_REJECTED),
    (
        r"error: GH003: Sorry, force-pushing to (.+) is not allowed.",
        ErrorKind.FORCE_PUSH_REJECTED,
    ),
    (
        r"error: GH005: Sorry, refs longer than (.+) bytes are not allowed",
        ErrorKind.INVALID_REF_LENGTH,
    ),
    (
        r"error: GH006: Protected branch update failed for (.+)\n"
        r"remote: error: At least one approved review is required",
        ErrorKind.PROTECTED_BRANCH_REQUIRES_REVIEW,
    ),
    (
        r"error: GH006: Protected branch update failed for (.+)\n"
        r"remote: error: Cannot force-push to a protected branch",
        ErrorKind.PUSH_REJECTED_PROTECTED_BRANCH,
    ),
    (
        r"error: GH006: Protected branch update failed for (.+)\n"
        r"remote: error: Cannot delete a protected branch",
        ErrorKind.PROTECTED_BRANCH_DELETE_REJECTED,
    ),
    (
        r"error: GH006: Protected branch update failed for (.+).\n"
        r"remote: error: Required status check \"(.+)\" is expected",
        ErrorKind.PROTECTED_BRANCH_REQUIRED_STATUS,
    ),
    (
        r"error: GH007: Your push would publish a private email address.",
        ErrorKind.PUSH_WITH_PRIVATE_EMAIL,
    ),
]

ERROR_PATTERNS: list[tuple[re.Pattern[str], ErrorKind]] = [
    (re.compile(pattern), kind) for pattern, kind in _ERROR_PATTERNS
]

ERROR_DESCRIPTIONS: dict[ErrorKind, str] = {
    ErrorKind.SSH_KEY_AUDIT_UNVERIFIED: "The SSH key is unverified.",
    ErrorKind.AUTHENTICATION_FAILED: (
        "Authentication failed. You may not have permission to access the "
        "repository or the repository may have been archived."
    ),
    ErrorKind.REPOSITORY_NOT_FOUND: (
        "The repository does not seem to exist anymore. You may not have access, "
        "or it may have been deleted or renamed."
    ),
    ErrorKind.REMOTE_DISCONNECTED: (
        "The remote disconnected. Check your Internet connection and try again."
    ),
    ErrorKind.HOST_UNREACHABLE: (
        "The host is down. Check your Internet connection and try again."
    ),
    ErrorKind.MERGE_CONFLICTS: (
        "We found some conflicts while trying to merge. Please resolve the "
        "conflicts and commit the changes."
    ),
    ErrorKind.REBASE_CONFLICTS: (
        "We found some conflicts while trying to rebase. Please resolve the "
        "conflicts before continuing."
    ),
    ErrorKind.REVERT_CONFLICTS: (
        "To finish reverting, please merge and commit the changes."
    ),
    ErrorKind.PUSH_REJECTED_NOT_FAST_FORWARD: (
        "The repository has been updated since you last pulled. Try pulling "
        "before pushing."
    ),
    ErrorKind.PUSH_REJECTED_PROTECTED_BRANCH: (
        "This branch is protected from force-push operations."
    ),
    ErrorKind.PROTECTED_BRANCH_REQUIRES_REVIEW: (
        "This branch is protected and any changes requires an approved review. "
        "Open a pull request with changes targeting this branch instead."
    ),
    ErrorKind.PROTECTED_BRANCH_REQUIRED_STATUS: (
        "The push was rejected by the remote server because a required status "
        "check has not been satisfied."
    ),
    ErrorKind.PROTECTED_BRANCH_DELETE_REJECTED: (
        "This branch cannot be deleted from the remote repository because it "
        "is marked as protected."
    ),
    ErrorKind.FORCE_PUSH_REJECTED: (
        "The force push has been rejected for the current branch."
    ),
    ErrorKind.PUSH_WITH_FILE_SIZE_EXCEEDING_LIMIT: (
        "The push operation includes a file which exceeds the remote's file "
        "size restriction of 100MB. Please remove the file from history and "
        "try again."
    ),
    ErrorKind.PUSH_WITH_PRIVATE_EMAIL: (
        "Cannot push these commits as they contain an email address marked as "
        "private on the remote."
    ),
    ErrorKind.HEX_BRANCH_NAME_REJECTED: (
        "The branch name cannot be a 40-character string of hexadecimal "
        "characters, as this is the format that Git uses for representing "
        "objects."
    ),
    ErrorKind.INVALID_REF_LENGTH: "A ref cannot be longer than 255 characters.",
    ErrorKind.BRANCH_ALREADY_EXISTS: "A branch with that name already exists.",
    ErrorKind.BRANCH_DELETION_FAILED: (
        "Could not delete the branch. It was probably already deleted."
    ),
    ErrorKind.DEFAULT_BRANCH_DELETION_FAILED: (
        "The branch is the repository's default branch and cannot be deleted."
    ),
    ErrorKind.BRANCH_RENAME_FAILED: "The branch could not be renamed.",
    ErrorKind.PATCH_DOES_NOT_APPLY: (
        "The requested changes conflict with one or more files in the repository."
    ),
    ErrorKind.BAD_REVISION: "Bad revision.",
    ErrorKind.INVALID_OBJECT_NAME: (
        "The object was not found in the Git repository."
    ),
    ErrorKind.NOT_A_REPOSITORY: "This is not a git repository.",
    ErrorKind.OUTSIDE_REPOSITORY: (
        "This path is not a valid path inside the repository."
    ),
    ErrorKind.LOCK_FILE_EXISTS: (
        "A lock file already exists in the repository, which blocks this "
        "operation from completing."
    ),
    ErrorKind.PATH_DOES_NOT_EXIST: "The path does not exist on disk.",
    ErrorKind.EMPTY_REBASE_PATCH: "There aren't any changes left to apply.",
    ErrorKind.NO_MATCHING_REMOTE_BRANCH: (
        "There aren't any remote branches that match the current branch."
    ),
    ErrorKind.NOTHING_TO_COMMIT: "There are no changes to commit.",
    ErrorKind.NO_SUBMODULE_MAPPING: (
        "A submodule was removed from .gitmodules, but the folder still exists "
        "in the repository. Delete the folder, commit the change, then try again."
    ),
    ErrorKind.SUBMODULE_REPOSITORY_DOES_NOT_EXIST: (
        "A submodule points to a location which does not exist."
    ),
    ErrorKind.INVALID_SUBMODULE_SHA: (
        "A submodule points to a commit which does not exist."
    ),
    ErrorKind.LOCAL_PERMISSION_DENIED: "Permission denied.",
    ErrorKind.INVALID_MERGE: "This is not something we can merge.",
    ErrorKind.INVALID_REBASE: "This is not something we can rebase.",
    ErrorKind.NON_FAST_FORWARD_MERGE_INTO_EMPTY_HEAD: (
        "The merge you attempted is not a fast-forward, so it cannot be "
        "performed on an empty branch."
    ),
    ErrorKind.CANNOT_MERGE_UNRELATED_HISTORIES: (
        "Unable to merge unrelated histories in this repository."
    ),
    ErrorKind.LFS_ATTRIBUTE_DOES_NOT_MATCH: (
        "Git LFS attribute found in global Git configuration does not match "
        "expected value."
    ),
    ErrorKind.MERGE_WITH_LOCAL_CHANGES: (
        "Your local changes to the following files would be overwritten."
    ),
    ErrorKind.NO_MERGE_TO_ABORT: "There is no merge in progress to abort.",
    ErrorKind.EXECUTABLE_NOT_FOUND: "Git could not be found on this machine.",
    ErrorKind.REPOSITORY_DOES_NOT_EXIST: (
        "Unable to find path to repository on disk."
    ),
    ErrorKind.UNKNOWN: "An unknown error occurred.",
}


def classify_error(text: str) -> ErrorKind | None:
    """Return the first ErrorKind whose pattern occurs in *text*, if any."""
    if not text:
        return None
    for pattern, kind in ERROR_PATTERNS:
        if pattern.search(text):
            return kind
    return None


def describe_error(kind: ErrorKind) -> str:
    """Human-readable description for *kind*.

    Raises ValueError when the description table has no entry for *kind*.
    """
    try:
        return ERROR_DESCRIPTIONS[kind]
    except KeyError:
        raise ValueError(f"Unknown error: {kind}") from None
