"""Git subprocess backend — parents, tree diffs, patch text, merge base."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

from patchnorm.git.models import DiffUnit, StructuredDelta

logger = logging.getLogger(__name__)

# Object id of the empty tree; every git repository knows it without storing it.
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_NULL_MODE = "000000"


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


class DiffTimeoutError(GitError, TimeoutError):
    """Raised when a git diff/patch command exceeds its time budget."""


class DiffComputationFailure(GitError):
    """The backend could not produce a diff for a commit."""

    def __init__(self, commit_id: str, stage: str, reason: str = "") -> None:
        self.commit_id = commit_id
        self.stage = stage
        msg = f"diff computation failed for {commit_id} at stage '{stage}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class DiffBackend(Protocol):
    """What the normalizer and stats aggregator need from a repository."""

    def parent_ids(self, commit_id: str) -> List[str]: ...

    def tree_diff(
        self,
        base: Optional[str],
        target: Optional[str],
        *,
        reverse: bool = False,
        paths: Optional[Sequence[str]] = None,
    ) -> List[DiffUnit]: ...

    def patch_text(
        self,
        base: Optional[str],
        target: Optional[str],
        *,
        reverse: bool = False,
        paths: Optional[Sequence[str]] = None,
    ) -> str: ...

    def merge_base(self, a: str, b: str) -> str: ...


def _run_git(args: List[str], cwd: Path, timeout: int = 30) -> str:
    """Run a git command and return stdout. Raises GitError on failure."""
    logger.debug("git %s", " ".join(args))
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise DiffTimeoutError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise GitError(f"git error: {stderr or f'exit status {result.returncode}'}")
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def _mode(raw: str) -> str:
    return "" if raw == _NULL_MODE else raw


def _raw_entries(output: str) -> List[Tuple[str, StructuredDelta]]:
    """``(status letter, delta)`` per ``--raw -z`` entry, one per changed path."""
    entries: List[Tuple[str, StructuredDelta]] = []
    fields = output.split("\0")
    idx = 0
    while idx < len(fields):
        meta = fields[idx]
        idx += 1
        if not meta.startswith(":"):
            continue
        parts = meta[1:].split()
        if len(parts) < 5:
            continue
        old_mode, new_mode, status = parts[0], parts[1], parts[4]
        letter = status[:1]
        if letter in ("R", "C"):
            old_path = fields[idx] if idx < len(fields) else ""
            new_path = fields[idx + 1] if idx + 1 < len(fields) else ""
            idx += 2
        else:
            old_path = new_path = fields[idx] if idx < len(fields) else ""
            idx += 1
        entries.append((
            letter,
            StructuredDelta(
                old_path=old_path,
                new_path=new_path,
                old_mode=_mode(old_mode),
                new_mode=_mode(new_mode),
                added=letter == "A",
                renamed=letter == "R",
                deleted=letter == "D",
            ),
        ))
    return entries


def _expand_type_change(delta: StructuredDelta) -> List[StructuredDelta]:
    """A ``T`` entry is patched as a deletion followed by an addition."""
    return [
        StructuredDelta(
            old_path=delta.old_path,
            new_path=delta.old_path,
            old_mode=delta.old_mode,
            new_mode="",
            deleted=True,
        ),
        StructuredDelta(
            old_path=delta.new_path,
            new_path=delta.new_path,
            old_mode="",
            new_mode=delta.new_mode,
            added=True,
        ),
    ]


def parse_raw_z(output: str) -> List[StructuredDelta]:
    """Parse ``git diff-tree --raw -z`` output into deltas, in patch order.

    Type changes (``T``, e.g. file to symlink) yield two deltas, matching the
    two ``diff --git`` blocks ``-p`` prints for them.
    """
    deltas: List[StructuredDelta] = []
    for letter, delta in _raw_entries(output):
        if letter == "T":
            deltas.extend(_expand_type_change(delta))
        else:
            deltas.append(delta)
    return deltas


def parse_numstat_z(output: str) -> List[Tuple[int, int]]:
    """Parse ``git diff-tree --numstat -z`` into ``(additions, deletions)`` pairs.

    Binary files (``-``/``-``) count as zero.
    """
    counts: List[Tuple[int, int]] = []
    fields = output.split("\0")
    idx = 0
    while idx < len(fields):
        entry = fields[idx]
        idx += 1
        if not entry:
            continue
        parts = entry.split("\t", 2)
        if len(parts) < 3:
            continue
        added, deleted, path = parts
        if path == "":
            # Renames/copies: the two paths follow as separate fields.
            idx += 2
        counts.append((int(added) if added.isdigit() else 0, int(deleted) if deleted.isdigit() else 0))
    return counts


class GitBackend:
    """DiffBackend over the ``git`` command line of a local repository."""

    def __init__(self, repo_root: Path, *, timeout: int = 30, detect_renames: bool = True) -> None:
        self.repo_root = repo_root
        self.timeout = timeout
        self.detect_renames = detect_renames

    def _git(self, args: List[str]) -> str:
        return _run_git(args, cwd=self.repo_root, timeout=self.timeout)

    def _diff_tree_args(
        self,
        base: Optional[str],
        target: Optional[str],
        reverse: bool,
        paths: Optional[Sequence[str]],
        *extra: str,
    ) -> List[str]:
        args = ["diff-tree", "-r", "--no-commit-id", *extra]
        if self.detect_renames:
            args.append("-M")
        if reverse:
            args.append("-R")
        args += [base or EMPTY_TREE, target or EMPTY_TREE]
        if paths:
            args += ["--", *paths]
        return args

    def resolve_commit(self, ref: str) -> str:
        """Return the full object id of the commit *ref* names."""
        return self._git(["rev-parse", "--verify", f"{ref}^{{commit}}"]).strip()

    def parent_ids(self, commit_id: str) -> List[str]:
        out = self._git(["rev-list", "--parents", "-n", "1", commit_id]).split()
        return out[1:]

    def tree_diff(
        self,
        base: Optional[str],
        target: Optional[str],
        *,
        reverse: bool = False,
        paths: Optional[Sequence[str]] = None,
    ) -> List[DiffUnit]:
        raw = self._git(self._diff_tree_args(base, target, reverse, paths, "--raw", "-z"))
        numstat = self._git(self._diff_tree_args(base, target, reverse, paths, "--numstat", "-z"))
        entries = _raw_entries(raw)
        counts = parse_numstat_z(numstat)
        if len(entries) != len(counts):
            raise GitError(
                f"git reported {len(entries)} changed files but {len(counts)} numstat entries"
            )
        units: List[DiffUnit] = []
        for (letter, delta), (added, deleted) in zip(entries, counts):
            if letter == "T":
                removed, created = _expand_type_change(delta)
                units.append(DiffUnit(delta=removed, deletions=deleted))
                units.append(DiffUnit(delta=created, additions=added))
            else:
                units.append(DiffUnit(delta=delta, additions=added, deletions=deleted))
        return units

    def patch_text(
        self,
        base: Optional[str],
        target: Optional[str],
        *,
        reverse: bool = False,
        paths: Optional[Sequence[str]] = None,
    ) -> str:
        return self._git(self._diff_tree_args(base, target, reverse, paths, "-p"))

    def merge_base(self, a: str, b: str) -> str:
        return self._git(["merge-base", a, b]).strip()

    def format_patch(self, commit_id: str) -> str:
        """Full mail-style patch of a single commit (``git format-patch``)."""
        return self._git(["format-patch", "-1", "--stdout", commit_id])
