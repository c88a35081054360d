"""Per-commit pipeline — split, parse, merge into a CommitDiffResult.

A commit is diffed against its first parent. A root commit is diffed
against the empty tree with the direction reversed, so its files show up as
added rather than deleted.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple, TypeVar, Union

from patchnorm.git.adapter import DiffBackend, DiffComputationFailure, DiffTimeoutError, GitError
from patchnorm.git.header_parser import parse_blob
from patchnorm.git.models import CommitDiffResult
from patchnorm.git.source_adapter import merge_sources
from patchnorm.git.splitter import split_patch

logger = logging.getLogger(__name__)

T = TypeVar("T")

DiffRange = Tuple[Optional[str], Optional[str], bool]


def call_stage(commit_id: str, stage: str, func: Callable[..., T], *args, **kwargs) -> T:
    """Run one backend call, tagging failures with the commit and stage.

    Timeouts pass through untouched.
    """
    try:
        return func(*args, **kwargs)
    except (DiffTimeoutError, DiffComputationFailure):
        raise
    except GitError as exc:
        logger.warning("%s failed for %s: %s", stage, commit_id, exc)
        raise DiffComputationFailure(commit_id, stage, str(exc)) from exc


def diff_range(backend: DiffBackend, commit_id: str) -> DiffRange:
    """Return ``(base, target, reverse)`` for the commit's own diff."""
    parents = call_stage(commit_id, "parents", backend.parent_ids, commit_id)
    if parents:
        return parents[0], commit_id, False
    logger.debug("%s is a root commit, diffing against the empty tree", commit_id)
    return commit_id, None, True


def _records_for_range(
    backend: DiffBackend,
    commit_id: str,
    base: Optional[str],
    target: Optional[str],
    reverse: bool,
    paths: Optional[Sequence[str]],
) -> CommitDiffResult:
    units = call_stage(
        commit_id, "tree_diff", backend.tree_diff, base, target, reverse=reverse, paths=paths
    )
    patch = call_stage(
        commit_id, "patch", backend.patch_text, base, target, reverse=reverse, paths=paths
    )
    blobs = [parse_blob(blob) for blob in split_patch(patch)]
    records = merge_sources([u.delta for u in units], blobs, commit_id=commit_id)
    logger.info("normalized %d file(s) for %s", len(records), commit_id)
    return CommitDiffResult(commit_id=commit_id, records=tuple(records))


def commit_diffs(
    backend: DiffBackend,
    commit_id: str,
    paths: Optional[Sequence[str]] = None,
) -> CommitDiffResult:
    """Ordered DiffRecords for *commit_id* against its first parent."""
    base, target, reverse = diff_range(backend, commit_id)
    return _records_for_range(backend, commit_id, base, target, reverse, paths)


def diffs_between(
    backend: DiffBackend,
    head: str,
    base: str,
    paths: Optional[Sequence[str]] = None,
) -> CommitDiffResult:
    """What *head* adds on top of *base*: merge-base(head, base) → head."""
    common = call_stage(head, "merge_base", backend.merge_base, head, base)
    return _records_for_range(backend, head, common, head, False, paths)


def normalize_patch(patch: Union[str, bytes], commit_id: str = "") -> CommitDiffResult:
    """Records from patch text alone, with no structured source to merge."""
    blobs = [parse_blob(blob) for blob in split_patch(patch)]
    records = merge_sources(None, blobs, commit_id=commit_id)
    return CommitDiffResult(commit_id=commit_id, records=tuple(records))
