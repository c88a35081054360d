"""Commit statistics — added/deleted line totals from the backend's tree diff."""

from __future__ import annotations

import logging

from patchnorm.git.adapter import DiffBackend, GitError
from patchnorm.git.models import CommitStats, StatsOutcome
from patchnorm.git.normalizer import call_stage, diff_range

logger = logging.getLogger(__name__)


def commit_stats(backend: DiffBackend, commit_id: str) -> CommitStats:
    """Sum per-file addition/deletion counts for *commit_id*.

    Uses the same diff as :func:`patchnorm.git.normalizer.commit_diffs`.
    Backend failures propagate as ``DiffComputationFailure`` (or
    ``DiffTimeoutError``).
    """
    base, target, reverse = diff_range(backend, commit_id)
    units = call_stage(commit_id, "tree_diff", backend.tree_diff, base, target, reverse=reverse)

    additions = 0
    deletions = 0
    for unit in units:
        additions += unit.additions
        deletions += unit.deletions

    return CommitStats(id=commit_id, additions=additions, deletions=deletions)


def try_commit_stats(backend: DiffBackend, commit_id: str) -> StatsOutcome:
    """Like :func:`commit_stats` but returns a failure as data instead of raising."""
    try:
        return StatsOutcome(commit_id=commit_id, stats=commit_stats(backend, commit_id))
    except GitError as exc:
        return StatsOutcome(commit_id=commit_id, error=exc)


def has_zero_stats(backend: DiffBackend, commit_id: str) -> bool:
    """True when the commit changes no lines, or its stats cannot be computed."""
    outcome = try_commit_stats(backend, commit_id)
    if not outcome.ok:
        logger.debug("treating %s as zero stats: %s", commit_id, outcome.error)
    return outcome.stats_or_zero().total == 0
