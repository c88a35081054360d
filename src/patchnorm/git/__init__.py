"""Git interface layer — backend, patch splitting, header parsing, records."""

from patchnorm.git.adapter import (
    DiffBackend,
    DiffComputationFailure,
    DiffTimeoutError,
    GitBackend,
    GitError,
    get_repo_root,
)
from patchnorm.git.header_parser import parse_blob
from patchnorm.git.models import (
    CommitDiffResult,
    CommitStats,
    DiffRecord,
    DiffUnit,
    FileStatus,
    RawBlob,
    StatsOutcome,
    StructuredDelta,
)
from patchnorm.git.normalizer import commit_diffs, diffs_between, normalize_patch
from patchnorm.git.source_adapter import CountMismatch, merge_sources, to_record
from patchnorm.git.splitter import split_patch, strip_patch_envelope
from patchnorm.git.stats import commit_stats, has_zero_stats, try_commit_stats

__all__ = [
    "CommitDiffResult",
    "CommitStats",
    "CountMismatch",
    "DiffBackend",
    "DiffComputationFailure",
    "DiffRecord",
    "DiffTimeoutError",
    "DiffUnit",
    "FileStatus",
    "GitBackend",
    "GitError",
    "RawBlob",
    "StatsOutcome",
    "StructuredDelta",
    "commit_diffs",
    "commit_stats",
    "diffs_between",
    "get_repo_root",
    "has_zero_stats",
    "merge_sources",
    "normalize_patch",
    "parse_blob",
    "split_patch",
    "strip_patch_envelope",
    "to_record",
    "try_commit_stats",
]
