"""Data models for normalized commit diffs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


class FileStatus(str, Enum):
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class StructuredDelta:
    """Per-file delta as reported by the backend's tree diff (no hunk text)."""

    old_path: str = ""
    new_path: str = ""
    old_mode: str = ""
    new_mode: str = ""
    added: bool = False
    renamed: bool = False
    deleted: bool = False

    @property
    def status(self) -> FileStatus:
        if self.added:
            return FileStatus.ADDED
        if self.deleted:
            return FileStatus.DELETED
        if self.renamed:
            return FileStatus.RENAMED
        return FileStatus.MODIFIED


@dataclass(frozen=True)
class RawBlob:
    """One file's segment of a literal patch, after header parsing."""

    old_path: str = ""
    new_path: str = ""
    old_mode: str = ""
    new_mode: str = ""
    status: FileStatus = FileStatus.MODIFIED
    body: str = ""


@dataclass(frozen=True)
class DiffUnit:
    """A tree-diff entry: structured delta plus line counts."""

    delta: StructuredDelta
    additions: int = 0
    deletions: int = 0  # binary files report 0/0


_SERIALIZE_KEYS = (
    "diff",
    "new_path",
    "old_path",
    "old_mode",
    "new_mode",
    "status",
    "new_file",
    "renamed_file",
    "deleted_file",
)


@dataclass(frozen=True)
class DiffRecord:
    """One file's change within a commit."""

    old_path: str = ""
    new_path: str = ""
    old_mode: str = ""
    new_mode: str = ""
    status: FileStatus = FileStatus.MODIFIED
    body: str = ""

    def __post_init__(self) -> None:
        # An added file has no old side, a deleted file has no new side.
        if self.status == FileStatus.ADDED and self.old_mode:
            object.__setattr__(self, "old_mode", "")
        if self.status == FileStatus.DELETED and self.new_mode:
            object.__setattr__(self, "new_mode", "")

    @property
    def new_file(self) -> bool:
        return self.status == FileStatus.ADDED

    @property
    def renamed_file(self) -> bool:
        return self.status == FileStatus.RENAMED

    @property
    def deleted_file(self) -> bool:
        return self.status == FileStatus.DELETED

    @property
    def diff(self) -> str:
        return self.body

    def to_dict(self) -> Dict[str, Any]:
        """Flat mapping suitable for persistence or transport."""
        out: Dict[str, Any] = {}
        for key in _SERIALIZE_KEYS:
            value = getattr(self, key)
            out[key] = value.value if isinstance(value, FileStatus) else value
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DiffRecord":
        """Rebuild a record from :meth:`to_dict` output.

        Unknown keys are ignored. When ``status`` is missing it is derived from
        the ``new_file`` / ``deleted_file`` / ``renamed_file`` flags.
        """
        raw_status = data.get("status")
        if raw_status:
            try:
                status = FileStatus(raw_status)
            except ValueError:
                status = FileStatus.MODIFIED
        elif data.get("new_file"):
            status = FileStatus.ADDED
        elif data.get("deleted_file"):
            status = FileStatus.DELETED
        elif data.get("renamed_file"):
            status = FileStatus.RENAMED
        else:
            status = FileStatus.MODIFIED

        return cls(
            old_path=data.get("old_path") or "",
            new_path=data.get("new_path") or "",
            old_mode=data.get("old_mode") or "",
            new_mode=data.get("new_mode") or "",
            status=status,
            body=data.get("diff") or "",
        )


@dataclass(frozen=True)
class CommitDiffResult:
    """Ordered records for one commit, in backend enumeration order."""

    commit_id: str
    records: Tuple[DiffRecord, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[DiffRecord]:
        return iter(self.records)

    def __getitem__(self, index: int) -> DiffRecord:
        return self.records[index]

    def paths(self) -> List[str]:
        return [r.new_path or r.old_path for r in self.records]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.commit_id,
            "diffs": [r.to_dict() for r in self.records],
        }


@dataclass(frozen=True)
class CommitStats:
    """Aggregate line counts for one commit."""

    id: str
    additions: int = 0
    deletions: int = 0

    @property
    def total(self) -> int:
        return self.additions + self.deletions

    @classmethod
    def zero(cls, commit_id: str) -> "CommitStats":
        return cls(id=commit_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "additions": self.additions,
            "deletions": self.deletions,
            "total": self.total,
        }


@dataclass(frozen=True)
class StatsOutcome:
    """Either computed stats or the failure that prevented computing them."""

    commit_id: str
    stats: Optional[CommitStats] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.stats is not None

    def stats_or_zero(self) -> CommitStats:
        return self.stats if self.ok else CommitStats.zero(self.commit_id)  # type: ignore[return-value]
