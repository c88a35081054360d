"""Turn structured deltas and parsed patch blobs into DiffRecords."""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from patchnorm.git.models import DiffRecord, RawBlob, StructuredDelta

DiffSource = Union[StructuredDelta, RawBlob]


class CountMismatch(Exception):
    """Raised when the structured and textual sources list different file counts."""

    def __init__(self, delta_count: int, blob_count: int, commit_id: Optional[str] = None) -> None:
        self.delta_count = delta_count
        self.blob_count = blob_count
        self.commit_id = commit_id
        where = f" for commit {commit_id}" if commit_id else ""
        super().__init__(
            f"cannot merge diff sources{where}: "
            f"{delta_count} structured deltas vs {blob_count} patch blobs"
        )


def _from_delta(delta: StructuredDelta, body: str = "") -> DiffRecord:
    return DiffRecord(
        old_path=delta.old_path,
        new_path=delta.new_path,
        old_mode=delta.old_mode,
        new_mode=delta.new_mode,
        status=delta.status,
        body=body,
    )


def _from_blob(blob: RawBlob) -> DiffRecord:
    return DiffRecord(
        old_path=blob.old_path,
        new_path=blob.new_path,
        old_mode=blob.old_mode,
        new_mode=blob.new_mode,
        status=blob.status,
        body=blob.body,
    )


def to_record(source: DiffSource) -> DiffRecord:
    """Build a record from a single source using only that source's fields."""
    if isinstance(source, StructuredDelta):
        return _from_delta(source)
    return _from_blob(source)


def merge_sources(
    deltas: Optional[Sequence[StructuredDelta]],
    blobs: Optional[Sequence[RawBlob]],
    commit_id: Optional[str] = None,
) -> List[DiffRecord]:
    """Correlate the two sources by position.

    With both present, record *i* takes paths, modes and status from
    ``deltas[i]`` and the body from ``blobs[i]``. Both sequences must come
    from the same diff so that they enumerate files in the same order.
    """
    if deltas is None and blobs is None:
        return []
    if deltas is None:
        return [to_record(b) for b in blobs]  # type: ignore[union-attr]
    if blobs is None:
        return [to_record(d) for d in deltas]

    if len(deltas) != len(blobs):
        raise CountMismatch(len(deltas), len(blobs), commit_id)

    return [_from_delta(delta, body=blob.body) for delta, blob in zip(deltas, blobs)]
