"""Split a full patch into per-file blobs."""

from __future__ import annotations

import re
from typing import List, Union

DIFF_MARKER = "diff --git "

_VERSION_LINE_RE = re.compile(r"^[\d.]+$")
_END_OF_PATCH = "-- "


def decode_patch(patch: Union[str, bytes]) -> str:
    """Best-effort UTF-8 decode; invalid sequences are replaced."""
    if isinstance(patch, bytes):
        return patch.decode("utf-8", errors="replace")
    return patch


def split_patch(patch: Union[str, bytes]) -> List[str]:
    """Return one blob per ``diff --git`` marker, marker excluded.

    Anything before the first marker (summary, version preamble) is dropped.
    Empty or marker-free input gives an empty list.
    """
    text = decode_patch(patch)
    blobs: List[str] = []
    start = text.find(DIFF_MARKER)
    while start != -1:
        body_start = start + len(DIFF_MARKER)
        nxt = text.find(DIFF_MARKER, body_start)
        blobs.append(text[body_start:] if nxt == -1 else text[body_start:nxt])
        start = nxt
    return blobs


def strip_patch_envelope(patch: Union[str, bytes]) -> str:
    """Cut a format-patch rendering down to the bare diff.

    Drops the mail header and diffstat before the first ``diff --git`` line,
    then the trailing git version line and ``-- `` end-of-patch marker.
    """
    lines = decode_patch(patch).split("\n")
    while lines and lines[-1] == "":
        lines.pop()

    first = next((i for i, line in enumerate(lines) if line.startswith("diff --git")), None)
    if first is None:
        return ""
    lines = lines[first:]

    if lines and _VERSION_LINE_RE.match(lines[-1]):
        lines.pop()
    if lines and lines[-1] == _END_OF_PATCH:
        lines.pop()
    return "\n".join(lines)
