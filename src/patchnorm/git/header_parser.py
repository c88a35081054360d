"""Per-file header parser — status, modes and paths from one patch blob.

The blob is read through an offset into the original text; nothing is sliced
off or mutated, so any number of blobs can be parsed concurrently. Parsing
never raises: unknown header lines fall back to ``modified`` with empty modes
and short blobs (binary, mode-only) simply end early with whatever text is left
as the body.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from patchnorm.git.models import FileStatus, RawBlob
from patchnorm.git.splitter import decode_patch

logger = logging.getLogger(__name__)

# Extended header lines git may emit between the path line and the ---/+++ pair.
_EXTENDED_PREFIXES = (
    "index ",
    "similarity index ",
    "dissimilarity index ",
    "old mode ",
    "new mode ",
    "rename from ",
    "rename to ",
    "copy from ",
    "copy to ",
)

# Lines that already belong to the file markers or body, never to the header.
_NON_HEADER_PREFIXES = ("--- ", "+++ ", "@@", "Binary files ", "GIT binary patch")


def _next_line(text: str, pos: int) -> Tuple[Optional[str], int]:
    """Return the line starting at *pos* (without EOL) and the offset after it."""
    if pos >= len(text):
        return None, pos
    end = text.find("\n", pos)
    if end == -1:
        return text[pos:].rstrip("\r"), len(text)
    return text[pos:end].rstrip("\r"), end + 1


def _token(tokens: List[str], index: int) -> str:
    return tokens[index] if len(tokens) > index else ""


def _strip_prefix(path: str, prefix: str) -> str:
    return path[len(prefix):] if path.startswith(prefix) else path


_C_ESCAPES = {
    "a": b"\a",
    "b": b"\b",
    "f": b"\f",
    "n": b"\n",
    "r": b"\r",
    "t": b"\t",
    "v": b"\v",
    '"': b'"',
    "\\": b"\\",
}


def _read_quoted(text: str, start: int = 0) -> Tuple[str, int]:
    """Decode the C-quoted string opening at ``text[start]``.

    git quotes paths holding control characters, ``"``, ``\\`` or non-ASCII
    bytes; the latter come through as octal escapes of their UTF-8 bytes.
    Returns the decoded string and the offset just past the closing quote.
    """
    out = bytearray()
    pos = start + 1
    while pos < len(text):
        ch = text[pos]
        if ch == '"':
            return out.decode("utf-8", errors="replace"), pos + 1
        if ch == "\\" and pos + 1 < len(text):
            nxt = text[pos + 1]
            digits = 0
            while digits < 3 and pos + 1 + digits < len(text) and text[pos + 1 + digits] in "01234567":
                digits += 1
            if digits:
                out.append(int(text[pos + 1:pos + 1 + digits], 8) & 0xFF)
                pos += 1 + digits
                continue
            out += _C_ESCAPES.get(nxt, nxt.encode("utf-8"))
            pos += 2
            continue
        out += ch.encode("utf-8")
        pos += 1
    # Unterminated: keep what was read.
    return out.decode("utf-8", errors="replace"), pos


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of *path*; unquoted paths pass through."""
    if path.startswith('"'):
        return _read_quoted(path)[0]
    return path


def parse_path_line(line: str) -> Tuple[str, str]:
    """Split ``a/<old> b/<new>`` into ``(old, new)`` without the prefixes.

    Either side may be C-quoted (``"a/caf\\303\\251"``).
    """
    line = line.rstrip("\r")
    if line.startswith('"'):
        old, end = _read_quoted(line)
        rest = line[end:].lstrip(" ")
        new = _read_quoted(rest)[0] if rest.startswith('"') else rest
        return _strip_prefix(old, "a/"), _strip_prefix(new, "b/")
    if line.endswith('"') and ' "' in line:
        old, quoted = line.rsplit(' "', 1)
        return _strip_prefix(old, "a/"), _strip_prefix(_read_quoted('"' + quoted)[0], "b/")

    if line.startswith("a/") and " b/" in line:
        rest = line[2:]
        # Same path on both sides is the common case and may contain " b/".
        if (len(rest) - 3) % 2 == 0:
            half = (len(rest) - 3) // 2
            if rest[half:half + 3] == " b/" and rest[:half] == rest[half + 3:]:
                return rest[:half], rest[:half]
        old, new = rest.split(" b/", 1)
        return old, new

    tokens = line.split()
    return _strip_prefix(_token(tokens, 0), "a/"), _strip_prefix(_token(tokens, 1), "b/")


@dataclass
class _HeaderState:
    """Mutable scratch state local to a single :func:`parse_blob` call."""

    old_path: str
    new_path: str
    status: FileStatus = FileStatus.MODIFIED
    old_mode: str = ""
    new_mode: str = ""

    def apply_extended(self, line: str) -> None:
        if line.startswith("rename from "):
            self.old_path = unquote_path(line[len("rename from "):])
            self.status = FileStatus.RENAMED
        elif line.startswith("rename to "):
            self.new_path = unquote_path(line[len("rename to "):])
            self.status = FileStatus.RENAMED
        elif line.startswith("old mode "):
            self.old_mode = _token(line.split(), 2)
        elif line.startswith("new mode "):
            self.new_mode = _token(line.split(), 2)
        elif line.startswith("index "):
            mode = _token(line.split(), 2)
            if mode:
                if not self.old_mode and self.status != FileStatus.ADDED:
                    self.old_mode = mode
                if not self.new_mode and self.status != FileStatus.DELETED:
                    self.new_mode = mode

    def build(self, body: str) -> RawBlob:
        return RawBlob(
            old_path=self.old_path,
            new_path=self.new_path,
            old_mode="" if self.status == FileStatus.ADDED else self.old_mode,
            new_mode="" if self.status == FileStatus.DELETED else self.new_mode,
            status=self.status,
            body=body,
        )


def parse_blob(blob: Union[str, bytes]) -> RawBlob:
    """Parse one per-file blob (``diff --git `` marker already removed)."""
    text = decode_patch(blob)

    line, pos = _next_line(text, 0)
    if line is None:
        return RawBlob()
    old_path, new_path = parse_path_line(line)
    state = _HeaderState(old_path=old_path, new_path=new_path)

    # --- Status / mode line ---
    line, nxt = _next_line(text, pos)
    if line is None:
        logger.debug("truncated blob for %s: no status line", new_path)
        return state.build(body="")

    tokens = line.split()
    lead = _token(tokens, 0)

    if lead == "index":
        mode = _token(tokens, 2)
        state.old_mode = state.new_mode = mode
        pos = nxt
    elif line.startswith(_NON_HEADER_PREFIXES):
        # No extended header at all; leave the line for the marker/body steps.
        logger.debug("blob for %s has no status line", new_path)
    else:
        if lead == "new":
            state.status = FileStatus.ADDED
            state.new_mode = _token(tokens, 3)
        elif lead == "renamed":
            state.status = FileStatus.RENAMED
            state.old_mode = state.new_mode = _token(tokens, 3)
        elif lead == "deleted":
            state.status = FileStatus.DELETED
            state.old_mode = _token(tokens, 3)
        elif lead == "old":
            state.old_mode = _token(tokens, 2)
        elif lead == "rename":
            state.apply_extended(line)
        elif lead not in ("similarity", "dissimilarity", "copy"):
            logger.debug("unrecognised header line for %s: %r", new_path, line)
        pos = nxt

        # Continuation of the status header (second mode line, rename target...)
        line, nxt = _next_line(text, pos)
        if line is None:
            logger.debug("truncated blob for %s after status line", new_path)
            return state.build(body="")
        if not line.startswith(_NON_HEADER_PREFIXES):
            state.apply_extended(line)
            pos = nxt

    # --- Remaining extended header lines ---
    while True:
        line, nxt = _next_line(text, pos)
        if line is None or not line.startswith(_EXTENDED_PREFIXES):
            break
        state.apply_extended(line)
        pos = nxt

    # --- --- a/<path> and +++ b/<path> ---
    for prefix in ("--- ", "+++ "):
        line, nxt = _next_line(text, pos)
        if line is None or not line.startswith(prefix):
            logger.debug("blob for %s has no %r marker line", state.new_path, prefix.strip())
            break
        pos = nxt

    return state.build(body=text[pos:])
