"""JSON renderer for diff records and commit stats."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Union

from patchnorm.git.models import CommitDiffResult, CommitStats

Result = Union[CommitDiffResult, CommitStats, Mapping[str, Any]]


def to_dict(result: Result) -> Dict[str, Any]:
    """Convert a result to a JSON-serialisable dict."""
    if isinstance(result, Mapping):
        return dict(result)
    data = result.to_dict()
    if isinstance(result, CommitDiffResult):
        data["files"] = len(result)
    return data


def render(result: Result) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(result), indent=2)
