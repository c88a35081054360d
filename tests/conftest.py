"""Shared test fixtures — sample patches, a fake backend, temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from patchnorm.git.models import DiffUnit, StructuredDelta


@pytest.fixture
def three_file_patch() -> str:
    """A modify, an add and a delete in one patch."""
    return textwrap.dedent("""\
        diff --git a/app.py b/app.py
        index 83db48f..bf269f4 100644
        --- a/app.py
        +++ b/app.py
        @@ -1,2 +1,3 @@
         import os
        -x = 1
        +x = 2
        +y = 3
        diff --git a/new.txt b/new.txt
        new file mode 100644
        index 0000000..ce01362
        --- /dev/null
        +++ b/new.txt
        @@ -0,0 +1 @@
        +hello
        diff --git a/gone.txt b/gone.txt
        deleted file mode 100644
        index ce01362..0000000
        --- a/gone.txt
        +++ /dev/null
        @@ -1 +0,0 @@
        -bye
    """)


@pytest.fixture
def three_file_units() -> List[DiffUnit]:
    """Structured units matching ``three_file_patch``, in the same order."""
    return [
        DiffUnit(
            delta=StructuredDelta("app.py", "app.py", "100644", "100644"),
            additions=2,
            deletions=1,
        ),
        DiffUnit(
            delta=StructuredDelta("new.txt", "new.txt", "", "100644", added=True),
            additions=1,
        ),
        DiffUnit(
            delta=StructuredDelta("gone.txt", "gone.txt", "100644", "", deleted=True),
            deletions=1,
        ),
    ]


class FakeBackend:
    """In-memory DiffBackend that records how it was called."""

    def __init__(
        self,
        parents: Optional[Dict[str, List[str]]] = None,
        units: Optional[List[DiffUnit]] = None,
        patch: str = "",
        merge_bases: Optional[Dict[Tuple[str, str], str]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.parents = parents or {}
        self.units = units or []
        self.patch = patch
        self.merge_bases = merge_bases or {}
        self.error = error
        self.calls: List[tuple] = []

    def parent_ids(self, commit_id: str) -> List[str]:
        return list(self.parents.get(commit_id, []))

    def tree_diff(
        self,
        base: Optional[str],
        target: Optional[str],
        *,
        reverse: bool = False,
        paths: Optional[Sequence[str]] = None,
    ) -> List[DiffUnit]:
        self.calls.append(("tree_diff", base, target, reverse))
        if self.error is not None:
            raise self.error
        return list(self.units)

    def patch_text(
        self,
        base: Optional[str],
        target: Optional[str],
        *,
        reverse: bool = False,
        paths: Optional[Sequence[str]] = None,
    ) -> str:
        self.calls.append(("patch", base, target, reverse))
        return self.patch

    def merge_base(self, a: str, b: str) -> str:
        return self.merge_bases[(a, b)]


@pytest.fixture
def fake_backend_cls():
    return FakeBackend


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git():
    """Run git in a repo and return stripped stdout."""
    return _git


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with a single root commit."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    _git(tmp_path, "config", "user.email", "test@test.com")
    _git(tmp_path, "config", "user.name", "Test")
    _git(tmp_path, "config", "commit.gpgsign", "false")
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-m", "init")
    return tmp_path
