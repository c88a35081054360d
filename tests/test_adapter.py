"""Tests for the git backend — output parsing and a real temporary repo."""

from pathlib import Path

import pytest

from patchnorm.git.adapter import (
    GitBackend,
    GitError,
    get_repo_root,
    parse_numstat_z,
    parse_raw_z,
)
from patchnorm.git.models import FileStatus
from patchnorm.git.normalizer import commit_diffs, diffs_between, normalize_patch
from patchnorm.git.source_adapter import CountMismatch
from patchnorm.git.splitter import strip_patch_envelope
from patchnorm.git.stats import commit_stats


class TestRawParsing:
    def test_parse_raw_z(self):
        output = (
            ":100644 100644 abc1234 def5678 M\0app.py\0"
            ":000000 100644 0000000 abc1234 A\0new.txt\0"
            ":100644 000000 abc1234 0000000 D\0gone.txt\0"
            ":100644 100644 abc1234 abc1234 R100\0old.py\0new.py\0"
        )
        deltas = parse_raw_z(output)
        assert [d.status for d in deltas] == [
            FileStatus.MODIFIED,
            FileStatus.ADDED,
            FileStatus.DELETED,
            FileStatus.RENAMED,
        ]
        assert deltas[1].old_mode == ""
        assert deltas[1].new_mode == "100644"
        assert deltas[2].new_mode == ""
        assert (deltas[3].old_path, deltas[3].new_path) == ("old.py", "new.py")

    def test_parse_raw_z_empty(self):
        assert parse_raw_z("") == []

    def test_parse_numstat_z(self):
        output = (
            "3\t1\tapp.py\0"
            "1\t0\tnew.txt\0"
            "0\t0\t\0old.py\0new.py\0"
            "-\t-\timage.png\0"
        )
        assert parse_numstat_z(output) == [(3, 1), (1, 0), (0, 0), (0, 0)]

    def test_type_change_becomes_delete_then_add(self):
        output = ":100644 120000 abc1234 def5678 T\0link\0"
        removed, created = parse_raw_z(output)
        assert removed.status == FileStatus.DELETED
        assert (removed.old_mode, removed.new_mode) == ("100644", "")
        assert created.status == FileStatus.ADDED
        assert (created.old_mode, created.new_mode) == ("", "120000")
        assert removed.new_path == created.new_path == "link"


def _commit(git, repo: Path, message: str) -> str:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


class TestGitBackend:
    def test_repo_root(self, tmp_git_repo: Path):
        assert get_repo_root(tmp_git_repo).resolve() == tmp_git_repo.resolve()

    def test_root_commit_files_are_added(self, tmp_git_repo: Path, git):
        backend = GitBackend(tmp_git_repo)
        head = git(tmp_git_repo, "rev-parse", "HEAD")

        assert backend.parent_ids(head) == []
        result = commit_diffs(backend, head)
        [record] = result
        assert record.status == FileStatus.ADDED
        assert record.new_path == "README.md"
        assert record.old_mode == ""
        assert record.new_mode == "100644"
        assert "+# Test" in record.body

        stats = commit_stats(backend, head)
        assert (stats.additions, stats.deletions, stats.total) == (1, 0, 1)

    def test_modify_add_delete(self, tmp_git_repo: Path, git):
        (tmp_git_repo / "README.md").write_text("# Test\nmore\n")
        (tmp_git_repo / "app.py").write_text("x = 1\n")
        first = _commit(git, tmp_git_repo, "add app")
        (tmp_git_repo / "app.py").unlink()
        second = _commit(git, tmp_git_repo, "drop app")

        backend = GitBackend(tmp_git_repo)
        result = commit_diffs(backend, first)
        by_path = {r.new_path: r for r in result}
        assert by_path["README.md"].status == FileStatus.MODIFIED
        assert by_path["README.md"].body.startswith("@@")
        assert by_path["app.py"].status == FileStatus.ADDED

        [deleted] = commit_diffs(backend, second)
        assert deleted.status == FileStatus.DELETED
        assert deleted.new_mode == ""
        assert "-x = 1" in deleted.body

    def test_rename_and_mode_change(self, tmp_git_repo: Path, git):
        script = tmp_git_repo / "run.sh"
        script.write_text("#!/bin/sh\necho hi\n")
        _commit(git, tmp_git_repo, "add script")

        script.chmod(0o755)
        git(tmp_git_repo, "mv", "README.md", "GUIDE.md")
        head = _commit(git, tmp_git_repo, "rename and chmod")

        result = commit_diffs(GitBackend(tmp_git_repo), head)
        by_status = {r.status: r for r in result}
        renamed = by_status[FileStatus.RENAMED]
        assert (renamed.old_path, renamed.new_path) == ("README.md", "GUIDE.md")
        assert renamed.body == ""
        mode = by_status[FileStatus.MODIFIED]
        assert (mode.old_mode, mode.new_mode) == ("100644", "100755")
        assert mode.body == ""

    def test_between_uses_merge_base(self, tmp_git_repo: Path, git):
        base = git(tmp_git_repo, "rev-parse", "HEAD")
        (tmp_git_repo / "feature.txt").write_text("feature\n")
        head = _commit(git, tmp_git_repo, "feature")

        result = diffs_between(GitBackend(tmp_git_repo), head, base)
        assert result.paths() == ["feature.txt"]

    def test_format_patch_envelope(self, tmp_git_repo: Path, git):
        (tmp_git_repo / "README.md").write_text("# Test\nchanged\n")
        head = _commit(git, tmp_git_repo, "change readme")

        bare = strip_patch_envelope(GitBackend(tmp_git_repo).format_patch(head))
        assert bare.startswith("diff --git a/README.md b/README.md")
        assert "+changed" in bare
        assert "Subject:" not in bare

    def test_unknown_commit_raises(self, tmp_git_repo: Path):
        with pytest.raises(GitError):
            GitBackend(tmp_git_repo).parent_ids("does-not-exist")

    def test_type_change_file_to_symlink(self, tmp_git_repo: Path, git):
        link = tmp_git_repo / "link"
        link.write_text("hello\n")
        _commit(git, tmp_git_repo, "add file")
        link.unlink()
        link.symlink_to("README.md")
        head = _commit(git, tmp_git_repo, "file to symlink")

        backend = GitBackend(tmp_git_repo)
        removed, created = commit_diffs(backend, head)
        assert removed.status == FileStatus.DELETED
        assert (removed.old_mode, removed.new_mode) == ("100644", "")
        assert "-hello" in removed.body
        assert created.status == FileStatus.ADDED
        assert (created.old_mode, created.new_mode) == ("", "120000")
        assert "+README.md" in created.body

        units = backend.tree_diff(*backend.parent_ids(head), head)
        assert [(u.additions, u.deletions) for u in units] == [(0, 1), (1, 0)]
        stats = commit_stats(backend, head)
        assert (stats.additions, stats.deletions) == (1, 1)

    def test_quoted_paths(self, tmp_git_repo: Path, git):
        git(tmp_git_repo, "config", "core.quotePath", "true")
        parent = git(tmp_git_repo, "rev-parse", "HEAD")
        (tmp_git_repo / "café x.txt").write_text("accent\n")
        (tmp_git_repo / 'say "hi".txt').write_text("quote\n")
        head = _commit(git, tmp_git_repo, "awkward names")

        backend = GitBackend(tmp_git_repo)
        patch = backend.patch_text(parent, head)
        assert '"a/caf\\303\\251 x.txt"' in patch

        expected = {"café x.txt", 'say "hi".txt'}
        assert set(normalize_patch(patch).paths()) == expected
        assert set(commit_diffs(backend, head).paths()) == expected

    def test_marker_inside_file_content_is_a_count_mismatch(self, tmp_git_repo: Path, git):
        (tmp_git_repo / "notes.md").write_text("diff --git a/x b/x\n")
        head = _commit(git, tmp_git_repo, "notes quoting a patch")

        backend = GitBackend(tmp_git_repo)
        with pytest.raises(CountMismatch) as excinfo:
            commit_diffs(backend, head)
        assert (excinfo.value.delta_count, excinfo.value.blob_count) == (1, 2)
        assert excinfo.value.commit_id == head

        stats = commit_stats(backend, head)
        assert (stats.additions, stats.deletions) == (1, 0)
