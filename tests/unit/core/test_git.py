# tests/unit/core/test_git.py - v1
"""Tests for core/git.py - GitRepo against a throwaway repository."""

from __future__ import annotations

import pytest
from conftest import git

from releaseflow.core.errors import GitError
from releaseflow.core.git import GitRepo


class TestQueries:
    def test_is_repository(self, git_repo, tmp_path):
        assert GitRepo(git_repo).is_repository()
        outside = tmp_path / "plain"
        outside.mkdir()
        assert not GitRepo(outside).is_repository()

    def test_dirty_paths_keep_full_names(self, git_repo):
        (git_repo / "README.md").write_text("changed\n", encoding="utf-8")
        (git_repo / "new.txt").write_text("x", encoding="utf-8")
        repo = GitRepo(git_repo)
        assert sorted(repo.dirty_paths()) == ["README.md", "new.txt"]
        assert not repo.is_clean()

    def test_clean_tree(self, git_repo):
        assert GitRepo(git_repo).is_clean()

    def test_dirty_paths_outside_repo_raises(self, tmp_path):
        with pytest.raises(GitError):
            GitRepo(tmp_path).dirty_paths()

    def test_tags(self, git_repo):
        repo = GitRepo(git_repo)
        assert repo.last_tag() is None
        assert not repo.tag_exists("v1.0.0")
        git(git_repo, "tag", "v1.0.0")
        assert repo.tag_exists("v1.0.0")
        assert repo.last_tag() == "v1.0.0"
        assert repo.tag_commit("v1.0.0") == repo.head_commit()
        assert repo.tags_at_head() == ["v1.0.0"]

    def test_last_commit_subject(self, git_repo):
        assert GitRepo(git_repo).last_commit_subject() == "initial"

    def test_no_upstream_counts_as_ahead(self, git_repo):
        assert GitRepo(git_repo).is_ahead_of_upstream()


class TestMutations:
    def test_commit_all(self, git_repo):
        (git_repo / "a.txt").write_text("a", encoding="utf-8")
        repo = GitRepo(git_repo)
        out = repo.commit_all("add a")
        assert out.success
        assert repo.last_commit_subject() == "add a"
        assert repo.is_clean()

    def test_create_tag_twice_fails(self, git_repo):
        repo = GitRepo(git_repo)
        assert repo.create_tag("v1", "first").success
        assert not repo.create_tag("v1", "again").success

    def test_check_raises_git_error(self, git_repo):
        with pytest.raises(GitError, match="rev-parse"):
            GitRepo(git_repo).check("rev-parse", "no-such-ref")
