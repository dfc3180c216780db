"""Tests for the repository cache and presets."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from ai_agents_skills.core import repository
from ai_agents_skills.core.repository import RepositoryManager
from ai_agents_skills.errors import RepositoryError


@pytest.fixture
def manager(tmp_path: Path) -> RepositoryManager:
    return RepositoryManager(tmp_path / "cache")


@pytest.fixture
def presets_repo(tmp_path: Path, write_skill) -> Path:
    repo = tmp_path / "skills-repo"
    write_skill(repo / "skills", "react")
    write_skill(repo / "skills", "typescript")
    (repo / "skills" / "draft").mkdir()

    frontend = repo / "presets" / "frontend"
    frontend.mkdir(parents=True)
    (frontend / "AGENTS.md").write_text(
        "---\n"
        "name: Frontend Starter\n"
        "description: React + TypeScript\n"
        "skills:\n"
        "  - react\n"
        "  - typescript\n"
        "---\n\n"
        "# Agents\n"
    )
    broken = repo / "presets" / "broken"
    broken.mkdir()
    (broken / "AGENTS.md").write_text("no frontmatter\n")
    (repo / "presets" / "empty").mkdir()
    return repo


class TestParseSource:
    def test_shorthand(self):
        url, shorthand = RepositoryManager.parse_source("joabgonzalez/ai-agents-skills")
        assert url == "https://github.com/joabgonzalez/ai-agents-skills.git"
        assert shorthand == "joabgonzalez/ai-agents-skills"

    @pytest.mark.parametrize("source", [
        "https://gitlab.com/team/skills.git",
        "git@github.com:team/skills.git",
    ])
    def test_urls(self, source: str):
        assert RepositoryManager.parse_source(source) == (source, None)

    def test_local_path(self, tmp_path: Path):
        url, shorthand = RepositoryManager.parse_source(str(tmp_path))
        assert url == str(tmp_path.resolve())
        assert shorthand is None

    def test_invalid(self):
        with pytest.raises(RepositoryError, match="Invalid repository source"):
            RepositoryManager.parse_source("not a source")

    def test_hash_is_stable(self):
        first = RepositoryManager.hash_source("https://example.com/a.git")
        assert first == RepositoryManager.hash_source("https://example.com/a.git")
        assert len(first) == 12
        assert first != RepositoryManager.hash_source("https://example.com/b.git")


class TestFetchRepository:
    def test_local_path_used_in_place(self, manager, presets_repo: Path):
        info = manager.fetch_repository(str(presets_repo))
        assert info.cache_path == presets_repo.resolve()

    def test_clone_then_pull(self, manager, monkeypatch):
        calls = []

        def fake_run(cmd, cwd=None, **kwargs):
            calls.append((cmd, cwd))
            if cmd[1] == "clone":
                (Path(cmd[-1]) / ".git").mkdir(parents=True)
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(repository.subprocess, "run", fake_run)

        first = manager.fetch_repository("team/skills")
        second = manager.fetch_repository("team/skills")

        assert first.cache_path == second.cache_path
        assert first.shorthand == "team/skills"
        assert calls[0][0][:2] == ["git", "clone"]
        assert calls[0][0][-2] == "https://github.com/team/skills.git"
        assert calls[1][0][:2] == ["git", "pull"]
        assert calls[1][1] == first.cache_path
        assert first.cache_path == manager.cache_path_for(first.url)

    def test_git_failure(self, manager, monkeypatch):
        def failing(cmd, **kwargs):
            raise subprocess.CalledProcessError(128, cmd, stderr="fatal: repository not found")

        monkeypatch.setattr(repository.subprocess, "run", failing)

        with pytest.raises(RepositoryError, match="repository not found"):
            manager.fetch_repository("team/missing")

    def test_git_not_installed(self, manager, monkeypatch):
        def missing(cmd, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr(repository.subprocess, "run", missing)

        with pytest.raises(RepositoryError, match="git executable"):
            manager.fetch_repository("team/skills")


class TestPresets:
    def test_list_presets(self, manager, presets_repo: Path):
        presets = manager.list_presets(presets_repo)

        assert [p.id for p in presets] == ["frontend"]
        assert presets[0].name == "Frontend Starter"
        assert presets[0].description == "React + TypeScript"
        assert presets[0].skills == ["react", "typescript"]
        assert presets[0].path == presets_repo / "presets" / "frontend"

    def test_get_preset(self, manager, presets_repo: Path):
        assert manager.get_preset(presets_repo, "frontend").name == "Frontend Starter"
        assert manager.get_preset(presets_repo, "backend") is None

    def test_no_presets_directory(self, manager, tmp_path: Path):
        assert manager.list_presets(tmp_path) == []

    def test_list_skills(self, manager, presets_repo: Path):
        assert manager.list_skills(presets_repo) == ["react", "typescript"]
