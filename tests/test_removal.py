"""Tests for dependency-aware removal."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from ai_agents_skills.core.detector import ModelDetector
from ai_agents_skills.core.installer import Installer
from ai_agents_skills.core.models import InstallMode
from ai_agents_skills.core.removal import plan_removal, remove_skills
from ai_agents_skills.core.resolver import DependencyResolver
from ai_agents_skills.core.source import InstalledSkillSource, LocalSkillSource
from ai_agents_skills.errors import SkillsError


@pytest.fixture
def installed_project(make_skill, repo_dir: Path, project_dir: Path):
    """Project with a <- c, b standalone, shared <- (x, y) installed for Claude."""
    make_skill("a")
    make_skill("c", ["a"])
    make_skill("b")
    make_skill("shared")
    make_skill("x", ["shared"])
    make_skill("y", ["shared"])

    installer = Installer(LocalSkillSource(repo_dir), project_dir)
    target = ModelDetector().get_target(project_dir, "claude")
    installer.setup_model(target)
    installer.install_with_rollback(
        ["a", "c", "b", "shared", "x", "y"], target.directory, InstallMode.REMOTE
    )
    return project_dir


@pytest.fixture
def resolver(installed_project: Path) -> DependencyResolver:
    return DependencyResolver(InstalledSkillSource(installed_project))


def _installed(project: Path) -> list[str]:
    return sorted(os.listdir(project / ".agents" / "skills"))


class TestPlanRemoval:
    def test_blocked_by_dependent(self, installed_project: Path, resolver):
        installed = _installed(installed_project)
        plan = plan_removal(["a"], installed, resolver)

        assert not plan.allowed
        assert len(plan.blocked) == 1
        assert plan.blocked[0].skill == "a"
        assert plan.blocked[0].used_by == ["c"]
        assert plan.remove == []

    def test_removing_dependent_together_is_allowed(self, installed_project: Path, resolver):
        plan = plan_removal(["a", "c"], _installed(installed_project), resolver)
        assert plan.allowed
        assert plan.remove == ["a", "c"]

    def test_unused_dependency_removed_along(self, installed_project: Path, resolver):
        plan = plan_removal(["c"], _installed(installed_project), resolver)
        assert plan.allowed
        assert plan.remove == ["c", "a"]
        assert plan.kept == []

    def test_shared_dependency_kept(self, installed_project: Path, resolver):
        plan = plan_removal(["x"], _installed(installed_project), resolver)
        assert plan.remove == ["x"]
        assert plan.kept == ["shared"]

    def test_duplicates_collapsed(self, installed_project: Path, resolver):
        plan = plan_removal(["b", "b"], _installed(installed_project), resolver)
        assert plan.requested == ["b"]
        assert plan.remove == ["b"]


class TestRemoveSkills:
    def test_blocked_removal_changes_nothing(self, installed_project: Path, resolver):
        before = sorted(str(p) for p in installed_project.rglob("*"))
        plan = plan_removal(["a"], _installed(installed_project), resolver)
        installer = Installer(resolver.source, installed_project)
        target = ModelDetector().get_target(installed_project, "claude")

        with pytest.raises(SkillsError, match="blocked"):
            remove_skills(plan, [target], installer.canonical_path, installer)

        assert sorted(str(p) for p in installed_project.rglob("*")) == before

    def test_removes_links_and_canonical(self, installed_project: Path, resolver):
        plan = plan_removal(["c"], _installed(installed_project), resolver)
        installer = Installer(resolver.source, installed_project)
        target = ModelDetector().get_target(installed_project, "claude")

        removed = remove_skills(plan, [target], installer.canonical_path, installer)

        assert removed == 2
        for name in ("a", "c"):
            assert not (installed_project / ".claude" / "skills" / name).exists()
            assert not (installed_project / ".agents" / "skills" / name).exists()
        assert (installed_project / ".claude" / "skills" / "b").is_symlink()
        assert (installed_project / ".agents" / "skills" / "b").is_dir()

    def test_dry_run(self, installed_project: Path, resolver):
        plan = plan_removal(["b"], _installed(installed_project), resolver)
        installer = Installer(resolver.source, installed_project)
        target = ModelDetector().get_target(installed_project, "claude")

        assert remove_skills(plan, [target], installer.canonical_path, installer, dry_run=True) == 1
        assert (installed_project / ".claude" / "skills" / "b").is_symlink()
        assert (installed_project / ".agents" / "skills" / "b").is_dir()
