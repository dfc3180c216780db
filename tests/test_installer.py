"""Tests for planning, executing and rolling back installations."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from ai_agents_skills.core import installer as installer_module
from ai_agents_skills.core import placement
from ai_agents_skills.core.installer import Installer
from ai_agents_skills.core.models import ActionKind, InstallationTarget, InstallMode
from ai_agents_skills.core.parser import extract_version
from ai_agents_skills.core.placement import CopyStrategy, SymlinkStrategy
from ai_agents_skills.core.progress import ProgressEvent, ProgressStage
from ai_agents_skills.core.source import LocalSkillSource
from ai_agents_skills.errors import InstallError, NotFoundError, SkillsError


@pytest.fixture
def events() -> list[ProgressEvent]:
    return []


@pytest.fixture
def installer(repo_dir: Path, project_dir: Path, events) -> Installer:
    return Installer(LocalSkillSource(repo_dir), project_dir, on_progress=events.append)


def _snapshot(root: Path) -> dict[str, str]:
    """Relative path -> kind/link target/content, for comparing disk state."""
    state = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            path = Path(dirpath) / name
            rel = str(path.relative_to(root))
            if path.is_symlink():
                state[rel] = "link:" + os.readlink(path)
            elif path.is_file():
                state[rel] = "file:" + path.read_text()
            else:
                state[rel] = "dir"
    return state


class TestSetupModel:
    def test_creates_skills_directory(self, installer, project_dir: Path):
        target = InstallationTarget(model_id="claude", name="Claude", directory=project_dir / ".claude")
        installer.setup_model(target)
        assert (project_dir / ".claude" / "skills").is_dir()

    def test_relative_directory_uses_base_dir(self, installer, tmp_path: Path):
        target = InstallationTarget(model_id="cursor", name="Cursor", directory=Path(".cursor"))
        installer.setup_model(target, base_dir=tmp_path / "elsewhere")
        assert (tmp_path / "elsewhere" / ".cursor" / "skills").is_dir()

    def test_dry_run_writes_nothing(self, installer, project_dir: Path, events):
        target = InstallationTarget(model_id="claude", name="Claude", directory=project_dir / ".claude")
        installer.setup_model(target, dry_run=True)
        assert not (project_dir / ".claude").exists()
        assert events[-1].stage == ProgressStage.SETUP
        assert events[-1].dry_run


class TestRemoteInstall:
    def test_canonical_copy_and_symlink(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        target = project_dir / ".claude"

        stats = installer.install_with_rollback(["a"], target, InstallMode.REMOTE)

        canonical = project_dir / ".agents" / "skills" / "a"
        link = target / "skills" / "a"
        assert stats.installed == 1
        assert stats.skipped == 0
        assert (canonical / "SKILL.md").is_file()
        assert (canonical / "references" / "guide.md").is_file()
        assert link.is_symlink()
        assert link.resolve() == canonical.resolve()
        assert not os.path.isabs(os.readlink(link))

    def test_rerun_is_idempotent(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        target = project_dir / ".claude"
        installer.install_with_rollback(["a"], target, InstallMode.REMOTE)
        before = _snapshot(project_dir)

        stats = installer.install_with_rollback(["a"], target, InstallMode.REMOTE)

        assert stats.installed == 0
        assert stats.skipped == 1
        assert _snapshot(project_dir) == before

    def test_canonical_shared_between_targets(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        installer.install_with_rollback(["a"], project_dir / ".claude", InstallMode.REMOTE)
        (project_dir / ".agents" / "skills" / "a" / "marker").write_text("kept")

        stats = installer.install_with_rollback(["a"], project_dir / ".cursor", InstallMode.REMOTE)

        assert stats.installed == 1
        assert (project_dir / ".cursor" / "skills" / "a" / "marker").read_text() == "kept"

    def test_existing_copy_replaced_by_symlink(self, make_skill, write_skill, installer, project_dir: Path):
        make_skill("a")
        target = project_dir / ".claude"
        write_skill(target / "skills", "a", version="0.1")

        stats = installer.install_with_rollback(["a"], target, InstallMode.REMOTE)

        assert stats.installed == 1
        assert (target / "skills" / "a").is_symlink()
        assert not (target / "skills" / ".a.rollback").exists()


class TestLocalInstall:
    def test_full_copy_per_target(self, make_skill, installer, project_dir: Path):
        make_skill("a", ["b"])
        make_skill("b")
        target = project_dir / ".github"

        stats = installer.install_with_rollback(["b", "a"], target, InstallMode.LOCAL)

        assert stats.installed == 2
        for name in ("a", "b"):
            entry = target / "skills" / name
            assert entry.is_dir() and not entry.is_symlink()
            assert (entry / "references" / "guide.md").is_file()
        assert not (project_dir / ".agents").exists()

    def test_up_to_date_copy_skipped(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        target = project_dir / ".github"
        installer.install_with_rollback(["a"], target, InstallMode.LOCAL)

        stats = installer.install_with_rollback(["a"], target, InstallMode.LOCAL)
        assert (stats.installed, stats.skipped) == (0, 1)

    def test_outdated_copy_replaced(self, make_skill, write_skill, installer, project_dir: Path):
        make_skill("a", version="2.0")
        target = project_dir / ".github"
        write_skill(target / "skills", "a", version="1.0")

        stats = installer.install_with_rollback(["a"], target, InstallMode.LOCAL)

        assert stats.installed == 1
        assert extract_version(target / "skills" / "a" / "SKILL.md") == "2.0"

    def test_unversioned_skill_compared_by_content(self, make_skill, installer, project_dir: Path):
        make_skill("a", version=None)
        target = project_dir / ".github"
        installer.install_with_rollback(["a"], target, InstallMode.LOCAL)

        assert installer.install_with_rollback(["a"], target, InstallMode.LOCAL).skipped == 1

    def test_missing_skill_fails_before_writing(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        with pytest.raises(NotFoundError):
            installer.install_with_rollback(["a", "ghost"], project_dir / ".github", InstallMode.LOCAL)
        assert not (project_dir / ".github").exists()


class TestPlan:
    def test_plan_does_not_touch_disk(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        actions = installer.plan(["a"], project_dir / ".claude", InstallMode.REMOTE)

        assert len(actions) == 1
        action = actions[0]
        assert action.kind == ActionKind.SYMLINK
        assert action.copy_canonical
        assert not action.skip
        assert action.destination == project_dir / ".claude" / "skills" / "a"
        assert not (project_dir / ".claude").exists()
        assert not (project_dir / ".agents").exists()

    def test_copy_strategy_action(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        action = installer.plan(["a"], project_dir / ".claude", InstallMode.LOCAL)[0]
        assert action.kind == ActionKind.COPY
        assert action.canonical is None

    def test_symlink_placement_requires_canonical(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        action = installer.plan(["a"], project_dir / ".claude", InstallMode.LOCAL)[0]

        with pytest.raises(SkillsError, match="no canonical path"):
            SymlinkStrategy(project_dir / ".agents" / "skills").place(action)
        assert not (project_dir / ".claude").exists()


class TestDryRun:
    def test_same_stats_no_writes(self, make_skill, installer, project_dir: Path, events):
        make_skill("a")
        make_skill("b")
        before = _snapshot(project_dir)

        stats = installer.install_with_rollback(["a", "b"], project_dir / ".claude", InstallMode.REMOTE, dry_run=True)

        assert (stats.installed, stats.skipped) == (2, 0)
        assert _snapshot(project_dir) == before
        assert all(e.dry_run for e in events)
        assert [e.skill for e in events] == ["a", "b"]

    def test_dry_run_reports_skips(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        target = project_dir / ".claude"
        installer.install_with_rollback(["a"], target, InstallMode.REMOTE)

        stats = installer.install_with_rollback(["a"], target, InstallMode.REMOTE, dry_run=True)
        assert (stats.installed, stats.skipped) == (0, 1)


class TestRollback:
    @pytest.fixture
    def chain(self, make_skill):
        make_skill("a", ["b"])
        make_skill("b")
        make_skill("c", ["a"])
        return ["b", "a", "c"]

    def _fail_on(self, monkeypatch, skill: str):
        original = CopyStrategy.place

        def flaky(self, action):
            if action.skill == skill:
                raise OSError(28, "No space left on device")
            original(self, action)

        monkeypatch.setattr(CopyStrategy, "place", flaky)

    def test_newly_installed_skills_removed(self, chain, installer, project_dir: Path, monkeypatch, events):
        self._fail_on(monkeypatch, "c")
        target = project_dir / ".github"

        with pytest.raises(InstallError) as exc:
            installer.install_with_rollback(chain, target, InstallMode.LOCAL)

        assert exc.value.skill == "c"
        assert exc.value.rolled_back == ["a", "b"]
        assert isinstance(exc.value.cause, OSError)
        assert list((target / "skills").iterdir()) == []
        rollback_events = [e.skill for e in events if e.stage == ProgressStage.ROLLBACK]
        assert rollback_events == ["a", "b"]

    def test_preexisting_skills_untouched(self, chain, installer, project_dir: Path, monkeypatch):
        target = project_dir / ".github"
        installer.install_with_rollback(["b"], target, InstallMode.LOCAL)
        (target / "skills" / "b" / "local-note.md").write_text("mine")
        self._fail_on(monkeypatch, "c")

        with pytest.raises(InstallError) as exc:
            installer.install_with_rollback(chain, target, InstallMode.LOCAL)

        assert exc.value.rolled_back == ["a"]
        assert (target / "skills" / "b" / "local-note.md").read_text() == "mine"
        assert not (target / "skills" / "a").exists()

    def test_replaced_entry_restored(self, chain, write_skill, installer, project_dir: Path, monkeypatch):
        target = project_dir / ".github"
        write_skill(target / "skills", "a", ["b"], version="0.9")
        before = _snapshot(project_dir)
        self._fail_on(monkeypatch, "c")

        with pytest.raises(InstallError):
            installer.install_with_rollback(chain, target, InstallMode.LOCAL)

        assert _snapshot(project_dir) == before
        assert extract_version(target / "skills" / "a" / "SKILL.md") == "0.9"

    def test_failed_backup_keeps_existing_entry(self, make_skill, write_skill, installer, project_dir: Path, monkeypatch):
        make_skill("a", version="2.0")
        target = project_dir / ".claude"
        write_skill(target / "skills", "a", version="1.0")
        (target / "skills" / "a" / "mine.md").write_text("keep me")
        original = Path.rename

        def busy(self, dest):
            if Path(dest).name == ".a.rollback":
                raise OSError(16, "Device or resource busy")
            return original(self, dest)

        monkeypatch.setattr(Path, "rename", busy)

        with pytest.raises(InstallError) as exc:
            installer.install_with_rollback(["a"], target, InstallMode.LOCAL)

        assert exc.value.skill == "a"
        assert (target / "skills" / "a" / "mine.md").read_text() == "keep me"
        assert extract_version(target / "skills" / "a" / "SKILL.md") == "1.0"

    def test_undo_failure_still_rolls_back_journal(self, chain, installer, project_dir: Path, monkeypatch):
        def half_copy(self, action):
            if action.skill == "c":
                action.destination.mkdir()
                raise OSError(28, "No space left on device")
            original_place(self, action)

        def stuck_remove(path):
            if path.name == "c":
                raise PermissionError(13, "Permission denied")
            original_remove(path)

        original_place = CopyStrategy.place
        original_remove = installer_module.remove_path
        monkeypatch.setattr(CopyStrategy, "place", half_copy)
        monkeypatch.setattr(installer_module, "remove_path", stuck_remove)
        target = project_dir / ".github"

        with pytest.raises(InstallError) as exc:
            installer.install_with_rollback(chain, target, InstallMode.LOCAL)

        assert exc.value.skill == "c"
        assert exc.value.rolled_back == ["a", "b"]
        assert not (target / "skills" / "a").exists()
        assert not (target / "skills" / "b").exists()

    def test_partial_symlink_install_undone(self, make_skill, installer, project_dir: Path, monkeypatch):
        make_skill("a")
        make_skill("b")
        original = placement.relative_symlink

        def flaky(target, link):
            if link.name == "b":
                raise PermissionError(13, "Permission denied")
            original(target, link)

        monkeypatch.setattr(placement, "relative_symlink", flaky)

        with pytest.raises(InstallError) as exc:
            installer.install_with_rollback(["a", "b"], project_dir / ".claude", InstallMode.REMOTE)

        assert exc.value.rolled_back == ["a"]
        assert list((project_dir / ".agents" / "skills").iterdir()) == []
        assert list((project_dir / ".claude" / "skills").iterdir()) == []


class TestUninstall:
    def test_removes_link_keeps_canonical(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        target = project_dir / ".claude"
        installer.install_with_rollback(["a"], target, InstallMode.REMOTE)

        assert installer.uninstall_skill("a", target)
        assert not (target / "skills" / "a").exists()
        assert (project_dir / ".agents" / "skills" / "a" / "SKILL.md").is_file()

    def test_removes_copy(self, make_skill, installer, project_dir: Path):
        make_skill("a")
        target = project_dir / ".github"
        installer.install_with_rollback(["a"], target, InstallMode.LOCAL)

        assert installer.uninstall_skill("a", target)
        assert not (target / "skills" / "a").exists()

    def test_not_installed(self, installer, project_dir: Path):
        assert not installer.uninstall_skill("ghost", project_dir / ".claude")

    def test_dry_run(self, make_skill, installer, project_dir: Path, events):
        make_skill("a")
        target = project_dir / ".claude"
        installer.install_with_rollback(["a"], target, InstallMode.REMOTE)

        assert installer.uninstall_skill("a", target, dry_run=True)
        assert (target / "skills" / "a").is_symlink()
        assert events[-1].stage == ProgressStage.UNINSTALL
