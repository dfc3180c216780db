"""Skill installation into model directories with rollback support.

Installation is split into two phases:

  plan     ordered ``InstallAction`` list, existence checks only
  execute  the only code that writes; every applied action is journaled so
           a filesystem error can undo exactly what this call did

Directory layout
----------------
  {project}/
    .agents/skills/{name}/        canonical copy (remote mode)
    .claude/skills/{name}         symlink to the canonical copy, or a full
                                  copy in local mode
"""

from __future__ import annotations

import errno
from dataclasses import dataclass
from pathlib import Path

from ai_agents_skills.core.models import (
    InstallAction,
    InstallationTarget,
    InstallMode,
    InstallStats,
)
from ai_agents_skills.core.parser import SKILL_FILE
from ai_agents_skills.core.placement import PlacementStrategy, strategy_for
from ai_agents_skills.core.progress import (
    ProgressCallback,
    ProgressEvent,
    ProgressStage,
    null_progress,
)
from ai_agents_skills.core.source import SkillSource
from ai_agents_skills.errors import InstallError, NotFoundError
from ai_agents_skills.utils import entry_exists, get_logger, remove_path

logger = get_logger(__name__)

CANONICAL_DIR = ".agents/skills"


@dataclass
class _Applied:
    """Journal entry for an action executed during the current call."""

    action: InstallAction
    backup: Path | None = None
    # set once the destination is free for this call to write
    placing: bool = False


class Installer:
    """Materialise ordered skills into model directories.

    Example::

        installer = Installer(RemoteSkillSource(cache), project_root)
        stats = installer.install_with_rollback(order, project_root / ".claude", InstallMode.REMOTE)
    """

    def __init__(
        self,
        source: SkillSource,
        project_root: Path,
        canonical_dir: str = CANONICAL_DIR,
        on_progress: ProgressCallback | None = None,
    ):
        self.source = source
        self.project_root = Path(project_root)
        self.canonical_path = self.project_root / canonical_dir
        self.on_progress = on_progress or null_progress

    def _emit(self, stage: ProgressStage, message: str, **kwargs) -> None:
        self.on_progress(ProgressEvent(stage=stage, message=message, **kwargs))

    def strategy_for(self, mode: InstallMode) -> PlacementStrategy:
        return strategy_for(mode, self.canonical_path, getattr(self.source, "skill_file", SKILL_FILE))

    # ── model directories ────────────────────────────────────────────────────

    def setup_model(self, target: InstallationTarget, base_dir: Path | None = None, dry_run: bool = False) -> None:
        """Ensure ``{model}/`` and ``{model}/skills/`` exist."""
        model_dir = target.directory
        if not model_dir.is_absolute():
            model_dir = Path(base_dir or self.project_root) / model_dir

        if dry_run:
            self._emit(
                ProgressStage.SETUP,
                f"Would set up model directory: {model_dir}",
                dry_run=True,
            )
            return

        (model_dir / "skills").mkdir(parents=True, exist_ok=True)
        logger.debug("Model directory ready: %s (%s)", model_dir, target.model_id)
        self._emit(ProgressStage.SETUP, f"Set up model directory: {model_dir}")

    # ── install ──────────────────────────────────────────────────────────────

    def plan(self, ordered_names: list[str], target_dir: Path, mode: InstallMode) -> list[InstallAction]:
        """Actions needed to install ``ordered_names`` into ``target_dir``.

        Raises:
            NotFoundError: a skill is not present in the source
        """
        strategy = self.strategy_for(mode)
        skills_dir = Path(target_dir) / "skills"
        actions = []

        for name in ordered_names:
            if not self.source.skill_exists(name):
                raise NotFoundError(name, self.source.resolve_skill_path(name))
            actions.append(strategy.plan(name, self.source.resolve_skill_path(name), skills_dir))

        return actions

    def execute(self, actions: list[InstallAction], mode: InstallMode) -> InstallStats:
        """Apply planned actions in order.

        On an ``OSError`` the failing action's partial work and every action
        applied earlier in this call are undone, newest first, then
        ``InstallError`` is raised. Skipped actions are never touched.
        """
        strategy = self.strategy_for(mode)
        stats = InstallStats()
        journal: list[_Applied] = []
        total = len(actions)

        for i, action in enumerate(actions, 1):
            if action.skip:
                stats.skipped += 1
                self._emit(
                    ProgressStage.SKIP,
                    f"Skipped {action.skill} ({action.reason})",
                    skill=action.skill, current=i, total=total,
                )
                continue

            self._emit(
                ProgressStage.INSTALL,
                f"Installing {action.skill}",
                skill=action.skill, current=i, total=total,
            )
            applied = _Applied(action)
            try:
                self._apply(applied, strategy)
            except OSError as e:
                logger.error("Failed to install %s: %s", action.skill, e)
                try:
                    self._undo(applied)
                except OSError as undo_error:
                    logger.error("Could not undo partial install of %s: %s", action.skill, undo_error)
                rolled_back = self._rollback(journal)
                raise InstallError(action.skill, e, rolled_back) from e

            journal.append(applied)
            stats.installed += 1

        self._commit(journal)
        return stats

    def install_with_rollback(
        self,
        ordered_names: list[str],
        target_dir: Path,
        mode: InstallMode,
        dry_run: bool = False,
    ) -> InstallStats:
        """Install skills in order into one model directory, all or nothing.

        Re-running with the same input after a successful run reports every
        skill as skipped and changes nothing. A dry run plans only and
        returns the counts a real run would produce.
        """
        actions = self.plan(ordered_names, target_dir, mode)

        if not dry_run:
            stats = self.execute(actions, mode)
        else:
            stats = InstallStats()
            for i, action in enumerate(actions, 1):
                if action.skip:
                    stats.skipped += 1
                    message = f"Would skip {action.skill} ({action.reason})"
                else:
                    stats.installed += 1
                    message = f"Would {action.kind.value} {action.skill} to {action.destination}"
                self._emit(
                    ProgressStage.SKIP if action.skip else ProgressStage.INSTALL,
                    message,
                    skill=action.skill, current=i, total=len(actions), dry_run=True,
                )

        logger.info(
            "Installed %d, skipped %d skill(s) in %s",
            stats.installed, stats.skipped, target_dir,
            extra={"mode": mode.value, "dry_run": dry_run},
        )
        return stats

    def _apply(self, applied: _Applied, strategy: PlacementStrategy) -> None:
        action = applied.action
        action.destination.parent.mkdir(parents=True, exist_ok=True)

        if action.replace and entry_exists(action.destination):
            backup = action.destination.with_name(f".{action.destination.name}.rollback")
            if entry_exists(backup):
                remove_path(backup)
            action.destination.rename(backup)
            applied.backup = backup

        if entry_exists(action.destination):
            raise FileExistsError(errno.EEXIST, "Destination already exists", str(action.destination))

        applied.placing = True
        strategy.place(action)

    def _undo(self, applied: _Applied) -> None:
        action = applied.action
        if applied.placing:
            if entry_exists(action.destination):
                remove_path(action.destination)
            if action.copy_canonical and action.canonical is not None and entry_exists(action.canonical):
                remove_path(action.canonical)
        if applied.backup is not None:
            applied.backup.rename(action.destination)

    def _rollback(self, journal: list[_Applied]) -> list[str]:
        """Undo journaled actions newest first; returns the skills undone."""
        logger.warning("Rolling back %d installed skill(s)", len(journal))
        rolled_back = []

        for applied in reversed(journal):
            skill = applied.action.skill
            try:
                self._undo(applied)
            except OSError as e:
                logger.error("Rollback failed for %s: %s", skill, e)
                continue
            rolled_back.append(skill)
            self._emit(ProgressStage.ROLLBACK, f"Rolled back {skill}", skill=skill)

        return rolled_back

    def _commit(self, journal: list[_Applied]) -> None:
        for applied in journal:
            if applied.backup is None:
                continue
            try:
                remove_path(applied.backup)
            except OSError as e:
                logger.warning("Could not remove backup %s: %s", applied.backup, e)

    # ── uninstall ────────────────────────────────────────────────────────────

    def uninstall_skill(self, name: str, target_dir: Path, dry_run: bool = False) -> bool:
        """Remove ``{target_dir}/skills/{name}`` (symlink or copy).

        The canonical store is left alone; callers decide whether the skill
        can go from there too.

        Returns:
            True if an entry was (or would be) removed
        """
        path = Path(target_dir) / "skills" / name

        if not entry_exists(path):
            logger.warning("Skill not installed: %s in %s", name, target_dir)
            return False

        if dry_run:
            self._emit(ProgressStage.UNINSTALL, f"Would uninstall {name} from {path}", skill=name, dry_run=True)
            return True

        remove_path(path)
        self._emit(ProgressStage.UNINSTALL, f"Uninstalled {name}", skill=name)
        return True
