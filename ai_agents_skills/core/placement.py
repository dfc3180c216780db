"""How a skill lands in a model directory: full copy or symlink.

A strategy is picked once per installation call. ``plan`` only looks at the
filesystem; ``place`` performs the writes for an action it planned.
"""

from __future__ import annotations

import filecmp
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from ai_agents_skills.core.models import ActionKind, InstallAction, InstallMode
from ai_agents_skills.core.parser import SKILL_FILE, extract_version
from ai_agents_skills.errors import SkillsError
from ai_agents_skills.utils import entry_exists, is_link_to, relative_symlink


class PlacementStrategy(ABC):
    """Base class for placing skill directories into ``{model}/skills/``."""

    mode: InstallMode

    @abstractmethod
    def plan(self, name: str, source: Path, skills_dir: Path) -> InstallAction:
        """Decide what installing ``name`` into ``skills_dir`` requires.

        Args:
            name: Skill name
            source: Skill directory in the source
            skills_dir: The model's ``skills/`` directory

        Returns:
            The planned action; ``skip`` is set when nothing needs doing
        """

    @abstractmethod
    def place(self, action: InstallAction) -> None:
        """Write the planned entry. The destination must not exist."""


class CopyStrategy(PlacementStrategy):
    """Local mode: a full copy of the skill in every model directory."""

    mode = InstallMode.LOCAL

    def __init__(self, skill_file: str = SKILL_FILE):
        self.skill_file = skill_file

    def plan(self, name: str, source: Path, skills_dir: Path) -> InstallAction:
        destination = skills_dir / name
        action = InstallAction(
            skill=name,
            kind=ActionKind.COPY,
            source=source,
            destination=destination,
        )

        if entry_exists(destination):
            if not destination.is_symlink() and self._up_to_date(source, destination):
                action.skip = True
                action.reason = "already up to date"
            else:
                action.replace = True
                action.reason = "replacing outdated copy"
        return action

    def _up_to_date(self, source: Path, destination: Path) -> bool:
        src_file = source / self.skill_file
        dst_file = destination / self.skill_file
        if not dst_file.is_file():
            return False
        try:
            return extract_version(src_file) == extract_version(dst_file)
        except SkillsError:
            # Unversioned skill: fall back to comparing the definition itself
            return src_file.is_file() and filecmp.cmp(src_file, dst_file, shallow=False)

    def place(self, action: InstallAction) -> None:
        shutil.copytree(action.source, action.destination, symlinks=True)


class SymlinkStrategy(PlacementStrategy):
    """Remote mode: one canonical copy, symlinked from every model directory."""

    mode = InstallMode.REMOTE

    def __init__(self, canonical_dir: Path):
        self.canonical_dir = canonical_dir

    def plan(self, name: str, source: Path, skills_dir: Path) -> InstallAction:
        canonical = self.canonical_dir / name
        destination = skills_dir / name
        action = InstallAction(
            skill=name,
            kind=ActionKind.SYMLINK,
            source=source,
            destination=destination,
            canonical=canonical,
            copy_canonical=not entry_exists(canonical),
        )

        if not action.copy_canonical and is_link_to(destination, canonical):
            action.skip = True
            action.reason = "already linked"
        elif entry_exists(destination):
            action.replace = True
            action.reason = "replacing existing entry with a symlink"
        return action

    def place(self, action: InstallAction) -> None:
        if action.canonical is None:
            raise SkillsError(f"Symlink action for {action.skill} has no canonical path")
        if action.copy_canonical:
            action.canonical.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(action.source, action.canonical, symlinks=True)
        relative_symlink(action.canonical, action.destination)


def strategy_for(mode: InstallMode, canonical_dir: Path, skill_file: str = SKILL_FILE) -> PlacementStrategy:
    """Pick the strategy for an install mode."""
    if mode == InstallMode.LOCAL:
        return CopyStrategy(skill_file)
    return SymlinkStrategy(canonical_dir)
