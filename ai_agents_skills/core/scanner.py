"""Discover installed skills by scanning model directories."""

from __future__ import annotations

from pathlib import Path

from ai_agents_skills.core.models import InstalledSkill
from ai_agents_skills.core.parser import SKILL_FILE, extract_version
from ai_agents_skills.errors import SkillsError
from ai_agents_skills.utils import entry_exists, get_logger

logger = get_logger(__name__)


def _try_get_version(skill_path: Path) -> str | None:
    skill_md = skill_path / SKILL_FILE
    if not skill_md.is_file():
        return None
    try:
        return extract_version(skill_md)
    except SkillsError as e:
        logger.debug("No version for %s: %s", skill_path, e)
        return None


def scan_model_directory(model_dir: Path) -> list[InstalledSkill]:
    """Entries of ``{model_dir}/skills``, including dangling symlinks."""
    skills_dir = Path(model_dir) / "skills"
    if not skills_dir.is_dir():
        return []

    installed = []
    for entry in sorted(skills_dir.iterdir()):
        if entry.name.startswith(".") or not entry_exists(entry):
            continue
        installed.append(InstalledSkill(
            name=entry.name,
            path=entry,
            is_symlink=entry.is_symlink(),
            version=_try_get_version(entry),
        ))
    return installed


def scan_all_models(base_path: Path, model_dirs: list[str]) -> dict[str, list[InstalledSkill]]:
    """Installed skills per model directory; empty directories are left out."""
    results: dict[str, list[InstalledSkill]] = {}
    for model_dir in model_dirs:
        skills = scan_model_directory(Path(base_path) / model_dir)
        if skills:
            results[model_dir] = skills
    return results


def installed_skill_names(base_path: Path, model_dirs: list[str]) -> list[str]:
    """Unique skill names installed in any of the model directories."""
    names = {
        skill.name
        for skills in scan_all_models(base_path, model_dirs).values()
        for skill in skills
    }
    return sorted(names)
