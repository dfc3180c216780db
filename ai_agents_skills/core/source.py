"""Where skill definitions are read from.

A source is a directory with one subdirectory per skill, each holding a
SKILL.md. The variants differ only in which directory that is:

  LocalSkillSource      {base_dir}/skills         (a checkout of the skills repo)
  RemoteSkillSource     {cache_dir}/skills        (a fetched repository cache)
  InstalledSkillSource  {project}/.agents/skills  (the canonical store of a project)
"""

from __future__ import annotations

from pathlib import Path

from ai_agents_skills.core.models import Skill
from ai_agents_skills.core.parser import SKILL_FILE, parse_skill_file
from ai_agents_skills.errors import NotFoundError
from ai_agents_skills.utils import get_logger

logger = get_logger(__name__)


class SkillSource:
    """Skill discovery rooted at a single skills directory."""

    def __init__(self, skills_dir: Path, skill_file: str = SKILL_FILE):
        self.skills_dir = Path(skills_dir)
        self.skill_file = skill_file

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.skills_dir)!r})"

    def resolve_skill_path(self, name: str) -> Path:
        """Absolute path of the skill's directory. Existence is not checked."""
        return (self.skills_dir / name).absolute()

    def skill_file_path(self, name: str) -> Path:
        return self.resolve_skill_path(name) / self.skill_file

    def skill_exists(self, name: str) -> bool:
        """True iff ``{skills_dir}/{name}/SKILL.md`` is a file."""
        if not name or name.startswith(".") or "/" in name or "\\" in name:
            return False
        return self.skill_file_path(name).is_file()

    def list_skill_names(self) -> list[str]:
        """Names of every skill directory holding a definition file."""
        if not self.skills_dir.is_dir():
            logger.debug("Skills directory does not exist: %s", self.skills_dir)
            return []

        return sorted(
            child.name
            for child in self.skills_dir.iterdir()
            if not child.name.startswith(".") and (child / self.skill_file).is_file()
        )

    def read_skill_metadata(self, name: str) -> Skill:
        """Parse a skill's definition file.

        Raises:
            NotFoundError: no such skill in this source
            ParseError: the definition exists but is malformed
        """
        if not self.skill_exists(name):
            raise NotFoundError(name, self.resolve_skill_path(name))
        return parse_skill_file(self.skill_file_path(name))


class LocalSkillSource(SkillSource):
    """Skills in the ``skills/`` folder of a local checkout."""

    def __init__(self, base_dir: Path, skills_dir: str = "skills", skill_file: str = SKILL_FILE):
        self.base_dir = Path(base_dir)
        super().__init__(self.base_dir / skills_dir, skill_file)


class RemoteSkillSource(SkillSource):
    """Skills in a repository previously fetched into the local cache."""

    def __init__(self, cache_dir: Path, skills_dir: str = "skills", skill_file: str = SKILL_FILE):
        self.cache_dir = Path(cache_dir)
        super().__init__(self.cache_dir / skills_dir, skill_file)


class InstalledSkillSource(SkillSource):
    """Skills already materialised in a project's canonical store."""

    def __init__(
        self,
        project_root: Path,
        canonical_dir: str = ".agents/skills",
        skill_file: str = SKILL_FILE,
    ):
        self.project_root = Path(project_root)
        super().__init__(self.project_root / canonical_dir, skill_file)
