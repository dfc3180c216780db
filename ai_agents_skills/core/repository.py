"""Fetch and cache skills repositories.

Sources accepted by ``RepositoryManager``:

  owner/repo                  GitHub shorthand, cloned over HTTPS
  https://... / git@...       any git URL
  ./path/to/checkout          an existing local directory, used in place

Remote sources are cloned once under ``{cache_dir}/{hash}`` and pulled on
every later fetch.
"""

from __future__ import annotations

import hashlib
import re
import subprocess
from datetime import datetime
from pathlib import Path

from ai_agents_skills.core.models import PresetInfo, RepositoryInfo
from ai_agents_skills.core.parser import SKILL_FILE, _as_name_list, parse_frontmatter
from ai_agents_skills.errors import RepositoryError, SkillsError
from ai_agents_skills.utils import get_logger, list_entries

logger = get_logger(__name__)

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "ai-agents-skills" / "repos"

SHORTHAND_RE = re.compile(r"^[\w.-]+/[\w.-]+$")
URL_PREFIXES = ("http://", "https://", "git@", "ssh://", "file://")


def run_git(args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess:
    """Run a git command, raising ``RepositoryError`` on failure."""
    cmd = ["git", *args]
    logger.debug("Running: %s", " ".join(cmd))
    try:
        return subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, check=True)
    except FileNotFoundError as e:
        raise RepositoryError("git executable not found on PATH") from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip()
        raise RepositoryError(f"git {args[0]} failed: {detail or e}") from e


class RepositoryManager:
    """Local cache of skills repositories."""

    def __init__(self, cache_dir: Path | str | None = None):
        self.cache_dir = Path(cache_dir or DEFAULT_CACHE_DIR).expanduser()

    @staticmethod
    def hash_source(url: str) -> str:
        return hashlib.md5(url.encode("utf-8")).hexdigest()[:12]

    @staticmethod
    def parse_source(source: str) -> tuple[str, str | None]:
        """Split a source string into (url, shorthand).

        Raises:
            RepositoryError: not a shorthand, URL or existing directory
        """
        source = source.strip()
        if source.startswith(URL_PREFIXES):
            return source, None

        local = Path(source).expanduser()
        if local.is_dir():
            return str(local.resolve()), None

        if SHORTHAND_RE.match(source):
            return f"https://github.com/{source}.git", source

        raise RepositoryError(f"Invalid repository source: {source}")

    def cache_path_for(self, url: str) -> Path:
        return self.cache_dir / self.hash_source(url)

    def fetch_repository(self, source: str) -> RepositoryInfo:
        """Make ``source`` available on disk, cloning or pulling as needed."""
        url, shorthand = self.parse_source(source)

        if Path(url).is_dir():
            logger.info("Using local repository: %s", url)
            return RepositoryInfo(url=url, cache_path=Path(url), last_updated=datetime.now())

        cache_path = self.cache_path_for(url)
        if (cache_path / ".git").is_dir():
            logger.info("Updating cached repository: %s", shorthand or url)
            run_git(["pull", "--ff-only"], cwd=cache_path)
        else:
            logger.info("Cloning repository: %s", shorthand or url)
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            run_git(["clone", "--depth", "1", url, str(cache_path)])

        return RepositoryInfo(
            url=url,
            shorthand=shorthand,
            cache_path=cache_path,
            last_updated=datetime.now(),
        )

    def list_presets(self, repo_path: Path) -> list[PresetInfo]:
        """Presets defined as ``presets/{id}/AGENTS.md`` with YAML frontmatter."""
        presets_dir = Path(repo_path) / "presets"
        presets = []

        for preset_id in list_entries(presets_dir):
            agents_md = presets_dir / preset_id / "AGENTS.md"
            if not agents_md.is_file():
                continue
            try:
                frontmatter, _ = parse_frontmatter(agents_md)
                skills = _as_name_list(frontmatter.get("skills"), agents_md, "skills")
            except SkillsError as e:
                logger.warning("Skipping preset %s: %s", preset_id, e)
                continue

            presets.append(PresetInfo(
                id=preset_id,
                name=str(frontmatter.get("name") or preset_id),
                description=str(frontmatter.get("description") or ""),
                path=presets_dir / preset_id,
                skills=skills,
            ))

        return presets

    def get_preset(self, repo_path: Path, preset_id: str) -> PresetInfo | None:
        for preset in self.list_presets(repo_path):
            if preset.id == preset_id:
                return preset
        return None

    def list_skills(self, repo_path: Path) -> list[str]:
        skills_dir = Path(repo_path) / "skills"
        return [
            name for name in list_entries(skills_dir)
            if (skills_dir / name / SKILL_FILE).is_file()
        ]
