"""Project root and AI model directory detection."""

from __future__ import annotations

from pathlib import Path

from ai_agents_skills.core.installer import CANONICAL_DIR
from ai_agents_skills.core.models import InstallationTarget, ProjectInfo
from ai_agents_skills.errors import UnknownModelError
from ai_agents_skills.utils import list_entries

# model id -> (display name, directory relative to the project root)
SUPPORTED_MODELS: dict[str, tuple[str, str]] = {
    "claude": ("Claude", ".claude"),
    "github-copilot": ("GitHub Copilot", ".github"),
    "cursor": ("Cursor", ".cursor"),
    "gemini": ("Gemini", ".gemini"),
    "codex": ("OpenAI Codex", ".codex"),
}

MODEL_ALIASES = {
    "copilot": "github-copilot",
}


def normalize_model_id(model_id: str) -> str:
    """Lowercase and resolve aliases (``copilot`` → ``github-copilot``).

    Raises:
        UnknownModelError: not a supported model
    """
    normalized = model_id.strip().lower()
    normalized = MODEL_ALIASES.get(normalized, normalized)
    if normalized not in SUPPORTED_MODELS:
        raise UnknownModelError(model_id, list(SUPPORTED_MODELS))
    return normalized


def parse_model_list(value: str) -> list[str]:
    """Comma-separated model ids, normalised and deduplicated."""
    ids = [normalize_model_id(v) for v in value.split(",") if v.strip()]
    return list(dict.fromkeys(ids))


class ModelDetector:
    """Map model ids to their directories inside a project."""

    def get_model_directory(self, project_path: Path, model_id: str) -> Path:
        _, directory = SUPPORTED_MODELS[normalize_model_id(model_id)]
        return Path(project_path) / directory

    def get_target(self, project_path: Path, model_id: str) -> InstallationTarget:
        model_id = normalize_model_id(model_id)
        name, _ = SUPPORTED_MODELS[model_id]
        directory = self.get_model_directory(project_path, model_id)
        return InstallationTarget(
            model_id=model_id,
            name=name,
            directory=directory,
            installed=(directory / "skills").is_dir(),
        )

    def get_all_targets(self, project_path: Path) -> list[InstallationTarget]:
        return [self.get_target(project_path, model_id) for model_id in SUPPORTED_MODELS]

    def detect_installed_models(self, project_path: Path) -> list[str]:
        """Models whose directory already has a ``skills/`` subdirectory.

        A bare ``.github`` folder (CI workflows) does not count as Copilot.
        """
        return [t.model_id for t in self.get_all_targets(project_path) if t.installed]


class ProjectDetector:
    """Locate the project root and its canonical skill store."""

    MARKERS = (".git", "package.json", "pyproject.toml")

    def __init__(self, canonical_dir: str = CANONICAL_DIR):
        self.canonical_dir = canonical_dir

    def detect_project(self, start_dir: Path | None = None) -> ProjectInfo:
        """Walk up from ``start_dir`` to the first directory with a marker.

        Falls back to ``start_dir`` itself when no marker is found.
        """
        start = Path(start_dir or Path.cwd()).resolve()

        for current in (start, *start.parents):
            has_git = (current / ".git").exists()
            has_package_json = (current / "package.json").is_file()
            has_pyproject = (current / "pyproject.toml").is_file()

            if has_git or has_package_json or has_pyproject:
                if has_package_json:
                    project_type = "node"
                elif has_pyproject:
                    project_type = "python"
                else:
                    project_type = "git"
                return ProjectInfo(
                    root_path=current,
                    type=project_type,
                    has_package_json=has_package_json,
                    has_pyproject=has_pyproject,
                    has_git=has_git,
                )

        return ProjectInfo(root_path=start)

    def get_skills_dir(self, project_path: Path) -> Path:
        return Path(project_path) / self.canonical_dir

    def get_installed_skills(self, project_path: Path) -> list[str]:
        """Skill names present in the canonical store, sorted."""
        return list_entries(self.get_skills_dir(project_path))
