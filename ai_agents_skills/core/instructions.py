"""Per-model instruction files listing the installed skills."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from pydantic import BaseModel, Field

from ai_agents_skills.core.parser import SKILL_FILE, parse_skill_file
from ai_agents_skills.errors import SkillsError
from ai_agents_skills.utils import get_logger

logger = get_logger(__name__)

INSTRUCTION_FILES = {
    "claude": "instructions.md",
    "github-copilot": "copilot-instructions.md",
    "cursor": "instructions.md",
    "gemini": "instructions.md",
    "codex": "instructions.md",
}

HEADERS = {
    "claude": "Claude Code Skills",
    "github-copilot": "GitHub Copilot Instructions",
    "cursor": "Cursor Instructions",
}


class SkillSummary(BaseModel):
    name: str
    description: str = ""
    dependencies: list[str] = Field(default_factory=list)


def read_installed_skills(model_dir: Path, skills_dir: Path | None = None) -> list[SkillSummary]:
    """Summaries of the skills under ``{model_dir}/skills``.

    Entries without a readable SKILL.md are skipped with a warning.
    """
    skills_dir = Path(skills_dir or Path(model_dir) / "skills")
    if not skills_dir.is_dir():
        return []

    summaries = []
    for entry in sorted(skills_dir.iterdir()):
        if entry.name.startswith(".") or not entry.is_dir():
            continue
        skill_md = entry / SKILL_FILE
        if not skill_md.is_file():
            continue
        try:
            skill = parse_skill_file(skill_md)
        except SkillsError as e:
            logger.warning("Could not read frontmatter for %s: %s", entry.name, e)
            continue
        summaries.append(SkillSummary(
            name=skill.name,
            description=skill.description,
            dependencies=skill.dependencies,
        ))
    return summaries


def generate_instruction_content(model_id: str, skills: list[SkillSummary], today: date | None = None) -> str:
    """Markdown body of a model's instruction file."""
    is_claude = model_id == "claude"
    header = HEADERS.get(model_id, f"{model_id.capitalize()} Instructions")
    lines = [f"# {header}", "", f"## Installed Skills ({len(skills)})", ""]

    if is_claude:
        lines.append(
            "Skills are automatically loaded from `./skills/`. "
            "Read the relevant skill before working on related tasks."
        )
    else:
        lines.append("Before making changes, read the relevant skill documentation from `./skills/`:")
    lines.append("")

    for skill in skills:
        lines += [f"### {skill.name}", ""]
        if skill.description:
            lines += [skill.description, ""]
        if skill.dependencies:
            lines += [f"**Dependencies:** {', '.join(skill.dependencies)}", ""]
        lines += [f"**Location:** `./skills/{skill.name}/SKILL.md`", ""]

    lines += ["---", "", "## How to Use Skills", ""]
    if is_claude:
        lines += [
            "Claude Code automatically reads skills from this directory. When working on a task, "
            "the relevant skills will be loaded based on the file type and context.",
            "",
        ]
    else:
        lines += [
            "When working on a specific technology or pattern:",
            "",
            "1. Identify the relevant skill(s) from the list above",
            "2. Read the SKILL.md file for guidance and patterns",
            "3. Follow the conventions defined in the skill",
            "",
        ]

    lines += [
        "## Managing Skills",
        "",
        "```bash",
        "# Add a new skill",
        f"ai-agents-skills add --skill <name> --models {model_id}",
        "",
        "# Remove a skill",
        f"ai-agents-skills remove <name> --models {model_id}",
        "",
        "# List installed skills",
        "ai-agents-skills list",
        "```",
        "",
        "---",
        "",
        f"*Last updated: {(today or date.today()).isoformat()}*",
    ]
    return "\n".join(lines) + "\n"


def regenerate_instruction_file(
    model_dir: Path,
    model_id: str,
    dry_run: bool = False,
    skills_dir: Path | None = None,
) -> Path | None:
    """Rewrite the instruction file for one model directory.

    Returns:
        Path of the (would-be) written file, or None when the model has no
        instruction file or no skills are installed
    """
    filename = INSTRUCTION_FILES.get(model_id)
    if filename is None:
        logger.warning("No instruction file mapping for model: %s", model_id)
        return None

    skills = read_installed_skills(model_dir, skills_dir)
    if not skills:
        logger.warning("No skills found in %s", model_dir)
        return None

    path = Path(model_dir) / filename
    if not dry_run:
        path.write_text(generate_instruction_content(model_id, skills), encoding="utf-8")
        logger.debug("Wrote %s (%d skills)", path, len(skills))
    return path
