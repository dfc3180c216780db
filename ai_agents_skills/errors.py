"""Exception hierarchy for ai-agents-skills.

Graph problems (cycles, missing dependencies) are normally reported through
``GraphValidation`` rather than raised; the exceptions here cover the cases
where a caller cannot continue.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ai_agents_skills.core.models import DependencyCycle, GraphValidation


class SkillsError(Exception):
    """Base class for all errors raised by ai-agents-skills."""


class NotFoundError(SkillsError):
    """A requested skill (or its definition file) does not exist."""

    def __init__(self, name: str, path: Path | None = None):
        self.name = name
        self.path = path
        where = f" at {path}" if path else ""
        super().__init__(f"Skill not found: {name}{where}")


class ParseError(SkillsError):
    """A skill definition exists but its metadata cannot be read."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class MissingFrontmatterError(ParseError):
    """The definition file has no YAML frontmatter block."""

    def __init__(self, path: Path):
        super().__init__(path, "No frontmatter found")


class MissingFieldError(ParseError):
    """A required frontmatter field is absent."""

    def __init__(self, path: Path, field: str):
        self.field = field
        super().__init__(path, f"Missing required field: {field}")


class CycleError(SkillsError):
    """Raised when an installation order is requested for a cyclic graph."""

    def __init__(self, cycles: list["DependencyCycle"]):
        self.cycles = cycles
        lines = "\n".join(c.formatted for c in cycles)
        super().__init__(f"Circular dependencies detected:\n{lines}")


class DependencyGraphError(SkillsError):
    """The dependency graph failed validation; nothing was installed."""

    def __init__(self, validation: "GraphValidation"):
        self.validation = validation
        super().__init__("Dependency validation failed")


class UnknownModelError(SkillsError):
    """A model id that is not in the supported model table."""

    def __init__(self, model_id: str, supported: list[str]):
        self.model_id = model_id
        super().__init__(f"Unknown model: {model_id}. Supported: {', '.join(supported)}")


class InstallError(SkillsError):
    """A filesystem error interrupted an installation.

    By the time this is raised the work done by the failing call has already
    been rolled back.
    """

    def __init__(self, skill: str, cause: OSError, rolled_back: list[str]):
        self.skill = skill
        self.cause = cause
        self.rolled_back = rolled_back
        super().__init__(f"Failed to install {skill}: {cause}")


class RepositoryError(SkillsError):
    """A skills repository could not be fetched or updated."""
