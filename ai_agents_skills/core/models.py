"""Data models for skills, dependency graphs and installations."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class Skill(BaseModel):
    """Metadata of one skill, parsed from the frontmatter of its SKILL.md.

    Dependencies come from ``metadata.skills``; ``metadata.dependencies``
    holds external package constraints and never enters the skill graph.
    """
    name: str
    description: str = ""
    version: str | None = None
    license: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    package_dependencies: dict[str, str] = Field(default_factory=dict)
    allowed_tools: list[str] = Field(default_factory=list)
    path: Path | None = None


class ValidationResult(BaseModel):
    """Outcome of validating a single skill file."""
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DependencyOrigin(str, Enum):
    """Why a skill ended up in the dependency graph."""
    REQUESTED = "requested"
    META = "meta-skill"
    DEPENDENCY = "dependency"


class GraphNode(BaseModel):
    """A skill in the dependency graph with its direct dependencies."""
    name: str
    version: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    origin: DependencyOrigin = DependencyOrigin.REQUESTED
    depth: int = 0
    order: int = 0


class DependencyGraph(dict[str, GraphNode]):
    """Mapping of skill name to node, kept in discovery order.

    ``roots`` are the names the graph was built from. ``broken`` maps names
    whose definition exists but could not be parsed to the parse error.
    """

    def __init__(self, roots: list[str] | None = None):
        super().__init__()
        self.roots: list[str] = list(roots or [])
        self.broken: dict[str, str] = {}

    def add(self, node: GraphNode) -> GraphNode:
        node.order = len(self)
        self[node.name] = node
        return node


class DependencyCycle(BaseModel):
    """A dependency loop, e.g. ``a -> b -> a``."""
    path: list[str]
    formatted: str

    @classmethod
    def from_path(cls, path: list[str]) -> "DependencyCycle":
        return cls(path=path, formatted=" -> ".join(path))


class GraphValidation(BaseModel):
    """Diagnosis of a built dependency graph."""
    valid: bool
    cycles: list[DependencyCycle] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    # missing dependency -> skills that declared it
    missing_by: dict[str, list[str]] = Field(default_factory=dict)
    broken: dict[str, str] = Field(default_factory=dict)


class InstallMode(str, Enum):
    """How skills are placed into a model directory."""
    LOCAL = "local"    # full copy per model directory
    REMOTE = "remote"  # copy into the canonical store, symlink per model directory


class InstallationTarget(BaseModel):
    """One AI tool's directory receiving installed skills."""
    model_id: str
    name: str
    directory: Path
    installed: bool = False

    @property
    def skills_dir(self) -> Path:
        return self.directory / "skills"


class ActionKind(str, Enum):
    COPY = "copy"
    SYMLINK = "symlink"


class InstallAction(BaseModel):
    """A single planned placement of a skill into a model directory."""
    skill: str
    kind: ActionKind
    source: Path
    destination: Path
    canonical: Path | None = None
    copy_canonical: bool = False
    replace: bool = False
    skip: bool = False
    reason: str = ""


class InstallStats(BaseModel):
    """Counts returned by an installation call."""
    installed: int = 0
    skipped: int = 0


class BlockedRemoval(BaseModel):
    """A skill that cannot be removed because remaining skills need it."""
    skill: str
    used_by: list[str]


class RemovalPlan(BaseModel):
    """What a remove request would do, computed before touching disk."""
    requested: list[str]
    remove: list[str] = Field(default_factory=list)
    kept: list[str] = Field(default_factory=list)
    blocked: list[BlockedRemoval] = Field(default_factory=list)

    @property
    def allowed(self) -> bool:
        return not self.blocked


class InstalledSkill(BaseModel):
    """A skill entry found in a model's skills directory."""
    name: str
    path: Path
    is_symlink: bool = False
    version: str | None = None


class ProjectInfo(BaseModel):
    """Where the project root is and how it was recognised."""
    root_path: Path
    type: str = "manual"  # "git" | "node" | "python" | "manual"
    has_package_json: bool = False
    has_pyproject: bool = False
    has_git: bool = False


class RepositoryInfo(BaseModel):
    """A skills repository available on local disk."""
    url: str
    shorthand: str | None = None
    cache_path: Path
    last_updated: datetime


class PresetInfo(BaseModel):
    """A bundle of skills shipped with an AGENTS.md template."""
    id: str
    name: str
    description: str = ""
    path: Path
    skills: list[str] = Field(default_factory=list)
