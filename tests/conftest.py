"""Shared fixtures: skill trees and project directories on tmp_path."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import pytest


def _write_skill(
    skills_dir: Path,
    name: str,
    deps: list[str] | None = None,
    version: str | None = "1.0",
    description: str | None = None,
    license: str | None = "MIT",
) -> Path:
    """Create ``{skills_dir}/{name}/SKILL.md`` and return the skill directory."""
    skill = skills_dir / name
    skill.mkdir(parents=True, exist_ok=True)

    lines = ["---", f"name: {name}"]
    text = description or f"Guide for {name}. Trigger: working with {name}."
    lines.append(f'description: "{text}"')
    if license:
        lines.append(f"license: {license}")
    lines.append("metadata:")
    if version is not None:
        lines.append(f"  version: '{version}'")
    if deps:
        lines.append("  skills:")
        lines.extend(f"    - {dep}" for dep in deps)
    else:
        lines.append("  author: test")
    lines += ["---", "", f"# {name}", "", "Instructions.", ""]

    (skill / "SKILL.md").write_text("\n".join(lines))
    (skill / "references").mkdir(exist_ok=True)
    (skill / "references" / "guide.md").write_text(f"# {name} guide\n")
    return skill


@pytest.fixture
def make_skill(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing skills into ``tmp_path/repo/skills``."""
    skills_dir = tmp_path / "repo" / "skills"

    def _make(name: str, deps: list[str] | None = None, **kwargs) -> Path:
        return _write_skill(skills_dir, name, deps, **kwargs)

    return _make


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    """A skills checkout: ``skills/`` plus an AGENTS.md manifest."""
    repo = tmp_path / "repo"
    (repo / "skills").mkdir(parents=True, exist_ok=True)
    return repo


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty project recognised by its ``.git`` marker."""
    project = tmp_path / "project"
    (project / ".git").mkdir(parents=True)
    return project


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI installs a handler bound to the runner's stderr; drop it afterwards."""
    yield
    logging.getLogger().handlers.clear()


@pytest.fixture
def write_skill() -> Callable[..., Path]:
    """Write a skill into an arbitrary skills directory (e.g. a model's)."""
    return _write_skill
