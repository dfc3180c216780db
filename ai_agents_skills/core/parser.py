"""SKILL.md frontmatter parsing and validation."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from ai_agents_skills.core.models import Skill, ValidationResult
from ai_agents_skills.errors import (
    MissingFieldError,
    MissingFrontmatterError,
    NotFoundError,
    ParseError,
    SkillsError,
)
from ai_agents_skills.utils import get_logger

logger = get_logger(__name__)

SKILL_FILE = "SKILL.md"

# Regex for YAML frontmatter extraction; the body after the block is optional
FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n---[ \t]*(?:\n(.*))?$", re.DOTALL)

# lowercase, digits, hyphens
NAME_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

VERSION_RE = re.compile(r"^[0-9]+\.[0-9]+(\.[0-9]+)?$")

# Fields that used to live at the top level and now belong under "metadata"
LEGACY_FIELDS = {
    "version": "version",
    "skills": "skills",
    "dependencies": "dependencies",
    "allowed-tools": "allowed_tools",
}

MAX_DESCRIPTION_LENGTH = 150


def parse_frontmatter(skill_md_path: Path) -> tuple[dict[str, Any], str]:
    """Parse SKILL.md into (frontmatter_dict, body_markdown).

    Raises:
        MissingFrontmatterError: no ``---`` delimited block at the top
        ParseError: the block is not valid YAML or not a mapping
    """
    content = skill_md_path.read_text(encoding="utf-8-sig").replace("\r\n", "\n")
    match = FRONTMATTER_RE.match(content)
    if not match:
        raise MissingFrontmatterError(skill_md_path)

    try:
        frontmatter = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise ParseError(skill_md_path, f"Invalid YAML frontmatter: {e}") from e

    if frontmatter is None:
        raise MissingFrontmatterError(skill_md_path)
    if not isinstance(frontmatter, dict):
        raise ParseError(skill_md_path, "Frontmatter must be a mapping")

    body = (match.group(2) or "").strip()
    return frontmatter, body


def normalize_frontmatter(frontmatter: dict[str, Any], path: Path) -> dict[str, Any]:
    """Move legacy top-level fields under ``metadata``.

    Returns a new dict; the input is not modified.
    """
    normalized = dict(frontmatter)
    metadata = dict(frontmatter.get("metadata") or {})

    for legacy, key in LEGACY_FIELDS.items():
        if legacy in frontmatter and key not in metadata:
            logger.warning(
                "Legacy format in %s: top-level '%s' migrated to metadata.%s",
                path, legacy, key,
            )
            metadata[key] = frontmatter[legacy]

    normalized["metadata"] = metadata
    return normalized


def _as_name_list(value: Any, path: Path, field: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ParseError(path, f"'{field}' must be a list")
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def parse_skill_file(skill_md_path: Path) -> Skill:
    """Read a SKILL.md and build a ``Skill`` from its frontmatter.

    Raises:
        NotFoundError: the file does not exist
        MissingFrontmatterError: no frontmatter block
        MissingFieldError: ``name`` is absent
        ParseError: any other malformed metadata
    """
    if not skill_md_path.is_file():
        raise NotFoundError(skill_md_path.parent.name, skill_md_path)

    raw, _ = parse_frontmatter(skill_md_path)
    fm = normalize_frontmatter(raw, skill_md_path)

    name = fm.get("name")
    if not name:
        raise MissingFieldError(skill_md_path, "name")

    metadata = fm["metadata"]
    if not isinstance(metadata, dict):
        raise ParseError(skill_md_path, "'metadata' must be a mapping")

    version = metadata.get("version")
    package_deps = metadata.get("dependencies") or {}
    if not isinstance(package_deps, dict):
        raise ParseError(skill_md_path, "'metadata.dependencies' must be a mapping")

    license_value = fm.get("license")
    return Skill(
        name=str(name),
        description=str(fm.get("description") or ""),
        version=str(version) if version is not None else None,
        license=str(license_value) if license_value is not None else None,
        dependencies=_as_name_list(metadata.get("skills"), skill_md_path, "metadata.skills"),
        package_dependencies={str(k): str(v) for k, v in package_deps.items()},
        allowed_tools=_as_name_list(metadata.get("allowed_tools"), skill_md_path, "metadata.allowed_tools"),
        path=skill_md_path.parent,
    )


def extract_version(skill_md_path: Path) -> str:
    """Version declared in ``metadata.version``."""
    skill = parse_skill_file(skill_md_path)
    if skill.version is None:
        raise MissingFieldError(skill_md_path, "metadata.version")
    return skill.version


def extract_dependencies(skill_md_path: Path) -> list[str]:
    """Skill names listed in ``metadata.skills``."""
    return parse_skill_file(skill_md_path).dependencies


def extract_package_dependencies(skill_md_path: Path) -> dict[str, str]:
    """External package constraints from ``metadata.dependencies``."""
    return parse_skill_file(skill_md_path).package_dependencies


def validate_frontmatter(fm: dict[str, Any], dir_name: str | None = None) -> ValidationResult:
    """Check raw frontmatter for required fields and conventions.

    Dependency names are only checked for format here; whether they exist
    is decided by the dependency resolver.
    """
    errors: list[str] = []
    warnings: list[str] = []

    name = fm.get("name")
    if not name or not isinstance(name, str):
        errors.append("Missing or invalid 'name' field")
    elif not NAME_RE.match(name):
        errors.append("Name must be lowercase with hyphens only (e.g. 'my-skill-name')")
    elif dir_name and name != dir_name:
        warnings.append(f"name '{name}' doesn't match directory '{dir_name}'")

    description = fm.get("description")
    if not description or not isinstance(description, str):
        errors.append("Missing or invalid 'description' field")
    else:
        if "Trigger:" not in description:
            warnings.append("Description should include a 'Trigger:' clause")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            warnings.append(
                f"Description is {len(description)} characters "
                f"(recommended: <{MAX_DESCRIPTION_LENGTH})"
            )

    if not fm.get("license"):
        warnings.append("Missing 'license' field (recommended)")

    deprecated = [field for field in LEGACY_FIELDS if field in fm]
    if deprecated:
        warnings.append(
            f"Deprecated top-level fields: {', '.join(deprecated)}. "
            "These should be under 'metadata'"
        )

    metadata = fm.get("metadata") or {}
    if not isinstance(metadata, dict):
        errors.append("'metadata' must be a mapping")
        metadata = {}

    version = metadata.get("version", fm.get("version"))
    if version is None:
        errors.append("Missing 'metadata.version' field")
    elif not VERSION_RE.match(str(version)):
        errors.append(f"Invalid version format: '{version}'. Use '1.0' or '1.0.0'")

    skills = metadata.get("skills", fm.get("skills")) or []
    if not isinstance(skills, list):
        errors.append("'metadata.skills' must be a list")
    else:
        for dep in skills:
            if not isinstance(dep, str) or not NAME_RE.match(dep):
                errors.append(
                    f"Invalid skill name in dependencies: '{dep}'. Use lowercase-with-hyphens"
                )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def validate_skill_file(skill_md_path: Path) -> ValidationResult:
    """Non-raising validation of one SKILL.md, for batch use."""
    if not skill_md_path.is_file():
        return ValidationResult(valid=False, errors=[f"Skill file not found: {skill_md_path}"])

    try:
        fm, _ = parse_frontmatter(skill_md_path)
    except SkillsError as e:
        return ValidationResult(valid=False, errors=[str(e)])

    return validate_frontmatter(fm, skill_md_path.parent.name)
