"""Configuration management for ai-agents-skills.

Settings come from ``.ai-agents-skills.yaml`` in the working directory (or the
file given with ``--config``), then ``AI_AGENTS_SKILLS_*`` environment
variables, then the defaults below. String values in the YAML may reference
the environment as ``${VAR}`` or ``${VAR:-default}``.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ai_agents_skills.core.resolver import META_SKILLS
from ai_agents_skills.errors import SkillsError

DEFAULT_CONFIG_FILE = ".ai-agents-skills.yaml"

ENV_VAR_RE = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def _substitute_env_vars(value: Any) -> Any:
    """Expand ``${VAR}`` / ``${VAR:-default}`` in every string of a YAML tree."""
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    if not isinstance(value, str):
        return value
    return ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), value)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "WARNING"
    format: str = "text"  # "text" or "json"


class SkillsConfig(BaseModel):
    """Where skills live and how they are laid out."""
    skills_dir: str = "skills"
    skill_file: str = "SKILL.md"
    canonical_dir: str = ".agents/skills"
    meta_skills: list[str] = Field(default_factory=lambda: list(META_SKILLS))
    manifest_file: str = "AGENTS.md"


class RepositoryConfig(BaseModel):
    """Remote skills repository configuration."""
    default_source: str = "joabgonzalez/ai-agents-skills"
    cache_dir: str = "~/.cache/ai-agents-skills/repos"


class ModelsConfig(BaseModel):
    """Models targeted when none are given or detected."""
    default: list[str] = Field(default_factory=lambda: ["claude"])


class Config(BaseSettings):
    """Main ai-agents-skills configuration."""
    model_config = SettingsConfigDict(env_prefix="AI_AGENTS_SKILLS_", env_nested_delimiter="__")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    skills: SkillsConfig = Field(default_factory=SkillsConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)


def load_config(config_path: str | Path = DEFAULT_CONFIG_FILE) -> Config:
    """Load ``config_path``; a missing or empty file gives the defaults.

    Raises:
        SkillsError: the file is not valid YAML or holds invalid settings
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        return Config()

    try:
        raw_config = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SkillsError(f"Invalid YAML in {config_path}: {e}") from e

    if not raw_config:
        return Config()
    if not isinstance(raw_config, dict):
        raise SkillsError(f"{config_path} must contain a mapping")

    try:
        return Config(**_substitute_env_vars(raw_config))
    except ValidationError as e:
        raise SkillsError(f"Invalid configuration in {config_path}:\n{e}") from e


def generate_default_config(path: str | Path = DEFAULT_CONFIG_FILE) -> None:
    """Generate a default configuration file.

    Args:
        path: Path to write the configuration file.
    """
    default_config = """\
# ai-agents-skills configuration
# Environment variables can be substituted with ${VAR_NAME} syntax

logging:
  level: "${AI_AGENTS_SKILLS_LOG_LEVEL:-WARNING}"
  format: "text"  # or "json"

skills:
  skills_dir: "skills"
  skill_file: "SKILL.md"
  canonical_dir: ".agents/skills"
  manifest_file: "AGENTS.md"
  # Installed alongside every request unless --no-meta is given
  meta_skills:
    - conventions
    - a11y
    - architecture-patterns
    - english-writing
    - critical-partner

repository:
  default_source: "joabgonzalez/ai-agents-skills"
  cache_dir: "~/.cache/ai-agents-skills/repos"

models:
  # Used when no model directory is detected and --models is not given
  default:
    - claude
"""

    path = Path(path)
    path.write_text(default_config)
