"""Skill resolution and installation engine."""

from ai_agents_skills.core.detector import ModelDetector, ProjectDetector
from ai_agents_skills.core.installer import Installer
from ai_agents_skills.core.models import (
    DependencyGraph,
    GraphNode,
    GraphValidation,
    InstallationTarget,
    InstallMode,
    InstallStats,
    Skill,
)
from ai_agents_skills.core.repository import RepositoryManager
from ai_agents_skills.core.resolver import DependencyResolver
from ai_agents_skills.core.source import (
    InstalledSkillSource,
    LocalSkillSource,
    RemoteSkillSource,
    SkillSource,
)

__all__ = [
    "DependencyGraph",
    "DependencyResolver",
    "GraphNode",
    "GraphValidation",
    "InstallationTarget",
    "InstallMode",
    "InstallStats",
    "Installer",
    "InstalledSkillSource",
    "LocalSkillSource",
    "ModelDetector",
    "ProjectDetector",
    "RemoteSkillSource",
    "RepositoryManager",
    "Skill",
    "SkillSource",
]
