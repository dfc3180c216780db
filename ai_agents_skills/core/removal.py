"""Dependency-aware removal of installed skills.

A skill can only leave the project when no remaining installed skill needs
it. The check runs against the canonical store before anything is deleted.
"""

from __future__ import annotations

from pathlib import Path

from ai_agents_skills.core.installer import Installer
from ai_agents_skills.core.models import BlockedRemoval, InstallationTarget, RemovalPlan
from ai_agents_skills.core.resolver import DependencyResolver, _dedupe
from ai_agents_skills.errors import SkillsError
from ai_agents_skills.utils import entry_exists, get_logger, remove_path

logger = get_logger(__name__)


def plan_removal(
    requested: list[str],
    installed: list[str],
    resolver: DependencyResolver,
) -> RemovalPlan:
    """Work out what removing ``requested`` would do.

    Args:
        requested: Skills the user asked to remove (all must be installed)
        installed: Every skill currently in the canonical store
        resolver: Resolver over the installed skills

    Returns:
        A plan whose ``blocked`` list names each requested skill still needed
        by a remaining skill. When nothing is blocked, ``remove`` also holds
        installed dependencies no remaining skill needs and ``kept`` the
        ones that stay.
    """
    requested = _dedupe(requested)
    remaining = [s for s in installed if s not in requested]
    closures = {name: resolver.closure(name) for name in remaining}

    blocked = []
    for skill in requested:
        used_by = [name for name in remaining if skill in closures[name]]
        if used_by:
            blocked.append(BlockedRemoval(skill=skill, used_by=used_by))

    if blocked:
        return RemovalPlan(requested=requested, blocked=blocked)

    candidates = [
        dep for dep in resolver.build_graph(requested)
        if dep not in requested and dep in installed
    ]
    still_needed: set[str] = set()
    for name in remaining:
        if name not in candidates:
            still_needed |= closures[name]

    # A kept dependency keeps its own dependencies too
    kept: list[str] = []
    changed = True
    while changed:
        changed = False
        for dep in candidates:
            if dep in still_needed and dep not in kept:
                kept.append(dep)
                still_needed |= closures[dep]
                changed = True

    remove = list(requested) + [dep for dep in candidates if dep not in kept]
    kept.sort(key=candidates.index)
    return RemovalPlan(requested=requested, remove=remove, kept=kept)


def remove_skills(
    plan: RemovalPlan,
    targets: list[InstallationTarget],
    canonical_dir: Path,
    installer: Installer,
    dry_run: bool = False,
) -> int:
    """Delete planned skills from every target and from the canonical store.

    Returns:
        Number of skills removed (or that would be, in a dry run)
    """
    if not plan.allowed:
        blocked = ", ".join(b.skill for b in plan.blocked)
        raise SkillsError(f"Removal blocked by dependencies: {blocked}")

    for skill in plan.remove:
        for target in targets:
            installer.uninstall_skill(skill, target.directory, dry_run)

        canonical = Path(canonical_dir) / skill
        if entry_exists(canonical) and not dry_run:
            remove_path(canonical)
            logger.debug("Removed canonical copy: %s", canonical)

    return len(plan.remove)
