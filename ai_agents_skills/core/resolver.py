"""Dependency graph construction, validation and ordering."""

from __future__ import annotations

import heapq
import re
from collections import defaultdict
from pathlib import Path
from typing import Iterable

from rich.console import Console

from ai_agents_skills.core.models import (
    DependencyCycle,
    DependencyGraph,
    DependencyOrigin,
    GraphNode,
    GraphValidation,
)
from ai_agents_skills.core.source import SkillSource
from ai_agents_skills.errors import CycleError, DependencyGraphError, ParseError
from ai_agents_skills.utils import get_logger

logger = get_logger(__name__)

# Framework self-maintenance skills installed alongside every request
META_SKILLS = [
    "conventions",
    "a11y",
    "architecture-patterns",
    "english-writing",
    "critical-partner",
]

AVAILABLE_SKILLS_RE = re.compile(r"## Available Skills.*?(?=##|\Z)", re.DOTALL)
SKILL_LINK_RE = re.compile(r"\[([a-z0-9-]+)\]\(skills/[^)]+\)")


def _dedupe(names: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(n for n in names if n))


def _parse_version(version: str) -> tuple[int, int, int]:
    parts = []
    for piece in version.strip().split(".")[:3]:
        digits = re.match(r"\d+", piece)
        parts.append(int(digits.group()) if digits else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def version_satisfies(current: str, required: str) -> bool:
    """Check a skill version against a constraint.

    Supports ``^1.2`` (same major, at least 1.2), ``~1.2`` (same major and
    minor), ``>=``, ``>``, ``<=``, ``<``, ``*``/``latest`` and exact match.
    """
    required = required.strip()
    if required in ("*", "latest", ""):
        return True

    cur = _parse_version(current)

    for op in (">=", "<=", ">", "<"):
        if required.startswith(op):
            req = _parse_version(required[len(op):])
            return {
                ">=": cur >= req,
                "<=": cur <= req,
                ">": cur > req,
                "<": cur < req,
            }[op]

    if required.startswith("^"):
        req = _parse_version(required[1:])
        return cur[0] == req[0] and cur >= req

    if required.startswith("~"):
        req = _parse_version(required[1:])
        return cur[:2] == req[:2] and cur[2] >= req[2]

    return current.strip() == required


class DependencyResolver:
    """Expand requested skills into their dependency closure and order it.

    Building, validating and ordering are separate steps so callers can
    inspect a broken graph before deciding what to do::

        resolver = DependencyResolver(LocalSkillSource(repo))
        graph = resolver.build_graph(["react"])
        validation = resolver.validate_graph(graph)
        if validation.valid:
            order = resolver.get_installation_order(graph)
    """

    def __init__(self, source: SkillSource, meta_skills: list[str] | None = None):
        self.source = source
        self.meta_skills = list(META_SKILLS if meta_skills is None else meta_skills)

    @staticmethod
    def get_meta_skills() -> list[str]:
        """The default always-installed skills."""
        return list(META_SKILLS)

    @staticmethod
    def parse_agents_md(path: Path) -> list[str]:
        """Extract skill names linked from the "Available Skills" section.

        Lines such as ``| [react](skills/react/SKILL.md) | ... |`` yield
        ``react``. A missing file or section yields an empty list.
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to read %s: %s", path, e)
            return []

        section = AVAILABLE_SKILLS_RE.search(content)
        if not section:
            logger.warning("No 'Available Skills' section found in %s", path)
            return []

        return _dedupe(m.group(1) for m in SKILL_LINK_RE.finditer(section.group(0)))

    def expand_roots(self, names: Iterable[str], include_meta: bool = True) -> list[str]:
        """Deduplicate requested names and append the meta-skills.

        Meta-skills missing from the source are skipped with a warning;
        requested names are kept as-is so missing ones get reported.
        """
        roots = _dedupe(names)
        if not include_meta:
            return roots

        for meta in self.meta_skills:
            if meta in roots:
                continue
            if self.source.skill_exists(meta):
                roots.append(meta)
            else:
                logger.warning("Meta-skill '%s' not found in %s, skipping", meta, self.source)
        return roots

    def build_graph(self, root_names: Iterable[str]) -> DependencyGraph:
        """Depth-first expansion of the roots into their full closure.

        Unknown names are left out of the graph, so they show up as missing
        in ``validate_graph``; definitions that fail to parse are recorded in
        ``graph.broken``. The graph is returned even when it has problems.
        """
        roots = _dedupe(root_names)
        graph = DependencyGraph(roots)

        for name in roots:
            origin = DependencyOrigin.META if name in self.meta_skills else DependencyOrigin.REQUESTED
            self._visit(name, graph, origin, depth=0)

        logger.debug("Built dependency graph with %d skills from %d roots", len(graph), len(roots))
        return graph

    def _visit(self, name: str, graph: DependencyGraph, origin: DependencyOrigin, depth: int) -> None:
        # A node is inserted before its dependencies are expanded, so a name
        # still being expanded further up the path is never entered twice.
        if name in graph or name in graph.broken:
            return

        if not self.source.skill_exists(name):
            logger.debug("Skill '%s' not found in %s", name, self.source)
            return

        try:
            skill = self.source.read_skill_metadata(name)
        except ParseError as e:
            logger.error("Failed to process skill '%s': %s", name, e)
            graph.broken[name] = str(e)
            return

        node = graph.add(GraphNode(
            name=name,
            version=skill.version,
            dependencies=_dedupe(skill.dependencies),
            origin=origin,
            depth=depth,
        ))

        for dep in node.dependencies:
            self._visit(dep, graph, DependencyOrigin.DEPENDENCY, depth + 1)

    def detect_cycles(self, graph: DependencyGraph) -> list[DependencyCycle]:
        """Every dependency loop reachable by DFS, without stopping at the first."""
        visiting: set[str] = set()
        done: set[str] = set()
        cycles: dict[str, DependencyCycle] = {}

        def visit(name: str, path: list[str]) -> None:
            visiting.add(name)
            path.append(name)

            for dep in graph[name].dependencies:
                if dep not in graph:
                    continue
                if dep in visiting:
                    cycle = DependencyCycle.from_path(path[path.index(dep):] + [dep])
                    cycles.setdefault(cycle.formatted, cycle)
                elif dep not in done:
                    visit(dep, path)

            path.pop()
            visiting.discard(name)
            done.add(name)

        for name in graph:
            if name not in done:
                visit(name, [])

        return list(cycles.values())

    def validate_graph(self, graph: DependencyGraph) -> GraphValidation:
        """Report cycles, missing dependencies and unparseable skills."""
        missing_by: dict[str, list[str]] = {}

        for root in graph.roots:
            if root not in graph and root not in graph.broken:
                missing_by.setdefault(root, [])

        for node in graph.values():
            for dep in node.dependencies:
                if dep not in graph and dep not in graph.broken:
                    missing_by.setdefault(dep, []).append(node.name)

        cycles = self.detect_cycles(graph)

        return GraphValidation(
            valid=not cycles and not missing_by and not graph.broken,
            cycles=cycles,
            missing=list(missing_by),
            missing_by=missing_by,
            broken=dict(graph.broken),
        )

    def get_installation_order(self, graph: DependencyGraph) -> list[str]:
        """Topological order, dependencies first.

        Among skills whose dependencies are all placed, the one discovered
        first during ``build_graph`` goes next, so the same input always
        yields the same order. Dependencies outside the graph are ignored.

        Raises:
            CycleError: the graph contains a cycle
        """
        position = {name: i for i, name in enumerate(graph)}
        pending: dict[str, set[str]] = {}
        dependents: dict[str, list[str]] = defaultdict(list)

        for name, node in graph.items():
            pending[name] = {dep for dep in node.dependencies if dep in graph}
            for dep in pending[name]:
                dependents[dep].append(name)

        ready = [(position[name], name) for name, deps in pending.items() if not deps]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            _, name = heapq.heappop(ready)
            order.append(name)
            for dependent in dependents[name]:
                pending[dependent].discard(name)
                if not pending[dependent]:
                    heapq.heappush(ready, (position[dependent], dependent))

        if len(order) != len(graph):
            raise CycleError(self.detect_cycles(graph))

        return order

    def resolve(self, names: Iterable[str], include_meta: bool = True) -> tuple[DependencyGraph, list[str]]:
        """Build, validate and order in one go.

        Raises:
            DependencyGraphError: the graph has cycles, missing or broken skills
        """
        graph = self.build_graph(self.expand_roots(names, include_meta))
        validation = self.validate_graph(graph)
        if not validation.valid:
            raise DependencyGraphError(validation)
        return graph, self.get_installation_order(graph)

    def discover_all_skills(self, manifest_path: Path, include_meta: bool = True) -> DependencyGraph:
        """Graph of everything AGENTS.md references plus the meta-skills."""
        agents_skills = self.parse_agents_md(manifest_path)
        logger.info("Found %d skills in %s", len(agents_skills), manifest_path)

        graph = self.build_graph(self.expand_roots(agents_skills, include_meta))
        logger.info("Built dependency graph with %d total skills", len(graph))
        return graph

    def closure(self, name: str) -> set[str]:
        """Names reachable from ``name`` (itself included) in this source."""
        return set(self.build_graph([name]))

    def print_graph(self, graph: DependencyGraph, console: Console | None = None) -> None:
        """Dump the graph grouped by origin, for verbose output."""
        console = console or Console(stderr=True)
        console.print("[bold]Dependency Graph[/]")

        sections = [
            (DependencyOrigin.REQUESTED, "Requested"),
            (DependencyOrigin.META, "Meta Skills"),
            (DependencyOrigin.DEPENDENCY, "Transitive Dependencies"),
        ]
        for origin, title in sections:
            nodes = [n for n in graph.values() if n.origin == origin]
            if not nodes:
                continue
            console.print(f"\n[cyan]{title}[/]")
            for node in nodes:
                version = f" (v{node.version})" if node.version else ""
                console.print(f"  • {node.name}{version}")
                for i, dep in enumerate(node.dependencies):
                    prefix = "└─" if i == len(node.dependencies) - 1 else "├─"
                    marker = "" if dep in graph else " [red](missing)[/]"
                    console.print(f"     [dim]{prefix}[/] {dep}{marker}")

        console.print(f"\nTotal skills: {len(graph)}")
