"""CLI interface for ai-agents-skills."""

from __future__ import annotations

import functools
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ai_agents_skills import __version__
from ai_agents_skills.config import DEFAULT_CONFIG_FILE, Config, load_config
from ai_agents_skills.core.detector import ModelDetector, ProjectDetector, parse_model_list
from ai_agents_skills.core.installer import Installer
from ai_agents_skills.core.instructions import regenerate_instruction_file
from ai_agents_skills.core.models import InstallationTarget, InstallMode, InstallStats
from ai_agents_skills.core.parser import validate_skill_file
from ai_agents_skills.core.progress import ProgressEvent, ProgressStage
from ai_agents_skills.core.removal import plan_removal, remove_skills
from ai_agents_skills.core.repository import RepositoryManager
from ai_agents_skills.core.resolver import DependencyResolver, version_satisfies
from ai_agents_skills.core.scanner import installed_skill_names, scan_all_models
from ai_agents_skills.core.source import (
    InstalledSkillSource,
    LocalSkillSource,
    RemoteSkillSource,
    SkillSource,
)
from ai_agents_skills.errors import (
    CycleError,
    DependencyGraphError,
    InstallError,
    SkillsError,
)
from ai_agents_skills.utils import get_logger, setup_logging

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

STAGE_STYLES = {
    ProgressStage.SETUP: "dim",
    ProgressStage.INSTALL: "green",
    ProgressStage.SKIP: "yellow",
    ProgressStage.ROLLBACK: "red",
    ProgressStage.UNINSTALL: "red",
}


@dataclass
class CliContext:
    config: Config
    verbose: bool = False


pass_context = click.make_pass_decorator(CliContext)


def handle_errors(func):
    """Turn core errors into an itemised report and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            console.print("[yellow]Cancelled.[/]")
        except (SkillsError, OSError) as e:
            logger.debug("Command failed", exc_info=True)
            _report_error(e)
            sys.exit(1)

    return wrapper


def _report_error(error: Exception) -> None:
    if isinstance(error, DependencyGraphError):
        validation = error.validation
        err_console.print("[bold red]Dependency validation failed[/]")
        if validation.cycles:
            err_console.print("[red]Circular dependencies detected:[/]")
            for cycle in validation.cycles:
                err_console.print(f"  {escape(cycle.formatted)}")
        if validation.missing:
            err_console.print("[red]Missing dependencies:[/]")
            for name in validation.missing:
                required_by = validation.missing_by.get(name) or []
                suffix = f" (required by {', '.join(required_by)})" if required_by else " (requested)"
                err_console.print(f"  {escape(name)}{escape(suffix)}")
        if validation.broken:
            err_console.print("[red]Unreadable skill definitions:[/]")
            for name, reason in validation.broken.items():
                err_console.print(f"  {escape(name)}: {escape(reason)}")
        err_console.print("[yellow]Installation cancelled; nothing was changed.[/]")
    elif isinstance(error, CycleError):
        err_console.print("[bold red]Circular dependencies detected:[/]")
        for cycle in error.cycles:
            err_console.print(f"  {escape(cycle.formatted)}")
    elif isinstance(error, InstallError):
        err_console.print(f"[bold red]Error:[/] {escape(str(error))}")
        if error.rolled_back:
            err_console.print(f"[yellow]Rolled back:[/] {', '.join(error.rolled_back)}")
    else:
        err_console.print(f"[bold red]Error:[/] {escape(str(error))}")


def _render_progress(event: ProgressEvent) -> None:
    style = STAGE_STYLES.get(event.stage, "")
    counter = f"[{event.current}/{event.total}] " if event.total else ""
    tag = "(dry run) " if event.dry_run else ""
    console.print(f"  [dim]{escape(tag + counter)}[/][{style}]{escape(event.message)}[/]")


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _resolve_targets(project_root: Path, models: str | None, cfg: Config) -> list[InstallationTarget]:
    """Targets from --models, else detected model directories, else the configured default."""
    detector = ModelDetector()
    if models:
        model_ids = parse_model_list(models)
    else:
        model_ids = detector.detect_installed_models(project_root)
        if not model_ids:
            model_ids = parse_model_list(",".join(cfg.models.default))
    return [detector.get_target(project_root, model_id) for model_id in model_ids]


def _install(
    ctx: CliContext,
    source: SkillSource,
    names: list[str],
    targets: list[InstallationTarget],
    project_root: Path,
    mode: InstallMode,
    include_meta: bool,
    dry_run: bool,
    yes: bool,
) -> InstallStats | None:
    """Resolve, confirm and install into every target. Returns None when cancelled."""
    cfg = ctx.config
    resolver = DependencyResolver(source, cfg.skills.meta_skills)
    graph, order = resolver.resolve(names, include_meta)

    if not order:
        console.print("[yellow]Nothing to install.[/]")
        return InstallStats()

    if ctx.verbose:
        resolver.print_graph(graph, console)

    console.print(Panel.fit(
        f"Models: [cyan]{', '.join(t.model_id for t in targets)}[/]\n"
        f"Skills: [cyan]{len(order)}[/]\n"
        f"Mode: [cyan]{mode.value}[/]\n"
        f"Directory: [dim]{escape(str(project_root))}[/]",
        title="Dry Run" if dry_run else "Installation Details",
    ))

    if not dry_run and not yes:
        if not click.confirm(f"Install {len(order)} skill(s) to {len(targets)} model(s)?", default=True):
            console.print("[yellow]Cancelled.[/]")
            return None

    installer = Installer(source, project_root, cfg.skills.canonical_dir, on_progress=_render_progress)
    for target in targets:
        installer.setup_model(target, dry_run=dry_run)

    totals = InstallStats()
    for target in targets:
        console.print(f"\n[bold]{target.name}[/] [dim]({escape(str(target.directory))})[/]")
        stats = installer.install_with_rollback(order, target.directory, mode, dry_run)
        totals.installed += stats.installed
        totals.skipped += stats.skipped

    return totals


def _regenerate_instructions(targets: list[InstallationTarget], dry_run: bool) -> int:
    updated = 0
    for target in targets:
        if regenerate_instruction_file(target.directory, target.model_id, dry_run) is not None:
            updated += 1
    return updated


def _print_summary(targets: list[InstallationTarget], stats: InstallStats, dry_run: bool, extra: str = "") -> None:
    lines = [
        f"Models: [cyan]{len(targets)}[/]",
        f"Skills installed: [green]{stats.installed}[/]",
    ]
    if stats.skipped:
        lines.append(f"Skills skipped: [yellow]{stats.skipped}[/] [dim](already up to date)[/]")
    if extra:
        lines.append(extra)
    console.print(Panel.fit("\n".join(lines), title="Summary"))

    if dry_run:
        console.print("[yellow]DRY RUN - No changes were made[/]")
    else:
        console.print("[bold green]✓ Installation completed successfully![/]")


# ── command group ────────────────────────────────────────────────────────────

@click.group()
@click.version_option(version=__version__, prog_name="ai-agents-skills")
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_FILE, help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors")
@click.pass_context
def cli(ctx: click.Context, config_path: str, verbose: bool, quiet: bool):
    """ai-agents-skills - install AI agent skills with their dependencies."""
    try:
        cfg = load_config(config_path)
    except SkillsError as e:
        _report_error(e)
        ctx.exit(1)
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = cfg.logging.level
    setup_logging(level, cfg.logging.format)
    ctx.obj = CliContext(config=cfg, verbose=verbose)


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def init(ctx: click.Context, force: bool):
    """Generate a default configuration file."""
    from ai_agents_skills.config import generate_default_config

    config_path = Path(ctx.parent.params["config_path"])

    if config_path.exists() and not force:
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            console.print("[yellow]Cancelled.[/]")
            return

    generate_default_config(config_path)
    console.print(f"[green]Created {escape(str(config_path))}[/]")


def _install_options(func):
    """Options shared by the installing commands."""
    func = click.option("--yes", "-y", is_flag=True, help="Skip confirmation")(func)
    func = click.option("--dry-run", "-d", is_flag=True, help="Plan without making changes")(func)
    func = click.option("--no-meta", is_flag=True, help="Do not add the meta-skills")(func)
    func = click.option("--models", "-m", help="Models to install for (comma-separated)")(func)
    return func


@cli.command()
@click.option("--skills", "-s", help="Skills to install (comma-separated, default: AGENTS.md)")
@_install_options
@pass_context
@handle_errors
def local(ctx: CliContext, skills: str | None, models: str | None, no_meta: bool, dry_run: bool, yes: bool):
    """Install skills from this checkout into its model directories (full copies)."""
    base_dir = Path.cwd()
    _install_from_checkout(ctx, base_dir, base_dir, InstallMode.LOCAL, skills, models, no_meta, dry_run, yes)


@cli.command()
@click.option("--source", "source_dir", default=".", type=click.Path(file_okay=False), help="Skills checkout")
@click.option("--target", "target_dir", default=".", type=click.Path(file_okay=False), help="Project to install into")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in InstallMode]),
    default=InstallMode.LOCAL.value,
    show_default=True,
    help="Copy into every model directory, or symlink to .agents/skills",
)
@click.option("--skills", "-s", help="Skills to install (comma-separated, default: AGENTS.md)")
@_install_options
@pass_context
@handle_errors
def install(
    ctx: CliContext,
    source_dir: str,
    target_dir: str,
    mode: str,
    skills: str | None,
    models: str | None,
    no_meta: bool,
    dry_run: bool,
    yes: bool,
):
    """Install skills from a checkout into a project."""
    _install_from_checkout(
        ctx,
        Path(source_dir).resolve(),
        Path(target_dir).resolve(),
        InstallMode(mode),
        skills, models, no_meta, dry_run, yes,
    )


def _install_from_checkout(
    ctx: CliContext,
    base_dir: Path,
    project_root: Path,
    mode: InstallMode,
    skills: str | None,
    models: str | None,
    no_meta: bool,
    dry_run: bool,
    yes: bool,
) -> None:
    cfg = ctx.config
    source = LocalSkillSource(base_dir, cfg.skills.skills_dir, cfg.skills.skill_file)

    names = _split(skills)
    if not names:
        manifest = base_dir / cfg.skills.manifest_file
        names = DependencyResolver.parse_agents_md(manifest)
        logger.info("Found %d skills in %s", len(names), manifest)

    targets = _resolve_targets(project_root, models, cfg)
    stats = _install(ctx, source, names, targets, project_root, mode, not no_meta, dry_run, yes)
    if stats is None:
        return

    updated = _regenerate_instructions(targets, dry_run)
    _print_summary(targets, stats, dry_run, f"Instructions: [green]{updated}[/] file(s) updated")


@cli.command()
@click.argument("source", required=False)
@click.option("--preset", "-p", help="Install a preset by id")
@click.option("--skill", "-s", "skill_names", multiple=True, help="Install a skill by name (repeatable)")
@_install_options
@pass_context
@handle_errors
def add(
    ctx: CliContext,
    source: str | None,
    preset: str | None,
    skill_names: tuple[str, ...],
    models: str | None,
    no_meta: bool,
    dry_run: bool,
    yes: bool,
):
    """Install skills from a repository (defaults to the official one).

    SOURCE may be an owner/repo shorthand, a git URL or a local path.
    """
    cfg = ctx.config
    repos = RepositoryManager(cfg.repository.cache_dir)

    with console.status("[dim]Fetching repository...[/]", spinner="dots"):
        repo = repos.fetch_repository(source or cfg.repository.default_source)
    console.print(f"[green]✓[/] Repository ready: [dim]{escape(str(repo.cache_path))}[/]")

    preset_info = None
    if preset:
        preset_info = repos.get_preset(repo.cache_path, preset)
        if preset_info is None:
            raise SkillsError(f"Preset not found: {preset}")
        names = list(preset_info.skills)
        console.print(f"Preset: [green]{escape(preset_info.name)}[/]")
        if preset_info.description:
            console.print(f"[dim]{escape(preset_info.description)}[/]")
    elif skill_names:
        names = [n for value in skill_names for n in _split(value)]
    else:
        _print_available(repos, repo.cache_path)
        raise click.UsageError("Specify --preset or --skill")

    project = ProjectDetector(cfg.skills.canonical_dir).detect_project()
    console.print(f"Project: [cyan]{escape(str(project.root_path))}[/] [dim]({project.type})[/]")

    skill_source = RemoteSkillSource(repo.cache_path, cfg.skills.skills_dir, cfg.skills.skill_file)
    targets = _resolve_targets(project.root_path, models, cfg)
    stats = _install(
        ctx, skill_source, names, targets, project.root_path,
        InstallMode.REMOTE, not no_meta, dry_run, yes,
    )
    if stats is None:
        return

    extra = []
    if preset_info is not None:
        agents_src = preset_info.path / "AGENTS.md"
        agents_dst = project.root_path / cfg.skills.manifest_file
        if agents_src.is_file() and not agents_dst.exists() and not dry_run:
            shutil.copyfile(agents_src, agents_dst)
            console.print(f"[green]✓[/] Copied AGENTS.md for preset: {escape(preset_info.name)}")
        extra.append(f"Preset: [cyan]{escape(preset_info.name)}[/]")

    updated = _regenerate_instructions(targets, dry_run)
    extra.append(f"Instructions: [green]{updated}[/] file(s) updated")
    _print_summary(targets, stats, dry_run, "\n".join(extra))


def _print_available(repos: RepositoryManager, repo_path: Path) -> None:
    presets = repos.list_presets(repo_path)
    if presets:
        table = Table(title="Presets")
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("Skills", justify="right")
        for p in presets:
            table.add_row(p.id, p.name, str(len(p.skills)))
        console.print(table)

    skills = repos.list_skills(repo_path)
    if skills:
        console.print(f"[bold]Skills ({len(skills)}):[/] {', '.join(skills)}")


@cli.command()
@click.argument("skill_args", nargs=-1)
@click.option("--skills", "-s", help="Skills to remove (comma-separated)")
@click.option("--models", "-m", help="Models to target (comma-separated, default: detected)")
@click.option("--all", "-a", "remove_all", is_flag=True, help="Remove every installed skill")
@click.option("--confirm", "--yes", "-y", "yes", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", "-d", is_flag=True, help="Plan without making changes")
@pass_context
@handle_errors
def remove(
    ctx: CliContext,
    skill_args: tuple[str, ...],
    skills: str | None,
    models: str | None,
    remove_all: bool,
    yes: bool,
    dry_run: bool,
):
    """Remove installed skills, refusing when other skills depend on them."""
    cfg = ctx.config
    detector = ProjectDetector(cfg.skills.canonical_dir)
    project = detector.detect_project()
    root = project.root_path

    installed = detector.get_installed_skills(root)
    if not installed:
        console.print("[yellow]No skills installed.[/]")
        return

    if remove_all:
        requested = list(installed)
    else:
        requested = list(skill_args) + _split(skills)
        if not requested:
            raise click.UsageError("Name the skills to remove, or pass --all")
        not_installed = [s for s in requested if s not in installed]
        if not_installed:
            raise SkillsError(f"Skills not installed: {', '.join(not_installed)}")

    resolver = DependencyResolver(
        InstalledSkillSource(root, cfg.skills.canonical_dir, cfg.skills.skill_file),
        cfg.skills.meta_skills,
    )
    plan = plan_removal(requested, installed, resolver)

    if not plan.allowed:
        err_console.print("[bold red]Cannot remove the following skills due to dependencies:[/]")
        for blocked in plan.blocked:
            err_console.print(f"  [red]✗[/] [bold]{blocked.skill}[/]")
            err_console.print(f"    [dim]Required by:[/] [yellow]{', '.join(blocked.used_by)}[/]")
        err_console.print("[yellow]Remove the dependent skills together, or leave these installed.[/]")
        sys.exit(1)

    model_detector = ModelDetector()
    if models:
        targets = [model_detector.get_target(root, m) for m in parse_model_list(models)]
    else:
        targets = [t for t in model_detector.get_all_targets(root) if t.installed]

    console.print("[bold]Removal Preview:[/]")
    for skill in plan.requested:
        console.print(f"  [red]✗[/] [bold]{skill}[/]")
    additional = [s for s in plan.remove if s not in plan.requested]
    if additional:
        console.print(f"[dim]  Dependencies to remove: {', '.join(additional)}[/]")
    if plan.kept:
        console.print(f"[dim]  Dependencies kept (used by other skills): {', '.join(plan.kept)}[/]")

    if not yes and not dry_run:
        if not click.confirm(f"Remove {len(plan.remove)} skill(s) from project?", default=False):
            console.print("[yellow]Cancelled.[/]")
            return

    installer = Installer(resolver.source, root, cfg.skills.canonical_dir, on_progress=_render_progress)
    removed = remove_skills(plan, targets, installer.canonical_path, installer, dry_run)
    updated = _regenerate_instructions(targets, dry_run)

    console.print(Panel.fit(
        f"Skills removed: [green]{removed}[/]\n"
        f"Affected models: [cyan]{len(targets)}[/]\n"
        f"Instructions: [green]{updated}[/] file(s) updated",
        title="Summary",
    ))
    if dry_run:
        console.print("[yellow]DRY RUN - No changes were made[/]")
    else:
        console.print("[bold green]✓ Removal completed successfully![/]")


cli.add_command(remove, name="uninstall")


@cli.command()
@click.option("--add-models", help="Models to add to the installation (comma-separated)")
@click.option("--dry-run", "-d", is_flag=True, help="Plan without making changes")
@pass_context
@handle_errors
def sync(ctx: CliContext, add_models: str | None, dry_run: bool):
    """Link every installed skill into all detected (and added) models."""
    cfg = ctx.config
    detector = ProjectDetector(cfg.skills.canonical_dir)
    project = detector.detect_project()
    root = project.root_path

    installed = detector.get_installed_skills(root)
    if not installed:
        console.print("[yellow]No skills installed. Run `ai-agents-skills add` first.[/]")
        return

    models = ModelDetector()
    model_ids = models.detect_installed_models(root)
    for model_id in parse_model_list(add_models or ""):
        if model_id not in model_ids:
            model_ids.append(model_id)
    if not model_ids:
        raise SkillsError("No model directories found; use --add-models")

    targets = [models.get_target(root, m) for m in model_ids]
    source = InstalledSkillSource(root, cfg.skills.canonical_dir, cfg.skills.skill_file)
    stats = _install(ctx, source, installed, targets, root, InstallMode.REMOTE, False, dry_run, True)
    if stats is None:
        return

    updated = _regenerate_instructions(targets, dry_run)
    _print_summary(targets, stats, dry_run, f"Instructions: [green]{updated}[/] file(s) updated")


@cli.command()
@click.option("--skill", "-s", "skill_name", help="Validate one skill")
@click.option("--all", "-a", "validate_all", is_flag=True, help="Validate every skill in ./skills")
@click.option("--installed", is_flag=True, help="Validate skills installed in model directories")
@pass_context
@handle_errors
def validate(ctx: CliContext, skill_name: str | None, validate_all: bool, installed: bool):
    """Validate skill frontmatter and dependencies."""
    cfg = ctx.config
    base_dir = Path.cwd()
    source = LocalSkillSource(base_dir, cfg.skills.skills_dir, cfg.skills.skill_file)

    if skill_name:
        ok = _validate_one(source, skill_name)
    elif validate_all:
        ok = _validate_all(source, cfg)
    elif installed:
        ok = _validate_installed(source, base_dir)
    else:
        raise click.UsageError("Specify --skill, --all, or --installed")

    if not ok:
        sys.exit(1)


def _print_result(name: str, errors: list[str], warnings: list[str]) -> None:
    mark = "[green]✓[/]" if not errors else "[red]✗[/]"
    console.print(f"{mark} {escape(name)}")
    for error in errors:
        console.print(f"    [red]{escape(error)}[/]")
    for warning in warnings:
        console.print(f"    [yellow]{escape(warning)}[/]")


def _validate_one(source: SkillSource, name: str) -> bool:
    if not source.skill_exists(name):
        raise SkillsError(f"Skill not found: {name}")

    result = validate_skill_file(source.skill_file_path(name))
    _print_result(name, result.errors, result.warnings)
    if not result.valid:
        return False

    skill = source.read_skill_metadata(name)
    table = Table(show_header=False, box=None)
    table.add_row("Name", skill.name)
    table.add_row("Version", skill.version or "")
    table.add_row("License", skill.license or "N/A")
    if skill.dependencies:
        table.add_row("Dependencies", ", ".join(skill.dependencies))
    console.print(table)
    return True


def _validate_all(source: SkillSource, cfg: Config) -> bool:
    names = source.list_skill_names()
    console.print(f"Found {len(names)} skills\n")

    valid = 0
    invalid = 0
    warnings = 0
    for name in names:
        result = validate_skill_file(source.skill_file_path(name))
        _print_result(name, result.errors, result.warnings)
        if result.valid:
            valid += 1
        else:
            invalid += 1
        warnings += len(result.warnings)

    resolver = DependencyResolver(source, cfg.skills.meta_skills)
    validation = resolver.validate_graph(resolver.build_graph(names))

    console.print("\n[bold]Dependencies[/]")
    if validation.cycles:
        invalid += 1
        console.print("[red]Circular dependencies detected:[/]")
        for cycle in validation.cycles:
            console.print(f"  {escape(cycle.formatted)}")
    else:
        console.print("[green]✓[/] No circular dependencies detected")
    if validation.missing:
        warnings += 1
        console.print("[yellow]Missing dependencies:[/]")
        for name in validation.missing:
            console.print(f"  {escape(name)} [dim](required by {', '.join(validation.missing_by[name])})[/]")

    table = Table(title="Validation Summary", show_header=False)
    table.add_row("Total skills", str(len(names)))
    table.add_row("Valid", str(valid))
    table.add_row("Invalid", str(invalid))
    table.add_row("Warnings", str(warnings))
    console.print(table)
    return invalid == 0


def _validate_installed(source: SkillSource, base_dir: Path) -> bool:
    model_dirs = sorted({t.directory.name for t in ModelDetector().get_all_targets(base_dir)})
    installed = scan_all_models(base_dir, model_dirs)
    if not installed:
        console.print("[yellow]No skills installed.[/]")
        return True

    errors: list[str] = []
    warnings: list[str] = []
    for model_dir, skills in installed.items():
        console.print(f"[bold]Model:[/] {model_dir}")
        for skill in skills:
            if not skill.path.exists():
                errors.append(f"Skill path not found: {skill.name} at {skill.path}")
                continue
            if not source.skill_exists(skill.name):
                warnings.append(f"Source not found for installed skill: {skill.name}")
                continue
            if skill.is_symlink:
                console.print(f"  [green]✓[/] {skill.name}: valid (symlinked)")
                continue
            try:
                current = source.read_skill_metadata(skill.name).version
            except SkillsError as e:
                errors.append(f"Failed to validate {skill.name}: {e}")
                continue
            if current and (skill.version is None or not version_satisfies(skill.version, f">={current}")):
                warnings.append(
                    f"Outdated {skill.name}: installed {skill.version or 'unknown'}, current {current}"
                )
            else:
                console.print(f"  [green]✓[/] {skill.name}: valid ({skill.version})")

    for error in errors:
        console.print(f"[red]✗ {escape(error)}[/]")
    for warning in warnings:
        console.print(f"[yellow]! {escape(warning)}[/]")
    console.print(f"\nErrors: {len(errors)}  Warnings: {len(warnings)}")
    return not errors


@cli.command("list")
@pass_context
@handle_errors
def list_skills(ctx: CliContext):
    """List installed skills and models."""
    cfg = ctx.config
    detector = ProjectDetector(cfg.skills.canonical_dir)
    project = detector.detect_project()
    root = project.root_path
    console.print(f"[cyan]Project: {escape(str(root))}[/]\n")

    targets = [t for t in ModelDetector().get_all_targets(root) if t.installed]
    model_dirs = [t.directory.name for t in targets]
    scanned = scan_all_models(root, model_dirs)
    names = sorted(set(detector.get_installed_skills(root)) | set(installed_skill_names(root, model_dirs)))

    if not names:
        console.print("[yellow]No skills installed.[/]")
        console.print("Run [bold]ai-agents-skills add[/] to install skills.")
        return

    table = Table(title=f"Installed Skills ({len(names)})")
    table.add_column("Skill")
    table.add_column("Version")
    for target in targets:
        table.add_column(target.name, justify="center")

    by_model = {
        model_dir: {s.name: s for s in skills}
        for model_dir, skills in scanned.items()
    }
    for name in names:
        version = ""
        cells = []
        for target in targets:
            entry = by_model.get(target.directory.name, {}).get(name)
            if entry is None:
                cells.append("")
                continue
            version = version or (entry.version or "")
            cells.append("[green]link[/]" if entry.is_symlink else "[blue]copy[/]")
        table.add_row(name, version, *cells)

    console.print(table)
    console.print(f"[dim]Canonical store: {escape(str(detector.get_skills_dir(root)))}[/]")


cli.add_command(list_skills, name="ls")


@cli.command()
@click.argument("skill")
@pass_context
@handle_errors
def info(ctx: CliContext, skill: str):
    """Show a skill's metadata (installed copy first, then ./skills)."""
    cfg = ctx.config
    root = ProjectDetector(cfg.skills.canonical_dir).detect_project().root_path
    sources = [
        InstalledSkillSource(root, cfg.skills.canonical_dir, cfg.skills.skill_file),
        LocalSkillSource(Path.cwd(), cfg.skills.skills_dir, cfg.skills.skill_file),
    ]
    source = next((s for s in sources if s.skill_exists(skill)), None)
    if source is None:
        raise SkillsError(f"Skill not found: {skill}")

    meta = source.read_skill_metadata(skill)
    resolver = DependencyResolver(source, cfg.skills.meta_skills)
    closure = sorted(resolver.closure(skill) - {skill})

    table = Table(show_header=False, box=None)
    table.add_row("Name", meta.name)
    table.add_row("Version", meta.version or "")
    table.add_row("License", meta.license or "N/A")
    table.add_row("Dependencies", ", ".join(meta.dependencies) or "-")
    table.add_row("All dependencies", ", ".join(closure) or "-")
    if meta.package_dependencies:
        table.add_row(
            "Packages",
            ", ".join(f"{k} {v}" for k, v in meta.package_dependencies.items()),
        )
    table.add_row("Path", str(source.resolve_skill_path(skill)))

    if meta.description:
        console.print(escape(meta.description))
    console.print(Panel(table, title=f"[bold]{escape(meta.name)}[/]"))


@cli.command()
@click.argument("skill_args", nargs=-1)
@click.option("--no-meta", is_flag=True, help="Do not add the meta-skills")
@pass_context
@handle_errors
def graph(ctx: CliContext, skill_args: tuple[str, ...], no_meta: bool):
    """Print the resolved dependency graph (default: everything in AGENTS.md)."""
    cfg = ctx.config
    base_dir = Path.cwd()
    source = LocalSkillSource(base_dir, cfg.skills.skills_dir, cfg.skills.skill_file)
    resolver = DependencyResolver(source, cfg.skills.meta_skills)

    if skill_args:
        dep_graph = resolver.build_graph(resolver.expand_roots(skill_args, not no_meta))
    else:
        dep_graph = resolver.discover_all_skills(base_dir / cfg.skills.manifest_file, not no_meta)

    resolver.print_graph(dep_graph, console)
    validation = resolver.validate_graph(dep_graph)
    if not validation.valid:
        raise DependencyGraphError(validation)

    order = resolver.get_installation_order(dep_graph)
    console.print(f"\n[bold]Installation order:[/] {', '.join(order)}")


if __name__ == "__main__":
    cli()
