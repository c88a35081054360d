"""patchnorm CLI — Typer application with diffs, stats, between, patch and init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

import typer
from rich.console import Console

from patchnorm import __version__

if TYPE_CHECKING:
    from patchnorm.config.schema import PatchnormConfig
    from patchnorm.git.adapter import GitBackend

app = typer.Typer(
    name="patchnorm",
    help="Normalize git commit diffs into backend-independent records.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

_REPO_OPT = typer.Option(None, "--repo", "-r", help="Repository path (default: current directory)")
_CONFIG_OPT = typer.Option(None, "--config", "-c", help="Path to .patchnorm.toml")
_FORMAT_OPT = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml")
_VERBOSE_OPT = typer.Option(False, "--verbose", "-v", help="Verbose output")
_DEBUG_OPT = typer.Option(False, "--debug", help="Debug output")


def _resolve_repo_root(repo: Optional[str]) -> Path:
    """Find the git repo root, exit 2 on failure."""
    from patchnorm.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root(Path(repo) if repo else None)
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


def _setup(
    repo: Optional[str],
    config: Optional[str],
    format: Optional[str],
    verbose: bool,
    debug: bool,
) -> Tuple[PatchnormConfig, GitBackend]:
    from patchnorm.config import OUTPUT_FORMATS, ConfigError, load_config
    from patchnorm.git.adapter import GitBackend
    from patchnorm.log import configure_logging

    repo_root = _resolve_repo_root(repo)

    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]

    if debug:
        cfg.logging.level = "DEBUG"
    elif verbose:
        cfg.logging.level = "INFO"
    configure_logging(cfg.logging.level)

    backend = GitBackend(
        repo_root,
        timeout=cfg.backend.timeout,
        detect_renames=cfg.backend.detect_renames,
    )
    return cfg, backend


def _resolve(backend, ref: str) -> str:
    from patchnorm.git.adapter import GitError

    try:
        return backend.resolve_commit(ref)
    except GitError as exc:
        console.print(f"[bold red]Unknown commit:[/bold red] {ref} ({exc})")
        raise typer.Exit(code=2) from exc


def _emit(result, cfg) -> None:
    from patchnorm.git.models import CommitDiffResult
    from patchnorm.output import json_report, terminal, yaml_report

    if cfg.output.format == "json":
        print(json_report.render(result))
    elif cfg.output.format == "yaml":
        print(yaml_report.render(result), end="")
    elif isinstance(result, CommitDiffResult):
        terminal.render_diffs(result, show_body=cfg.output.show_body)
    else:
        terminal.render_stats(result)


# ── diffs ─────────────────────────────────────────────────────────────────────


@app.command()
def diffs(
    commit: str = typer.Argument("HEAD", help="Commit to normalize"),
    paths: Optional[List[str]] = typer.Argument(None, help="Limit to these paths"),
    body: bool = typer.Option(False, "--body", help="Show hunk bodies in terminal output"),
    repo: Optional[str] = _REPO_OPT,
    config: Optional[str] = _CONFIG_OPT,
    format: Optional[str] = _FORMAT_OPT,
    verbose: bool = _VERBOSE_OPT,
    debug: bool = _DEBUG_OPT,
) -> None:
    """Show the normalized per-file records of a commit."""
    from patchnorm.git.adapter import GitError
    from patchnorm.git.normalizer import commit_diffs
    from patchnorm.git.source_adapter import CountMismatch

    cfg, backend = _setup(repo, config, format, verbose, debug)
    if body:
        cfg.output.show_body = True
    commit_id = _resolve(backend, commit)

    try:
        result = commit_diffs(backend, commit_id, paths or None)
    except (GitError, CountMismatch) as exc:
        console.print(f"[bold red]Diff error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    _emit(result, cfg)


# ── between ───────────────────────────────────────────────────────────────────


@app.command()
def between(
    head: str = typer.Argument(..., help="Source branch or commit"),
    base: str = typer.Argument(..., help="Target branch or commit"),
    paths: Optional[List[str]] = typer.Argument(None, help="Limit to these paths"),
    repo: Optional[str] = _REPO_OPT,
    config: Optional[str] = _CONFIG_OPT,
    format: Optional[str] = _FORMAT_OPT,
    verbose: bool = _VERBOSE_OPT,
    debug: bool = _DEBUG_OPT,
) -> None:
    """Show what HEAD adds on top of BASE (diff from their merge base)."""
    from patchnorm.git.adapter import GitError
    from patchnorm.git.normalizer import diffs_between
    from patchnorm.git.source_adapter import CountMismatch

    cfg, backend = _setup(repo, config, format, verbose, debug)
    head_id = _resolve(backend, head)
    base_id = _resolve(backend, base)

    try:
        result = diffs_between(backend, head_id, base_id, paths or None)
    except (GitError, CountMismatch) as exc:
        console.print(f"[bold red]Diff error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    _emit(result, cfg)


# ── stats ─────────────────────────────────────────────────────────────────────


@app.command()
def stats(
    commit: str = typer.Argument("HEAD", help="Commit to count"),
    zero_check: bool = typer.Option(
        False,
        "--zero-check",
        help="Only report whether the commit changes zero lines; json/yaml emit {id, zero}",
    ),
    repo: Optional[str] = _REPO_OPT,
    config: Optional[str] = _CONFIG_OPT,
    format: Optional[str] = _FORMAT_OPT,
    verbose: bool = _VERBOSE_OPT,
    debug: bool = _DEBUG_OPT,
) -> None:
    """Show addition/deletion totals for a commit."""
    from patchnorm.git.adapter import GitError
    from patchnorm.git.stats import commit_stats, has_zero_stats

    cfg, backend = _setup(repo, config, format, verbose, debug)
    commit_id = _resolve(backend, commit)

    if zero_check:
        zero = has_zero_stats(backend, commit_id)
        if cfg.output.format == "terminal":
            print("zero" if zero else "non-zero")
        else:
            _emit({"id": commit_id, "zero": zero}, cfg)
        raise typer.Exit(code=0)

    try:
        result = commit_stats(backend, commit_id)
    except GitError as exc:
        console.print(f"[bold red]Stats error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    _emit(result, cfg)


# ── patch ─────────────────────────────────────────────────────────────────────


@app.command()
def patch(
    commit: str = typer.Argument("HEAD", help="Commit to render"),
    repo: Optional[str] = _REPO_OPT,
    verbose: bool = _VERBOSE_OPT,
    debug: bool = _DEBUG_OPT,
) -> None:
    """Print the bare diff of a commit's format-patch, without mail envelope."""
    from patchnorm.git.adapter import GitError
    from patchnorm.git.splitter import strip_patch_envelope

    _, backend = _setup(repo, None, None, verbose, debug)
    commit_id = _resolve(backend, commit)

    try:
        text = backend.format_patch(commit_id)
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    bare = strip_patch_envelope(text)
    if bare:
        print(bare)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    repo: Optional[str] = _REPO_OPT,
) -> None:
    """Generate a starter .patchnorm.toml in the repo root."""
    from patchnorm.config.defaults import CONFIG_FILENAME, DEFAULT_TOML

    repo_root = _resolve_repo_root(repo)
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"patchnorm {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """patchnorm — normalize git commit diffs."""
