"""CLI entry point for boxdiff."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from boxdiff.config import ConfigError, load_config
from boxdiff.core.comparator import Comparator
from boxdiff.core.filtering import FilterConfig
from boxdiff.core.models import OutputMode
from boxdiff.core.summary import change_stats
from boxdiff.output.rich_output import RichRenderer

if TYPE_CHECKING:
    from boxdiff.output.base import Renderer

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="boxdiff",
    help="Analyse the changes and risk of updating an installed template box.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from boxdiff import __version__

        typer.echo(f"boxdiff {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Send log records to stderr through Rich when --verbose is set."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_output_mode(value: str) -> OutputMode:
    """Parse output string to OutputMode enum."""
    try:
        return OutputMode(value)
    except ValueError:
        valid = ", ".join(o.value for o in OutputMode)
        msg = f"Invalid output mode '{value}'. Choose from: {valid}"
        raise typer.BadParameter(msg) from None


def _build_filter_config(
    *,
    no_gitignore: bool,
    hidden: bool,
    include: list[str] | None,
    exclude: list[str] | None,
) -> FilterConfig:
    """Build FilterConfig from CLI flags."""
    return FilterConfig(
        respect_gitignore=not no_gitignore,
        include_hidden=hidden,
        include_patterns=tuple(include) if include else (),
        exclude_patterns=tuple(exclude) if exclude else (),
    )


def _get_renderer(output_mode: OutputMode, *, show_diff: bool) -> Renderer:
    """Get the renderer for the output mode."""
    if output_mode == OutputMode.json:
        from boxdiff.output.json_output import JsonRenderer

        return JsonRenderer()
    if output_mode == OutputMode.diff:
        from boxdiff.output.unified_output import UnifiedRenderer

        return UnifiedRenderer()
    return RichRenderer(show_diff=show_diff)


@app.command()
def main(
    old: Annotated[
        Path,
        typer.Argument(help="Installed box directory. May be missing for a first install."),
    ],
    new: Annotated[
        Path,
        typer.Argument(help="Incoming box directory."),
    ],
    output: Annotated[
        str,
        typer.Option("--output", "-o", help="Output mode: rich, json, or diff."),
    ] = "rich",
    stat: Annotated[
        bool,
        typer.Option("--stat", help="Show only compact change statistics."),
    ] = False,
    show_diff: Annotated[
        bool,
        typer.Option("--diff", help="Include per-file diffs in rich output."),
    ] = False,
    context_lines: Annotated[
        int | None,
        typer.Option("--context", "-C", min=0, help="Number of context lines in diffs."),
    ] = None,
    no_gitignore: Annotated[
        bool,
        typer.Option("--no-gitignore", help="Don't respect .gitignore rules."),
    ] = False,
    hidden: Annotated[
        bool,
        typer.Option("--hidden", help="Include hidden files and directories."),
    ] = False,
    include: Annotated[
        list[str] | None,
        typer.Option("--include", "-I", help="Glob pattern(s) for files to include."),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-E", help="Gitignore-style pattern(s) to exclude."),
    ] = None,
    max_content_size: Annotated[
        int | None,
        typer.Option(
            "--max-content-size",
            min=0,
            help="Largest file (bytes) whose content is compared.",
        ),
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("--config", help="Path to a .boxdiff.toml file."),
    ] = None,
    check: Annotated[
        bool,
        typer.Option("--check", help="Exit with code 1 when the update requires review."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log analysis details to stderr."),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Compare an installed box with its incoming update and assess the risk.

    Exit codes: 0 on success, 1 when --check is set and review is required,
    2 on invalid input.
    """
    _configure_logging(verbose)

    try:
        output_mode = _parse_output_mode(output)
        config = load_config(Path.cwd(), config_file)
        overrides: dict[str, int] = {}
        if context_lines is not None:
            overrides["context_lines"] = context_lines
        if max_content_size is not None:
            overrides["max_content_bytes"] = max_content_size
        if overrides:
            config = replace(config, **overrides)

        comparator = Comparator(
            config,
            filter_config=_build_filter_config(
                no_gitignore=no_gitignore,
                hidden=hidden,
                include=include,
                exclude=exclude,
            ),
        )
        report = comparator.compare_paths(old, new)

    except (OSError, ValueError, ConfigError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from None

    renderer = _get_renderer(output_mode, show_diff=show_diff)
    if stat:
        stats = change_stats(
            report.comparison,
            report.manifest,
            review_file_threshold=config.review_file_threshold,
        )
        renderer.render_stats(stats)
    else:
        renderer.render(report)

    if check and report.analysis.requires_review:
        logger.debug("Review required, exiting with code 1")
        raise typer.Exit(code=1)
