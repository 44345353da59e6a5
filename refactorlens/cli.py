"""Typer-based CLI for RefactorLens."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__, config_manager
from .analyzer import analyze_with_timeout, suggest_next_steps
from .config import LEVEL_NAMES, SUPPORTED_LANGUAGES
from .errors import RefactorLensError
from .models import AnalysisOptions, AnalysisResult
from .parser import LANGUAGE_MAP, get_parser, language_for_path

app = typer.Typer(
    help="🔍 RefactorLens — compare legacy and refactored code, tag refactorings and score their impact.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Show or change analysis defaults.", no_args_is_help=True)
app.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True)

_SEVERITY_STYLES = {
    "low": "dim",
    "medium": "yellow",
    "high": "red",
    "critical": "bold red",
}


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"RefactorLens v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """RefactorLens: structural diff, refactor classification and impact scoring."""
    pass


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("refactorlens")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=err_console, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _parse_hints(hints: Optional[List[str]]) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for hint in hints or []:
        old, sep, new = hint.partition("=")
        if not sep or not old.strip() or not new.strip():
            raise typer.BadParameter(f"Invalid hint '{hint}'. Expected OLD_NAME=NEW_NAME.", param_hint="--hint")
        parsed[old.strip()] = new.strip()
    return parsed


def _resolve_language(language: Optional[str], path: Path, default_language: str) -> str:
    if language:
        resolved = language.strip().lower()
        if resolved not in SUPPORTED_LANGUAGES:
            raise typer.BadParameter(
                f"Unsupported language '{language}'. Supported: {', '.join(SUPPORTED_LANGUAGES)}",
                param_hint="--language",
            )
        return resolved
    inferred = language_for_path(path) or default_language
    if not inferred:
        raise typer.BadParameter(
            f"Cannot infer the language of '{path.name}'. Pass --language.",
            param_hint="--language",
        )
    return inferred


@app.command("analyze")
def analyze_command(
    legacy: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Legacy source file."),
    refactored: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Refactored source file."),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Source language (inferred from extension)."),
    hint: Optional[List[str]] = typer.Option(None, "--hint", help="Explicit mapping OLD_NAME=NEW_NAME (repeatable)."),
    no_security: bool = typer.Option(False, "--no-security", help="Skip the risk scan."),
    quality: bool = typer.Option(False, "--quality", help="Also scan for performance and maintainability risks."),
    adjust_language: bool = typer.Option(False, "--adjust-language", help="Apply per-language score multipliers."),
    timeout: float = typer.Option(30.0, "--timeout", min=0.1, help="Give up after this many seconds."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging."),
):
    """Compare LEGACY with REFACTORED and report refactorings, impact and risks."""
    _configure_logging(verbose)
    defaults = config_manager.load_config()

    lang = _resolve_language(language, refactored, defaults["default_language"])
    options = AnalysisOptions(
        map_hints=_parse_hints(hint),
        include_security_scan=defaults["include_security_scan"] and not no_security,
        include_quality_scan=quality or defaults["include_quality_scan"],
        adjust_for_language=adjust_language or defaults["adjust_for_language"],
        file_path=refactored.name,
    )

    try:
        result = analyze_with_timeout(
            legacy.read_text(encoding="utf-8", errors="replace"),
            refactored.read_text(encoding="utf-8", errors="replace"),
            lang,
            options,
            timeout=timeout,
        )
    except RefactorLensError as exc:
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)

    if as_json:
        payload = result.to_dict()
        payload["suggestedNextSteps"] = suggest_next_steps(result)
        typer.echo(json.dumps(payload, indent=2))
        return

    _render_result(result, lang)


def _render_result(result: AnalysisResult, language: str) -> None:
    level_name = LEVEL_NAMES.get(result.level, "unknown")
    console.print(
        Panel.fit(
            f"[bold]Score:[/bold] {result.overall_score}/100   "
            f"[bold]Level:[/bold] {result.level} ({level_name})   "
            f"[bold]Language:[/bold] {language}\n"
            f"{result.summary}\n[dim]{result.metrics.description}[/dim]",
            title="RefactorLens",
            border_style="cyan",
        )
    )

    if result.refactor_types:
        table = Table(title="Refactor Types", show_header=True)
        table.add_column("Type", style="cyan")
        table.add_column("Level", justify="right")
        table.add_column("Confidence", justify="right")
        table.add_column("Evidence")
        for tag in result.refactor_types:
            evidence = "\n".join(tag.evidence[:3])
            if len(tag.evidence) > 3:
                evidence += f"\n… {len(tag.evidence) - 3} more"
            table.add_row(tag.type.value, str(tag.level), f"{tag.confidence:.0%}", evidence)
        console.print(table)

    for file_change in result.files:
        console.print(
            f"[bold]{file_change.file_path}[/bold]: {file_change.ast_diff_summary} "
            f"([green]+{file_change.lines_added}[/green] [red]-{file_change.lines_removed}[/red] lines, "
            f"impact {file_change.impact_score})"
        )

    if result.risk_flags:
        table = Table(title="Risk Flags", show_header=True)
        table.add_column("Kind")
        table.add_column("Severity")
        table.add_column("Description")
        table.add_column("Suggestion", style="dim")
        for flag in result.risk_flags:
            style = _SEVERITY_STYLES.get(flag.severity.value, "")
            table.add_row(
                flag.kind.value,
                f"[{style}]{flag.severity.value}[/{style}]" if style else flag.severity.value,
                flag.description,
                flag.suggestion,
            )
        console.print(table)
    else:
        console.print("[green]✓[/green] No risk flags")

    steps = suggest_next_steps(result)
    if steps:
        console.print("\n[bold]Suggested next steps[/bold]")
        for step in steps:
            console.print(f"  • {step}")


@app.command("languages")
def languages_command():
    """List supported languages and whether their grammar is installed."""
    parser = get_parser()
    table = Table(title="Supported Languages", show_header=True)
    table.add_column("Language", style="cyan")
    table.add_column("Extensions")
    table.add_column("Grammar")
    for lang in SUPPORTED_LANGUAGES:
        extensions = ", ".join(ext for ext, name in LANGUAGE_MAP.items() if name == lang)
        status = "[green]installed[/green]" if parser.supports_language(lang) else "[red]missing[/red]"
        table.add_row(lang, extensions, status)
    console.print(table)


@config_app.command("show")
def config_show():
    """Show the effective analysis defaults."""
    settings = config_manager.load_config()
    table = Table(title=f"Analysis defaults ({config_manager.CONFIG_FILE})", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in settings.items():
        table.add_row(key, str(value) if value != "" else "[dim](not set)[/dim]")
    console.print(table)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. include_quality_scan."),
    value: str = typer.Argument(..., help="New value."),
):
    """Persist one analysis default."""
    try:
        saved = config_manager.save_config(key, value)
    except ValueError as exc:
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)
    if not saved:
        err_console.print(f"[red]✗[/red] Could not write {config_manager.CONFIG_FILE}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {key} = {config_manager.load_config()[key]}")


@config_app.command("reset")
def config_reset():
    """Restore the built-in analysis defaults."""
    if not config_manager.reset_config():
        err_console.print(f"[red]✗[/red] Could not write {config_manager.CONFIG_FILE}")
        raise typer.Exit(code=1)
    console.print("[green]✓[/green] Analysis defaults restored")


if __name__ == "__main__":
    app()
