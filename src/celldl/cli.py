"""
celldl command line.

Commands:
- check: Report diagnostics for one or more files
- fmt: Print files in canonical form
- tokens: Show the token stream of a file
- ast: Dump the AST of a file as JSON
"""

from __future__ import annotations

import json
import logging
import platform
import sys
from dataclasses import asdict
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from celldl._version import get_version
from celldl.core.config import CellDLConfig, find_config, load_config
from celldl.core.diagnostics.collector import ErrorCollector
from celldl.core.errors import ConfigError, ErrorContext, extract_snippet
from celldl.core.lexer import TokenType
from celldl.core.parser import parse, parse_with_recovery, tokenize
from celldl.core.printer import stringify

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    help="""CellDL - cell-based architecture diagrams as text

Commands:
  • check   Report syntax errors and hints
  • fmt     Rewrite files in canonical layout
  • tokens  Show how a file is tokenized
  • ast     Dump the parsed AST as JSON
""",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"celldl {get_version()}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """celldl CLI main callback for global options."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
        )


# =============================================================================
# Helpers
# =============================================================================


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        typer.echo(f"Error: cannot read {path}: {e}", err=True)
        raise typer.Exit(code=1)


def _resolve_config(config_path: Path | None, start: Path) -> CellDLConfig:
    try:
        if config_path is not None:
            return load_config(config_path)
        return find_config(start)
    except ConfigError as e:
        typer.echo(f"Config error: {e}", err=True)
        raise typer.Exit(code=1)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def check(
    files: list[Path] = typer.Argument(  # noqa: B008
        ..., exists=True, dir_okay=False, help="CellDL files to check"
    ),
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings and hints too"),
    output_format: str = typer.Option(
        "text", "--format", "-f", help="Output format: 'text' or 'json'"
    ),
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", help="Path to celldl.toml"
    ),
) -> None:
    """
    Parse files with error recovery and report every diagnostic.

    Exits with code 1 when any file has errors (or any diagnostic with --strict).
    """
    if output_format not in ("text", "json"):
        typer.echo(f"Error: unknown format '{output_format}'", err=True)
        raise typer.Exit(code=2)

    config = _resolve_config(config_path, files[0].parent)
    failed = False
    report: dict[str, list[dict[str, object]]] = {}

    for path in files:
        result = parse_with_recovery(_read_source(path))
        errors = result.errors[: config.diagnostics.max_errors]
        logger.debug(f"{path}: {len(result.errors)} diagnostics")

        if strict and result.errors:
            failed = True
        elif any(error.is_fatal for error in result.errors):
            failed = True

        if output_format == "json":
            report[str(path)] = [asdict(error) for error in errors]
            continue

        if not errors:
            console.print(f"[green]✓[/green] {escape(str(path))}")
            continue

        console.print(f"[red]✗[/red] {escape(str(path))}")
        collector = ErrorCollector()
        collector.add_errors(errors)
        typer.echo(collector.format(show_hints=config.diagnostics.show_hints))
        hidden = len(result.errors) - len(errors)
        if hidden > 0:
            typer.echo(f"... {hidden} more diagnostic(s) not shown")

    if output_format == "json":
        typer.echo(json.dumps(report, indent=2))

    if failed:
        raise typer.Exit(code=1)


@app.command()
def fmt(
    file: Path = typer.Argument(  # noqa: B008
        ..., exists=True, dir_okay=False, help="CellDL file to format"
    ),
    write: bool = typer.Option(False, "--write", "-w", help="Rewrite the file in place"),
    check_only: bool = typer.Option(
        False, "--check", help="Exit with code 1 if the file is not formatted"
    ),
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", help="Path to celldl.toml"
    ),
) -> None:
    """
    Print a file in canonical layout.

    Only files without syntax errors can be formatted.
    """
    config = _resolve_config(config_path, file.parent)
    source = _read_source(file)

    result = parse(source)
    if not result.success or result.ast is None:
        typer.echo(f"Cannot format {file}: {len(result.errors)} error(s)", err=True)
        for error in result.errors:
            typer.echo(f"  {error.line}:{error.column} {error.message}", err=True)
        first = result.errors[0]
        context = ErrorContext(
            file=file,
            line=first.line,
            column=first.column,
            snippet=extract_snippet(source, first.line),
        )
        typer.echo(context.format(), err=True)
        raise typer.Exit(code=1)

    formatted = stringify(result.ast, config.to_stringify_options())

    if check_only:
        if formatted != source:
            typer.echo(f"would reformat {file}")
            raise typer.Exit(code=1)
        typer.echo(f"{file} is formatted")
        return

    if write:
        file.write_text(formatted, encoding="utf-8")
        console.print(f"[green]Formatted {escape(str(file))}[/green]")
        return

    typer.echo(formatted, nl=False)


@app.command()
def tokens(
    file: Path = typer.Argument(  # noqa: B008
        ..., exists=True, dir_okay=False, help="CellDL file to tokenize"
    ),
) -> None:
    """Show the token stream of a file."""
    result = tokenize(_read_source(file))

    table = Table(title=f"Tokens: {file.name}")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Col", justify="right", style="dim")
    table.add_column("Type")
    table.add_column("Value")

    for token in result.tokens:
        if token.type == TokenType.EOF:
            continue
        table.add_row(
            str(token.line),
            str(token.column),
            f"[cyan]{token.type.name}[/cyan]" if token.is_keyword else token.type.name,
            escape(token.value),
        )

    console.print(table)
    console.print(f"\n[dim]{len(result.tokens) - 1} token(s)[/dim]")

    for error in result.errors:
        console.print(f"[red]{error.line}:{error.column} {escape(error.message)}[/red]")
    if result.errors:
        raise typer.Exit(code=1)


@app.command(name="ast")
def ast_command(
    file: Path = typer.Argument(  # noqa: B008
        ..., exists=True, dir_okay=False, help="CellDL file to parse"
    ),
) -> None:
    """
    Dump the AST of a file as JSON.

    Uses error recovery, so malformed files still produce a tree with error nodes.
    """
    result = parse_with_recovery(_read_source(file))
    typer.echo(result.ast.model_dump_json(indent=2))
    if not result.success:
        typer.echo(f"{len(result.errors)} diagnostic(s)", err=True)


# =============================================================================
# Main Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


if __name__ == "__main__":
    main(sys.argv[1:])
