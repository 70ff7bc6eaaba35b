"""
cli.py - Typer-based CLI for ast-compare.

Compare the abstract syntax trees of the js files in one or more
subdirectories of two source trees:

  ast-compare -o ORIGINAL -m MODIFIED [-j SUBDIR ...] [-d] [-v]

Exit status is 0 when the run completes (divergences are reported, not
fatal) and 1 when a directory cannot be listed, a file does not parse, or
a debug artifact cannot be written.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from ast_compare.errors import AstCompareError
from ast_compare.models import CompareConfig, FailurePolicy
from ast_compare.pipeline import run_comparison

app = typer.Typer(
    name="ast-compare",
    help="Compare the abstract syntax trees of js files in one or more subdirectories of two trees.",
    add_completion=False,
)
console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Configuration helpers
# ---------------------------------------------------------------------------


def _load_config_data(config_path: Optional[str] = None) -> dict[str, Any]:
    """Load raw config values from a JSON file, or return an empty dict.

    Values are validated together with the command-line overrides.
    """
    if config_path is None:
        return {}
    path = Path(config_path)
    if not path.exists():
        raise typer.BadParameter(f"Config file not found: {config_path}", param_hint="--config")
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON in {config_path}: {exc}", param_hint="--config")
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{config_path} must contain a JSON object", param_hint="--config")
    return data


def build_config(
    original_source: Optional[str],
    modified_source: Optional[str],
    js_files_dir: Optional[list[str]],
    debug: bool,
    verbose: bool,
    jobs: Optional[int],
    keep_going: bool,
    strict: bool,
    ecma_version: Optional[int],
    source_type: Optional[str],
    config_path: Optional[str] = None,
) -> CompareConfig:
    """Merge the optional JSON config file with explicit command-line values."""
    data = _load_config_data(config_path)
    overrides: dict[str, Any] = {
        "original_source": original_source,
        "modified_source": modified_source,
        "js_files_dir": js_files_dir or None,
        "jobs": jobs,
        "ecma_version": ecma_version,
        "source_type": source_type,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    if debug:
        data["debug"] = True
    if verbose:
        data["verbose"] = True
    if keep_going:
        data["failure_policy"] = FailurePolicy.COLLECT
    if strict:
        data["fail_on_divergence"] = True
    for key in ("original_source", "modified_source"):
        if data.get(key):
            data[key] = os.path.normpath(data[key])
    return CompareConfig.model_validate(data)


# ---------------------------------------------------------------------------
# Main command
# ---------------------------------------------------------------------------


@app.command()
def main(
    original_source: Optional[str] = typer.Option(
        None, "--originalSource", "--original-source", "-o", help="Path to unmodified source tree"
    ),
    modified_source: Optional[str] = typer.Option(
        None, "--modifiedSource", "--modified-source", "-m", help="Path to modified source tree"
    ),
    js_files_dir: Optional[list[str]] = typer.Option(
        None, "--jsFilesDir", "--js-files-dir", "-j",
        help='Subdirectory containing the js files to analyze (repeatable). Defaults to "jstests"',
    ),
    debug: bool = typer.Option(
        False, "--debug", "-d",
        help="Save AST dumps and a diff file for any file sets containing different ASTs.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose mode"),
    jobs: Optional[int] = typer.Option(None, "--jobs", help="Number of parallel workers"),
    keep_going: bool = typer.Option(
        False, "--keep-going", help="Report parse/write failures at the end instead of stopping"
    ),
    strict: bool = typer.Option(False, "--strict", help="Exit non-zero when any AST differs"),
    ecma_version: Optional[int] = typer.Option(None, "--ecma-version", help="ECMAScript version (default 2015)"),
    source_type: Optional[str] = typer.Option(None, "--source-type", help="script or module"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config JSON"),
) -> None:
    """Compare the ASTs of every js file in the original tree with its modified copy."""
    try:
        cfg = build_config(
            original_source, modified_source, js_files_dir, debug, verbose,
            jobs, keep_going, strict, ecma_version, source_type, config,
        )
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration:[/red]\n{escape(str(exc))}")
        raise typer.Exit(2)

    if cfg.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        summary = run_comparison(cfg)
    except AstCompareError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]", highlight=False)
        raise typer.Exit(1)

    for message in summary.errors:
        console.print(f"[red]{escape(message)}[/red]", highlight=False)

    if cfg.verbose:
        console.print(
            f"Compared [bold]{summary.files_compared}[/bold] file(s): "
            f"[yellow]{len(summary.divergent)} divergent[/yellow], "
            f"[red]{len(summary.errors)} error(s)[/red]"
        )
    raise typer.Exit(summary.exit_code)


if __name__ == "__main__":
    app()
