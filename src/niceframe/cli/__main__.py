"""Typer-based CLI for niceframe."""

from __future__ import annotations

import json
import logging
import sys
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import typer
from rich import print

from niceframe.core.config import load_config
from niceframe.core.errors import NiceFrameError
from niceframe.core.pipeline import inspect_image, run_pipeline

app = typer.Typer(add_completion=False, help="Normalize solid image borders to a fixed frame width.")

logger = logging.getLogger("niceframe")

Outcome = Tuple[Path, Optional[Dict[str, Any]], Optional[str], int]


def _configure_logging(verbose: bool) -> None:
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(levelname)s] %(message)s",
            stream=sys.stderr,
        )
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _normalize_one(path: Path, cfg: Dict[str, Any], dry_run: bool) -> Outcome:
    try:
        return path, run_pipeline(path, cfg, dry_run=dry_run), None, 0
    except NiceFrameError as exc:
        logger.error("%s: %s", path, exc)
        return path, None, str(exc), exc.exit_code
    except Exception as exc:
        logger.exception("Unexpected failure on %s", path)
        return path, None, f"{type(exc).__name__}: {exc}", 1


def _run_all(paths: List[Path], cfg: Dict[str, Any], dry_run: bool, jobs: int) -> Iterator[Outcome]:
    if jobs <= 1 or len(paths) <= 1:
        for path in paths:
            yield _normalize_one(path, cfg, dry_run)
        return
    with ProcessPoolExecutor(max_workers=jobs) as executor:
        yield from executor.map(_normalize_one, paths, repeat(cfg), repeat(dry_run))


@app.command()
def normalize(
    paths: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Images to normalize in place"),
    frame_width: Optional[int] = typer.Option(None, "--frame-width", "-w", min=0, help="Target border width in pixels"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="YAML config path"),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Images processed in parallel"),
    scan_strategy: Optional[str] = typer.Option(None, "--scan-strategy", help="spool or memory"),
    no_downsample: bool = typer.Option(False, "--no-downsample", help="Keep 144 dpi images at full size"),
    no_jpeg: bool = typer.Option(False, "--no-jpeg", help="Never convert photographic PNGs to JPEG"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would change without writing"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Normalize the border of each image in place."""
    _configure_logging(verbose)

    overrides: Dict[str, Any] = {}
    if frame_width is not None:
        overrides["frame_width"] = frame_width
    if scan_strategy is not None:
        overrides["scan"] = {"strategy": scan_strategy}
    if no_downsample:
        overrides["downsample"] = {"enabled": False}
    if no_jpeg:
        overrides["photo"] = {"enabled": False}

    try:
        cfg = load_config(config, overrides)
    except NiceFrameError as exc:
        print(f"[red]Config error[/]: {exc}")
        raise typer.Exit(exc.exit_code)

    exit_code = 0
    for path, result, error, code in _run_all(list(paths), cfg, dry_run, jobs):
        if error is None:
            print("[green]OK[/] →", json.dumps(result, ensure_ascii=False, indent=2))
        else:
            print(f"[red]FAILED[/] {path}: {error}")
            exit_code = exit_code or code
    raise typer.Exit(exit_code)


@app.command()
def inspect(
    paths: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Images to classify"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Show the border classification of each image without changing it."""
    _configure_logging(verbose)
    exit_code = 0
    for path in paths:
        try:
            print(json.dumps(inspect_image(path), ensure_ascii=False, indent=2))
        except NiceFrameError as exc:
            print(f"[red]FAILED[/] {path}: {exc}")
            exit_code = exit_code or exc.exit_code
    raise typer.Exit(exit_code)


if __name__ == "__main__":
    try:
        app()
    except Exception:  # pragma: no cover - top-level CLI guard
        logger.exception("niceframe failed")
        raise
