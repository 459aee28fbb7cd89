"""unistroke CLI — manage a stroke library and recognize strokes.

Usage:
    unistroke list                     — List saved strokes
    unistroke add NAME POINTS_FILE     — Save a stroke to the library
    unistroke show NAME                — Print a saved stroke's points
    unistroke delete NAME              — Remove every stroke with this name
    unistroke normalize POINTS_FILE    — Print the normalized stroke
    unistroke recognize POINTS_FILE    — Match a stroke against the library
    unistroke benchmark                — Time recognition on built-in shapes

Points files hold one ``x y`` pair per line, or a JSON list of pairs.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

try:
    import typer
except ImportError:
    raise ImportError("typer is required for CLI. Install with: pip install typer")

from unistroke.config import RecognizerConfig
from unistroke.errors import StrokeError
from unistroke.library import TemplateLibrary
from unistroke.recognizer import Recognizer
from unistroke.recorder import load_points
from unistroke.stroke import Stroke

app = typer.Typer(
    name="unistroke",
    help="✏️  Single-stroke gesture recognizer.",
    add_completion=False,
)


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", help="Path to YAML config file"),
    library: Optional[str] = typer.Option(None, "--library", "-l", help="Stroke library file"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Single-stroke gesture recognizer."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = RecognizerConfig.from_yaml(config) if config else RecognizerConfig()
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Invalid config: {e}", err=True)
        raise typer.Exit(1)
    if library:
        cfg.library_path = library
    ctx.obj = cfg


def _fail(message: str):
    typer.echo(f"❌ {message}", err=True)
    raise typer.Exit(1)


def _load_library(cfg: RecognizerConfig) -> TemplateLibrary:
    try:
        return TemplateLibrary.load(cfg.library_path)
    except StrokeError as e:
        _fail(f"Cannot read {cfg.library_path}: {e}")


def _load_stroke(points_file: str, name: str = "") -> Stroke:
    path = Path(points_file)
    if not path.exists():
        _fail(f"Points file not found: {points_file}")
    try:
        return load_points(path, name=name)
    except (StrokeError, ValueError) as e:
        _fail(str(e))


@app.command("list")
def list_strokes(ctx: typer.Context):
    """List the strokes saved in the library."""
    cfg: RecognizerConfig = ctx.obj
    library = _load_library(cfg)
    if not len(library):
        typer.echo(f"No saved strokes in {cfg.library_path}")
        return
    typer.echo(f"📚 {len(library)} saved strokes in {cfg.library_path}:")
    for stroke in library:
        typer.echo(f"   {stroke.name}\t({len(stroke)} points)")


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the stroke"),
    points_file: str = typer.Argument(..., help="File with the stroke's points"),
):
    """Save a stroke to the library."""
    cfg: RecognizerConfig = ctx.obj
    stroke = _load_stroke(points_file, name=name)
    if len(stroke) < cfg.min_points:
        _fail(f"Cannot save the stroke: too short ({len(stroke)} < {cfg.min_points} points)")

    library = _load_library(cfg)
    library.add(stroke)
    library.save(cfg.library_path)
    typer.echo(f"💾 Saved \"{name}\" to {cfg.library_path}")


@app.command()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the stroke to view"),
):
    """Print the points of a saved stroke."""
    cfg: RecognizerConfig = ctx.obj
    stroke = _load_library(cfg).find(name)
    if stroke is None:
        _fail(f"Cannot view the stroke \"{name}\": the stroke does not exist")
    typer.echo(f"Viewing the stroke \"{name}\" ({len(stroke)} points)")
    for p in stroke.points:
        typer.echo(f"{p.x:g}\t{p.y:g}")


@app.command()
def delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the strokes to delete"),
):
    """Remove every stroke with this name from the library."""
    cfg: RecognizerConfig = ctx.obj
    library = _load_library(cfg)
    removed = library.remove(name)
    library.save(cfg.library_path)
    typer.echo(f"🗑  Removed {removed} stroke(s) named \"{name}\" from {cfg.library_path}")


@app.command()
def normalize(
    ctx: typer.Context,
    points_file: str = typer.Argument(..., help="File with the stroke's points"),
    origin_x: Optional[float] = typer.Option(None, help="Centroid x (default: config origin)"),
    origin_y: Optional[float] = typer.Option(None, help="Centroid y (default: config origin)"),
):
    """Resample, de-rotate, scale and translate a stroke, then print it."""
    cfg: RecognizerConfig = ctx.obj
    x, y = cfg.origin
    cfg.origin = (
        x if origin_x is None else origin_x,
        y if origin_y is None else origin_y,
    )
    stroke = _load_stroke(points_file)
    try:
        normalized = Recognizer(cfg).normalize(stroke)
    except StrokeError as e:
        _fail(str(e))
    for p in normalized.points:
        typer.echo(f"{p.x:.4f}\t{p.y:.4f}")


@app.command()
def recognize(
    ctx: typer.Context,
    points_file: str = typer.Argument(..., help="File with the stroke's points"),
    min_score: Optional[float] = typer.Option(None, help="Reject matches scoring below this"),
    defaults: bool = typer.Option(False, "--defaults", help="Match against built-in shapes"),
):
    """Match a stroke against the saved strokes."""
    cfg: RecognizerConfig = ctx.obj
    if min_score is not None:
        cfg.min_score = min_score

    stroke = _load_stroke(points_file)
    if len(stroke) < cfg.min_points:
        _fail(f"The stroke is too short ({len(stroke)} < {cfg.min_points} points)")

    library = TemplateLibrary.with_defaults() if defaults else _load_library(cfg)
    if not len(library):
        _fail("There is no saved stroke.")

    try:
        result = Recognizer(cfg, library).recognize(stroke)
    except StrokeError as e:
        _fail(str(e))

    if result is None:
        _fail(f"No stroke matched (minimum score {cfg.min_score:.2f})")
    typer.echo(f"{result.name} (Score = {result.score:.2f})")


@app.command()
def benchmark(
    ctx: typer.Context,
    iterations: int = typer.Option(100, min=1, help="Number of noisy queries"),
    noise: float = typer.Option(3.0, help="Gaussian jitter added to each point"),
    workers: int = typer.Option(1, min=1, help="Threads used per recognition"),
    seed: int = typer.Option(42, help="Random seed"),
):
    """Time recognition of jittered built-in shapes against the built-in library."""
    import numpy as np

    cfg: RecognizerConfig = ctx.obj
    cfg.workers = workers
    library = TemplateLibrary.with_defaults()
    recognizer = Recognizer(cfg, library)
    rng = np.random.default_rng(seed)
    shapes = list(library)

    typer.echo(f"⚡ Running benchmark: {iterations} queries, {len(shapes)} templates, {workers} worker(s)")

    times = []
    correct = 0
    for i in range(iterations):
        source = shapes[i % len(shapes)]
        jittered = source.as_array() + rng.normal(0.0, noise, size=(len(source), 2))
        query = Stroke.from_array("", jittered)

        t0 = time.perf_counter()
        result = recognizer.recognize(query)
        times.append(time.perf_counter() - t0)

        if result is not None and result.name == source.name:
            correct += 1

    avg_ms = sum(times) / len(times) * 1000
    p95_ms = sorted(times)[min(len(times) - 1, int(len(times) * 0.95))] * 1000

    typer.echo(f"\n📊 Results:")
    typer.echo(f"   Average latency: {avg_ms:.2f} ms")
    typer.echo(f"   P95 latency:     {p95_ms:.2f} ms")
    typer.echo(f"   Accuracy:        {correct / iterations:.1%}")


def main():
    app()


if __name__ == "__main__":
    main()
