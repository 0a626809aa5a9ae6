"""Invoke tasks for the mvx development workflow.

Every task runs through `uv` so local runs match CI; `samples` additionally
generates small media fixtures with whatever converters are installed.
"""

from __future__ import annotations

import shlex
import shutil
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"
SAMPLES_DIR = PROJECT_ROOT / "samples"
CHECK_PATHS = ("src", "tests")


def _uv(ctx: Context, *args: str, echo: bool = True) -> None:
    """Run ``uv ARGS...`` with a PTY so colours survive."""
    ctx.run(shlex.join(("uv", *args)), echo=echo, pty=True)


@task(help={"dev": "Include the dev extra (pytest, ruff, mypy, invoke)."})
def sync(ctx: Context, dev: bool = True) -> None:
    """Create or refresh the virtual environment."""
    _uv(ctx, "sync", *(("--extra", "dev") if dev else ()))


@task(help={"clean": "Remove dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build the sdist and wheel into dist/."""
    if clean:
        shutil.rmtree(DIST_DIR, ignore_errors=True)
    _uv(ctx, "build")


@task(
    help={
        "k": "pytest -k expression.",
        "path": "Test path (defaults to tests).",
        "options": "Extra pytest flags, split like a shell would.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite."""
    args = ["run", "pytest", *shlex.split(options)]
    if k:
        args += ["-k", k]
    _uv(ctx, *args, path)


@task(help={"fix": "Let ruff apply safe fixes."})
def lint(ctx: Context, fix: bool = False) -> None:
    """Check formatting and lint with ruff."""
    _uv(ctx, "run", "ruff", "format", "--check", *CHECK_PATHS)
    _uv(ctx, "run", "ruff", "check", *CHECK_PATHS, *(("--fix",) if fix else ()))


@task
def mypy(ctx: Context) -> None:
    """Type-check the package."""
    _uv(ctx, "run", "mypy", "src")


def _generate(ctx: Context, args: list[str]) -> None:
    ctx.run(shlex.join(args), echo=True)


@task(help={"out": "Directory receiving the generated samples."})
def samples(ctx: Context, out: str = str(SAMPLES_DIR)) -> None:
    """Write a PNG, a WAV, and an MP4 for trying conversions by hand.

    Samples whose generator is not installed are skipped.
    """
    out_dir = Path(out)
    out_dir.mkdir(parents=True, exist_ok=True)

    magick = shutil.which("magick") or shutil.which("convert")
    if magick is None:
        print("ImageMagick not found; skipping image sample")
    else:
        _generate(ctx, [magick, "-size", "64x64", "xc:skyblue", str(out_dir / "input.png")])

    if shutil.which("ffmpeg") is None:
        print("ffmpeg not found; skipping audio/video samples")
    else:
        tone = "sine=frequency=1000:duration=0.5"
        _generate(ctx, ["ffmpeg", "-y", "-f", "lavfi", "-i", tone, str(out_dir / "input.wav")])
        _generate(
            ctx,
            [
                "ffmpeg",
                "-y",
                "-f",
                "lavfi",
                "-i",
                "testsrc=size=128x72:rate=15",
                "-f",
                "lavfi",
                "-i",
                tone,
                "-shortest",
                "-c:v",
                "libx264",
                "-pix_fmt",
                "yuv420p",
                "-c:a",
                "aac",
                str(out_dir / "input.mp4"),
            ],
        )
    print(f"Samples written to {out_dir}")


@task(pre=[lint, mypy, tests])
def ci(ctx: Context) -> None:
    """Run lint, type checks, and tests the way CI does."""


namespace = Collection(sync, build, tests, lint, mypy, samples, ci)
