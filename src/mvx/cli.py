"""Command line interface for mvx."""

from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from mvx.config import (
    ConfigError,
    ConfigManager,
    MvxConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from mvx.config.resolver import assign_path, conversion_options
from mvx.execution import (
    BatchReport,
    BatchRequest,
    BatchRunner,
    ConversionWorker,
    ExecutionError,
    PlanExecutor,
)
from mvx.history import HistoryError, HistoryRepository
from mvx.ingestion import InputNotFoundError, SourceCollector, destination_for, read_input_lines
from mvx.logging_utils import configure_logging
from mvx.planning import (
    ConversionOptions,
    ConversionPlanner,
    FfmpegPreference,
    PlanValidationError,
    plan_report,
    render_plan,
)
from mvx.progress import ChannelSink, ConsoleSink, ProgressSink, QuietSink
from mvx.ui import LiveDashboard

console = Console()
LOGGER = logging.getLogger(__name__)


_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (click.UsageError, "invalid_arguments"),
    (ConfigError, "config_error"),
    (PlanValidationError, "invalid_plan"),
    (InputNotFoundError, "input_not_found"),
    (ExecutionError, "execution_failed"),
    (HistoryError, "history_error"),
)


def _fail(error: Exception, *, json_output: bool) -> NoReturn:
    """Report ``error`` and terminate the command.

    JSON mode prints ``{"error": {"code", "message", "details"?}}`` and exits
    with status 1. Text mode re-raises usage errors (exit status 2) and wraps
    everything else in a :class:`click.ClickException` (exit status 1).

    Raises:
        SystemExit: When emitting JSON output.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if isinstance(error, click.UsageError):
        message = error.format_message()
    else:
        message = str(error)

    if json_output:
        code = next((name for kind, name in _ERROR_CODES if isinstance(error, kind)), "error")
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if isinstance(error, ExecutionError):
            payload["error"]["details"] = {"step": error.step}
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(error, click.ClickException):
        raise error
    raise click.ClickException(message) from error


_CONVERSION_OPTIONS: list[Callable[[Callable[..., Any]], Callable[..., Any]]] = [
    click.option("--overwrite", is_flag=True, help="Replace an existing destination."),
    click.option("--backup", is_flag=True, help="Rotate an existing destination to .bak names."),
    click.option("--move-source", is_flag=True, help="Remove the source after success."),
    click.option("--image-quality", type=int, help="ImageMagick quality (1-100)."),
    click.option("--video-bitrate", type=str, help="Video bitrate such as 2500k."),
    click.option("--audio-bitrate", type=str, help="Audio bitrate such as 192k."),
    click.option("--preset", type=str, help="Encoder preset (ultrafast ... veryslow)."),
    click.option("--video-codec", type=str, help="ffmpeg video encoder."),
    click.option("--audio-codec", type=str, help="ffmpeg audio encoder."),
    click.option("--stream-copy", is_flag=True, help="Force ffmpeg stream copy."),
    click.option("--transcode", is_flag=True, help="Force ffmpeg transcoding."),
    click.option(
        "--config",
        "config_path",
        type=click.Path(dir_okay=False, path_type=Path),
        help="Configuration file to load instead of the default.",
    ),
    click.option("--profile", type=str, help="Named option profile from the config file."),
    click.option("--plan", "--dry-run", "plan_only", is_flag=True, help="Show the plan only."),
    click.option("--json", "json_output", is_flag=True, help="Emit JSON output."),
    click.option("--live/--no-live", default=False, help="Show the interactive progress view."),
    click.option("--quiet", is_flag=True, help="Suppress progress output."),
    click.option("-v", "--verbose", count=True, help="Increase log verbosity."),
]


def _conversion_flags(func: Callable[..., Any]) -> Callable[..., Any]:
    for decorator in reversed(_CONVERSION_OPTIONS):
        func = decorator(func)
    return func


def _check_flag_conflicts(flags: dict[str, Any]) -> None:
    if flags["overwrite"] and flags["backup"]:
        raise click.UsageError("--overwrite and --backup are mutually exclusive.")
    if flags["stream_copy"] and flags["transcode"]:
        raise click.UsageError("--stream-copy and --transcode are mutually exclusive.")


def _load_settings(flags: dict[str, Any]) -> tuple[MvxConfig, ConversionOptions]:
    """Load configuration and layer command-line flags over the selected options.

    Raises:
        ConfigError: If configuration cannot be loaded or the profile is unknown.
    """

    manager = ConfigManager(flags["config_path"])
    settings = manager.load()
    options = conversion_options(settings, flags["profile"])

    updates: dict[str, Any] = {}
    for key in (
        "image_quality",
        "video_bitrate",
        "audio_bitrate",
        "preset",
        "video_codec",
        "audio_codec",
    ):
        if flags[key] is not None:
            updates[key] = flags[key]
    if flags["stream_copy"]:
        updates["ffmpeg_preference"] = FfmpegPreference.STREAM_COPY
    elif flags["transcode"]:
        updates["ffmpeg_preference"] = FfmpegPreference.TRANSCODE
    if updates:
        options = options.model_copy(update=updates)
    return settings, options


def _resolve_display(
    ctx: click.Context,
    settings: MvxConfig,
    *,
    json_output: bool,
    live: bool,
    quiet: bool,
) -> tuple[bool, bool]:
    """Return ``(live, quiet)`` after applying config defaults to unset flags."""
    if ctx.get_parameter_source("live") != ParameterSource.COMMANDLINE:
        live = settings.cli.live_default
    if ctx.get_parameter_source("quiet") != ParameterSource.COMMANDLINE:
        quiet = settings.cli.quiet_default
    if json_output:
        return False, True
    return live, quiet


def _run_with_dashboard(runner: BatchRunner, requests: list[BatchRequest]) -> BatchReport:
    channel: queue.Queue = queue.Queue()
    runner.executor.sink = ChannelSink(channel)
    worker = ConversionWorker(runner, requests, channel)
    worker.start()
    LiveDashboard(worker, console=Console(stderr=True)).run()
    report = worker.join()
    return report if report is not None else BatchReport()


def _record_history(paths: list[Path]) -> None:
    try:
        HistoryRepository().record(paths)
    except HistoryError as exc:
        LOGGER.warning("Unable to update history: %s", exc)


def _format_summary_line(command: str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"{command} summary: {parts}."


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="mvx")
def cli() -> None:
    """mvx renames, copies, or converts files based on their extensions."""


def _run_single(
    ctx: click.Context,
    source: str,
    destination: str,
    *,
    plan_only: bool,
    json_output: bool,
    live: bool,
    quiet: bool,
    flags: dict[str, Any],
) -> None:
    """Plan and optionally execute a single source/destination pair."""
    try:
        _check_flag_conflicts(flags)
        settings, options = _load_settings(flags)
        configure_logging(settings.logging, verbose=flags["verbose"])
        planner = ConversionPlanner()
        plan = planner.build_plan(
            Path(source),
            Path(destination),
            move_source=flags["move_source"],
            backup=flags["backup"],
            options=options,
        )
    except (click.UsageError, ConfigError, PlanValidationError) as exc:
        _fail(exc, json_output=json_output)

    overwrite = flags["overwrite"]
    if plan_only:
        if json_output:
            console.print_json(data=plan_report(plan, overwrite))
        else:
            click.echo(render_plan(plan, overwrite))
        return

    live, quiet = _resolve_display(ctx, settings, json_output=json_output, live=live, quiet=quiet)
    if live:
        runner = BatchRunner(planner, PlanExecutor(QuietSink()), overwrite=overwrite)
        report = _run_with_dashboard(
            runner, [BatchRequest(plan.source, plan.destination, plan=plan)]
        )
        if not report.ok:
            failure = report.failures[0]
            error = ExecutionError(
                failure.error or "execution failed", step=failure.step or "run-backend"
            )
            _fail(error, json_output=json_output)
        ffmpeg_mode = None
        backup_path = None
    else:
        sink: ProgressSink = QuietSink() if quiet else ConsoleSink()
        try:
            result = PlanExecutor(sink).execute(plan, overwrite=overwrite)
        except ExecutionError as exc:
            _fail(exc, json_output=json_output)
        ffmpeg_mode = result.ffmpeg_mode.value if result.ffmpeg_mode else None
        backup_path = result.backup_path

    _record_history([plan.source, plan.destination])

    if json_output:
        payload = {
            "status": "ok",
            "plan": plan_report(plan, overwrite),
            "ffmpeg_mode": ffmpeg_mode,
            "backup_path": str(backup_path) if backup_path else None,
        }
        console.print_json(data=payload)
        return
    if backup_path is not None:
        console.print(
            f"[yellow]Backed up existing destination to {escape(str(backup_path))}[/yellow]"
        )
    console.print(
        f"[green]{plan.strategy.value}: {escape(str(plan.source))} -> "
        f"{escape(str(plan.destination))}[/green]"
    )


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.argument("destination", type=click.Path(path_type=str))
@_conversion_flags
@click.pass_context
def run(
    ctx: click.Context,
    source: str,
    destination: str,
    plan_only: bool,
    json_output: bool,
    live: bool,
    quiet: bool,
    **flags: Any,
) -> None:
    """Rename, copy, or convert SOURCE into DESTINATION.

    Args:
        ctx: Click context used for parameter source inspection.
        source: Existing source file.
        destination: Requested destination path.
        plan_only: Show the plan without executing it.
        json_output: Emit JSON instead of text.
        live: Show the interactive progress view.
        quiet: Suppress console progress.
        **flags: Conversion and configuration flags.
    """

    _run_single(
        ctx,
        source,
        destination,
        plan_only=plan_only,
        json_output=json_output,
        live=live,
        quiet=quiet,
        flags=flags,
    )


@cli.command("plan")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.argument("destination", type=click.Path(path_type=str))
@_conversion_flags
@click.pass_context
def plan_command(
    ctx: click.Context,
    source: str,
    destination: str,
    plan_only: bool,
    json_output: bool,
    live: bool,
    quiet: bool,
    **flags: Any,
) -> None:
    """Show how SOURCE would be turned into DESTINATION without doing it."""
    _run_single(
        ctx,
        source,
        destination,
        plan_only=True,
        json_output=json_output,
        live=False,
        quiet=quiet,
        flags=flags,
    )


@cli.command()
@click.argument("inputs", nargs=-1, type=str)
@click.option(
    "--dest-dir",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory receiving the outputs.",
)
@click.option("--input", "extra_inputs", multiple=True, help="Additional input path or glob.")
@click.option("--stdin", "read_stdin", is_flag=True, help="Read input paths from stdin.")
@click.option("-r", "--recursive", is_flag=True, help="Descend into subdirectories.")
@click.option("--to-ext", type=str, help="Replace each source extension with EXT.")
@_conversion_flags
@click.pass_context
def batch(
    ctx: click.Context,
    inputs: tuple[str, ...],
    dest_dir: Path,
    extra_inputs: tuple[str, ...],
    read_stdin: bool,
    recursive: bool,
    to_ext: Optional[str],
    plan_only: bool,
    json_output: bool,
    live: bool,
    quiet: bool,
    **flags: Any,
) -> None:
    """Process INPUTS (files, directories, globs) into --dest-dir one at a time.

    Args:
        ctx: Click context used for parameter source inspection.
        inputs: Input paths, directories, or glob patterns.
        dest_dir: Output directory.
        extra_inputs: Values from repeated ``--input`` options.
        read_stdin: Whether to read additional inputs from stdin.
        recursive: Whether directories are traversed recursively.
        to_ext: Destination extension override.
        plan_only: Show plans without executing them.
        json_output: Emit JSON instead of text.
        live: Show the interactive progress view.
        quiet: Suppress console progress.
        **flags: Conversion and configuration flags.
    """

    try:
        _check_flag_conflicts(flags)
        settings, options = _load_settings(flags)
        configure_logging(settings.logging, verbose=flags["verbose"])
        values = [*inputs, *extra_inputs]
        if read_stdin:
            values.extend(read_input_lines(click.get_text_stream("stdin")))
        if not values:
            raise click.UsageError("No inputs given; pass paths, --input, or --stdin.")
        sources = SourceCollector(recursive=recursive).collect(values)
    except (click.UsageError, ConfigError, InputNotFoundError) as exc:
        _fail(exc, json_output=json_output)

    requests = [
        BatchRequest(source, destination_for(source, dest_dir, to_ext)) for source in sources
    ]
    live, quiet = _resolve_display(ctx, settings, json_output=json_output, live=live, quiet=quiet)
    sink: ProgressSink = QuietSink() if quiet or plan_only else ConsoleSink()
    runner = BatchRunner(
        ConversionPlanner(),
        PlanExecutor(sink),
        options=options,
        overwrite=flags["overwrite"],
        backup=flags["backup"],
        move_source=flags["move_source"],
        dry_run=plan_only,
    )

    if live and not plan_only:
        report = _run_with_dashboard(runner, requests)
    else:
        report = runner.run(requests)

    if not plan_only:
        _record_history([dest_dir, *(result.source for result in report.results if result.ok)])

    metrics = {"total": report.total, "succeeded": report.succeeded, "failed": report.failed}
    if json_output:
        payload = report.to_dict()
        if plan_only:
            payload["plans"] = [
                plan_report(result.plan, flags["overwrite"])
                for result in report.results
                if result.plan is not None
            ]
        console.print_json(data=payload)
    else:
        if plan_only:
            for result in report.results:
                if result.plan is not None:
                    click.echo(render_plan(result.plan, flags["overwrite"]))
                    click.echo("")
        style = "green" if report.ok else "yellow"
        console.print(f"[{style}]{_format_summary_line('batch', metrics)}[/{style}]")
        for failure in report.failures:
            console.print(
                f"[red]failed {escape(str(failure.source))} "
                f"({failure.step}): {escape(failure.error or '')}[/red]"
            )

    if not report.ok:
        ctx.exit(1)


@cli.command()
@click.option("--limit", type=int, default=20, show_default=True, help="Entries to show.")
@click.option("--json", "json_output", is_flag=True, help="Emit history as JSON.")
def history(limit: int, json_output: bool) -> None:
    """List recently used paths, newest first."""
    try:
        entries = HistoryRepository().load().entries[: max(limit, 0)]
    except HistoryError as exc:
        _fail(exc, json_output=json_output)

    if json_output:
        console.print_json(data={"entries": entries})
        return
    if not entries:
        console.print("[yellow]No history recorded yet.[/yellow]")
        return
    table = Table(title="Recent paths")
    table.add_column("#", justify="right")
    table.add_column("Path", overflow="fold")
    for index, entry in enumerate(entries, start=1):
        table.add_row(str(index), escape(entry))
    console.print(table)


@cli.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file to manage instead of the default.",
)
@click.pass_context
def config(ctx: click.Context, config_path: Optional[Path]) -> None:
    """Manage mvx configuration files and overrides."""
    ctx.obj = ConfigManager(config_path)


def _store_config(manager: ConfigManager, data: dict[str, Any]) -> None:
    """Validate ``data`` as a complete config file and write it.

    Raises:
        click.ClickException: If the data does not describe a valid configuration.
    """
    try:
        resolve_with_precedence(defaults=MvxConfig(), file_overrides=data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    manager.save(data)


def _lookup(data: dict[str, Any], segments: list[str]) -> Any:
    node: Any = data
    for segment in segments:
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
    return node


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore MVX__ environment overrides.")
@click.option("--env-vars", is_flag=True, help="Show the settings as MVX__ variables.")
@click.pass_obj
def config_view(manager: ConfigManager, no_env: bool, env_vars: bool) -> None:
    """Display the effective configuration, creating a default file if needed.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    try:
        manager.ensure_exists()
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(f"[dim]{escape(str(manager.config_path))}[/dim]")
    if env_vars:
        for name, value in flatten_for_env(effective).items():
            click.echo(f"{name}={value}")
        return
    rendered = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(rendered, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML literal stored at KEY.")
@click.pass_obj
def config_set(manager: ConfigManager, key: str, value: str) -> None:
    """Store VALUE at the dotted KEY, e.g. ``conversion.video_bitrate``.

    Args:
        manager: Configuration manager selected by the group.
        key: Dotted path of the setting to change.
        value: YAML literal; ``128k`` stays a string and ``true`` becomes a boolean.

    Raises:
        click.ClickException: If the key, value, or resulting file is invalid.
    """
    segments = [segment.strip() for segment in key.split(".")]
    if not all(segments):
        raise click.ClickException(
            f"Invalid KEY {key!r}; use a dotted path like 'cli.quiet_default'."
        )
    try:
        new_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.ensure_exists()
        data = manager.load_file_overrides()
        old_value = _lookup(data, segments)
        assign_path(data, segments, new_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    dotted = ".".join(segments)
    if old_value == new_value:
        console.print(f"[yellow]No changes applied; {escape(dotted)} is already set.[/yellow]")
        return
    _store_config(manager, data)
    console.print(
        f"[green]Updated {escape(dotted)}: {escape(repr(old_value))} -> "
        f"{escape(repr(new_value))}[/green]"
    )


@config.command("edit")
@click.pass_obj
def config_edit(manager: ConfigManager) -> None:
    """Edit the configuration file in $EDITOR and validate the result.

    Raises:
        click.ClickException: If the edited text is not a valid configuration.
    """
    try:
        manager.ensure_exists()
    except OSError as exc:
        raise click.ClickException(f"Unable to create {manager.config_path}: {exc}") from exc

    before = manager.read_text()
    after = click.edit(before, extension=".yaml")
    if after is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if after == before:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        data = yaml.safe_load(after)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    _store_config(manager, data)
    console.print(f"[green]Configuration updated: {escape(str(manager.config_path))}[/green]")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
