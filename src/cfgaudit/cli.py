"""cfgaudit CLI — Typer application with run, watch, status, stop, and init commands."""

from __future__ import annotations

import os
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from cfgaudit import __version__
from cfgaudit.lifecycle.pidfile import DEFAULT_PID_FILE

app = typer.Typer(
    name="cfgaudit",
    help="Audit WebSphere configuration checkpoints into an append-only log.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

_CONFIG_HELP = "Path to cfgaudit.toml"
_USER_HELP = "wsadmin user (or CFGAUDIT_USER)"
_PASSWORD_HELP = "wsadmin password (or CFGAUDIT_PASSWORD)"


def _load(config: Optional[str]):
    """Load config and configure logging, exit 2 on failure."""
    from cfgaudit.config.loader import ConfigError, load_config
    from cfgaudit.observability import setup_logging

    try:
        cfg = load_config(Path.cwd(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    setup_logging(cfg.logging.level, cfg.logging.format)
    return cfg


def _build_extractor(cfg, user: Optional[str], password: Optional[str]):
    """Create the configured extractor, exit 2 when credentials are missing."""
    from cfgaudit.checkpoints.extractor import (
        ArchiveDirectoryExtractor,
        ConnectionParams,
        Credentials,
        WsadminExtractor,
    )

    ex = cfg.extractor
    if ex.kind == "archive_dir":
        return ArchiveDirectoryExtractor(Path(ex.archive_dir))

    if not user or not password:
        console.print(
            "[bold red]Error:[/bold red] wsadmin credentials are required "
            "(--user/--password or CFGAUDIT_USER/CFGAUDIT_PASSWORD)"
        )
        raise typer.Exit(code=2)
    return WsadminExtractor(
        Path(ex.wsadmin_path),
        Credentials(user=user, password=password),
        ConnectionParams(conntype=ex.conntype.upper(), host=ex.host, port=ex.port),
        timeout=ex.timeout_seconds,
    )


def _open_cursor_store(cfg):
    """Return a writable FileCursorStore, exit 2 otherwise."""
    from cfgaudit.checkpoints.cursor import FileCursorStore
    from cfgaudit.errors import CursorStoreError

    store = FileCursorStore(Path(cfg.audit.cursor_path))
    try:
        store.ensure_writable()
    except CursorStoreError as exc:
        console.print(f"[bold red]Cursor error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    return store


# ── run ───────────────────────────────────────────────────────────────────────


@app.command()
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    user: Optional[str] = typer.Option(None, "--user", "-u", envvar="CFGAUDIT_USER", help=_USER_HELP),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", envvar="CFGAUDIT_PASSWORD", help=_PASSWORD_HELP
    ),
    pid_file: str = typer.Option(DEFAULT_PID_FILE, "--pid-file", help="Watcher PID file to check"),
    format: str = typer.Option("terminal", "--format", "-f", help="Output format: terminal | json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Process new checkpoints once and append their changes to the audit log."""
    from cfgaudit.audit.writer import AuditLogWriter
    from cfgaudit.lifecycle import pidfile
    from cfgaudit.output import json_report, terminal
    from cfgaudit.pipeline.orchestrator import run_pipeline

    if format not in ("terminal", "json"):
        console.print(f"[bold red]Invalid format:[/bold red] {format}")
        raise typer.Exit(code=2)

    watcher = pidfile.read_pid(Path(pid_file))
    if watcher is not None and watcher != os.getpid() and pidfile.is_running(watcher):
        console.print(
            f"[red]✗[/red] A watcher is running with PID {watcher}; "
            "stop it before a one-shot run"
        )
        raise typer.Exit(code=2)

    cfg = _load(config)
    extractor = _build_extractor(cfg, user, password)
    store = _open_cursor_store(cfg)

    if verbose:
        console.print(f"[dim]Checkpoint dir: {cfg.checkpoints.directory}[/dim]")
        console.print(f"[dim]Audit log: {cfg.audit.log_path}[/dim]")
        console.print(f"[dim]Extractor: {cfg.extractor.kind}[/dim]")

    result = run_pipeline(
        store.load(),
        checkpoint_dir=Path(cfg.checkpoints.directory),
        extractor=extractor,
        writer=AuditLogWriter(Path(cfg.audit.log_path)),
        cursor_store=store,
        prefix=cfg.checkpoints.prefix,
    )

    if format == "json":
        print(json_report.render(result))
    else:
        terminal.render(result, console=console)

    if result.write_failed:
        raise typer.Exit(code=1)


# ── watch ─────────────────────────────────────────────────────────────────────


@app.command()
def watch(
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    user: Optional[str] = typer.Option(None, "--user", "-u", envvar="CFGAUDIT_USER", help=_USER_HELP),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", envvar="CFGAUDIT_PASSWORD", help=_PASSWORD_HELP
    ),
    pid_file: str = typer.Option(DEFAULT_PID_FILE, "--pid-file", help="PID file guarding a single watcher"),
    max_runs: int = typer.Option(0, "--max-runs", help="Stop after N runs (0 = run until stopped)"),
) -> None:
    """Run immediately, then on the configured schedule until stopped."""
    from cfgaudit.audit.writer import AuditLogWriter
    from cfgaudit.errors import PidFileError
    from cfgaudit.lifecycle import pidfile
    from cfgaudit.observability import get_logger
    from cfgaudit.pipeline.orchestrator import run_pipeline
    from cfgaudit.pipeline.scheduler import Scheduler

    cfg = _load(config)
    extractor = _build_extractor(cfg, user, password)
    store = _open_cursor_store(cfg)
    writer = AuditLogWriter(Path(cfg.audit.log_path))
    log = get_logger("watch")

    pid_path = Path(pid_file)
    try:
        ok, msg = pidfile.acquire(pid_path)
    except PidFileError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    if not ok:
        console.print(f"[red]✗[/red] {msg}")
        raise typer.Exit(code=2)
    console.print(f"[green]✓[/green] {msg}")

    scheduler = Scheduler(cfg.interval_seconds, cfg.schedule.mode)
    cursor = store.load()

    def job() -> None:
        nonlocal cursor
        result = run_pipeline(
            cursor,
            checkpoint_dir=Path(cfg.checkpoints.directory),
            extractor=extractor,
            writer=writer,
            cursor_store=store,
            prefix=cfg.checkpoints.prefix,
        )
        cursor = result.cursor

    def _on_signal(signum, _frame) -> None:
        log.info("watch.signal", signal=signum)
        scheduler.stop()

    previous = {sig: signal.signal(sig, _on_signal) for sig in (signal.SIGTERM, signal.SIGINT)}
    log.info(
        "watch.start",
        checkpoint_dir=cfg.checkpoints.directory,
        audit_log=cfg.audit.log_path,
        interval_minutes=cfg.schedule.interval_minutes,
        cursor=cursor,
    )
    try:
        scheduler.run(job, max_runs=max_runs or None)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        pidfile.release(pid_path)


# ── status ────────────────────────────────────────────────────────────────────


@app.command()
def status(
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    pid_file: str = typer.Option(DEFAULT_PID_FILE, "--pid-file", help="Watcher PID file"),
) -> None:
    """Show watcher state, the cursor, and how many checkpoints are pending."""
    from cfgaudit.checkpoints.cursor import FileCursorStore
    from cfgaudit.checkpoints.scanner import scan_checkpoints, select_pending
    from cfgaudit.lifecycle import pidfile

    cfg = _load(config)

    pid = pidfile.read_pid(Path(pid_file))
    running = pid is not None and pidfile.is_running(pid)
    cursor = FileCursorStore(Path(cfg.audit.cursor_path)).load()
    scan = scan_checkpoints(Path(cfg.checkpoints.directory), cfg.checkpoints.prefix)
    pending = select_pending(scan.checkpoints, cursor)

    if running:
        console.print(f"[bold green]Watcher RUNNING[/bold green] (PID {pid})")
    else:
        console.print("[bold yellow]Watcher NOT running[/bold yellow]")
    console.print(f"[dim]Cursor:[/dim]       {cursor}")
    console.print(f"[dim]Checkpoints:[/dim]  {len(scan.checkpoints)}")
    console.print(f"[dim]Pending:[/dim]      {len(pending)}")
    console.print(f"[dim]Audit log:[/dim]    {cfg.audit.log_path}")

    if not running:
        raise typer.Exit(code=1)


# ── stop ──────────────────────────────────────────────────────────────────────


@app.command()
def stop(
    pid_file: str = typer.Option(DEFAULT_PID_FILE, "--pid-file", help="Watcher PID file"),
    timeout: float = typer.Option(10.0, "--timeout", help="Seconds to wait before forcing"),
) -> None:
    """Stop a running watcher."""
    from cfgaudit.lifecycle import pidfile

    success, msg = pidfile.stop(Path(pid_file), timeout=timeout)
    if success:
        console.print(f"[green]✓[/green] {msg}")
    else:
        console.print(f"[red]✗[/red] {msg}")
        raise typer.Exit(code=1)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter cfgaudit.toml in the current directory."""
    from cfgaudit.config.defaults import CONFIG_FILENAME, DEFAULT_TOML

    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"cfgaudit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """cfgaudit — audit configuration checkpoints into an append-only log."""
