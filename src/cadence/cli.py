"""Command-line interface for cadence.

Exit codes: 0 on graceful shutdown, 1 on a scheduler fault, 2 on an
invalid jobs file.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from cadence import __version__
from cadence.config import settings
from cadence.dispatch import InlineDispatcher, ThreadPoolDispatcher
from cadence.errors import JobsFileError, SchedulerFault
from cadence.jobfile import load_jobs_from_file
from cadence.scheduler import Scheduler

console = Console()

EXIT_OK = 0
EXIT_FAULT = 1
EXIT_INVALID = 2


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(name)s: %(message)s" if verbose else "%(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=[RichHandler(rich_tracebacks=True, console=console, show_path=verbose)],
    )


def _format_seconds(seconds: float | None) -> str:
    if seconds is None:
        return "-"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:02d}s"
    return f"{minutes}m{secs:02d}s"


def _jobs_file(args: argparse.Namespace) -> Path:
    return Path(args.file) if args.file else settings.get_jobs_file()


def cmd_check(args: argparse.Namespace) -> int:
    """Validate a jobs file and show what would run."""
    try:
        jobs = load_jobs_from_file(_jobs_file(args))
    except JobsFileError as e:
        console.print(f"[red]Invalid jobs file:[/red] {e}")
        return EXIT_INVALID

    if not jobs:
        console.print("[yellow]No jobs defined.[/yellow]")
        return EXIT_OK

    # Anchor on a throwaway scheduler so first due times are meaningful
    scheduler = Scheduler()
    now = scheduler.clock.now()
    for job in jobs:
        scheduler.add(job, now=now)

    table = Table(title="Scheduled Jobs")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Schedule", style="yellow")
    table.add_column("First Run In", style="blue")

    for job in scheduler.jobs():
        table.add_row(
            str(job.id),
            job.label,
            job.schedule.describe(),
            _format_seconds(job.schedule.time_until(now)),
        )

    console.print(table)
    return EXIT_OK


def cmd_run(args: argparse.Namespace) -> int:
    """Run the jobs in a jobs file until interrupted."""
    try:
        jobs = load_jobs_from_file(_jobs_file(args))
    except JobsFileError as e:
        console.print(f"[red]Invalid jobs file:[/red] {e}")
        return EXIT_INVALID

    if not jobs:
        console.print("[yellow]No jobs defined.[/yellow]")
        return EXIT_OK

    if args.parallel or settings.parallel_dispatch:
        dispatcher = ThreadPoolDispatcher(
            max_workers=settings.max_workers,
            max_pending=settings.max_pending,
        )
    else:
        dispatcher = InlineDispatcher()

    scheduler = Scheduler(dispatcher=dispatcher)
    for job in jobs:
        scheduler.add(job)

    console.print(f"[bold]Starting scheduler[/bold] ({len(jobs)} jobs)")
    for job in scheduler.jobs():
        console.print(f"  [cyan]{job.label}[/cyan] ({job.schedule.describe()})")
    console.print("[dim]Press Ctrl+C to stop.[/dim]\n")

    def handle_signal(signum, frame):
        logging.getLogger(__name__).info(f"Received signal {signum}, shutting down...")
        scheduler.stop(wait=False)

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    try:
        scheduler.run_forever()
    except SchedulerFault as e:
        console.print(f"[red]Scheduler fault:[/red] {e}")
        return EXIT_FAULT
    finally:
        dispatcher.shutdown(wait=True)

    console.print("[dim]Scheduler stopped.[/dim]")
    return EXIT_OK


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    console.print(f"cadence v{__version__}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cadence",
        description="Run jobs on human-friendly intervals",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")

    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run the jobs in a jobs file")
    run_parser.add_argument("file", nargs="?", help="Jobs file (default: ./jobs.yaml)")
    run_parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run job actions on a worker pool",
    )
    run_parser.set_defaults(func=cmd_run)

    check_parser = subparsers.add_parser("check", help="Validate a jobs file")
    check_parser.add_argument("file", nargs="?", help="Jobs file (default: ./jobs.yaml)")
    check_parser.set_defaults(func=cmd_check)

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the cadence CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_OK)

    setup_logging(args.verbose)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
