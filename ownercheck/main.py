"""
ownercheck — CLI entrypoint.

Usage:
    ownercheck --help
    ownercheck check
    ownercheck check -o json --workers 4
    ownercheck check --snapshot cluster.yml
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import click

from ownercheck import __version__
from ownercheck.core.observability.logging_config import setup_from_environment

logger = logging.getLogger(__name__)

# 128 + SIGINT, the shell convention for an interrupted command
EXIT_CANCELLED = 130


@click.group()
@click.version_option(version=__version__, prog_name="ownercheck")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress lines.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to ownercheck.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Find ownerReferences that the garbage collector cannot resolve."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_from_environment(debug=debug, verbose=verbose, quiet=quiet)


@contextmanager
def _cancel_on_interrupt() -> Iterator[threading.Event]:
    """Turn the first Ctrl-C into a cancellation request.

    The run stops at its next page or object boundary instead of dying
    mid-write. Outside the main thread (e.g. under a test runner thread)
    no handler is installed and the event is simply never set.
    """
    cancel = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield cancel
        return

    def _handler(signum, frame):
        logger.debug("Received signal %d, cancelling", signum)
        cancel.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)


@cli.command()
@click.option(
    "--output", "-o",
    type=click.Choice(["", "json"], case_sensitive=False),
    default=None,
    help="Output format: '' for a table (default) or 'json' for JSON lines.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Shorthand for -o json.")
@click.option(
    "--qps", type=int, default=None,
    help="Client-side requests per second (-1 disables throttling, 0 is rejected).",
)
@click.option("--burst", type=int, default=None, help="Client-side request burst.")
@click.option("--workers", type=int, default=None, help="Resource types fetched in parallel.")
@click.option("--page-size", type=int, default=None, help="Objects requested per list page.")
@click.option("--kubeconfig", default=None, help="Path to the kubeconfig file.")
@click.option("--context", "kube_context", default=None, help="kubeconfig context to use.")
@click.option("--request-timeout", default=None, help="Per-request timeout (e.g. 30s).")
@click.option(
    "--snapshot",
    type=click.Path(exists=False),
    default=None,
    help="Check a snapshot file instead of a live cluster.",
)
@click.pass_context
def check(
    ctx: click.Context,
    output: str | None,
    as_json: bool,
    qps: int | None,
    burst: int | None,
    workers: int | None,
    page_size: int | None,
    kubeconfig: str | None,
    kube_context: str | None,
    request_timeout: str | None,
    snapshot: str | None,
) -> None:
    """Check every ownerReference in the cluster.

    Findings go to stdout; progress, warnings and the summary go to
    stderr. Exits 0 whenever the scan completes, whatever it found.
    """
    from ownercheck.core.config.loader import load_settings
    from ownercheck.core.models.errors import OwnerCheckError
    from ownercheck.core.use_cases.check import make_client, run_check

    overrides = {
        "output": "json" if as_json else output,
        "qps": qps,
        "burst": burst,
        "workers": workers,
        "page_size": page_size,
        "kubeconfig": kubeconfig,
        "context": kube_context,
        "request_timeout": request_timeout,
        "snapshot": snapshot,
    }

    try:
        settings = load_settings(ctx.obj.get("config_path"), overrides=overrides)
        client = make_client(settings)
        with _cancel_on_interrupt() as cancel:
            result = run_check(
                client,
                settings,
                progress=not ctx.obj.get("quiet", False),
                cancel=cancel,
            )
    except OwnerCheckError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if result.cancelled:
        click.secho(f"⚠️  Cancelled, partial result: {result.tally.summary()}", fg="yellow", err=True)
        sys.exit(EXIT_CANCELLED)

    logger.info(
        "Checked %d objects across %d resource types",
        result.objects, result.resource_types,
    )


if __name__ == "__main__":
    cli()
