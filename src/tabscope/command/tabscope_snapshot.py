import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from tabscope.command.command_utils import format_node_line, get_log_dir, setup_logging
from tabscope.snapshot.errors import ErrorCode
from tabscope.snapshot.html_document import load_html
from tabscope.snapshot.models import SnapshotErrorEnvelope, SnapshotOptions
from tabscope.snapshot.playwright_channel import PlaywrightChannel
from tabscope.snapshot.service import SnapshotReport, build_channel, capture_snapshot
from tabscope.snapshot.settings import (
    DEFAULT_MAX_DEPTH,
    SNAPSHOT_CHANNELS,
    SNAPSHOT_STRATEGIES,
    SnapshotSettings,
)

LOG_FILE_NAME = 'tabscope.log'

logger = logging.getLogger('tabscope.command')


def _common_options(func):
    options = [
        click.option('--visible-only', is_flag=True, help='Only include elements visible in the viewport.'),
        click.option('--strategy', type=click.Choice(SNAPSHOT_STRATEGIES), default=None,
                     help='Execution strategy (default from TABSCOPE_SNAPSHOT_STRATEGY).'),
        click.option('--timeout', 'timeout_ms', type=click.IntRange(min=1), default=None,
                     help='Per-attempt timeout in milliseconds.'),
        click.option('--json', 'as_json', is_flag=True, help='Print the raw JSON result.'),
        click.option('--html', 'html_file', type=click.Path(exists=True, dir_okay=False),
                     default=None, help='Snapshot a saved HTML file in-process.'),
        click.option('--channel', type=click.Choice(SNAPSHOT_CHANNELS), default=None,
                     help='Browser bridge (default from TABSCOPE_CHANNEL).'),
        click.option('--window', 'window_index', type=click.IntRange(min=1), default=None,
                     help='1-based window index.'),
        click.option('--tab', 'tab_index', type=click.IntRange(min=1), default=None,
                     help='1-based tab index.'),
        click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging.'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_settings(channel, window_index, tab_index, verbose):
    load_dotenv()
    settings = SnapshotSettings.from_env()
    overrides = {}
    if channel:
        overrides['channel'] = channel
    if window_index:
        overrides['window_index'] = window_index
    if tab_index:
        overrides['tab_index'] = tab_index
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    setup_logging(get_log_dir(settings.resolved_log_dir()) / LOG_FILE_NAME, verbose=verbose)
    return settings


async def _capture(options, channel, **kwargs) -> SnapshotReport:
    try:
        return await capture_snapshot(options, channel, **kwargs)
    finally:
        if isinstance(channel, PlaywrightChannel):
            await channel.stop()


def _exit_code(report: SnapshotReport) -> int:
    output = report.output
    if isinstance(output, SnapshotErrorEnvelope):
        return int(output.code)
    if not output.ok:
        return int(ErrorCode.UNKNOWN_ERROR)
    return int(ErrorCode.OK)


def _render(report: SnapshotReport, as_json: bool) -> None:
    output = report.output
    if as_json:
        click.echo(json.dumps(output.to_wire(), indent=2, ensure_ascii=False))
        return

    if isinstance(output, SnapshotErrorEnvelope):
        click.echo(f"Error [{output.kind}] {output.error} (code {output.code})", err=True)
        return
    if not output.ok:
        click.echo(f"Error: {output.error or 'snapshot failed'}", err=True)
        return

    for node in output.nodes:
        click.echo(format_node_line(node))
    meta = output.meta
    where = f" from {meta.url}" if meta and meta.url else ""
    click.echo(f"{len(output.nodes)} node(s){where}", err=True)


def _run_snapshot(options, *, strategy, timeout_ms, as_json, html_file, channel,
                  window_index, tab_index, verbose, simple=False):
    settings = _load_settings(channel, window_index, tab_index, verbose)

    document = None
    if html_file:
        path = Path(html_file)
        try:
            markup = path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            click.echo(f"Error: Failed to read {path}: {e}", err=True)
            sys.exit(int(ErrorCode.INVALID_INPUT))
        document = load_html(markup, url=path.resolve().as_uri())

    exec_channel = build_channel(settings, document=document)
    logger.info(f"Snapshot requested cmd={options.cmd} channel={type(exec_channel).__name__}")
    try:
        report = asyncio.run(
            _capture(
                options,
                exec_channel,
                settings=settings,
                strategy=strategy,
                simple=simple,
                timeout_ms=timeout_ms,
            )
        )
    except KeyboardInterrupt:
        click.echo("\nSnapshot interrupted by user.", err=True)
        sys.exit(int(ErrorCode.UNKNOWN_ERROR))

    _render(report, as_json)
    sys.exit(_exit_code(report))


@click.group()
def run():
    """
    Capture structured snapshots of a live browser tab.
    """


@run.group()
def snapshot():
    """
    Snapshot the interactive elements of a page.
    """


@snapshot.command('outline')
@_common_options
def outline(visible_only, **kwargs):
    """
    Flat, document-ordered list of interactive elements.
    """
    _run_snapshot(SnapshotOptions(mode='outline', visible_only=visible_only), **kwargs)


@snapshot.command('dom-lite')
@click.option('--max-depth', type=click.IntRange(min=0), default=DEFAULT_MAX_DEPTH, show_default=True,
              help='Deepest level (from <body>) to include.')
@click.option('--mode', 'run_mode', type=click.Choice(['full', 'simple']), default='full', show_default=True,
              help='simple skips the resilience ladder and uses the reduced script.')
@_common_options
def dom_lite(max_depth, run_mode, visible_only, **kwargs):
    """
    Pruned hierarchy keeping interactive elements and their ancestors.
    """
    options = SnapshotOptions(mode='dom-lite', visible_only=visible_only, max_depth=max_depth)
    _run_snapshot(options, simple=run_mode == 'simple', **kwargs)


if __name__ == "__main__":
    run()
