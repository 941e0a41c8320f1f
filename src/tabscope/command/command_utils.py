"""
Here we put util functions related to logging and output rendering for tabscope commands.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_log_dir(log_dir: Optional[Path] = None) -> Path:
    """
    Determines a suitable path for the log directory.
    Logs are stored in the user's home directory under '.tabscope/logs/' unless overridden.
    """
    log_dir = Path(log_dir) if log_dir else Path.home() / '.tabscope' / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logging(log_path: Path, verbose: bool = False) -> logging.Logger:
    """
    Configures the package logger to write to a file; verbose mode also mirrors to stderr.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger('tabscope')
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    try:
        file_handler = logging.FileHandler(log_path, mode='a')
    except OSError as e:
        click.echo(f"Warning: cannot open log file {log_path}: {e}", err=True)
    else:
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if verbose:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(logging.DEBUG)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    # Add a NullHandler so a missing log file never falls back to console output
    logger.addHandler(logging.NullHandler())
    return logger


def format_node_line(node) -> str:
    """One readable line per node: `[role] name  selector  @x,y wxh`."""
    indent = '  ' * (node.level or 0)
    label = node.role or node.tag_name or 'node'
    rect = node.rect
    head = f"[{label}] {node.name}" if node.name else f"[{label}]"
    return f"{indent}{head}  {node.selector}  @{rect.x},{rect.y} {rect.w}x{rect.h}"
