"""tabscope: structured snapshots of live browser tabs."""

__version__ = "0.1.0"
