"""Disk usage analysis: scanning, size rollup, treemap layout and suggestions."""

__version__ = "0.1.0"
