"""Manifest conflict resolution helpers."""

from .editor import (
    LineKind,
    ManifestBlock,
    ManifestEdit,
    ManifestLine,
    block_scan_pass,
    count_assignments,
    line_range_pass,
    parse_lines,
    remove_target_block,
    split_blocks,
)
from .transaction import ManifestTransaction

__all__ = [
    "LineKind",
    "ManifestBlock",
    "ManifestEdit",
    "ManifestLine",
    "ManifestTransaction",
    "block_scan_pass",
    "count_assignments",
    "line_range_pass",
    "parse_lines",
    "remove_target_block",
    "split_blocks",
]
