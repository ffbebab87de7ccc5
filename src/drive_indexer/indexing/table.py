"""Keeps the sink's header and each row's width in step with the depth watermark."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from drive_indexer.indexing.protocols import TabularSink

logger = logging.getLogger(__name__)

LEVEL_HEADER_PREFIX = "Level "
FIXED_HEADERS = ["File Name", "Last Updated", "Size", "Link"]
FIXED_COLUMN_COUNT = len(FIXED_HEADERS)


def level_header(level: int) -> str:
    return f"{LEVEL_HEADER_PREFIX}{level}"


def build_header(max_depth: int) -> list[str]:
    """Headers for ``max_depth`` level columns followed by the fixed columns."""
    return [level_header(k) for k in range(1, max_depth + 1)] + FIXED_HEADERS


def initialize_header(sink: TabularSink, max_depth: int) -> None:
    """Clear the sink and write a fresh header row. Only done when a run starts."""
    sink.clear()
    sink.write_header(build_header(max_depth))
    logger.info("[initialize_header] sink initialized; level_count:%d", max_depth)


def count_level_columns(header: list[str]) -> int:
    return sum(1 for cell in header if str(cell).startswith(LEVEL_HEADER_PREFIX))


def ensure_columns(sink: TabularSink, required_depth: int) -> int:
    """Widen the header so it has at least ``required_depth`` level columns.

    Missing level columns are inserted right after the last existing one, so
    the fixed trailing columns keep their relative position. Columns are
    never removed.

    Args:
        sink: Table whose header is inspected and widened.
        required_depth: Level columns the header must hold.

    Returns:
        Level column count after the call.
    """
    header = sink.read_header()
    if not header:
        sink.write_header(build_header(required_depth))
        logger.info("[ensure_columns] header was missing; level_count:%d", required_depth)
        return required_depth

    current = count_level_columns(header)
    if required_depth <= current:
        return current

    missing = required_depth - current
    sink.insert_columns_after(current, missing)
    sink.write_header(
        [level_header(k) for k in range(current + 1, required_depth + 1)],
        start_column=current + 1,
    )
    logger.info(
        "[ensure_columns] widened header; from_levels:%d;to_levels:%d", current, required_depth
    )
    return required_depth


def pad_row(cells: list[Any], max_depth: int) -> list[Any]:
    """Right-pad the level prefix of a flat row to ``max_depth`` cells.

    The trailing fixed cells are kept unchanged. Rows are never truncated,
    so padding an already padded row returns it unchanged.

    Raises:
        ValueError: If the row is shorter than the fixed trailing columns.
    """
    if len(cells) < FIXED_COLUMN_COUNT:
        raise ValueError(
            f"row has {len(cells)} cells, expected at least {FIXED_COLUMN_COUNT}"
        )
    levels = list(cells[:-FIXED_COLUMN_COUNT])
    if len(levels) < max_depth:
        levels.extend([""] * (max_depth - len(levels)))
    return levels + list(cells[-FIXED_COLUMN_COUNT:])
