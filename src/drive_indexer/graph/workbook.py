"""Excel worksheet sink driven through the Graph workbook API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from drive_indexer.graph.client import GraphClient
from drive_indexer.graph.models import (
    FIELD_COLUMN_COUNT,
    FIELD_ROW_COUNT,
    FIELD_VALUES,
)
from drive_indexer.indexing.table import count_level_columns

if TYPE_CHECKING:
    from drive_indexer.config import AppConfig

logger = logging.getLogger(__name__)


def column_letter(column: int) -> str:
    """Convert a 1-based column index to its A1 letters (1 -> A, 27 -> AA)."""
    if column < 1:
        raise ValueError(f"column index must be >= 1, got {column}")
    letters = ""
    while column:
        column, remainder = divmod(column - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


class WorkbookSink:
    """One worksheet of a OneDrive-hosted Excel workbook, used as a flat table.

    The table always starts at A1: row 1 holds the headers and each
    following row holds one file.
    """

    def __init__(
        self,
        graph_client: GraphClient,
        drive_user: str,
        workbook_item_id: str,
        worksheet: str,
    ) -> None:
        """Initialise the sink.

        Args:
            graph_client: Authenticated GraphClient instance.
            drive_user: UPN or object ID of the user owning the workbook.
            workbook_item_id: OneDrive item ID of the .xlsx workbook.
            worksheet: Name of the worksheet that receives the rows.
        """
        self._graph = graph_client
        self._base = (
            f"/users/{drive_user}/drive/items/{workbook_item_id}"
            f"/workbook/worksheets/{quote(worksheet, safe='')}"
        )

    def _range(self, address: str) -> str:
        return f"{self._base}/range(address='{address}')"

    def _used_range(self) -> dict[str, Any]:
        return self._graph.get(f"{self._base}/usedRange(valuesOnly=true)")

    @staticmethod
    def _is_blank(values: list[list[Any]]) -> bool:
        # An empty sheet still reports a 1x1 used range at A1.
        return not any(cell not in ("", None) for row in values for cell in row)

    def extents(self) -> tuple[int, int]:
        """Return (last_row, last_column) of the written content, (0, 0) when empty."""
        used = self._used_range()
        if self._is_blank(used.get(FIELD_VALUES, [])):
            return 0, 0
        return int(used.get(FIELD_ROW_COUNT, 0)), int(used.get(FIELD_COLUMN_COUNT, 0))

    def clear(self) -> None:
        """Clear all cell contents of the worksheet."""
        rows, columns = self.extents()
        if rows == 0:
            return
        address = f"A1:{column_letter(columns)}{rows}"
        self._graph.post(f"{self._range(address)}/clear", {"applyTo": "Contents"})
        logger.info("[clear] cleared worksheet; address:%s", address)

    def read_header(self) -> list[str]:
        """Return the header row, or an empty list when the sheet is empty."""
        values: list[list[Any]] = self._used_range().get(FIELD_VALUES, [])
        if self._is_blank(values):
            return []
        return [str(cell) for cell in values[0]]

    def write_header(self, values: list[str], start_column: int = 1) -> None:
        """Write header cells into row 1 starting at ``start_column``."""
        if not values:
            return
        end_column = start_column + len(values) - 1
        address = f"{column_letter(start_column)}1:{column_letter(end_column)}1"
        self._graph.patch(self._range(address), {FIELD_VALUES: [values]})

    def insert_columns_after(self, column: int, count: int) -> None:
        """Insert ``count`` empty columns right after ``column``, shifting the rest right."""
        if count <= 0:
            return
        address = f"{column_letter(column + 1)}:{column_letter(column + count)}"
        self._graph.post(f"{self._range(address)}/insert", {"shift": "Right"})
        logger.info("[insert_columns_after] inserted columns; address:%s", address)

    def append_rows(self, rows: list[list[Any]]) -> None:
        """Append rows below the last written row.

        Every row in a batch must have the same width.
        """
        if not rows:
            return
        last_row, _ = self.extents()
        first = last_row + 1
        last = first + len(rows) - 1
        address = f"A{first}:{column_letter(len(rows[0]))}{last}"
        self._graph.patch(self._range(address), {FIELD_VALUES: rows})
        logger.info("[append_rows] appended rows; address:%s;row_count:%d", address, len(rows))

    def sort_hierarchically(self) -> None:
        """Sort data rows by every level column, then by file name, ascending."""
        header = self.read_header()
        rows, columns = self.extents()
        if rows <= 2:
            return
        level_count = count_level_columns(header)
        # Keys are zero-based offsets into the sorted range; the file name
        # column sits right after the level columns.
        fields = [{"key": i, "ascending": True} for i in range(level_count + 1)]
        address = f"A2:{column_letter(columns)}{rows}"
        self._graph.post(
            f"{self._range(address)}/sort/apply",
            {"fields": fields, "matchCase": False, "hasHeaders": False},
        )
        logger.info(
            "[sort_hierarchically] sorted rows; address:%s;key_count:%d", address, len(fields)
        )


def workbook_sink_from_config(graph_client: GraphClient, config: AppConfig) -> WorkbookSink:
    """Construct a WorkbookSink from application configuration."""
    return WorkbookSink(
        graph_client=graph_client,
        drive_user=config.drive_user,
        workbook_item_id=config.workbook_item_id,
        worksheet=config.worksheet_name,
    )
