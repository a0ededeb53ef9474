#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/tables.py
"""Table bookkeeping for the HTML to DOCX direction.

HTML expresses a vertical merge once, on the originating ``<td rowspan>``;
WordprocessingML needs a continuation cell in every row the merge covers.
``TableContext`` records each pending row span and synthesizes those
continuation cells when a row is closed. Contexts are stacked so a table
nested in a cell keeps its own position and spans.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from docxmd.html2docx.oxml import find_property, local_name, make_element, new_paragraph

logger = logging.getLogger(__name__)


@dataclass
class CellPosition:
    """Row and cell index of the cell being built.

    ``row`` starts at -1 and is advanced by every ``<tr>``; ``column``
    counts the cells closed so far in the current row.
    """

    row: int = -1
    column: int = 0


@dataclass
class RowSpanRecord:
    """A vertical merge still waiting for continuation cells.

    Attributes
    ----------
    origin : CellPosition
        Row and cell index (continuation cells included) of the originating cell
    remaining : int
        Rows still to receive a continuation cell
    col_span : int
        Horizontal span copied onto each continuation cell (0 when 1)

    """

    origin: CellPosition
    remaining: int
    col_span: int = 0


@dataclass
class TableContext:
    """State of one table under construction."""

    table: Any
    position: CellPosition = field(default_factory=CellPosition)
    row_spans: list[RowSpanRecord] = field(default_factory=list)

    @property
    def current_row(self) -> Any | None:
        rows = self.table.findall(_w("tr"))
        return rows[-1] if rows else None

    @property
    def current_cell(self) -> Any | None:
        row = self.current_row
        if row is None:
            return None
        cells = row.findall(_w("tc"))
        return cells[-1] if cells else None

    def start_row(self, row: Any) -> None:
        self.table.append(row)
        self.position = CellPosition(self.position.row + 1, 0)

    def register_row_span(self, row_span: int, col_span: int) -> RowSpanRecord:
        """Record a ``rowspan`` on the cell at the current position.

        The cell index is shifted right past continuation cells that earlier
        row spans will insert to its left when the row closes.
        """
        shift = 0
        for record in self.row_spans:
            if record.origin.row < self.position.row and record.origin.column <= self.position.column + shift:
                shift += 1
        record = RowSpanRecord(
            origin=CellPosition(self.position.row, self.position.column + shift),
            remaining=row_span - 1,
            col_span=col_span if col_span > 1 else 0,
        )
        self.row_spans.append(record)
        return record

    def close_cell(self) -> None:
        self.position.column += 1

    def close_row(self) -> None:
        """Finish the current row.

        Every pending span from an earlier row gets a continuation cell at its
        recorded index, left to right. A row still without any cell afterwards
        is removed.
        """
        row = self.current_row
        if row is None:
            return

        for record in sorted(self.row_spans, key=lambda r: r.origin.column):
            if record.origin.row == self.position.row:
                continue
            _insert_cell(row, _continuation_cell(record.col_span), record.origin.column)
            record.remaining -= 1
        self.row_spans = [record for record in self.row_spans if record.remaining > 0]

        if not row.findall(_w("tc")):
            logger.debug("Removing table row without cells")
            self.table.remove(row)
            self.position.row -= 1

    def close_table(self) -> bool:
        """Finish the table; returns False when it has no rows left and should be dropped."""
        for row in self.table.findall(_w("tr")):
            if not row.findall(_w("tc")):
                self.table.remove(row)

        rows = self.table.findall(_w("tr"))
        if not rows:
            return False

        columns = sum(_grid_span(cell) for cell in rows[0].findall(_w("tc")))
        grid = make_element("tblGrid", children=[make_element("gridCol") for _ in range(columns)])
        for existing in self.table.findall(_w("tblGrid")):
            self.table.remove(existing)
        properties = self.table.find(_w("tblPr"))
        if properties is not None:
            properties.addnext(grid)
        else:
            self.table.insert(0, grid)
        return True


class TableContextStack:
    """Open tables, innermost last."""

    def __init__(self) -> None:
        self._contexts: list[TableContext] = []

    def __len__(self) -> int:
        return len(self._contexts)

    @property
    def has_context(self) -> bool:
        return bool(self._contexts)

    @property
    def current(self) -> TableContext:
        return self._contexts[-1]

    def push(self, table: Any) -> TableContext:
        context = TableContext(table)
        self._contexts.append(context)
        return context

    def pop(self) -> TableContext:
        return self._contexts.pop()


def _w(name: str) -> str:
    from docx.oxml.ns import qn

    return qn(f"w:{name}")


def _grid_span(cell: Any) -> int:
    span = find_property(cell, "gridSpan")
    if span is None:
        return 1
    try:
        return max(1, int(span.get(_w("val"))))
    except (TypeError, ValueError):
        return 1


def _continuation_cell(col_span: int) -> Any:
    properties = make_element("tcPr", children=[make_element("tcW", {"w": 0, "type": "auto"})])
    if col_span > 1:
        properties.append(make_element("gridSpan", {"val": col_span}))
    properties.append(make_element("vMerge"))
    return make_element("tc", children=[properties, new_paragraph()])


def _insert_cell(row: Any, cell: Any, index: int) -> None:
    """Insert ``cell`` so that it becomes the ``index``-th cell of ``row``."""
    cells = [child for child in row if local_name(child) == "tc"]
    if index < len(cells):
        cells[index].addprevious(cell)
    else:
        row.append(cell)
