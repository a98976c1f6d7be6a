#!/usr/bin/env python3
"""
Report Formatter.

Renders the fixed-width comparison table:

| Test            | Mean     | Min      | Max      | Runs     | Diff to Apple M1 |
|-----------------|----------|----------|----------|----------|------------------|
| Compression ... | 181ms    | 176ms    | 190ms    | 28       | +2ms             |

Fields longer than their column are truncated, shorter ones padded with
trailing spaces, so every row has the same width.
"""

import sys
from dataclasses import dataclass
from typing import Optional, TextIO, TYPE_CHECKING

from ..config import DEFAULT_REFERENCE_NAME
from .formatting import dash, pad

if TYPE_CHECKING:
    from .stats import StatisticsRow

LABEL_WIDTH = 80
VALUE_WIDTH = 8
DIFF_WIDTH = 16
SEPARATOR = " | "


@dataclass(frozen=True)
class Column:
    title: str
    width: int


def table_columns(reference_name: str = DEFAULT_REFERENCE_NAME) -> list[Column]:
    """Columns of the benchmark table, in print order."""
    return [
        Column("Test", LABEL_WIDTH),
        Column("Mean", VALUE_WIDTH),
        Column("Min", VALUE_WIDTH),
        Column("Max", VALUE_WIDTH),
        Column("Runs", VALUE_WIDTH),
        Column(f"Diff to {reference_name}", DIFF_WIDTH),
    ]


def format_label_cell(label: str) -> str:
    """Leading part of a data row, up to the first value column."""
    return f"| {pad(label, LABEL_WIDTH)}{SEPARATOR}"


def format_value_cells(values: list[str], columns: list[Column]) -> str:
    """Trailing part of a data row: the value columns and the closing pipe."""
    if len(values) != len(columns):
        raise ValueError(f"Expected {len(columns)} values, got {len(values)}")
    cells = [pad(value, column.width) for value, column in zip(values, columns)]
    return f"{SEPARATOR.join(cells)} |"


def format_row(fields: list[str], columns: list[Column]) -> str:
    """Render a complete row from one string per column."""
    if len(fields) != len(columns):
        raise ValueError(f"Expected {len(columns)} fields, got {len(fields)}")
    cells = [pad(field, column.width) for field, column in zip(fields, columns)]
    return f"| {SEPARATOR.join(cells)} |"


def format_header(columns: list[Column]) -> str:
    return format_row([column.title for column in columns], columns)


def format_separator(columns: list[Column]) -> str:
    runs = [dash(column.width + 2) for column in columns]
    return f"|{'|'.join(runs)}|"


class TableReporter:
    """Prints the benchmark table to a text stream.

    The label cell of a row is written (and flushed) when the workload starts
    so the operation in progress is visible; the values follow once the
    workload has been measured.

    Parameters
    ----------
    stream : TextIO, optional
        Output stream (default: sys.stdout at call time).
    reference_name : str
        Machine name shown in the diff column header.
    """

    def __init__(self, stream: Optional[TextIO] = None, reference_name: str = DEFAULT_REFERENCE_NAME):
        self._stream = stream
        self.columns = table_columns(reference_name)
        self.row_open = False

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def print_header(self) -> None:
        print(format_header(self.columns), file=self.stream)
        print(format_separator(self.columns), file=self.stream)

    def begin_row(self, label: str) -> None:
        print(format_label_cell(label), end="", file=self.stream, flush=True)
        self.row_open = True

    def finish_row(self, statistics: "StatisticsRow") -> None:
        print(format_value_cells(statistics.cells(), self.columns[1:]), file=self.stream, flush=True)
        self.row_open = False

    def abort_row(self) -> None:
        """End a row left without values by a failed workload."""
        if self.row_open:
            print(file=self.stream, flush=True)
            self.row_open = False
