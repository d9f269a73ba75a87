"""CSV parsing and serialisation for translation tables."""

from __future__ import annotations

import csv
import io
from typing import List

from .structures import Row, Table

UTF8_BOM = "\ufeff"


def parse_csv(text: str) -> Table:
    """Parse CSV text into a table whose header row names the columns.

    Short rows are padded with empty cells and fields beyond the header are
    dropped, so every row carries exactly the header's columns.
    """

    if text.startswith(UTF8_BOM):
        text = text[len(UTF8_BOM):]

    reader = csv.reader(io.StringIO(text, newline=""))
    header = next(reader, None)
    if not header:
        return Table(columns=[], rows=[])

    columns = [name.strip() for name in header]
    rows: List[Row] = []
    for record in reader:
        if not record:
            continue
        padded = list(record[: len(columns)]) + [""] * (len(columns) - len(record))
        rows.append(dict(zip(columns, padded)))
    return Table(columns=columns, rows=rows)


def serialize_csv(table: Table) -> str:
    """Serialise a table back to CSV text with a header row."""

    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=table.columns,
        lineterminator="\n",
        extrasaction="ignore",
    )
    writer.writeheader()
    for row in table.rows:
        writer.writerow({column: row.get(column, "") for column in table.columns})
    return buffer.getvalue()
