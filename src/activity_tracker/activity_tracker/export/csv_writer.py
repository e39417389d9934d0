from __future__ import annotations

import csv
import io
from typing import Sequence

from .model import CSV_HEADERS, ExportRow


def write_export_csv(rows: Sequence[ExportRow]) -> bytes:
    """Serialize rows for French Excel.

    UTF-8 with BOM, ``;`` separated, every field quoted (inner quotes doubled).
    """
    out = io.StringIO()
    writer = csv.DictWriter(
        out,
        fieldnames=list(CSV_HEADERS),
        delimiter=";",
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    writer.writeheader()
    for row in rows:
        writer.writerow(row.as_csv_dict())

    # Excel expects no newline after the last record.
    return out.getvalue().rstrip("\n").encode("utf-8-sig")
