# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: CSV import / export of gigs.
Column layout matches the spreadsheet the band already keeps.
"""

import csv
import io
from typing import Any

CSV_COLUMNS: tuple[str, ...] = (
    "title", "date", "venue", "address", "description", "payment", "requirements",
)

# Separator for member ids inside an optional ``assignedMembers`` column.
MEMBER_SEPARATOR = ";"


def export_gigs(gigs: list[dict[str, Any]]) -> str:
    """Render gigs as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=list(CSV_COLUMNS), extrasaction="ignore", lineterminator="\n"
    )
    writer.writeheader()
    for gig in gigs:
        writer.writerow({c: "" if gig.get(c) is None else gig.get(c) for c in CSV_COLUMNS})
    return buffer.getvalue()


def parse_gigs(content: str) -> list[dict[str, Any]]:
    """Parse CSV text into gig dicts. Blank lines are skipped.

    Unknown columns are kept so the calendar service can ignore or validate
    them; ``payment`` is converted to a number when present and an
    ``assignedMembers`` column is split on ``;`` into member ids.
    """
    reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
    if reader.fieldnames:
        reader.fieldnames = [h.strip() for h in reader.fieldnames]
    rows: list[dict[str, Any]] = []
    for raw in reader:
        row = {k: (v or "").strip() for k, v in raw.items() if k}
        if not any(row.values()):
            continue
        if row.get("payment"):
            try:
                row["payment"] = float(row["payment"])
            except ValueError:
                pass  # left as text; gig validation reports it
        if "assignedMembers" in row:
            row["assignedMembers"] = [
                m.strip() for m in row["assignedMembers"].split(MEMBER_SEPARATOR) if m.strip()
            ]
        rows.append(row)
    return rows
