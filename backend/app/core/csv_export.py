"""CSV Export — flat event rows for downloads.

Invariants:
    - Header row first, one line per event, "\n" line endings
    - None renders as an empty cell; values with commas, quotes, or newlines are quoted
"""

import csv
import io

EVENT_EXPORT_HEADERS = (
    "id", "visitorId", "sessionId", "eventType", "page", "referrer", "device",
    "browser", "os", "country", "city", "region", "ip", "isBot", "isInternal",
    "timestamp",
)

VISITOR_EXPORT_HEADERS = (
    "id", "eventType", "page", "referrer", "device", "browser", "os",
    "country", "city", "timestamp",
)


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def rows_to_csv(rows: list[dict], headers) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(h)) for h in headers])
    return buffer.getvalue()
