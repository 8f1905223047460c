"""Delimited text encoding of the event log (backup/restore and flat-file storage).

One header row followed by one row per event. Fields containing the delimiter,
a quote or a newline are quoted with inner quotes doubled.
"""

import csv
import io
from collections.abc import Iterable

from playlog.constants import ATTRIBUTION_SEPARATOR, CSV_COLUMNS, CSV_REQUIRED_HEADER_COLUMN
from playlog.events import ListeningEvent, parse_timestamp
from playlog.exceptions import MalformedImportError

HEADER_LINE = ",".join(CSV_COLUMNS) + "\n"


def encode_row(event: ListeningEvent) -> list[str]:
    return [
        event.derived_date.isoformat(),
        event.entity_id,
        event.entity_name,
        ATTRIBUTION_SEPARATOR.join(event.attribution_names),
        event.group_name or "",
        str(event.duration_ms),
        "" if event.popularity is None else str(event.popularity),
        event.occurred_at_iso,
    ]


def encode_events(events: Iterable[ListeningEvent], *, header: bool = True) -> str:
    """Encode events as CSV text."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    if header:
        writer.writerow(CSV_COLUMNS)
    for event in events:
        writer.writerow(encode_row(event))
    return output.getvalue()


def _parse_int(value: str, column: str, line: int) -> int:
    try:
        return int(value)
    except ValueError:
        raise MalformedImportError(f"{column} is not an integer: {value!r}", line=line) from None


def decode_row(row: dict[str, str], line: int) -> ListeningEvent:
    entity_id = (row.get("trackId") or "").strip()
    if not entity_id:
        raise MalformedImportError("trackId is empty", line=line)

    raw_timestamp = (row.get("timestamp") or "").strip()
    try:
        occurred_at = parse_timestamp(raw_timestamp)
    except ValueError:
        raise MalformedImportError(f"timestamp is not ISO-8601: {raw_timestamp!r}", line=line) from None

    duration = (row.get("durationMs") or "").strip()
    popularity = (row.get("popularity") or "").strip()
    artists = row.get("artistName") or ""
    return ListeningEvent(
        entity_id=entity_id,
        occurred_at=occurred_at,
        entity_name=row.get("trackName") or "",
        attribution_names=tuple(a.strip() for a in artists.split(ATTRIBUTION_SEPARATOR.strip()) if a.strip()),
        group_name=row.get("albumName") or None,
        duration_ms=_parse_int(duration, "durationMs", line) if duration else 0,
        popularity=_parse_int(popularity, "popularity", line) if popularity else None,
    )


def decode_events(text: str) -> list[ListeningEvent]:
    """Decode CSV text into events, validating everything before returning.

    Raises:
        MalformedImportError: Missing/foreign header or any unparseable row.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.DictReader(io.StringIO(text, newline=""))
    try:
        header = reader.fieldnames
        if not header or CSV_REQUIRED_HEADER_COLUMN not in header:
            raise MalformedImportError(f"header row with a {CSV_REQUIRED_HEADER_COLUMN!r} column is required", line=1)
        missing = [c for c in CSV_COLUMNS if c not in header]
        if missing:
            raise MalformedImportError(f"header is missing columns: {', '.join(missing)}", line=1)

        events: list[ListeningEvent] = []
        for row in reader:
            if not any((v or "").strip() for v in row.values() if isinstance(v, str)):
                continue
            events.append(decode_row(row, reader.line_num))
    except csv.Error as exc:
        raise MalformedImportError(str(exc), line=reader.line_num) from exc
    return events
