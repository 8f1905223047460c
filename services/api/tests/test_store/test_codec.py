"""Tests for the CSV encoding of the event log."""

from datetime import UTC, datetime

import pytest

from playlog.events import ListeningEvent
from playlog.exceptions import MalformedImportError
from playlog.store.codec import HEADER_LINE, decode_events, encode_events

HEADER = "date,trackId,trackName,artistName,albumName,durationMs,popularity,timestamp"


def _event(**overrides: object) -> ListeningEvent:
    fields: dict[str, object] = {
        "entity_id": "t1",
        "occurred_at": datetime(2024, 1, 15, 10, 0, tzinfo=UTC),
        "entity_name": "Song",
        "attribution_names": ("Alpha", "Beta"),
        "group_name": "Record",
        "duration_ms": 180000,
        "popularity": 42,
    }
    fields.update(overrides)
    return ListeningEvent(**fields)  # type: ignore[arg-type]


def test_header_matches_reference_layout() -> None:
    assert HEADER_LINE == HEADER + "\n"
    assert encode_events([]) == HEADER + "\n"


def test_encode_row_layout() -> None:
    text = encode_events([_event()])
    assert text.splitlines()[1] == "2024-01-15,t1,Song,Alpha; Beta,Record,180000,42,2024-01-15T10:00:00.000Z"


def test_fields_with_delimiters_are_quoted() -> None:
    event = _event(entity_name='He said "hi", then left', group_name="Line\nBreak")
    text = encode_events([event])
    assert '"He said ""hi"", then left"' in text
    assert decode_events(text) == [event]


def test_decode_handles_optional_fields() -> None:
    text = f"{HEADER}\n2024-01-15,t1,Song,,,,,2024-01-15T10:00:00Z\n"
    [event] = decode_events(text)
    assert event.duration_ms == 0
    assert event.popularity is None
    assert event.group_name is None
    assert event.attribution_names == ()


def test_decode_skips_blank_lines_and_bom() -> None:
    text = "\ufeff" + HEADER + "\n\n2024-01-15,t1,Song,A,B,1000,1,2024-01-15T10:00:00.000Z\n\n"
    assert len(decode_events(text)) == 1


def test_decode_accepts_reordered_columns() -> None:
    text = (
        "timestamp,trackId,trackName,artistName,albumName,durationMs,popularity,date\n"
        "2024-01-15T10:00:00.000Z,t1,Song,A,B,1000,1,2024-01-15\n"
    )
    [event] = decode_events(text)
    assert event.entity_id == "t1"
    assert event.duration_ms == 1000


def test_decode_requires_track_id_header() -> None:
    with pytest.raises(MalformedImportError, match="trackId"):
        decode_events("id,name\n1,foo\n")


def test_decode_rejects_missing_columns() -> None:
    with pytest.raises(MalformedImportError, match="missing columns"):
        decode_events("trackId,timestamp\nt1,2024-01-15T10:00:00Z\n")


def test_decode_names_the_bad_line() -> None:
    text = (
        f"{HEADER}\n"
        "2024-01-15,t1,Song,A,B,1000,1,2024-01-15T10:00:00.000Z\n"
        "2024-01-15,t2,Song,A,B,abc,1,2024-01-15T11:00:00.000Z\n"
    )
    with pytest.raises(MalformedImportError, match="line 3: durationMs"):
        decode_events(text)


def test_decode_rejects_bad_timestamp_and_empty_id() -> None:
    with pytest.raises(MalformedImportError, match="timestamp"):
        decode_events(f"{HEADER}\n2024-01-15,t1,Song,A,B,1,1,not-a-time\n")
    with pytest.raises(MalformedImportError, match="trackId is empty"):
        decode_events(f"{HEADER}\n2024-01-15,,Song,A,B,1,1,2024-01-15T10:00:00Z\n")


def test_empty_payload_is_malformed() -> None:
    with pytest.raises(MalformedImportError):
        decode_events("")
