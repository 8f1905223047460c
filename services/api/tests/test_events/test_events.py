"""Tests for the canonical event model and raw-item normalization."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from playlog.events import (
    ListeningEvent,
    datetime_to_unix_ms,
    format_timestamp,
    normalize_raw_item,
    parse_timestamp,
)
from playlog.spotify.models import SpotifyPlayHistoryItem

_TRACK = {
    "id": "t1",
    "name": "Song",
    "duration_ms": 180000,
    "popularity": 42,
    "artists": [{"id": "a1", "name": "Alpha"}, {"id": "a2", "name": "Beta"}],
    "album": {"id": "al1", "name": "Record"},
}


def test_timestamps_differing_only_in_form_share_a_key() -> None:
    short = ListeningEvent(entity_id="t1", occurred_at=parse_timestamp("2024-01-15T10:00:00Z"), entity_name="x")
    long = ListeningEvent(entity_id="t1", occurred_at=parse_timestamp("2024-01-15T10:00:00.000Z"), entity_name="x")
    assert short.key == long.key


def test_occurred_at_is_normalized_to_utc_millis() -> None:
    plus_two = timezone(timedelta(hours=2))
    event = ListeningEvent(
        entity_id="t1",
        occurred_at=datetime(2024, 1, 15, 12, 0, 0, 123456, tzinfo=plus_two),
        entity_name="x",
    )
    assert event.occurred_at == datetime(2024, 1, 15, 10, 0, 0, 123000, tzinfo=UTC)
    assert event.occurred_at_iso == "2024-01-15T10:00:00.123Z"


def test_derived_date_uses_utc() -> None:
    event = ListeningEvent(entity_id="t1", occurred_at=parse_timestamp("2024-01-15T23:30:00-02:00"), entity_name="x")
    assert event.derived_date == date(2024, 1, 16)


def test_format_timestamp_round_trips() -> None:
    value = parse_timestamp("2024-03-01T08:09:10.500Z")
    assert parse_timestamp(format_timestamp(value)) == value


def test_datetime_to_unix_ms() -> None:
    assert datetime_to_unix_ms(datetime(1970, 1, 1, 0, 0, 1, tzinfo=UTC)) == 1000
    assert datetime_to_unix_ms(datetime(2024, 1, 15, 10, 0, 0, 1000, tzinfo=UTC)) == 1705312800001
    # Naive values are read as UTC.
    assert datetime_to_unix_ms(datetime(1970, 1, 1, 0, 1)) == 60_000


def test_normalize_wrapped_item() -> None:
    event = normalize_raw_item({"track": _TRACK, "played_at": "2024-01-15T10:00:00.000Z"})
    assert event.entity_id == "t1"
    assert event.entity_name == "Song"
    assert event.attribution_names == ("Alpha", "Beta")
    assert event.group_name == "Record"
    assert event.duration_ms == 180000
    assert event.popularity == 42
    assert event.occurred_at == datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


def test_normalize_bare_track_defaults_to_now() -> None:
    now = datetime(2024, 2, 1, 9, 30, tzinfo=UTC)
    event = normalize_raw_item(_TRACK, now=now)
    assert event.entity_id == "t1"
    assert event.occurred_at == now


def test_normalize_rejects_item_without_id() -> None:
    with pytest.raises(ValueError, match="no track id"):
        normalize_raw_item({"track": {"name": "Local file"}, "played_at": "2024-01-15T10:00:00Z"})


def test_normalize_rejects_bad_timestamp() -> None:
    with pytest.raises(ValueError):
        normalize_raw_item({"track": _TRACK, "played_at": "yesterday"})


def test_from_play_history() -> None:
    item = SpotifyPlayHistoryItem.model_validate({"track": _TRACK, "played_at": "2024-01-15T10:00:00Z"})
    event = ListeningEvent.from_play_history(item)
    assert event.key == ("t1", datetime(2024, 1, 15, 10, 0, tzinfo=UTC))
    assert event.attribution_names == ("Alpha", "Beta")


def test_events_are_immutable() -> None:
    event = normalize_raw_item({"track": _TRACK, "played_at": "2024-01-15T10:00:00Z"})
    with pytest.raises(ValueError):
        event.entity_name = "changed"  # type: ignore[misc]
