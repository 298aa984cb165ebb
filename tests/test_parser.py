import time
from datetime import datetime, timezone

import pytest

from feed_candidates.exceptions import DateUnresolvable
from feed_candidates.parser import (
    clean_text,
    extract_date_field,
    parse_entry,
    parse_timestamp,
    resolve_published,
    to_iso,
)


def test_structured_date_has_priority():
    entry = {
        "published_parsed": time.strptime("2024-05-01 08:30:00", "%Y-%m-%d %H:%M:%S"),
        "published": "Thu, 02 May 2024 09:00:00 GMT",
    }
    assert extract_date_field(entry)[0] == "published_parsed"
    assert resolve_published(entry) == datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)


def test_falls_back_to_text_fields_in_order():
    entry = {"published": "  ", "updated": "Wed, 01 May 2024 10:00:00 GMT", "date": "2020-01-01"}
    assert extract_date_field(entry) == ("updated", "Wed, 01 May 2024 10:00:00 GMT")
    assert resolve_published(entry) == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_rfc822_with_offset_converted_to_utc():
    entry = {"published": "Wed, 01 May 2024 12:00:00 +0200"}
    assert resolve_published(entry) == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_unparsable_choice_does_not_fall_through():
    entry = {"published": "sometime last week", "date": "2024-05-01T00:00:00Z"}
    assert resolve_published(entry) is None


def test_no_date_fields():
    assert extract_date_field({"title": "x"}) is None
    assert resolve_published({"title": "x"}) is None


def test_to_iso_canonical_form():
    dt = datetime(2024, 5, 1, 8, 30, 5, 123456, tzinfo=timezone.utc)
    assert to_iso(dt) == "2024-05-01T08:30:05.123Z"


def test_parse_timestamp_variants():
    expected = datetime(2024, 5, 1, 0, 0, tzinfo=timezone.utc)
    assert parse_timestamp("2024-05-01T00:00:00.000Z") == expected
    assert parse_timestamp("2024-05-01T02:00:00+02:00") == expected
    assert parse_timestamp("2024-05-01T00:00:00") == expected


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(DateUnresolvable):
        parse_timestamp("yesterday-ish")
    with pytest.raises(DateUnresolvable):
        parse_timestamp("")


def test_clean_text_strips_markup_and_truncates():
    assert clean_text("<p>Hello\n\n   <b>world</b> &amp; co</p>") == "Hello world & co"
    assert len(clean_text("word " * 300)) == 500


def test_parse_entry_prefers_link_then_id():
    e = parse_entry({"title": "  Hi  ", "id": "https://ex.com/guid", "summary": "a  b"})
    assert e["title"] == "Hi"
    assert e["link"] == "https://ex.com/guid"
    assert e["summary"] == "a b"
    assert e["published"] is None


def test_parse_entry_uses_content_when_no_summary():
    e = parse_entry({"link": "https://ex.com/x", "content": [{"value": "<div>Body text</div>"}]})
    assert e["summary"] == "Body text"
