from __future__ import annotations

import math

import pytest

from constellation.core.config.models import default_epochs
from constellation.core.errors import RecordError
from constellation.core.records.canonical import canonicalize_records, create_canonical_record, parse_record_date
from constellation.core.records.epochs import assign_epoch, epochs_document
from tests.helpers.builders import raw_record


def _create(fields):
    return create_canonical_record(fields, epochs=default_epochs(), default_visibility="private")


def test_missing_id_or_date_is_rejected():
    with pytest.raises(RecordError):
        _create({"date": "2020-01-01"})
    with pytest.raises(RecordError):
        _create({"id": "a"})
    with pytest.raises(RecordError):
        _create({"id": "a", "date": "not-a-date"})


def test_unknown_type_and_visibility_normalize():
    rec = _create(raw_record("a", type="spaceship", visibility="secret"))
    assert rec.type == "moment"
    assert rec.visibility == "private"


def test_epoch_derived_from_year_and_clamped():
    assert _create(raw_record("a", date="2019-06-01")).epoch == "Growth"
    assert _create(raw_record("b", date="1990-01-01")).epoch == "Early Years"
    assert _create(raw_record("c", date="2031-01-01")).epoch == "Present"
    assert _create(raw_record("d", epoch="Custom")).epoch == "Custom"


def test_epoch_ranges_are_half_open():
    epochs = default_epochs()
    assert assign_epoch(2014, epochs) == "Career Start"
    assert assign_epoch(2013, epochs) == "College"
    assert assign_epoch(None, epochs) == "Unknown"


def test_location_must_be_finite_numbers():
    assert _create(raw_record("a", location={"lat": 1.5, "lng": 2.5})).location.lat == 1.5
    assert _create(raw_record("b", location={"lat": "1", "lng": 2})).location is None
    assert _create(raw_record("c", location={"lat": math.nan, "lng": 2})).location is None
    assert _create(raw_record("d", location={"lat": True, "lng": 2})).location is None


def test_entities_are_cleaned():
    rec = _create(raw_record("a", entities={"people": ["Ann", "", None, 5], "bogus": ["x"]}))
    assert rec.entities.people == ["Ann", "5"]
    assert rec.entities.tags == []


def test_canonicalize_drops_invalid_and_duplicates(report):
    raw = [
        raw_record("b"),
        {"id": "no-date"},
        raw_record("a", title="first"),
        raw_record("a", title="second"),
        "not an object",
    ]
    out = canonicalize_records(raw, epochs=default_epochs(), report=report)
    assert [r.id for r in out] == ["a", "b"]
    assert out[0].title == "first"
    assert report.warning_count("canonical") == 3


def test_parse_record_date_accepts_partial_iso():
    assert parse_record_date("2020").year == 2020
    assert parse_record_date("2020-05").month == 5
    assert parse_record_date("2020-05-01T10:00:00+02:00").hour == 8
    assert parse_record_date("") is None


def test_epochs_document_keeps_bounds():
    doc = epochs_document(default_epochs())
    assert doc[0] == {"id": "early-years", "label": "Early Years", "range": "2001-2010", "color": "#fbbf24", "start": 2001, "end": 2010}


def test_to_node_uses_published_field_names():
    node = _create(raw_record("a", isHub=True, sourceId="s-1")).to_node()
    assert node["isHub"] is True
    assert node["sourceId"] == "s-1"
    assert node["isMinor"] is False
    assert "is_hub" not in node
