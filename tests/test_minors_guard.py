from __future__ import annotations

from constellation.core.privacy.minors import (
    enforce_minors_policy,
    is_minor,
    redact_blocked_patterns,
    strip_last_names,
)
from constellation.core.privacy.models import Allowlist, MinorsPolicy
from tests.helpers.builders import make_record


def _allowlist(first_names, blocked=()):
    return Allowlist(minors=MinorsPolicy(first_names=list(first_names), blocked_patterns=list(blocked)))


def test_last_name_stripped_and_location_removed():
    al = _allowlist(["Jace"], ["Park Elementary"])
    rec = make_record(
        "a",
        title="Photo with Jace Rowe at Park",
        people=["Jace Rowe"],
        location={"lat": 28.5, "lng": -81.3},
    )
    out = enforce_minors_policy(rec, al)
    assert out.title == "Photo with Jace at Park"
    assert out.location is None
    assert out.is_minor is True
    # original value is not mutated
    assert rec.location is not None


def test_blocked_pattern_is_redacted_case_insensitively():
    al = _allowlist(["Jace"], ["Park Elementary"])
    rec = make_record("a", title="Jace at park elementary", description="Pickup at PARK ELEMENTARY", people=["Jace"])
    out = enforce_minors_policy(rec, al)
    assert out.title == "Jace at [redacted]"
    assert out.description == "Pickup at [redacted]"


def test_every_occurrence_is_stripped():
    text = "Jace Rowe and jace Rowe, then Jace Smith-Jones"
    assert strip_last_names(text, ["Jace"]) == "Jace and jace, then Jace"


def test_first_name_must_be_whole_word():
    assert strip_last_names("Jacey Rowe went home", ["Jace"]) == "Jacey Rowe went home"
    assert strip_last_names("Jace went Home", ["Jace"]) == "Jace went Home"


def test_is_minor_matches_first_token():
    al = _allowlist(["Jace"])
    assert is_minor("Jace", al)
    assert is_minor("jace rowe", al)
    assert not is_minor("Jason", al)
    assert not is_minor("Jace", None)


def test_records_without_minors_are_untouched():
    al = _allowlist(["Jace"], ["Park Elementary"])
    rec = make_record("a", title="Park Elementary reunion", people=["Alice"], location={"lat": 1.0, "lng": 2.0})
    assert enforce_minors_policy(rec, al) is rec


def test_redact_blocked_patterns_ignores_empty():
    assert redact_blocked_patterns("hello", ["", "ell"]) == "h[redacted]o"
