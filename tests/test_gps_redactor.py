from __future__ import annotations

from constellation.core.privacy.gps import redact_gps, redact_record_location
from tests.helpers.builders import make_record


def test_public_coordinates_rounded_to_two_decimals():
    assert redact_gps(28.541234, -81.383456, "public", False) == {"lat": 28.54, "lng": -81.38}


def test_private_and_minor_lose_coordinates():
    assert redact_gps(28.5, -81.3, "private", False) is None
    assert redact_gps(28.5, -81.3, "friends", True) is None
    assert redact_gps(None, -81.3, "public", False) is None


def test_configurable_precision():
    assert redact_gps(28.541234, -81.383456, "friends", False, max_decimals=3) == {"lat": 28.541, "lng": -81.383}


def test_record_location_is_replaced_not_mutated():
    rec = make_record("a", location={"lat": 1.23456, "lng": 2.34567})
    out = redact_record_location(rec, 2)
    assert (out.location.lat, out.location.lng) == (1.23, 2.35)
    assert rec.location.lat == 1.23456


def test_private_record_location_dropped():
    rec = make_record("a", visibility="private", location={"lat": 1.0, "lng": 2.0})
    assert redact_record_location(rec).location is None


def test_exact_halves_round_away_from_zero():
    # 28.125 and -81.375 are exact binary values
    assert redact_gps(28.125, -81.375, "public", False) == {"lat": 28.13, "lng": -81.38}
    # 1.005 is stored just below the half
    assert redact_gps(1.005, 2.675, "public", False) == {"lat": 1.0, "lng": 2.67}
