from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from constellation.core.privacy.models import VisibilityTier
from constellation.core.records.models import CanonicalRecord, Location
from constellation.core.serialization import round_fixed

DEFAULT_MAX_DECIMALS = 2


def redact_gps(
    lat: Optional[float],
    lng: Optional[float],
    visibility: str,
    is_minor: bool,
    max_decimals: int = DEFAULT_MAX_DECIMALS,
) -> Optional[Dict[str, float]]:
    """
    Reduce coordinates to city-level precision.

    Minors and private records never carry coordinates. Values are rounded
    half away from zero to `max_decimals` and parsed back, so 28.541234
    becomes 28.54 (not 28.540000000000003) and 28.125 becomes 28.13.
    """
    if is_minor:
        return None
    if visibility == VisibilityTier.PRIVATE.value:
        return None
    if lat is None or lng is None:
        return None
    return {"lat": round_fixed(lat, max_decimals), "lng": round_fixed(lng, max_decimals)}


def redact_record_location(record: CanonicalRecord, max_decimals: int = DEFAULT_MAX_DECIMALS) -> CanonicalRecord:
    if record.location is None:
        return record
    red = redact_gps(record.location.lat, record.location.lng, record.visibility, record.is_minor, max_decimals)
    loc = Location(**red) if red is not None else None
    if loc == record.location:
        return record
    return record.model_copy(update={"location": loc})


def redact_locations(records: Sequence[CanonicalRecord], max_decimals: int = DEFAULT_MAX_DECIMALS) -> List[CanonicalRecord]:
    return [redact_record_location(r, max_decimals) for r in records]
