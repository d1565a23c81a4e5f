"""
Pairwise connection signals.

Each signal that fires between two records contributes one Evidence entry.
The edge builder sums the weights and keeps the pair when the sum reaches
EDGE_THRESHOLD.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from constellation.core.records.canonical import parse_record_date
from constellation.core.records.models import CanonicalRecord, Evidence

SIGNAL_WEIGHTS: Dict[str, float] = {
    "same-day": 0.8,
    "shared-project": 0.7,
    "shared-entity": 0.6,
    "shared-tags": 0.4,
    "temporal-proximity": 0.3,
    "shared-place": 0.25,
    "shared-client": 0.35,
}

EDGE_THRESHOLD = 0.5
PROXIMITY_MAX_DAYS = 30

_TEMPORAL = {"same-day", "temporal-proximity"}
_SPATIAL = {"shared-place"}


def evidence_type(signal: str) -> str:
    if signal in _TEMPORAL:
        return "temporal"
    if signal in _SPATIAL:
        return "spatial"
    return "semantic"


def _intersect(a: Sequence[str], b: Sequence[str]) -> List[str]:
    """Case-insensitive intersection, deduplicated, casing taken from `a`."""
    other = {str(v).lower() for v in b}
    seen = set()
    out: List[str] = []
    for v in a:
        key = str(v).lower()
        if key in other and key not in seen:
            seen.add(key)
            out.append(v)
    return out


def day_difference(date_a: str, date_b: str) -> Optional[int]:
    da, db = parse_record_date(date_a), parse_record_date(date_b)
    if da is None or db is None:
        return None
    return int(abs((da - db).total_seconds()) // 86400)


def _evidence(signal: str, description: str) -> Evidence:
    return Evidence(type=evidence_type(signal), signal=signal, description=description, weight=SIGNAL_WEIGHTS[signal])


def calculate_signals(a: CanonicalRecord, b: CanonicalRecord) -> List[Evidence]:
    out: List[Evidence] = []
    ea, eb = a.entities, b.entities

    if a.date and a.date == b.date:
        out.append(_evidence("same-day", f"Both from {a.date}"))

    projects = _intersect(ea.projects, eb.projects)
    if projects:
        out.append(_evidence("shared-project", f"Both part of {', '.join(projects)}"))

    people = _intersect(ea.people, eb.people)
    if people:
        out.append(_evidence("shared-entity", f"Both mention {', '.join(people)}"))

    tags = _intersect(ea.tags, eb.tags)
    if tags:
        out.append(_evidence("shared-tags", f"Shared tags: {', '.join(tags)}"))

    days = day_difference(a.date, b.date)
    if days is not None and 0 < days <= PROXIMITY_MAX_DAYS:
        out.append(_evidence("temporal-proximity", f"{days} days apart"))

    places = _intersect(ea.places, eb.places)
    if places:
        out.append(_evidence("shared-place", f"Shared location: {', '.join(places)}"))

    clients = _intersect(ea.clients, eb.clients)
    if clients:
        out.append(_evidence("shared-client", f"Same client: {', '.join(clients)}"))

    return out
