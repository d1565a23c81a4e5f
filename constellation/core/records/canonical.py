from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from dateutil.parser import isoparse

from constellation.core.config.models import EpochConfig
from constellation.core.errors import RecordError
from constellation.core.privacy.models import TIER_ORDER
from constellation.core.records.epochs import assign_epoch
from constellation.core.records.models import ENTITY_KINDS, NODE_TYPES, CanonicalRecord, Entities, Location
from constellation.core.reporting import RunReport

_MODULE = "canonical"


def parse_record_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime ("2020", "2020-05", "2020-05-01",
    "2020-05-01T10:00:00Z"). Naive values are read as UTC.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        dt = isoparse(value.strip())
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, (str, int, float)) and not isinstance(v, bool) and str(v).strip()]


def _coerce_location(value: Any) -> Optional[Location]:
    lat = lng = None
    if isinstance(value, dict):
        lat, lng = value.get("lat"), value.get("lng")
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        lat, lng = value
    for v in (lat, lng):
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            return None
    return Location(lat=float(lat), lng=float(lng))


def create_canonical_record(
    fields: Dict[str, Any],
    *,
    epochs: Sequence[EpochConfig],
    default_visibility: str = "private",
) -> CanonicalRecord:
    """
    Normalize one producer record.

    Raises RecordError when `id` or `date` is missing or the date does not
    parse; callers drop the record. Everything else gets a safe default.
    """
    if not isinstance(fields, dict):
        raise RecordError("Record is not an object.")
    rid = fields.get("id")
    date = fields.get("date")
    if not isinstance(rid, str) or not rid.strip():
        raise RecordError("Record is missing an id.", source=str(fields.get("source") or ""))
    if not isinstance(date, str) or not date.strip():
        raise RecordError(f"Record {rid} is missing a date.", record_id=rid)
    parsed = parse_record_date(date)
    if parsed is None:
        raise RecordError(f"Record {rid} has an unparseable date: {date!r}", record_id=rid)

    rtype = fields.get("type")
    visibility = fields.get("visibility")
    if visibility not in TIER_ORDER:
        visibility = default_visibility
    epoch = fields.get("epoch")
    if not isinstance(epoch, str) or not epoch.strip():
        epoch = assign_epoch(parsed.year, epochs)

    raw_entities = fields.get("entities") if isinstance(fields.get("entities"), dict) else {}
    entities = Entities(**{k: _str_list(raw_entities.get(k)) for k in ENTITY_KINDS})

    size = fields.get("size")
    return CanonicalRecord(
        id=rid.strip(),
        type=rtype if rtype in NODE_TYPES else "moment",
        title=str(fields.get("title") or ""),
        date=date.strip(),
        epoch=epoch,
        description=str(fields.get("description") or ""),
        media=_str_list(fields.get("media")),
        connections=_str_list(fields.get("connections")),
        size=float(size) if isinstance(size, (int, float)) and not isinstance(size, bool) and math.isfinite(size) else 0.8,
        is_hub=bool(fields.get("isHub")),
        source=str(fields.get("source") or ""),
        source_id=str(fields.get("sourceId") or ""),
        visibility=visibility,
        entities=entities,
        location=_coerce_location(fields.get("location")),
    )


def canonicalize_records(
    raw_records: Iterable[Dict[str, Any]],
    *,
    epochs: Sequence[EpochConfig],
    default_visibility: str = "private",
    report: Optional[RunReport] = None,
) -> List[CanonicalRecord]:
    """
    Validate every record, drop the invalid ones and duplicate ids (first wins),
    and return the survivors sorted by id.
    """
    out: Dict[str, CanonicalRecord] = {}
    for raw in raw_records:
        try:
            rec = create_canonical_record(raw, epochs=epochs, default_visibility=default_visibility)
        except RecordError as e:
            if report is not None:
                report.warn(_MODULE, f"Skipping record: {e.user_message}")
            continue
        if rec.id in out:
            if report is not None:
                report.warn(_MODULE, f"Duplicate record id {rec.id} (source={rec.source or '?'}) -- keeping first")
            continue
        out[rec.id] = rec
    return [out[k] for k in sorted(out)]
