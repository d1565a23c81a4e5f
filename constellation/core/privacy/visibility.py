"""
Visibility tier refinement.

Producers set a source-level default tier. This module refines it:
- curation overrides replace the tier (they may raise or lower it)
- every person who is not cleared for public caps the tier at friends
The allowlist step can only narrow the tier, never widen it.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from constellation.core.privacy.models import (
    GENERIC_PERSON_LABEL,
    TIER_ORDER,
    Allowlist,
    Curation,
    VisibilityTier,
    most_restrictive,
)
from constellation.core.records.models import CanonicalRecord
from constellation.core.reporting import RunReport

_MODULE = "visibility"


def assign_visibility(
    record: CanonicalRecord,
    allowlist: Optional[Allowlist],
    curation_overrides: Optional[Dict[str, str]],
) -> str:
    tier = record.visibility if record.visibility in TIER_ORDER else VisibilityTier.PRIVATE.value

    override = (curation_overrides or {}).get(record.id)
    if override in TIER_ORDER:
        tier = override

    al = allowlist or Allowlist()
    for person in record.entities.people:
        if al.is_public(person):
            continue
        # friends-listed or unknown: cannot be public either way
        tier = most_restrictive(tier, VisibilityTier.FRIENDS.value)
    return tier


def resolve_visibility(
    records: Sequence[CanonicalRecord],
    allowlist: Optional[Allowlist],
    curation: Optional[Curation],
    report: Optional[RunReport] = None,
) -> List[CanonicalRecord]:
    overrides = curation.visibility_overrides if curation is not None else {}
    out: List[CanonicalRecord] = []
    changed = 0
    for rec in records:
        tier = assign_visibility(rec, allowlist, overrides)
        if tier != rec.visibility:
            changed += 1
            rec = rec.model_copy(update={"visibility": tier})
        out.append(rec)
    if report is not None and changed:
        report.info(_MODULE, f"Visibility refined on {changed} record(s)")
    return out


def apply_allowlist(
    records: Sequence[CanonicalRecord],
    allowlist: Optional[Allowlist],
    report: Optional[RunReport] = None,
) -> List[CanonicalRecord]:
    """
    Keep names on the public or friends list verbatim; anyone else becomes
    the generic label.
    """
    al = allowlist or Allowlist()
    out: List[CanonicalRecord] = []
    replaced = 0
    for rec in records:
        people = rec.entities.people
        if not people:
            out.append(rec)
            continue
        processed: List[str] = []
        for person in people:
            if al.is_public(person) or al.is_friend(person):
                processed.append(person)
            else:
                processed.append(GENERIC_PERSON_LABEL)
                replaced += 1
        if processed != people:
            entities = rec.entities.model_copy(update={"people": processed})
            rec = rec.model_copy(update={"entities": entities})
        out.append(rec)
    if report is not None and replaced:
        report.info(_MODULE, f"Allowlist: {replaced} person name(s) replaced with generic labels")
    return out


def apply_curation_hidden(
    records: Sequence[CanonicalRecord],
    curation: Optional[Curation],
    report: Optional[RunReport] = None,
) -> List[CanonicalRecord]:
    hidden = set(curation.hidden) if curation is not None else set()
    if not hidden:
        return list(records)
    kept = [r for r in records if r.id not in hidden]
    if report is not None and len(kept) != len(records):
        report.info(_MODULE, f"Curation: {len(records) - len(kept)} record(s) hidden, {len(kept)} visible")
    return kept


def filter_private(records: Sequence[CanonicalRecord], report: Optional[RunReport] = None) -> List[CanonicalRecord]:
    kept = [r for r in records if r.visibility != VisibilityTier.PRIVATE.value]
    removed = len(records) - len(kept)
    if report is not None and removed:
        report.info(_MODULE, f"Filtered {removed} private record(s) from output ({len(kept)} remaining)")
    return kept
