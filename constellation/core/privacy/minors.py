"""
Minors policy.

Policy for any record that mentions a known minor:
- first names may stay
- last names are stripped from title and description
- blocked patterns (school names, home identifiers, ...) become "[redacted]"
- location is removed entirely
- the record is flagged so the final audit can re-check it

Text handling is an explicit token walk rather than regex flags so the
behaviour does not depend on a particular regex engine.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from constellation.core.privacy.models import REDACTION_TOKEN, Allowlist
from constellation.core.records.models import CanonicalRecord
from constellation.core.reporting import RunReport

_MODULE = "minors-guard"


def is_minor(name: str, allowlist: Optional[Allowlist]) -> bool:
    if not name or allowlist is None or not allowlist.minors.first_names:
        return False
    minor_names = {n.strip().lower() for n in allowlist.minors.first_names if n and n.strip()}
    lowered = name.strip().lower()
    if not lowered:
        return False
    if lowered in minor_names:
        return True
    return lowered.split()[0] in minor_names


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _is_name_char(ch: str) -> bool:
    return (ch.isascii() and ch.isalpha()) or ch in "'-"


def _find_ci(text: str, needle: str, start: int) -> int:
    n = len(needle)
    low = needle.lower()
    for i in range(start, len(text) - n + 1):
        if text[i : i + n].lower() == low:
            return i
    return -1


def _skip_capitalized_run(text: str, pos: int) -> int:
    """
    Starting at `pos`, consume "<whitespace><Capitalized>" chunks for as long
    as they continue and return the index just past the last one.
    """
    end = pos
    while True:
        j = end
        while j < len(text) and text[j].isspace():
            j += 1
        if j == end or j >= len(text) or not ("A" <= text[j] <= "Z"):
            return end
        k = j + 1
        while k < len(text) and _is_name_char(text[k]):
            k += 1
        end = k


def strip_last_names(text: str, first_names: Sequence[str]) -> str:
    """
    "Photo with Jace Rowe at the park" -> "Photo with Jace at the park"
    "Photo with Jace Smith-Jones" -> "Photo with Jace"

    The first-name match is case-insensitive and whole-word; the last-name
    tokens must really start with an uppercase letter.
    """
    result = text or ""
    for first in first_names:
        name = (first or "").strip()
        if not name:
            continue
        parts: List[str] = []
        pos = 0
        while True:
            i = _find_ci(result, name, pos)
            if i < 0:
                break
            j = i + len(name)
            if (i > 0 and _is_word_char(result[i - 1])) or (j < len(result) and _is_word_char(result[j])):
                parts.append(result[pos : i + 1])
                pos = i + 1
                continue
            parts.append(result[pos:j])
            pos = _skip_capitalized_run(result, j)
        parts.append(result[pos:])
        result = "".join(parts)
    return result


def redact_blocked_patterns(text: str, blocked_patterns: Sequence[str]) -> str:
    result = text or ""
    for pattern in blocked_patterns:
        if not pattern:
            continue
        parts: List[str] = []
        pos = 0
        while True:
            i = _find_ci(result, pattern, pos)
            if i < 0:
                break
            parts.append(result[pos:i])
            parts.append(REDACTION_TOKEN)
            pos = i + len(pattern)
        parts.append(result[pos:])
        result = "".join(parts)
    return result


def enforce_minors_policy(
    record: CanonicalRecord,
    allowlist: Optional[Allowlist],
    report: Optional[RunReport] = None,
) -> CanonicalRecord:
    if allowlist is None:
        return record
    if not any(is_minor(p, allowlist) for p in record.entities.people):
        return record

    first_names = allowlist.minors.first_names
    blocked = allowlist.minors.blocked_patterns
    title = redact_blocked_patterns(strip_last_names(record.title, first_names), blocked)
    description = redact_blocked_patterns(strip_last_names(record.description, first_names), blocked)

    if report is not None:
        report.info(_MODULE, f"Minors policy enforced on record {record.id}: location removed, names stripped")
    return record.model_copy(update={"title": title, "description": description, "location": None, "is_minor": True})


def enforce_minors_policy_all(
    records: Sequence[CanonicalRecord],
    allowlist: Optional[Allowlist],
    report: Optional[RunReport] = None,
) -> List[CanonicalRecord]:
    return [enforce_minors_policy(r, allowlist, report) for r in records]
