from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from constellation.core.config.models import EpochConfig

UNKNOWN_EPOCH = "Unknown"


def assign_epoch(year: Optional[int], epochs: Sequence[EpochConfig]) -> str:
    """
    Map a year onto an epoch label. Ranges are [start, end).

    Years before the first epoch clamp to the first one and years at or past
    the last end clamp to the last one, so every dated record lands somewhere.
    """
    if year is None or not epochs:
        return UNKNOWN_EPOCH
    first, last = epochs[0], epochs[-1]
    if year < first.start:
        return first.label
    if year >= last.end:
        return last.label
    for ep in epochs:
        if ep.start <= year < ep.end:
            return ep.label
    return last.label


def epochs_document(epochs: Sequence[EpochConfig]) -> List[Dict[str, Any]]:
    return [ep.model_dump() for ep in epochs]
