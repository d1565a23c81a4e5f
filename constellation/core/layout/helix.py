"""
Double-helix layout.

Records are ordered by date, grouped into epoch buckets (first appearance
order) and placed along two interleaved strands. Each bucket gets a full
rotation and a fixed `pitch` of vertical space, separated by `epoch_gap`.
Hub records always sit on strand 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from constellation.core.config.models import LayoutConfig
from constellation.core.layout.prng import Mulberry32
from constellation.core.records.canonical import parse_record_date
from constellation.core.records.epochs import UNKNOWN_EPOCH
from constellation.core.records.models import CanonicalRecord
from constellation.core.serialization import round_fixed

COORD_DECIMALS = 4

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class LayoutResult:
    positions: Dict[str, Dict[str, float]] = field(default_factory=dict)
    helix_params: Dict[str, float] = field(default_factory=dict)
    bounds: Dict[str, float] = field(default_factory=dict)

    def to_document(self) -> Dict[str, object]:
        return {"positions": self.positions, "helixParams": self.helix_params, "bounds": self.bounds}


def _date_key(record: CanonicalRecord) -> Tuple[datetime, str]:
    return (parse_record_date(record.date) or _FAR_FUTURE, record.id)


def _group_by_epoch(records: Sequence[CanonicalRecord]) -> List[List[CanonicalRecord]]:
    groups: Dict[str, List[CanonicalRecord]] = {}
    for rec in records:
        groups.setdefault(rec.epoch or UNKNOWN_EPOCH, []).append(rec)
    return list(groups.values())


def compute_layout(records: Sequence[CanonicalRecord], config: Optional[LayoutConfig] = None) -> LayoutResult:
    cfg = config or LayoutConfig()
    rng = Mulberry32(cfg.seed)

    positions: Dict[str, Dict[str, float]] = {}
    min_y = math.inf
    max_y = -math.inf
    cursor = 0.0

    for bucket_index, bucket in enumerate(_group_by_epoch(sorted(records, key=_date_key))):
        if bucket_index > 0:
            cursor += cfg.epoch_gap
        start = cursor
        n = max(len(bucket), 1)
        for i, rec in enumerate(bucket):
            strand = 0 if rec.is_hub else i % 2
            angle = (i / n) * math.pi * 2 + strand * math.pi
            # X is drawn before Z
            jitter_x = (rng() - 0.5) * 2 * cfg.jitter_radius
            jitter_z = (rng() - 0.5) * 2 * cfg.jitter_radius

            x = round_fixed(cfg.radius * math.cos(angle) + jitter_x, COORD_DECIMALS)
            y = round_fixed(start + (i / n) * cfg.pitch, COORD_DECIMALS)
            z = round_fixed(cfg.radius * math.sin(angle) + jitter_z, COORD_DECIMALS)
            positions[rec.id] = {"x": x, "y": y, "z": z}
            min_y = min(min_y, y)
            max_y = max(max_y, y)
        cursor = start + cfg.pitch

    if not positions:
        min_y = max_y = 0

    return LayoutResult(
        positions=dict(sorted(positions.items())),
        helix_params={
            "radius": cfg.radius,
            "pitch": cfg.pitch,
            "epochGap": cfg.epoch_gap,
            "jitterRadius": cfg.jitter_radius,
            "seed": cfg.seed,
        },
        bounds={"minY": min_y, "maxY": max_y},
    )
