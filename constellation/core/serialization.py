"""
Canonical JSON rendering for published documents.

Object keys are sorted recursively; arrays are emitted as given, so callers
sort them where order matters. Output is 2-space indented and ends with a
single newline. Whole-number floats are written without a fractional part
(`40`, not `40.0`), so a value renders the same whether it came from a
default or from a parsed config file.
"""

from __future__ import annotations

import json
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

# beyond this JSON number output switches to exponent notation
_MAX_PLAIN_INT = 1e21


def _plain_numbers(data: Any) -> Any:
    if isinstance(data, float):
        if math.isfinite(data) and data.is_integer() and abs(data) < _MAX_PLAIN_INT:
            return int(data)
        return data
    if isinstance(data, dict):
        return {k: _plain_numbers(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_plain_numbers(v) for v in data]
    return data


def deterministic_dumps(data: Any) -> str:
    return json.dumps(_plain_numbers(data), indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False) + "\n"


def round_fixed(value: float, decimals: int) -> float:
    """
    Round half away from zero on the exact binary value, then re-parse.

    28.125 is exactly representable, so it rounds up to 28.13; 1.005 is
    stored just below the half and rounds down to 1.0.
    """
    v = float(value)
    if not math.isfinite(v):
        return v
    q = Decimal(v).quantize(Decimal(1).scaleb(-int(decimals)), rounding=ROUND_HALF_UP)
    return float(q)
