"""
Structural contract for the two published documents.

Models run in strict mode: numbers must be real numbers (never bools or
numeric strings) and unknown keys are rejected, so a stray internal field
cannot leak into the published graph unnoticed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

NodeType = Literal["milestone", "person", "moment", "idea", "project", "place"]
Visibility = Literal["public", "friends", "private"]


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class EntitiesDoc(_Strict):
    people: List[str] = Field(default_factory=list)
    places: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    clients: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)


class LocationDoc(_Strict):
    lat: float
    lng: float


class NodeDoc(_Strict):
    id: str = Field(min_length=1)
    type: NodeType
    title: str
    date: str = Field(min_length=1)
    epoch: str = Field(min_length=1)
    description: str = ""
    media: List[str] = Field(default_factory=list)
    connections: List[str] = Field(default_factory=list)
    size: float = 0.8
    isHub: bool = False
    source: str = ""
    sourceId: str = ""
    visibility: Visibility = "private"
    entities: EntitiesDoc = Field(default_factory=EntitiesDoc)
    location: Optional[LocationDoc] = None
    isMinor: bool = False


class EvidenceDoc(_Strict):
    signal: str
    weight: float
    type: str = ""
    description: str = ""


class EdgeDoc(_Strict):
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    weight: float
    evidence: List[EvidenceDoc]


class EpochDoc(_Strict):
    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    range: str = Field(min_length=1)
    color: str = Field(min_length=1)
    start: Optional[int] = None
    end: Optional[int] = None


class GraphDoc(_Strict):
    nodes: List[NodeDoc]
    edges: List[EdgeDoc]
    epochs: List[EpochDoc]


class PositionDoc(_Strict):
    x: float
    y: float
    z: float


class HelixParamsDoc(_Strict):
    radius: float
    pitch: float
    epochGap: float
    jitterRadius: float
    seed: float


class BoundsDoc(_Strict):
    minY: float
    maxY: float


class LayoutDoc(_Strict):
    positions: Dict[str, PositionDoc]
    helixParams: HelixParamsDoc
    bounds: BoundsDoc


def _format_errors(prefix: str, e: ValidationError) -> List[str]:
    out: List[str] = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        out.append(f"{prefix}.{loc}: {err.get('msg')}" if loc else f"{prefix}: {err.get('msg')}")
    return out


def validate_schema(graph: Any, layout: Any) -> List[str]:
    """Return every structural error in both documents; empty means valid."""
    errors: List[str] = []
    try:
        GraphDoc.model_validate(graph)
    except ValidationError as e:
        errors.extend(_format_errors("graph", e))
    try:
        LayoutDoc.model_validate(layout)
    except ValidationError as e:
        errors.extend(_format_errors("layout", e))
    return errors
