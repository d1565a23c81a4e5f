from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

NODE_TYPES: List[str] = ["milestone", "person", "moment", "idea", "project", "place"]
ENTITY_KINDS: List[str] = ["people", "places", "tags", "clients", "projects"]


class Entities(BaseModel):
    model_config = ConfigDict(extra="forbid")

    people: List[str] = Field(default_factory=list)
    places: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    clients: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)


class Location(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    lat: float
    lng: float


class CanonicalRecord(BaseModel):
    """
    One node of the constellation.

    Phases never mutate a record; they return `model_copy(update=...)` values.
    Field names follow Python style; `to_node()` renders the published
    camelCase shape.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    type: str = "moment"
    title: str = ""
    date: str = Field(min_length=1)
    epoch: str = ""
    description: str = ""
    media: List[str] = Field(default_factory=list)
    connections: List[str] = Field(default_factory=list)
    size: float = 0.8
    is_hub: bool = Field(default=False, alias="isHub")
    source: str = ""
    source_id: str = Field(default="", alias="sourceId")
    visibility: str = "private"
    entities: Entities = Field(default_factory=Entities)
    location: Optional[Location] = None
    is_minor: bool = Field(default=False, alias="isMinor")

    def to_node(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Evidence(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: str
    signal: str
    description: str
    weight: float


class Edge(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str
    target: str
    weight: float
    evidence: List[Evidence] = Field(default_factory=list)

    def other(self, node_id: str) -> str:
        return self.target if node_id == self.source else self.source

    def signals(self) -> List[str]:
        return sorted({ev.signal for ev in self.evidence})
