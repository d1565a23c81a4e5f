from __future__ import annotations

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VisibilityTier(str, Enum):
    PRIVATE = "private"
    FRIENDS = "friends"
    PUBLIC = "public"


# lower = more restrictive
TIER_ORDER: List[str] = [VisibilityTier.PRIVATE.value, VisibilityTier.FRIENDS.value, VisibilityTier.PUBLIC.value]

GENERIC_PERSON_LABEL = "Friend"
REDACTION_TOKEN = "[redacted]"


def tier_level(tier: str) -> int:
    try:
        return TIER_ORDER.index(tier)
    except ValueError:
        # unknown tiers count as private
        return 0


def most_restrictive(a: str, b: str) -> str:
    return a if tier_level(a) <= tier_level(b) else b


class MinorsPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    first_names: List[str] = Field(default_factory=list, alias="firstNames")
    blocked_patterns: List[str] = Field(default_factory=list, alias="blockedPatterns")


class Allowlist(BaseModel):
    """
    People cleared for publication.

    public: full names may appear on public nodes.
    friends: names kept, but any node mentioning them is capped at friends.
    Anyone else is rewritten to a generic label.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    public: List[str] = Field(default_factory=list)
    friends: List[str] = Field(default_factory=list)
    minors: MinorsPolicy = Field(default_factory=MinorsPolicy)

    def is_public(self, name: str) -> bool:
        return _on_list(name, self.public)

    def is_friend(self, name: str) -> bool:
        return _on_list(name, self.friends)


class Curation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    hidden: List[str] = Field(default_factory=list)
    visibility_overrides: Dict[str, str] = Field(default_factory=dict)

    @field_validator("visibility_overrides")
    @classmethod
    def _known_tiers(cls, v: Dict[str, str]) -> Dict[str, str]:
        # overrides naming an unknown tier are dropped, never guessed
        return {str(k): str(t) for k, t in v.items() if t in TIER_ORDER}


def _on_list(name: str, names: List[str]) -> bool:
    needle = str(name or "").strip().lower()
    if not needle:
        return False
    return any(str(n).strip().lower() == needle for n in names)
