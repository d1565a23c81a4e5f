from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RunOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class PhaseStatus(str, Enum):
    OK = "OK"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class PhaseResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    phase_id: int
    name: str
    status: PhaseStatus
    message: str = ""


class RunStats(BaseModel):
    """Counters published in the status document (camelCase on the wire)."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    node_count: int = 0
    edge_count: int = 0
    by_source: Dict[str, int] = Field(default_factory=dict)
    by_type: Dict[str, int] = Field(default_factory=dict)
    by_visibility: Dict[str, int] = Field(default_factory=dict)
    records_loaded: int = 0
    records_dropped: int = 0
    records_hidden: int = 0
    private_filtered: int = 0
    total_pairs: int = 0
    edges_before_pruning: int = 0
    edges_pruned: int = 0
    media_processed: int = 0
    media_skipped: int = 0
    audit_violations: int = 0
    audit_warnings: int = 0
    warnings_by_module: Dict[str, int] = Field(default_factory=dict)


class RunStatus(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    status: RunOutcome
    last_run: str
    exit_code: int = 0
    stats: Optional[RunStats] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    details: List[str] = Field(default_factory=list)
    phases: List[PhaseResult] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == RunOutcome.SUCCESS

    def to_document(self) -> Dict[str, Any]:
        """The published status document: lastRun, status, then stats or error/errorCode."""
        exclude = {"exit_code", "phases"}
        if not self.details:
            exclude.add("details")
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude=exclude)
