from __future__ import annotations

import os
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SourcesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    records_dir: str = "data-private/records"


class InputsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    allowlist_file: str = "allowlist.json"
    curation_file: str = "curation.json"


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    public_dir: str = "public"
    graph_file: str = "public/data/constellation.graph.json"
    layout_file: str = "public/data/constellation.layout.json"
    status_file: str = "public/data/pipeline-status.json"
    media_dir: str = "public/data/media"


class PrivacyConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # 2 decimals is roughly 1.1 km
    gps_max_decimals: int = Field(default=2, ge=0, le=8)
    default_visibility: str = "private"

    @field_validator("default_visibility")
    @classmethod
    def _tier(cls, v: str) -> str:
        if v not in {"public", "friends", "private"}:
            raise ValueError("default_visibility must be public|friends|private")
        return v


class LayoutConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    radius: float = 30
    pitch: float = 5
    epoch_gap: float = 15
    jitter_radius: float = 2
    seed: int = 42


class AuditConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    forbidden_patterns: List[str] = Field(
        default_factory=lambda: [
            "direct_messages",
            "close_friends",
            "contact_graph",
            "message_requests",
            "story_likes",
        ]
    )


class EpochConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    range: str = Field(min_length=1)
    color: str = Field(min_length=1)
    start: int
    end: int

    @model_validator(mode="after")
    def _bounds(self) -> "EpochConfig":
        if self.end <= self.start:
            raise ValueError(f"epoch {self.id}: end must be greater than start")
        return self


def default_epochs() -> List[EpochConfig]:
    return [
        EpochConfig(id="early-years", label="Early Years", range="2001-2010", color="#fbbf24", start=2001, end=2010),
        EpochConfig(id="college", label="College", range="2010-2014", color="#f59e0b", start=2010, end=2014),
        EpochConfig(id="career-start", label="Career Start", range="2014-2018", color="#f87171", start=2014, end=2018),
        EpochConfig(id="growth", label="Growth", range="2018-2022", color="#a78bfa", start=2018, end=2022),
        EpochConfig(id="present", label="Present", range="2022-2026", color="#22d3ee", start=2022, end=2026),
    ]


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: str = "INFO"
    file_name: str = "pipeline.log"
    max_bytes: int = Field(default=1_000_000, ge=1024)
    backup_count: int = Field(default=5, ge=0, le=50)
    console: bool = True

    @field_validator("level")
    @classmethod
    def _level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("level must be DEBUG|INFO|WARNING|ERROR|CRITICAL")
        return level

    @field_validator("file_name")
    @classmethod
    def _plain_name(cls, v: str) -> str:
        if not v or v != os.path.basename(v):
            raise ValueError("file_name must be a bare file name inside the logs directory")
        return v


class ConcurrencyConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    max_workers: int = Field(default=4, ge=1, le=64)


class PipelineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=1, ge=1)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    inputs: InputsConfig = Field(default_factory=InputsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    privacy: PrivacyConfig = Field(default_factory=PrivacyConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    epochs: List[EpochConfig] = Field(default_factory=default_epochs)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("epochs")
    @classmethod
    def _epochs_ordered(cls, v: List[EpochConfig]) -> List[EpochConfig]:
        if not v:
            raise ValueError("at least one epoch is required")
        for prev, cur in zip(v, v[1:]):
            if cur.start < prev.start:
                raise ValueError("epochs must be ordered by start year")
        return v

