from __future__ import annotations

import os
from dataclasses import dataclass

from constellation.core.config.models import PipelineConfig


@dataclass(frozen=True)
class PipelineFsPaths:
    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.root, "logs")

    # Files
    @property
    def pipeline_config(self) -> str:
        return os.path.join(self.config_dir, "pipeline.json")

    def resolve(self, rel_path: str) -> str:
        if os.path.isabs(rel_path):
            return rel_path
        return os.path.normpath(os.path.join(self.root, rel_path))


@dataclass(frozen=True)
class ResolvedPaths:
    """Absolute locations for one run, derived from config + project root."""

    records_dir: str
    allowlist_file: str
    curation_file: str
    public_dir: str
    graph_file: str
    layout_file: str
    status_file: str
    media_dir: str

    @classmethod
    def from_config(cls, fs: PipelineFsPaths, cfg: PipelineConfig) -> "ResolvedPaths":
        records_dir = os.environ.get("CONSTELLATION_RECORDS_DIR") or cfg.sources.records_dir
        return cls(
            records_dir=fs.resolve(records_dir),
            allowlist_file=fs.resolve(cfg.inputs.allowlist_file),
            curation_file=fs.resolve(cfg.inputs.curation_file),
            public_dir=fs.resolve(cfg.output.public_dir),
            graph_file=fs.resolve(cfg.output.graph_file),
            layout_file=fs.resolve(cfg.output.layout_file),
            status_file=fs.resolve(cfg.output.status_file),
            media_dir=fs.resolve(cfg.output.media_dir),
        )
