from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import ValidationError

from constellation.core.config.io import read_json_file
from constellation.core.config.models import PipelineConfig
from constellation.core.config.paths import PipelineFsPaths, ResolvedPaths
from constellation.core.errors import ConfigError
from constellation.core.privacy.models import Allowlist, Curation


def _format_validation(name: str, e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        parts.append(f"{name}:{loc}: {err.get('msg')}")
    return "; ".join(parts)


class ConfigManager:
    """
    Loads pipeline configuration and the two read-only privacy inputs.

    Missing files fall back to defaults (empty allowlist = most restrictive).
    Present but corrupt or invalid files raise ConfigError: a broken allowlist
    must never silently widen what gets published.
    """

    def __init__(self, *, fs: Optional[PipelineFsPaths] = None, logger=None):
        self.fs = fs or PipelineFsPaths(".")
        self.logger = logger
        self._cfg: Optional[PipelineConfig] = None

    def _info(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.info(msg)

    def load_all(self) -> PipelineConfig:
        rr = read_json_file(self.fs.pipeline_config)
        if not rr.ok and rr.error == "missing":
            self._info("No config/pipeline.json found -- using defaults")
            self._cfg = PipelineConfig()
            return self._cfg
        data = self._require_object("pipeline.json", rr.data, rr.error)
        try:
            self._cfg = PipelineConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid pipeline.json: {_format_validation('pipeline.json', e)}", file="pipeline.json") from e
        return self._cfg

    def get(self) -> PipelineConfig:
        if self._cfg is None:
            return self.load_all()
        return self._cfg

    def paths(self) -> ResolvedPaths:
        return ResolvedPaths.from_config(self.fs, self.get())

    def load_allowlist(self, path: str) -> Allowlist:
        rr = read_json_file(path)
        if not rr.ok and rr.error == "missing":
            self._info("No allowlist.json found -- every person is treated as non-public")
            return Allowlist()
        data = self._require_object(os.path.basename(path), rr.data, rr.error)
        try:
            allowlist = Allowlist.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid allowlist: {_format_validation('allowlist', e)}", file=path) from e
        self._info(
            f"Loaded allowlist ({len(allowlist.public)} public, {len(allowlist.friends)} friends, "
            f"{len(allowlist.minors.first_names)} minors)"
        )
        return allowlist

    def load_curation(self, path: str) -> Curation:
        rr = read_json_file(path)
        if not rr.ok and rr.error == "missing":
            self._info("No curation.json found -- all records visible by default")
            return Curation()
        data = self._require_object(os.path.basename(path), rr.data, rr.error)
        try:
            curation = Curation.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid curation: {_format_validation('curation', e)}", file=path) from e
        self._info(f"Loaded curation ({len(curation.hidden)} hidden, {len(curation.visibility_overrides)} overrides)")
        return curation

    @staticmethod
    def _require_object(name: str, data: Any, error: Optional[str]) -> dict:
        if error:
            raise ConfigError(f"Unable to read {name}: {error}", file=name)
        if not isinstance(data, dict):
            raise ConfigError(f"{name} must contain a JSON object.", file=name)
        return data
