from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from constellation.core.config.io import atomic_write_text, restore_snapshot, snapshot_files
from constellation.core.config.manager import ConfigManager
from constellation.core.config.models import PipelineConfig
from constellation.core.config.paths import PipelineFsPaths, ResolvedPaths
from constellation.core.errors import PipelineError, UnexpectedPipelineError
from constellation.core.pipeline.models import PhaseResult, RunOutcome, RunStatus
from constellation.core.pipeline.phases import (
    PipelineContext,
    phase0_privacy_inputs,
    phase1_load_records,
    phase2_visibility,
    phase3_minors_and_names,
    phase4_filter_private,
    phase5_media_and_gps,
    phase6_edges,
    phase7_layout,
    phase8_assemble,
    phase9_schema,
    phase10_audit,
)
from constellation.core.reporting import RunReport
from constellation.core.serialization import deterministic_dumps


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PipelineRunner:
    """
    Runs every phase in a fixed order and publishes only when all of them pass.

    The currently published graph and layout are snapshotted before the first
    phase. Any fatal error restores them byte-for-byte, so a failed run never
    leaves a half-written or less private graph behind. The status document is
    written on every run and is the only output carrying a timestamp.
    """

    def __init__(
        self,
        *,
        fs: Optional[PipelineFsPaths] = None,
        config_manager: Optional[ConfigManager] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.fs = fs or PipelineFsPaths(".")
        self.logger = logger or logging.getLogger("constellation")
        self.config_manager = config_manager or ConfigManager(fs=self.fs, logger=self.logger)
        self.clock = clock
        self.report = RunReport(logger=self.logger)

    def run(self) -> RunStatus:
        self.report = RunReport(logger=self.logger)
        phases: List[PhaseResult] = []
        paths = ResolvedPaths.from_config(self.fs, PipelineConfig())
        snapshot: Dict[str, Optional[bytes]] = {}
        ctx: Optional[PipelineContext] = None
        self.logger.info("=== Constellation Pipeline ===")
        try:
            cfg = self.config_manager.load_all()
            paths = ResolvedPaths.from_config(self.fs, cfg)
            snapshot = snapshot_files([paths.graph_file, paths.layout_file])
            ctx = PipelineContext(fs=self.fs, cfg=cfg, paths=paths, report=self.report)

            phases.append(phase0_privacy_inputs(ctx, self.config_manager))
            phases.append(phase1_load_records(ctx))
            phases.append(phase2_visibility(ctx))
            phases.append(phase3_minors_and_names(ctx))
            phases.append(phase4_filter_private(ctx))
            phases.append(phase5_media_and_gps(ctx))
            phases.append(phase6_edges(ctx))
            phases.append(phase7_layout(ctx))
            phases.append(phase8_assemble(ctx))
            phases.append(phase9_schema(ctx))
            phases.append(phase10_audit(ctx))
            for ph in phases:
                self.logger.info(f"[pipeline] Phase {ph.phase_id} {ph.name}: {ph.status.value} {ph.message}".rstrip())

            self._publish(ctx)
        except PipelineError as e:
            return self._fail(e, paths, snapshot, phases)
        except Exception as e:  # noqa: BLE001
            self.logger.exception("Unexpected pipeline failure")
            return self._fail(UnexpectedPipelineError(f"Pipeline failed unexpectedly: {e}"), paths, snapshot, phases)

        status = RunStatus(
            status=RunOutcome.SUCCESS,
            last_run=_iso(self.clock()),
            exit_code=0,
            stats=ctx.stats(),
            phases=phases,
        )
        self._write_status(paths, status)
        for line in self.report.summary_lines():
            self.logger.info(line)
        self.logger.info(f"=== Pipeline Complete: {status.stats.node_count} nodes, {status.stats.edge_count} edges ===")
        return status

    def _publish(self, ctx: PipelineContext) -> None:
        graph_text = deterministic_dumps(ctx.graph_doc)
        layout_text = deterministic_dumps(ctx.layout_doc)
        atomic_write_text(ctx.paths.graph_file, graph_text)
        atomic_write_text(ctx.paths.layout_file, layout_text)
        self.logger.info(
            f"Written: {os.path.basename(ctx.paths.graph_file)} ({len(graph_text.encode('utf-8')) / 1024:.1f} KB, "
            f"{len(ctx.graph_doc['nodes'])} nodes, {len(ctx.graph_doc['edges'])} edges)"
        )
        self.logger.info(
            f"Written: {os.path.basename(ctx.paths.layout_file)} ({len(layout_text.encode('utf-8')) / 1024:.1f} KB, "
            f"{len(ctx.layout_doc['positions'])} positions)"
        )

    def _fail(
        self,
        err: PipelineError,
        paths: ResolvedPaths,
        snapshot: Dict[str, Optional[bytes]],
        phases: List[PhaseResult],
    ) -> RunStatus:
        self.logger.error(f"Pipeline failed ({err.code}): {err.user_message}")
        if snapshot:
            try:
                restore_snapshot(snapshot)
            except OSError as e:
                self.logger.critical(f"Unable to restore previously published output: {e}")
        details = [str(x) for x in (err.context.get("errors") or err.context.get("violations") or [])]
        status = RunStatus(
            status=RunOutcome.FAILED,
            last_run=_iso(self.clock()),
            exit_code=err.exit_code,
            error=err.user_message,
            error_code=err.code,
            details=details,
            phases=phases,
        )
        self._write_status(paths, status)
        for line in self.report.summary_lines():
            self.logger.info(line)
        return status

    def _write_status(self, paths: ResolvedPaths, status: RunStatus) -> None:
        try:
            atomic_write_text(paths.status_file, deterministic_dumps(status.to_document()))
        except OSError as e:
            self.logger.error(f"Unable to write status document {paths.status_file}: {e}")
