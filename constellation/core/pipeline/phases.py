"""
Pipeline phases.

Every phase reads and replaces values on a shared PipelineContext and returns
a PhaseResult. Recoverable problems are reported on the RunReport inside the
phase; fatal ones raise a PipelineError subclass for the runner to handle.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from constellation.core.config.manager import ConfigManager
from constellation.core.config.models import PipelineConfig
from constellation.core.config.paths import PipelineFsPaths, ResolvedPaths
from constellation.core.errors import NoRecordsError, PrivacyViolationError, SchemaValidationError
from constellation.core.graph.edges import EdgeStats, generate_edges
from constellation.core.layout.helix import LayoutResult, compute_layout
from constellation.core.pipeline.models import PhaseResult, PhaseStatus, RunStats
from constellation.core.pipeline.sources import load_raw_records
from constellation.core.privacy.gps import redact_locations
from constellation.core.privacy.media import process_media_all
from constellation.core.privacy.minors import enforce_minors_policy_all
from constellation.core.privacy.models import Allowlist, Curation
from constellation.core.privacy.visibility import apply_allowlist, apply_curation_hidden, filter_private, resolve_visibility
from constellation.core.records.canonical import canonicalize_records
from constellation.core.records.epochs import epochs_document
from constellation.core.records.models import CanonicalRecord, Edge
from constellation.core.reporting import RunReport
from constellation.core.validation.privacy_audit import AuditResult, audit_privacy
from constellation.core.validation.schema import validate_schema


@dataclass
class PipelineContext:
    fs: PipelineFsPaths
    cfg: PipelineConfig
    paths: ResolvedPaths
    report: RunReport
    allowlist: Allowlist = field(default_factory=Allowlist)
    curation: Curation = field(default_factory=Curation)
    records: List[CanonicalRecord] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    edge_stats: EdgeStats = field(default_factory=EdgeStats)
    layout: Optional[LayoutResult] = None
    graph_doc: Dict[str, Any] = field(default_factory=dict)
    layout_doc: Dict[str, Any] = field(default_factory=dict)
    audit: Optional[AuditResult] = None
    records_loaded: int = 0
    records_dropped: int = 0
    records_hidden: int = 0
    private_filtered: int = 0
    media_processed: int = 0
    media_skipped: int = 0

    def stats(self) -> RunStats:
        nodes = self.graph_doc.get("nodes") or []
        return RunStats(
            node_count=len(nodes),
            edge_count=len(self.graph_doc.get("edges") or []),
            by_source=dict(sorted(Counter(n.get("source") or "" for n in nodes).items())),
            by_type=dict(sorted(Counter(n.get("type") for n in nodes).items())),
            by_visibility=dict(sorted(Counter(n.get("visibility") for n in nodes).items())),
            records_loaded=self.records_loaded,
            records_dropped=self.records_dropped,
            records_hidden=self.records_hidden,
            private_filtered=self.private_filtered,
            total_pairs=self.edge_stats.total_pairs,
            edges_before_pruning=self.edge_stats.edges_before_pruning,
            edges_pruned=self.edge_stats.edges_pruned,
            media_processed=self.media_processed,
            media_skipped=self.media_skipped,
            audit_violations=len(self.audit.violations) if self.audit else 0,
            audit_warnings=len(self.audit.warnings) if self.audit else 0,
            warnings_by_module=self.report.warnings_by_module(),
        )


def _ok(phase_id: int, name: str, message: str = "") -> PhaseResult:
    return PhaseResult(phase_id=phase_id, name=name, status=PhaseStatus.OK, message=message)


def phase0_privacy_inputs(ctx: PipelineContext, config_manager: ConfigManager) -> PhaseResult:
    ctx.allowlist = config_manager.load_allowlist(ctx.paths.allowlist_file)
    ctx.curation = config_manager.load_curation(ctx.paths.curation_file)
    return _ok(0, "Privacy Inputs", f"{len(ctx.allowlist.public)} public, {len(ctx.curation.hidden)} hidden")


def phase1_load_records(ctx: PipelineContext) -> PhaseResult:
    raw = load_raw_records(ctx.paths.records_dir, max_workers=ctx.cfg.concurrency.max_workers, report=ctx.report)
    ctx.records_loaded = len(raw)
    ctx.records = canonicalize_records(
        raw,
        epochs=ctx.cfg.epochs,
        default_visibility=ctx.cfg.privacy.default_visibility,
        report=ctx.report,
    )
    ctx.records_dropped = ctx.records_loaded - len(ctx.records)
    if not ctx.records:
        raise NoRecordsError(f"Pipeline produced zero records from {ctx.paths.records_dir}", records_loaded=ctx.records_loaded)
    return _ok(1, "Load Records", f"{len(ctx.records)} canonical record(s), {ctx.records_dropped} dropped")


def phase2_visibility(ctx: PipelineContext) -> PhaseResult:
    before = len(ctx.records)
    records = apply_curation_hidden(ctx.records, ctx.curation, ctx.report)
    ctx.records_hidden = before - len(records)
    ctx.records = resolve_visibility(records, ctx.allowlist, ctx.curation, ctx.report)
    return _ok(2, "Visibility", f"{ctx.records_hidden} hidden by curation")


def phase3_minors_and_names(ctx: PipelineContext) -> PhaseResult:
    # minors must be detected before the allowlist rewrites unknown names
    records = enforce_minors_policy_all(ctx.records, ctx.allowlist, ctx.report)
    ctx.records = apply_allowlist(records, ctx.allowlist, ctx.report)
    minors = sum(1 for r in ctx.records if r.is_minor)
    return _ok(3, "Minors & Names", f"{minors} minor record(s)")


def phase4_filter_private(ctx: PipelineContext) -> PhaseResult:
    before = len(ctx.records)
    ctx.records = filter_private(ctx.records, ctx.report)
    ctx.private_filtered = before - len(ctx.records)
    return _ok(4, "Private Filter", f"{ctx.private_filtered} private record(s) removed")


def phase5_media_and_gps(ctx: PipelineContext) -> PhaseResult:
    outcomes = process_media_all(
        ctx.records,
        project_root=ctx.fs.root,
        media_dir=ctx.paths.media_dir,
        public_dir=ctx.paths.public_dir,
        max_workers=ctx.cfg.concurrency.max_workers,
        report=ctx.report,
    )
    ctx.media_processed = sum(o.processed for o in outcomes)
    ctx.media_skipped = sum(o.skipped for o in outcomes)
    records = sorted((o.record for o in outcomes), key=lambda r: r.id)
    ctx.records = redact_locations(records, ctx.cfg.privacy.gps_max_decimals)
    return _ok(5, "Media & GPS", f"{ctx.media_processed} processed, {ctx.media_skipped} skipped")


def phase6_edges(ctx: PipelineContext) -> PhaseResult:
    result = generate_edges(ctx.records, ctx.report)
    ctx.edges = result.edges
    ctx.records = result.records
    ctx.edge_stats = result.stats
    return _ok(6, "Edges", f"{len(ctx.edges)} edge(s)")


def phase7_layout(ctx: PipelineContext) -> PhaseResult:
    ctx.layout = compute_layout(ctx.records, ctx.cfg.layout)
    return _ok(7, "Layout", f"{len(ctx.layout.positions)} position(s)")


def phase8_assemble(ctx: PipelineContext) -> PhaseResult:
    nodes = [r.to_node() for r in sorted(ctx.records, key=lambda r: r.id)]
    edges = [e.model_dump() for e in sorted(ctx.edges, key=lambda e: (e.source, e.target))]
    ctx.graph_doc = {"nodes": nodes, "edges": edges, "epochs": epochs_document(ctx.cfg.epochs)}
    ctx.layout_doc = (ctx.layout or compute_layout([], ctx.cfg.layout)).to_document()
    return _ok(8, "Assemble")


def phase9_schema(ctx: PipelineContext) -> PhaseResult:
    errors = validate_schema(ctx.graph_doc, ctx.layout_doc)
    if errors:
        for e in errors:
            ctx.report.error("schema-validator", e)
        raise SchemaValidationError(f"Schema validation failed: {len(errors)} error(s)", errors=errors)
    return _ok(9, "Schema")


def phase10_audit(ctx: PipelineContext) -> PhaseResult:
    result = audit_privacy(ctx.graph_doc, ctx.allowlist, ctx.cfg.audit, ctx.cfg.privacy.gps_max_decimals)
    ctx.audit = result
    for w in result.warnings:
        ctx.report.warn("privacy-audit", w)
    if result.violations:
        for v in result.violations:
            ctx.report.error("privacy-audit", str(v))
        raise PrivacyViolationError(
            f"Privacy audit failed: {len(result.violations)} violation(s) ({', '.join(result.checks())})",
            violations=[str(v) for v in result.violations],
        )
    return _ok(10, "Privacy Audit", f"0 violations, {len(result.warnings)} warning(s)")
