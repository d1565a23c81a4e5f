from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from constellation.core.graph.signals import EDGE_THRESHOLD, calculate_signals
from constellation.core.records.models import CanonicalRecord, Edge
from constellation.core.reporting import RunReport
from constellation.core.serialization import round_fixed

_MODULE = "edges"

MAX_EDGES_PER_SIGNAL = 6


@dataclass(frozen=True)
class EdgeStats:
    total_pairs: int = 0
    edges_before_pruning: int = 0
    edges_created: int = 0
    edges_pruned: int = 0


@dataclass(frozen=True)
class EdgeBuildResult:
    edges: List[Edge] = field(default_factory=list)
    records: List[CanonicalRecord] = field(default_factory=list)
    stats: EdgeStats = field(default_factory=EdgeStats)


def _prune(edges: Sequence[Edge], limit: int = MAX_EDGES_PER_SIGNAL) -> Set[int]:
    """
    Return indices of edges to drop so that no node keeps more than `limit`
    edges carrying the same signal. Highest weight wins; equal weights keep
    the neighbor with the smaller id.
    """
    index: Dict[str, Dict[str, List[int]]] = defaultdict(lambda: defaultdict(list))
    for i, edge in enumerate(edges):
        for node_id in (edge.source, edge.target):
            for signal in edge.signals():
                index[node_id][signal].append(i)

    drop: Set[int] = set()
    for node_id in sorted(index):
        for signal in sorted(index[node_id]):
            idxs = index[node_id][signal]
            if len(idxs) <= limit:
                continue
            ranked = sorted(idxs, key=lambda k: (-edges[k].weight, edges[k].other(node_id)))
            drop.update(ranked[limit:])
    return drop


def generate_edges(records: Sequence[CanonicalRecord], report: Optional[RunReport] = None) -> EdgeBuildResult:
    """
    Score every unique pair, keep pairs whose evidence reaches the threshold,
    then prune per (node, signal).

    Returns new record values with `connections` filled from the surviving
    edges; the input records are not touched.
    """
    ordered = sorted(records, key=lambda r: r.id)
    candidates: List[Edge] = []
    total_pairs = 0
    for i in range(len(ordered)):
        for j in range(i + 1, len(ordered)):
            total_pairs += 1
            evidence = calculate_signals(ordered[i], ordered[j])
            if not evidence:
                continue
            total = sum(ev.weight for ev in evidence)
            if total < EDGE_THRESHOLD:
                continue
            candidates.append(
                Edge(source=ordered[i].id, target=ordered[j].id, weight=round_fixed(total, 2), evidence=evidence)
            )

    drop = _prune(candidates)
    edges = sorted((e for k, e in enumerate(candidates) if k not in drop), key=lambda e: (e.source, e.target))

    neighbors: Dict[str, Set[str]] = defaultdict(set)
    for e in edges:
        neighbors[e.source].add(e.target)
        neighbors[e.target].add(e.source)
    connected = [r.model_copy(update={"connections": sorted(neighbors.get(r.id, ()))}) for r in ordered]

    stats = EdgeStats(
        total_pairs=total_pairs,
        edges_before_pruning=len(candidates),
        edges_created=len(edges),
        edges_pruned=len(candidates) - len(edges),
    )
    if report is not None:
        report.info(
            _MODULE,
            f"{stats.edges_created} edges from {stats.total_pairs} pairs "
            f"({stats.edges_before_pruning} before pruning, {stats.edges_pruned} pruned)",
        )
    return EdgeBuildResult(edges=edges, records=connected, stats=stats)
