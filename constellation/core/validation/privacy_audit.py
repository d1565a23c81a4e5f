"""
Fail-closed privacy audit over the fully assembled graph document.

This runs after every privacy transform and re-checks their results on the
exact structure that would be published, so a mistake in an earlier phase
still blocks publication.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from constellation.core.config.models import AuditConfig
from constellation.core.privacy.models import Allowlist
from constellation.core.serialization import deterministic_dumps


class AuditCheck:
    PRIVATE_NODE = "private_node"
    GPS_PRECISION = "gps_precision"
    MINOR_LOCATION = "minor_location"
    MINOR_BLOCKED_PATTERN = "minor_blocked_pattern"
    FORBIDDEN_PATTERN = "forbidden_pattern"
    NON_PUBLIC_FULL_NAME = "non_public_full_name"


@dataclass(frozen=True)
class AuditViolation:
    check: str
    message: str
    node_id: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.check}: {self.message}"


@dataclass
class AuditResult:
    violations: List[AuditViolation] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def checks(self) -> List[str]:
        return sorted({v.check for v in self.violations})


def decimal_places(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    try:
        exponent = Decimal(repr(value)).normalize().as_tuple().exponent
    except InvalidOperation:
        return 0
    return max(0, -int(exponent))


def is_full_name(name: Any) -> bool:
    return isinstance(name, str) and len(name.split()) >= 2


def _nodes(graph: Dict[str, Any]) -> List[Dict[str, Any]]:
    nodes = graph.get("nodes") if isinstance(graph, dict) else None
    return [n for n in (nodes or []) if isinstance(n, dict)]


def _check_private(nodes: List[Dict[str, Any]], result: AuditResult) -> None:
    for node in nodes:
        if node.get("visibility") == "private":
            result.violations.append(
                AuditViolation(AuditCheck.PRIVATE_NODE, f"Private node in output: {node.get('id')}", node.get("id"))
            )


def _check_gps(nodes: List[Dict[str, Any]], max_decimals: int, result: AuditResult) -> None:
    for node in nodes:
        loc = node.get("location")
        if not isinstance(loc, dict):
            continue
        for axis in ("lat", "lng"):
            if decimal_places(loc.get(axis)) > max_decimals:
                result.violations.append(
                    AuditViolation(
                        AuditCheck.GPS_PRECISION,
                        f"GPS {axis} exceeds {max_decimals} decimal places on node {node.get('id')}: {loc.get(axis)}",
                        node.get("id"),
                    )
                )


def _check_minors(nodes: List[Dict[str, Any]], allowlist: Allowlist, result: AuditResult) -> None:
    blocked = [p for p in allowlist.minors.blocked_patterns if p]
    for node in nodes:
        if not node.get("isMinor"):
            continue
        nid = node.get("id")
        if node.get("location") is not None:
            result.violations.append(
                AuditViolation(AuditCheck.MINOR_LOCATION, f"Minor node {nid} has GPS data (location must be null)", nid)
            )
        text = f"{node.get('title') or ''} {node.get('description') or ''}".lower()
        for pattern in blocked:
            if pattern.lower() in text:
                result.violations.append(
                    AuditViolation(AuditCheck.MINOR_BLOCKED_PATTERN, f'Minor node {nid} contains blocked pattern "{pattern}"', nid)
                )


def _check_forbidden(graph: Any, patterns: List[str], result: AuditResult) -> None:
    if not patterns:
        result.warnings.append("No forbidden patterns configured; structural leak scan skipped")
        return
    haystack = deterministic_dumps(graph).lower()
    for pattern in patterns:
        if pattern and pattern.lower() in haystack:
            result.violations.append(AuditViolation(AuditCheck.FORBIDDEN_PATTERN, f'Forbidden pattern "{pattern}" found in output'))


def _check_full_names(nodes: List[Dict[str, Any]], allowlist: Allowlist, result: AuditResult) -> None:
    public = {str(n).strip().lower() for n in allowlist.public if str(n).strip()}
    for node in nodes:
        entities = node.get("entities") if isinstance(node.get("entities"), dict) else {}
        for person in entities.get("people") or []:
            if not is_full_name(person):
                continue
            name = person.strip().lower()
            if name in public:
                continue
            # tolerate middle names and shortened forms of a public name
            match = next((p for p in sorted(public) if name.startswith(p) or p.startswith(name)), None)
            if match is not None:
                result.warnings.append(f'Name "{person}" in node {node.get("id")} accepted by prefix match with public entry "{match}"')
                continue
            result.violations.append(
                AuditViolation(AuditCheck.NON_PUBLIC_FULL_NAME, f'Non-public full name "{person}" in node {node.get("id")}', node.get("id"))
            )


def audit_privacy(
    graph: Dict[str, Any],
    allowlist: Optional[Allowlist] = None,
    config: Optional[AuditConfig] = None,
    max_decimals: int = 2,
) -> AuditResult:
    al = allowlist or Allowlist()
    cfg = config or AuditConfig()
    nodes = _nodes(graph)
    result = AuditResult()

    _check_private(nodes, result)
    _check_gps(nodes, max_decimals, result)
    _check_minors(nodes, al, result)
    _check_forbidden(graph, list(cfg.forbidden_patterns), result)
    _check_full_names(nodes, al, result)
    return result
