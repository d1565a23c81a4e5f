"""
Re-run the schema check and privacy audit against the published graph.

Nothing is rewritten; the exit code mirrors the pipeline's (0 clean,
3 schema violation, 4 privacy violation, 5 unreadable inputs).

Usage:
  python scripts/audit_output.py
"""

from __future__ import annotations

import sys

from constellation.core.config import ConfigManager
from constellation.core.config.io import read_json_file
from constellation.core.config.paths import PipelineFsPaths
from constellation.core.errors import ConfigError
from constellation.core.validation.privacy_audit import audit_privacy
from constellation.core.validation.schema import validate_schema


def main() -> int:
    cm = ConfigManager(fs=PipelineFsPaths("."), logger=None)
    try:
        cfg = cm.load_all()
        paths = cm.paths()
        allowlist = cm.load_allowlist(paths.allowlist_file)
    except ConfigError as e:
        print(f"FAIL config: {e.user_message}")
        return e.exit_code

    graph = read_json_file(paths.graph_file)
    layout = read_json_file(paths.layout_file)
    if not graph.ok or not layout.ok:
        print(f"FAIL unable to read published output: {graph.error or layout.error}")
        return 5

    errors = validate_schema(graph.data, layout.data)
    for e in errors:
        print(f"SCHEMA {e}")
    if errors:
        return 3

    result = audit_privacy(graph.data, allowlist, cfg.audit, cfg.privacy.gps_max_decimals)
    for w in result.warnings:
        print(f"WARN {w}")
    for v in result.violations:
        print(f"PRIVACY {v}")
    if result.violations:
        return 4
    print(f"OK {len(graph.data.get('nodes') or [])} nodes audited, 0 violations")
    return 0


if __name__ == "__main__":
    sys.exit(main())
