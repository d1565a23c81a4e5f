"""
Run reporting context.

Every phase receives the same RunReport instead of bumping module-level
counters. The runner summarizes it into the status document at the end, and
tests can build a fresh one per case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ReportEntry:
    module: str
    level: str
    message: str


@dataclass
class RunReport:
    logger: Optional[logging.Logger] = None
    entries: List[ReportEntry] = field(default_factory=list)

    def _emit(self, module: str, level: str, message: str) -> None:
        self.entries.append(ReportEntry(module=module, level=level, message=message))
        if self.logger is None:
            return
        line = f"[pipeline:{module}] {level}: {message}"
        if level == "error":
            self.logger.error(line)
        elif level == "warn":
            self.logger.warning(line)
        else:
            self.logger.info(line)

    def info(self, module: str, message: str) -> None:
        self._emit(module, "info", message)

    def warn(self, module: str, message: str) -> None:
        self._emit(module, "warn", message)

    def error(self, module: str, message: str) -> None:
        self._emit(module, "error", message)

    def warning_count(self, module: Optional[str] = None) -> int:
        return sum(1 for e in self.entries if e.level == "warn" and (module is None or e.module == module))

    def error_count(self) -> int:
        return sum(1 for e in self.entries if e.level == "error")

    def warnings_by_module(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for e in self.entries:
            if e.level == "warn":
                out[e.module] = out.get(e.module, 0) + 1
        return dict(sorted(out.items()))

    def summary_lines(self) -> List[str]:
        total = self.warning_count()
        lines = [f"[pipeline] Summary: {total} warning{'s' if total != 1 else ''} total"]
        for module, count in self.warnings_by_module().items():
            lines.append(f"  {module}: {count} warning{'s' if count != 1 else ''}")
        if self.error_count():
            lines.append("[pipeline] ERRORS were logged -- review output above")
        return lines
