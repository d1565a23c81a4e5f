"""
Record-file loading.

Upstream producers drop JSON files into the records directory. Files are read
in sorted name order on a small thread pool; `map` keeps that order, so the
flattened record list is identical from run to run.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from constellation.core.config.io import read_json_file
from constellation.core.reporting import RunReport

_MODULE = "sources"


def list_record_files(records_dir: str) -> List[str]:
    try:
        names = os.listdir(records_dir)
    except FileNotFoundError:
        return []
    return [os.path.join(records_dir, n) for n in sorted(names) if n.endswith(".json") and os.path.isfile(os.path.join(records_dir, n))]


def _read_records_file(path: str, report: Optional[RunReport]) -> List[Dict[str, Any]]:
    name = os.path.basename(path)
    rr = read_json_file(path)
    if not rr.ok:
        if report is not None:
            report.warn(_MODULE, f"Skipping {name}: {rr.error}")
        return []
    data = rr.data
    if isinstance(data, dict) and isinstance(data.get("records"), list):
        data = data["records"]
    if not isinstance(data, list):
        if report is not None:
            report.warn(_MODULE, f"Skipping {name}: expected a JSON array of records")
        return []
    return list(data)


def load_raw_records(records_dir: str, *, max_workers: int = 4, report: Optional[RunReport] = None) -> List[Dict[str, Any]]:
    files = list_record_files(records_dir)
    if not files:
        if report is not None:
            report.warn(_MODULE, f"No record files found in {records_dir}")
        return []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="record-loader") as ex:
        batches = list(ex.map(lambda p: _read_records_file(p, report), files))
    out: List[Dict[str, Any]] = []
    for path, batch in zip(files, batches):
        if report is not None:
            report.info(_MODULE, f"{os.path.basename(path)}: {len(batch)} record(s)")
        out.extend(batch)
    return out
