from __future__ import annotations

import os

from constellation.core.pipeline.sources import list_record_files, load_raw_records
from tests.helpers.builders import raw_record, write_json


def test_files_read_in_sorted_order(tmp_path, report):
    d = str(tmp_path / "records")
    write_json(os.path.join(d, "b.json"), [raw_record("b1")])
    write_json(os.path.join(d, "a.json"), {"records": [raw_record("a1"), raw_record("a2")]})
    write_json(os.path.join(d, "notes.txt"), [])
    out = load_raw_records(d, max_workers=2, report=report)
    assert [r["id"] for r in out] == ["a1", "a2", "b1"]
    assert [os.path.basename(p) for p in list_record_files(d)] == ["a.json", "b.json"]


def test_bad_files_are_skipped_with_warning(tmp_path, report):
    d = tmp_path / "records"
    d.mkdir()
    (d / "bad.json").write_text("{oops", encoding="utf-8")
    write_json(str(d / "obj.json"), {"not": "records"})
    write_json(str(d / "ok.json"), [raw_record("x")])
    out = load_raw_records(str(d), report=report)
    assert [r["id"] for r in out] == ["x"]
    assert report.warning_count("sources") == 2


def test_missing_directory(tmp_path, report):
    assert load_raw_records(str(tmp_path / "nope"), report=report) == []
    assert report.warning_count("sources") == 1
