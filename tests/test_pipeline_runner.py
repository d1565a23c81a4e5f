from __future__ import annotations

import json
import os

from constellation.core.config.io import atomic_write_text
from constellation.core.config.manager import ConfigManager
from constellation.core.pipeline import runner as runner_mod
from constellation.core.pipeline.runner import PipelineRunner
from constellation.core.privacy import visibility
from tests.helpers.builders import make_project, raw_record, read_bytes, write_json
from tests.helpers.fakes import FakeClock, ListLogger


def _runner(fs):
    logger = ListLogger()
    return PipelineRunner(fs=fs, config_manager=ConfigManager(fs=fs, logger=logger), logger=logger, clock=FakeClock())


def _out(root, name):
    return os.path.join(root, "public", "data", name)


def _records():
    return [
        raw_record("a", "2020-05-01", entities={"people": ["Alice Smith"], "tags": ["beach"]}, location={"lat": 28.541234, "lng": -81.383456}),
        raw_record("b", "2020-05-01", entities={"people": ["Unknown Person"]}),
        raw_record("c", "2020-05-10", visibility="private"),
        raw_record("d", "2021-02-02", entities={"people": ["Jace Rowe"]}, title="Jace Rowe at Park Elementary", location={"lat": 1.0, "lng": 2.0}),
        raw_record("e", "2020-05-03", entities={"tags": ["Beach"]}),
        {"id": "broken"},
    ]


def _allowlist():
    return {"public": ["Alice Smith"], "friends": [], "minors": {"firstNames": ["Jace"], "blockedPatterns": ["Park Elementary"]}}


def _read(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def test_successful_run_publishes_private_safe_graph(tmp_path):
    root = str(tmp_path)
    fs = make_project(root, records=_records(), allowlist=_allowlist(), curation={"hidden": ["e"]})
    status = _runner(fs).run()
    assert status.ok, status.error
    assert status.exit_code == 0

    graph = _read(_out(root, "constellation.graph.json"))
    nodes = {n["id"]: n for n in graph["nodes"]}
    assert sorted(nodes) == ["a", "b", "d"]
    assert nodes["a"]["location"] == {"lat": 28.54, "lng": -81.38}
    assert nodes["b"]["visibility"] == "friends"
    assert nodes["b"]["entities"]["people"] == ["Friend"]
    assert nodes["d"]["isMinor"] is True
    assert nodes["d"]["location"] is None
    assert nodes["d"]["title"] == "Jace at [redacted]"
    # generic "Friend" labels still count as a shared person
    assert [(e["source"], e["target"]) for e in graph["edges"]] == [("a", "b"), ("b", "d")]
    assert nodes["a"]["connections"] == ["b"]
    assert [ep["id"] for ep in graph["epochs"]][0] == "early-years"

    layout = _read(_out(root, "constellation.layout.json"))
    assert sorted(layout["positions"]) == ["a", "b", "d"]

    doc = _read(_out(root, "pipeline-status.json"))
    assert doc["status"] == "success"
    assert doc["lastRun"] == "2024-01-01T12:00:00.000Z"
    stats = doc["stats"]
    assert stats["nodeCount"] == 3 and stats["edgeCount"] == 2
    assert stats["byVisibility"] == {"friends": 2, "public": 1}
    assert stats["recordsLoaded"] == 6
    assert stats["recordsDropped"] == 1
    assert stats["recordsHidden"] == 1
    assert stats["privateFiltered"] == 1
    assert stats["warningsByModule"] == {"canonical": 1}
    assert "error" not in doc


def test_runs_are_byte_identical(tmp_path):
    root = str(tmp_path)
    fs = make_project(root, records=_records(), allowlist=_allowlist())
    assert _runner(fs).run().ok
    first = (read_bytes(_out(root, "constellation.graph.json")), read_bytes(_out(root, "constellation.layout.json")))
    assert _runner(fs).run().ok
    second = (read_bytes(_out(root, "constellation.graph.json")), read_bytes(_out(root, "constellation.layout.json")))
    assert first == second
    assert b"lastRun" not in first[0] and b"lastRun" not in first[1]


def test_zero_records_keeps_previous_output(tmp_path):
    root = str(tmp_path)
    fs = make_project(root, records=[])
    atomic_write_text(_out(root, "constellation.graph.json"), "previous graph\n")
    atomic_write_text(_out(root, "constellation.layout.json"), "previous layout\n")

    status = _runner(fs).run()
    assert not status.ok
    assert status.exit_code == 2
    assert read_bytes(_out(root, "constellation.graph.json")) == b"previous graph\n"
    assert read_bytes(_out(root, "constellation.layout.json")) == b"previous layout\n"
    doc = _read(_out(root, "pipeline-status.json"))
    assert doc["status"] == "failed"
    assert doc["errorCode"] == "no_records"
    assert "zero records" in doc["error"]
    assert "stats" not in doc


def test_privacy_violation_blocks_publish(tmp_path, monkeypatch):
    root = str(tmp_path)
    fs = make_project(root, records=_records(), allowlist=_allowlist())
    assert _runner(fs).run().ok
    before = read_bytes(_out(root, "constellation.graph.json"))

    # a broken private filter must be caught by the audit
    monkeypatch.setattr(runner_mod, "phase4_filter_private", lambda ctx: runner_mod.PhaseResult(phase_id=4, name="Private Filter", status="OK"))
    write_json(os.path.join(root, "data-private", "records", "records.json"), _records() + [raw_record("z", "2022-01-01")])
    status = _runner(fs).run()
    assert status.exit_code == 4
    assert status.error_code == "privacy_violation"
    assert any("private_node" in d for d in status.details)
    assert read_bytes(_out(root, "constellation.graph.json")) == before
    doc = _read(_out(root, "pipeline-status.json"))
    assert doc["status"] == "failed"
    assert doc["details"]


def test_partial_publish_is_rolled_back(tmp_path, monkeypatch):
    root = str(tmp_path)
    fs = make_project(root, records=_records(), allowlist=_allowlist())
    atomic_write_text(_out(root, "constellation.graph.json"), "previous graph\n")

    real_write = runner_mod.atomic_write_text

    def _flaky(path, text):
        if path.endswith("constellation.layout.json"):
            raise OSError("disk full")
        real_write(path, text)

    monkeypatch.setattr(runner_mod, "atomic_write_text", _flaky)
    status = _runner(fs).run()
    assert status.exit_code == 1
    assert status.error_code == "unexpected_failure"
    assert read_bytes(_out(root, "constellation.graph.json")) == b"previous graph\n"
    assert not os.path.exists(_out(root, "constellation.layout.json"))


def test_invalid_allowlist_is_config_error(tmp_path):
    root = str(tmp_path)
    fs = make_project(root, records=_records(), allowlist={"public": "Alice"})
    status = _runner(fs).run()
    assert status.exit_code == 5
    assert status.error_code == "config_error"


def test_unexpected_exception_is_wrapped(tmp_path, monkeypatch):
    root = str(tmp_path)
    fs = make_project(root, records=_records(), allowlist=_allowlist())

    def _boom(*_a, **_k):
        raise RuntimeError("boom")

    monkeypatch.setattr(visibility, "most_restrictive", _boom)
    status = _runner(fs).run()
    assert status.exit_code == 1
    assert "boom" in status.error
