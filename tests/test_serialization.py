from __future__ import annotations

import json
import os

import pytest

from constellation.core.config.io import atomic_write_text, restore_snapshot, snapshot_files
from constellation.core.serialization import deterministic_dumps, round_fixed


def test_keys_sorted_recursively_arrays_kept():
    text = deterministic_dumps({"b": 1, "a": {"z": [3, 1, 2], "y": "é"}})
    assert text == '{\n  "a": {\n    "y": "é",\n    "z": [\n      3,\n      1,\n      2\n    ]\n  },\n  "b": 1\n}\n'


def test_same_content_same_bytes():
    a = deterministic_dumps({"x": 1, "y": [{"q": 1, "p": 2}]})
    b = deterministic_dumps({"y": [{"p": 2, "q": 1}], "x": 1})
    assert a == b
    assert a.endswith("}\n") and not a.endswith("\n\n")


def test_nan_is_refused():
    with pytest.raises(ValueError):
        deterministic_dumps({"x": float("nan")})


def test_round_fixed():
    assert round_fixed(28.541234, 2) == 28.54
    assert round_fixed(1.00005, 4) in (1.0, 1.0001)
    assert json.dumps(round_fixed(0.1 + 0.2, 2)) == "0.3"
    assert round_fixed(0.125, 2) == 0.13
    assert round_fixed(-0.125, 2) == -0.13
    assert round_fixed(2.5, 0) == 3.0


def test_whole_number_floats_written_as_integers():
    text = deterministic_dumps({"a": 40.0, "b": [0.0, -0.0, 2.5], "c": True, "d": 1e22})
    assert json.loads(text) == {"a": 40, "b": [0, 0, 2.5], "c": True, "d": 1e22}
    assert '"a": 40,' in text
    assert "true" in text
    assert "1e+22" in text


def test_atomic_write_and_snapshot_restore(tmp_path):
    path = str(tmp_path / "out" / "g.json")
    missing = str(tmp_path / "out" / "new.json")
    atomic_write_text(path, "old\n")
    snap = snapshot_files([path, missing])
    atomic_write_text(path, "new\n")
    atomic_write_text(missing, "created\n")
    restore_snapshot(snap)
    with open(path, encoding="utf-8") as f:
        assert f.read() == "old\n"
    assert not os.path.exists(missing)
    assert [n for n in os.listdir(tmp_path / "out") if n.startswith(".tmp_")] == []
