from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Any
    error: Optional[str] = None


def ensure_dirs(*dirs: str) -> None:
    for d in dirs:
        if d:
            os.makedirs(d, exist_ok=True)


def read_json_file(path: str) -> ReadResult:
    if not os.path.exists(path):
        return ReadResult(ok=False, data=None, error="missing")
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
        return ReadResult(ok=True, data=obj)
    except json.JSONDecodeError as e:
        return ReadResult(ok=False, data=None, error=f"corrupt_json:{e}")
    except OSError as e:
        return ReadResult(ok=False, data=None, error=str(e))


def atomic_write_text(path: str, text: str) -> None:
    ensure_dirs(os.path.dirname(path))
    fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=os.path.dirname(path) or ".")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    finally:
        try:
            if os.path.exists(tmp):
                os.remove(tmp)
        except OSError:
            pass


def snapshot_files(paths: Iterable[str]) -> Dict[str, Optional[bytes]]:
    """
    In-memory snapshot of currently published files.
    A path that does not exist maps to None (restore removes it again).
    """
    out: Dict[str, Optional[bytes]] = {}
    for p in paths:
        try:
            with open(p, "rb") as f:
                out[p] = f.read()
        except FileNotFoundError:
            out[p] = None
    return out


def restore_snapshot(snapshot: Dict[str, Optional[bytes]]) -> None:
    for path, data in snapshot.items():
        if data is None:
            if os.path.exists(path):
                os.remove(path)
            continue
        try:
            with open(path, "rb") as f:
                if f.read() == data:
                    continue
        except FileNotFoundError:
            pass
        ensure_dirs(os.path.dirname(path))
        fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".restore", dir=os.path.dirname(path) or ".")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)
