"""
JSON file adapter behind every DataStore.

One file per store, ``<directory>/<name>.ds.json``, holding the whole record
list as a JSON array. Reads are always full reads and writes always replace
the whole file (temp file, fsync, rename) so a crash mid-write leaves the
previous snapshot in place.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

FILE_SUFFIX = ".ds.json"
EMPTY_PAYLOAD = "[]"


def store_path(name: str, directory: str | os.PathLike[str] | None = None) -> Path:
    """Resolve the file backing the store called ``name``."""
    clean = (name or "").strip()
    if not clean or clean in {".", ".."} or any(sep in clean for sep in ("/", "\\", os.sep)):
        raise ValueError(f"Invalid store name: {name!r}")
    base = Path(directory) if directory else Path.cwd()
    return (base / f"{clean}{FILE_SUFFIX}").resolve()


def dumps(records: list[Any], indent: int | None = None) -> str:
    if indent is None:
        return json.dumps(records, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(records, ensure_ascii=False, indent=indent)


def load(path: Path) -> tuple[Any, int]:
    """
    Read and decode ``path``, creating it with an empty array when absent.

    Returns the decoded document and the number of bytes read. Decoding
    errors propagate as ``ValueError``; callers validate the shape.
    """
    if not path.exists():
        _replace(path, EMPTY_PAYLOAD)
    raw = path.read_text(encoding="utf-8")
    return json.loads(raw), len(raw.encode("utf-8"))


def save(path: Path, payload: str) -> None:
    """Atomically replace ``path`` with a flushed snapshot."""
    _replace(path, payload)


def _replace(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        # Interrupted or failed: the target keeps its previous content.
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise
