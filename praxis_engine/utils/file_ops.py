"""Small helpers for interacting with the filesystem."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_text(path: Path, content: str) -> None:
    """Write text to disk, creating parent directories when needed."""

    _ensure_parent(path)
    path.write_text(content, encoding="utf-8")


def write_json_document(path: Path, payload: Any) -> None:
    """Overwrite ``path`` with ``payload`` as a whole JSON document.

    The document is written to a sibling temp file first and swapped in with
    ``os.replace`` so readers never observe a half-written file.
    """

    _ensure_parent(path)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp_path, path)


def read_json_document(path: Path) -> Any:
    """Return the decoded JSON document at ``path`` or ``None`` when absent."""

    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))


def append_jsonl(path: Path, payload: Dict[str, Any]) -> None:
    """Append a JSONL entry to the target file."""

    _ensure_parent(path)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
