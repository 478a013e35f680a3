"""Atomic file writes for persisted JSON documents."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import msgspec


def atomic_write_bytes(target: Path, payload: bytes) -> None:
    """Write ``payload`` to ``target`` through a sibling temporary file.

    Readers observe either the previous file or the complete new one, never
    a partial write.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
        delete=False,
    ) as temp_file:
        temp_path = Path(temp_file.name)
        temp_file.write(payload)

    try:
        os.replace(temp_path, target)
    finally:
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)


def atomic_write_json(target: Path, document: object) -> None:
    """Encode ``document`` as indented JSON and write it atomically."""
    encoded = msgspec.json.format(msgspec.json.encode(document), indent=2)
    atomic_write_bytes(target, encoded + b"\n")
