# src/tickly/storage/json_file.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def read_json_array(path: Path) -> list[Any]:
    """
    Read a JSON array from `path`.

    Missing, empty, unreadable or malformed files all read as [].
    """
    if not path.exists():
        logger.debug("No data file at %s", path)
        return []
    try:
        text = path.read_text("utf-8")
    except OSError:
        logger.warning("Could not read %s; treating as empty", path, exc_info=True)
        return []
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except ValueError:
        logger.warning("Malformed JSON in %s; treating as empty", path)
        return []
    if not isinstance(data, list):
        logger.warning("Expected a JSON array in %s, got %s; treating as empty", path, type(data).__name__)
        return []
    return data


def write_json_atomic(path: Path, data: Any) -> None:
    """Write via a sibling .tmp file and os.replace. Raises OSError on failure."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
