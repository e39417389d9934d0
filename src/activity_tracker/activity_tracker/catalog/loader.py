from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from loguru import logger

from .model import DEFAULT_CATALOG, Catalog

_KEYS = ("clients", "activities", "absence_reasons", "positions")


def load_catalog(path: Optional[str | Path] = None) -> Catalog:
    """Load the reference lists from a JSON file.

    Keys missing from the file keep their built-in defaults.
    """
    if not path:
        return DEFAULT_CATALOG

    path = Path(path)
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid catalog file: {path}")

    values = {}
    for key in _KEYS:
        items = raw.get(key)
        if items is None:
            values[key] = getattr(DEFAULT_CATALOG, key)
            continue
        if not isinstance(items, list) or not all(isinstance(i, str) and i.strip() for i in items):
            raise ValueError(f"Catalog key {key!r} must be a list of non-empty strings")
        values[key] = tuple(i.strip() for i in items)

    logger.info(f"Catalog loaded from {path}")
    return Catalog(**values)
