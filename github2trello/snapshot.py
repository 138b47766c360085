"""Write the fetched GitHub and Trello data to disk for debugging."""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, dict):
        return {str(key): _to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value


def write_debug_snapshot(path: str | Path, **sections: Any) -> Path:
    """Dump each keyword section as pretty JSON to ``path``.

    The file is only for the operator; nothing reads it back. Dict keys
    (e.g. issue numbers) become strings.
    """
    snapshot_path = Path(path)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    with open(snapshot_path, "w") as f:
        json.dump(_to_jsonable(sections), f, indent=2)
    logger.info(f"💾 Saved snapshot: {snapshot_path}")
    return snapshot_path
