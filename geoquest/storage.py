"""Persist the session blob as a flat JSON object."""

import json
import logging
import pathlib
from typing import Optional

from . import config
from .models import SessionState

logger = logging.getLogger(__name__)


def load_state(path: Optional[pathlib.Path] = None) -> SessionState:
    """Saved session, or a fresh one when nothing usable is on disk."""
    path = path or config.PROGRESS_FILE
    if not path.exists():
        return SessionState()
    try:
        raw = json.loads(path.read_text(encoding="utf-8")) or {}
    except (OSError, ValueError) as exc:
        logger.warning("Failed to load progress from %s: %s", path, exc)
        return SessionState()
    if not isinstance(raw, dict):
        logger.warning("Ignoring progress file %s: not a JSON object", path)
        return SessionState()
    return SessionState.from_dict(raw)


def save_state(state: SessionState, path: Optional[pathlib.Path] = None) -> None:
    path = path or config.PROGRESS_FILE
    path.write_text(json.dumps(state.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
