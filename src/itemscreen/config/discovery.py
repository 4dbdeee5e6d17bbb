"""Locate ``itemscreen.toml``.

The ``ITEMSCREEN_CONFIG`` env var wins outright; otherwise the nearest
``itemscreen.toml`` in the start directory or any of its parents is used.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "itemscreen.toml"
CONFIG_ENV_VAR = "ITEMSCREEN_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: CWD), or None.

    A set ``ITEMSCREEN_CONFIG`` that points at no file yields None rather
    than falling back to the walk-up search.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
