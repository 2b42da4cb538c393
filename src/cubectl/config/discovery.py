"""Config file discovery.

Walk-up finder locates ``cubectl.toml``, similar to how git finds .git/.
The ``CUBECTL_CONFIG`` env var and the ``--config`` flag override it.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "cubectl.toml"
CONFIG_ENV_VAR = "CUBECTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for cubectl.toml.

    Checks CUBECTL_CONFIG first; a value pointing at a missing file
    disables discovery.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent
