"""Read workspace defaults for the E2E suite from .env.e2e.

Why this exists:
- CI jobs export the real values (E2E_BASE_URL, E2E_ENVIRONMENT, ...) while
  local runs usually rely on a checked-out `.env.e2e` next to the repository
  root.
- Environment variables always win; the file only fills gaps.

Values may be quoted with single or double quotes; comments and blank lines
are ignored.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict

DEFAULTS_FILE = Path(__file__).resolve().parents[1] / ".env.e2e"


def parse_env_file(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}

    defaults: Dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        defaults[key.strip()] = value
    return defaults


@lru_cache(maxsize=1)
def _load_env_defaults() -> Dict[str, str]:
    return parse_env_file(DEFAULTS_FILE)


def get_env_default(key: str) -> str | None:
    return _load_env_defaults().get(key)


def get_setting(key: str, fallback: str | None = None) -> str | None:
    """Environment variable, then .env.e2e, then ``fallback``."""
    value = os.getenv(key)
    if value:
        return value
    default = get_env_default(key)
    if default:
        return default
    return fallback
