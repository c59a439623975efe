"""Engine singleton shared by the routers.

Tests swap it out through ``app.dependency_overrides[get_engine]``.
"""

from __future__ import annotations

from typing import Optional

from modrisk.engine import Engine, build_engine

_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """Return the singleton Engine built from the environment."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine
