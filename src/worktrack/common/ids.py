from __future__ import annotations

from uuid import uuid4


def new_id(prefix: str) -> str:
    """Opaque record identifier, e.g. ``time_3f2a...``."""
    return f"{prefix}_{uuid4().hex}"
