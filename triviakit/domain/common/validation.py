# triviakit/domain/common/validation.py
from __future__ import annotations

from typing import Any


def is_host(connection: Any) -> bool:
    """Whether a connection may drive host-only commands."""
    # TODO: check a host credential once the controller sends one; every connection is trusted until then.
    return True
