"""Environment variable snapshotting for template rendering."""

from __future__ import annotations

import logging
import os
from types import MappingProxyType
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class Bindings(dict):
    """Template variable bindings; unbound names resolve to the empty string."""

    def __missing__(self, key: str) -> str:
        return ""


def snapshot_env(environ: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Capture an immutable copy of the environment.

    Args:
        environ: Source mapping (defaults to ``os.environ``)

    Returns:
        Read-only mapping of variable name to string value
    """
    source = os.environ if environ is None else environ
    return MappingProxyType(Bindings({str(k): str(v) for k, v in source.items()}))


def build_context(env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Build the rendering context from an environment snapshot.

    Every variable is bound name-for-name as a string under ``env``; templates
    reach them as ``{{ .NAME }}``.

    Args:
        env: Snapshot or plain mapping (defaults to the live environment)

    Returns:
        Context dictionary for template rendering
    """
    snapshot = snapshot_env(env)
    logger.debug(f"Building rendering context from {len(snapshot)} variable(s)")

    return {"env": snapshot}
