"""
Process-wide runtime plumbing shared by the connector and the CLI.
"""
from __future__ import annotations

from simpro.runtime.events import RuntimeEvent, emit, get_emitter, set_emitter, use_emitter  # noqa: F401

__all__ = ["RuntimeEvent", "emit", "get_emitter", "set_emitter", "use_emitter"]
