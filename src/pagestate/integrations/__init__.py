"""Integrations subpackage for pagestate.

Contains the pytest plugin, auto-discovered through the pytest11 entry point.
"""

from __future__ import annotations

__all__: list[str] = []
