from __future__ import annotations

from .formatter import format_view

__all__ = ["format_view"]
