from __future__ import annotations

from .merge import fill_if_absent, merge_fields

__all__ = ["fill_if_absent", "merge_fields"]
