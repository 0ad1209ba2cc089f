from __future__ import annotations

from telecast.models.config import AppSettings

__all__ = ["AppSettings"]
