"""Async HTTP client helpers for the vidnest API."""

from __future__ import annotations

from .coordinator import RefreshCoordinator, TokenPair

__all__ = ["RefreshCoordinator", "TokenPair"]
