"""Expose the application factory at package level.

Provide convenient access to :func:`vidnest.factory.create_app` so callers can
``from vidnest import create_app`` without traversing the package structure.
The factory is imported on first access so ``vidnest.client`` stays usable
without loading Flask.
"""

from __future__ import annotations

from typing import Any

__all__ = ["create_app"]


def __getattr__(name: str) -> Any:
    if name == "create_app":
        from .factory import create_app

        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
