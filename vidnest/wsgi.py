"""WSGI entry point (``gunicorn -c gunicorn.conf.py``)."""

from __future__ import annotations

from vidnest import create_app

app = create_app()
