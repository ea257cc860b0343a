"""Server-rendered pages outside the JSON API."""

from __future__ import annotations

from flask import Blueprint, current_app, render_template_string

bp = Blueprint("pages", __name__)

WARNING_TEMPLATE = """<!doctype html>
<html lang="en">
  <head><meta charset="utf-8"><title>{{ site_name }}: insecure deployment</title></head>
  <body>
    <h1>{{ site_name }} is not configured securely</h1>
    <p>No token signing secret is set. Define <code>PASSWORD</code> (or
    <code>JWT_SECRET_KEY</code>) in the environment and restart the service.</p>
  </body>
</html>
"""


@bp.get("/warning")
def warning():
    """Explain why protected pages are unavailable."""

    return render_template_string(
        WARNING_TEMPLATE,
        site_name=current_app.config.get("SITE_NAME", "VidNest"),
    )
