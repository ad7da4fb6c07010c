"""CORS configuration for the single-page diagram UI."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

# Headers the UI reads back from API responses
EXPOSED_HEADERS = ["ETag", "X-Request-ID"]


def init_app(app: Flask) -> None:
    """Allow the configured UI origins to call ``/api/*``.

    When ``CORS_ORIGINS`` is blank or ``"*"`` any origin is accepted but
    credentials are not, since browsers reject that combination anyway.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        expose_headers=EXPOSED_HEADERS,
        allow_headers=["Authorization", "Content-Type", "If-Match", "X-Request-ID"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
