"""ETag helpers enabling optimistic concurrency for mutable resources."""

from __future__ import annotations

from typing import Any

from flask import Response, request


def set_response_etag(response: Response, resource: Any) -> Response:
    """Attach an ``ETag`` header when ``resource`` carries an ``etag`` fingerprint.

    Services compute the fingerprint from the row's column values (see
    :class:`erdstudio.models.base.ETagMixin`) and expose it on their DTOs.
    """
    value = getattr(resource, "etag", None)
    if value:
        response.set_etag(value)
    return response


def if_match() -> str | None:
    """Return the raw ``If-Match`` header; ``None`` means no precondition."""
    return request.headers.get("If-Match") or None
