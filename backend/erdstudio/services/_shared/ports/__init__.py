"""
erdstudio.services._shared.ports
================================

*Ports* (hexagonal interfaces) for session-token infrastructure.

These ports decouple the service layer from concrete implementations of
token issuing and revocation.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`, abstraction for JWT creation and decoding.

- :mod:`denylist_store`:
    Defines :class:`~.TokenDenylistStore`, interface for access-token revocation.

Concrete adapters (Flask-JWT-Extended, Redis) live under ``erdstudio.infra``.
"""

from __future__ import annotations

from .denylist_store import InMemoryDenylistStore, TokenDenylistStore
from .token_provider import StubTokenProvider, TokenProvider

__all__ = [
    "TokenProvider",
    "TokenDenylistStore",
    "InMemoryDenylistStore",
    "StubTokenProvider",
]
