"""Service layer.

Application services live in sub-packages, one per aggregate:

- :mod:`erdstudio.services.accounts` - registration, confirmation, email and
  password workflows, admin search.
- :mod:`erdstudio.services.auth` - login, logout and token introspection.
- :mod:`erdstudio.services.organizations` - organizations and memberships.
- :mod:`erdstudio.services.projects` - project metadata and documents.

Shared primitives (``BaseService``, ``ServiceContext``, errors, ports) live in
:mod:`erdstudio.services._shared`. Nothing is imported here so that
``erdstudio.core.extensions`` can import the ports without pulling the
repositories in.
"""
