"""Infrastructure adapters (JWT, Redis) implementing service ports."""
