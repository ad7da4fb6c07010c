def is_admin(ctx) -> bool:
    """Return True when the context carries an authenticated admin."""
    return bool(getattr(ctx, "actor_id", None) is not None and getattr(ctx, "is_admin", False))
