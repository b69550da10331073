from __future__ import annotations

from collections.abc import Callable


def require_roles(roles: list[str]) -> Callable:
    """
    Restrict an endpoint to the given roles.

    Implementation detail:
    - This decorator does NOT perform auth itself.
    - It attaches metadata that the global security dependency reads after
      routing, so authentication always runs before the role check.
    - Stacking decorators accumulates the allowed roles.
    """

    def decorator(fn: Callable) -> Callable:
        existing = set(getattr(fn, "__security_required_roles__", set()))
        setattr(fn, "__security_required_roles__", existing | set(roles))
        return fn

    return decorator


def public() -> Callable:
    """Mark an endpoint as not requiring a bearer token."""

    def decorator(fn: Callable) -> Callable:
        setattr(fn, "__security_public__", True)
        return fn

    return decorator
