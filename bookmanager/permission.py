"""Access checks based on the permission stored in the session."""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from http import HTTPStatus
from typing import Any

from flask import Response, session

from .models import AccessPermission


def perm_verify(session: Mapping[str, Any], requested_perm: AccessPermission | int) -> bool:
    """Whether the session's user holds at least the requested permission."""
    raw = session.get("user_permission")
    if raw is None:
        return False
    try:
        perm = AccessPermission(raw)
    except (ValueError, TypeError):
        return False
    return perm <= AccessPermission(requested_perm)


def require_permission(permission: AccessPermission | int) -> Callable:
    """Decorate a view so that it answers 401 unless the session has the permission."""
    required = AccessPermission(permission)

    def decorator(view: Callable) -> Callable:
        @functools.wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not perm_verify(session, required):
                return Response(
                    "unauthorized",
                    status=HTTPStatus.UNAUTHORIZED,
                    mimetype="text/plain",
                )
            return view(*args, **kwargs)

        return wrapper

    return decorator