from __future__ import annotations

from typing import Callable

from flask import current_app, jsonify


def database_guard() -> Callable[[], object]:
    """Answer 503 for data routes when the database was unreachable at startup."""

    def _guard():
        if current_app.config.get("DATABASE_AVAILABLE", True):
            return None
        return (
            jsonify(
                {
                    "error": "The stock count database is unavailable.",
                    "detail": current_app.config.get("DATABASE_ERROR"),
                }
            ),
            503,
        )

    return _guard
