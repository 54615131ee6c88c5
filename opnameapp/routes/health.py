from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from opnameapp.extensions import db

bp = Blueprint("health", __name__, url_prefix="/health")


@bp.get("/")
def health():
    if not current_app.config.get("DATABASE_AVAILABLE", True):
        return jsonify(
            {
                "status": "degraded",
                "database": False,
                "error": current_app.config.get("DATABASE_ERROR"),
            }
        ), 503

    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        return jsonify(
            {"status": "degraded", "database": False, "error": str(getattr(exc, "orig", None) or exc)}
        ), 503

    return jsonify({"status": "ok", "database": True, "error": None})
