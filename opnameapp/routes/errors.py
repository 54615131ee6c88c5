from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from opnameapp.exceptions import StockOpnameError, StorageError
from opnameapp.extensions import db

bp = Blueprint("errors", __name__)


@bp.app_errorhandler(StockOpnameError)
def handle_stock_opname_error(error: StockOpnameError):
    if isinstance(error, StorageError):
        current_app.logger.error("Storage error on %s: %s", request.path, error.message)
    else:
        current_app.logger.info(
            "%s on %s: %s", type(error).__name__, request.path, error.message
        )
    return jsonify(error.to_dict()), error.status_code


@bp.app_errorhandler(Exception)
def handle_exception(error: Exception):
    # Allow HTTP errors that are not 500 to keep their status code.
    if isinstance(error, HTTPException) and error.code != 500:
        return jsonify({"error": error.description or error.name}), error.code

    current_app.logger.exception("Unhandled exception", exc_info=error)
    db.session.rollback()
    return jsonify({"error": "Internal Server Error"}), 500
