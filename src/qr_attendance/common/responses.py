from __future__ import annotations

import logging

from flask import jsonify

from ..core.exceptions import (
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (TransportError, 502),
    (ValidationError, 400),
)


def ok(status_code: int = 200, **payload):
    return jsonify({"success": True, **payload}), status_code


def error_response(exc: Exception):
    """Map a domain error to the JSON error envelope used by every controller."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            body = {"success": False, "message": str(exc)}
            if isinstance(exc, InvalidTransitionError):
                body["current_state"] = exc.current_state
                body["requested"] = exc.requested
            return jsonify(body), status_code

    if isinstance(exc, DomainError):
        return jsonify({"success": False, "message": str(exc)}), 400

    logger.exception("Unhandled error while serving request")
    return jsonify({"success": False, "message": "Internal server error"}), 500
