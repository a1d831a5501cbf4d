"""
Shared utilities for the royalty splitter API.

Authentication, caller identity extraction, payload validation and the
mapping from splitter error codes to HTTP status codes.
"""

import os
import secrets
from functools import wraps
from typing import Any

from dotenv import find_dotenv, load_dotenv
from flask import jsonify, request

from ..errors import ErrorCode, error_code_of

# ============================================================
# Security Configuration
# ============================================================

# Load environment variables from a .env file in the working directory
load_dotenv(find_dotenv(usecwd=True))

API_KEY = os.getenv("SPLITTER_API_KEY", None)
API_KEY_REQUIRED = os.getenv("SPLITTER_REQUIRE_AUTH", "true").lower() == "true"

# Header carrying the identity established by the authentication layer
CALLER_HEADER = "X-Caller-Identity"
MAX_IDENTITY_LENGTH = 128

ERROR_STATUS = {
    ErrorCode.NOT_AUTHORIZED: 403,
    ErrorCode.SPLIT_NOT_FOUND: 404,
    ErrorCode.SPLIT_ALREADY_DEFINED: 409,
    ErrorCode.PAUSED: 503,
}


def status_for(result: dict[str, Any]) -> int:
    """HTTP status for a failed operation result."""
    code = error_code_of(result)
    return ERROR_STATUS.get(code, 400)


def respond(ok: bool, result: dict[str, Any], success_status: int = 200):
    """Turn an operation result into a Flask response."""
    if ok:
        return jsonify(result), success_status
    return jsonify(result), status_for(result)


def get_caller() -> str | None:
    """Caller identity from the request header, or None if absent/invalid."""
    caller = request.headers.get(CALLER_HEADER, "").strip()
    if not caller or len(caller) > MAX_IDENTITY_LENGTH:
        return None
    return caller


def validate_json_schema(
    data: Any,
    required_fields: dict[str, type | tuple[type, ...]],
) -> tuple[bool, str | None]:
    """
    Validate a JSON payload against a simple field -> type schema.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    for field_name, expected_type in required_fields.items():
        if field_name not in data:
            return False, f"Missing required field: {field_name}"
        if not isinstance(data[field_name], expected_type):
            return False, f"Field '{field_name}' has the wrong type"

    return True, None


def require_api_key(f):
    """Decorator to require API key authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not API_KEY_REQUIRED:
            return f(*args, **kwargs)

        provided_key = request.headers.get("X-API-Key")
        if not provided_key:
            return jsonify({
                "error": "API key required",
                "hint": "Provide API key in X-API-Key header",
            }), 401

        if not API_KEY:
            return jsonify({
                "error": "Server API key not configured",
                "hint": "Set SPLITTER_API_KEY environment variable",
            }), 503

        if not secrets.compare_digest(provided_key, API_KEY):
            return jsonify({"error": "Invalid API key"}), 403

        return f(*args, **kwargs)
    return decorated_function


def require_caller(f):
    """Decorator that resolves the caller identity and passes it as ``caller``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        caller = get_caller()
        if caller is None:
            return jsonify({
                "error": "Caller identity required",
                "hint": f"Provide the authenticated identity in the {CALLER_HEADER} header",
            }), 401
        return f(*args, caller=caller, **kwargs)
    return decorated_function
