"""
Error responses and contextual logging for the care API.

Routes never echo exception text for unexpected failures: the full error is
logged with its traceback and the client gets a generic message. Payload
problems are the exception, since their messages are written by
app.utils.validation for the client to read.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Tuple
from flask import Response, current_app, jsonify

GENERIC_MESSAGES = {
    "engine": "We couldn't compute a care recommendation. Please try again.",
    "validation": "The request could not be read. Please check the payload and try again.",
}

_STATUS_BY_TYPE = {
    "engine": 500,
    "validation": 400,
}

# Client mistakes, logged without a traceback
_EXPECTED_TYPES = frozenset({"validation"})


def _with_context(message: str, context: Dict[str, Any]) -> str:
    if not context:
        return message
    return f"{message} | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())


def sanitize_error(error: Exception, error_type: str = "engine", log_prefix: str = "") -> str:
    """
    Log an error and return the client-safe message for its type.

    Examples:
        >>> try:
        ...     timeline = simulate(profile, weather, last_watered, False)
        ... except Exception as e:
        ...     msg = sanitize_error(e, "engine", "Timeline failed")
    """
    detail = f"{log_prefix}: {error}" if log_prefix else str(error)

    if error_type in _EXPECTED_TYPES:
        current_app.logger.info(f"[Care API] Rejected request - {detail}")
    else:
        current_app.logger.error(f"[Care API] Unexpected error - {detail}", exc_info=True)

    return GENERIC_MESSAGES.get(error_type, GENERIC_MESSAGES["engine"])


def error_response(
    error: Exception,
    error_type: str = "engine",
    log_prefix: str = "",
    client_message: Optional[str] = None
) -> Tuple[Response, int]:
    """
    Build the JSON error response for a failed request.

    Args:
        error: The exception that occurred
        error_type: engine or validation (selects status and message)
        log_prefix: Context for the log line
        client_message: Message safe to show instead of the generic one

    Returns:
        (response, status) tuple for a Flask view
    """
    message = sanitize_error(error, error_type, log_prefix)
    status = _STATUS_BY_TYPE.get(error_type, 500)
    return jsonify({"success": False, "error": client_message or message}), status


def log_warning(message: str, **context) -> None:
    """
    Examples:
        >>> log_warning("Weather lookup failed", city="Seattle, WA")
    """
    current_app.logger.warning(_with_context(message, context))


def log_info(message: str, **context) -> None:
    """
    Examples:
        >>> log_info("Recommendation served", species="Aloe vera", type="monitor")
    """
    current_app.logger.info(_with_context(message, context))
