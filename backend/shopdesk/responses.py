# Overview: JSON envelope helpers used by every route.

from flask import current_app, jsonify

from .errors import ApiError, InternalError


def ok(data=None, status: int = 200, *, message: str | None = None, pagination: dict | None = None, meta: dict | None = None):
    """Build a ``{"success": true, ...}`` response."""
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    if meta is not None:
        body["meta"] = meta
    return jsonify(body), status


def error_response(exc: ApiError, **extra):
    body = {"success": False, "error": exc.message, **extra}
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        body["retry_after_seconds"] = int(retry_after)
    response = jsonify(body)
    if retry_after is not None:
        response.headers["Retry-After"] = str(int(retry_after))
    return response, exc.status_code


def internal_error(exc: Exception, log_message: str):
    """Log an unexpected failure and answer 500."""
    current_app.logger.exception(log_message)
    detail = str(exc) if current_app.config.get("EXPOSE_ERROR_DETAILS") else None
    if detail:
        return error_response(InternalError(), detail=detail)
    return error_response(InternalError())
