"""Problem+JSON (RFC 7807) error responses shared by every route and hook."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from vidnest.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

# Stable machine codes for statuses raised by Flask/Werkzeug itself.
STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    415: "unsupported_media_type",
    429: "too_many_requests",
    500: "internal_server_error",
    503: "service_unavailable",
}


def build_problem(
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Assemble the error body.

    Besides the RFC 7807 members the body repeats ``message`` under ``error``
    and sets ``ok: false``, which is the failure shape of the session
    endpoints.

    :param status: HTTP status code.
    :param code: Machine-readable error code.
    :param message: Client-safe description.
    :param details: Optional structured payload (validation messages...).
    :rtype: dict
    """
    body: dict[str, Any] = {
        "ok": False,
        "error": message,
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "code": code,
        "instance": request.path if request else None,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


def problem_response(body: dict[str, Any]) -> tuple[Response, int]:
    """Serialize ``body`` with the problem+json media type and its status."""
    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, int(body["status"])


def _log_problem(kind: str, body: dict[str, Any], exc: BaseException | None = None) -> None:
    status = int(body["status"])
    if status >= 500:
        log.error(
            "%s: code=%s status=%s detail=%s request_id=%s",
            kind,
            body["code"],
            status,
            body["detail"],
            body["request_id"],
            exc_info=exc,
        )
    else:
        log.warning(
            "%s: code=%s status=%s detail=%s request_id=%s",
            kind,
            body["code"],
            status,
            body["detail"],
            body["request_id"],
        )


class APIError(Exception):
    """
    Error raised by routes and hooks, rendered as problem+json.

    Parameters
    ----------
    message : str
        Client-safe description.
    status_code : int, optional
        HTTP status. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier. Defaults to ``"bad_request"``.
    details : dict[str, Any] | None, optional
        Extra structured payload.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return build_problem(self.status_code, self.code, self.message, self.details or None)


class MalformedRequestError(APIError):
    """400: a required field is missing or has the wrong type."""

    def __init__(self, message: str = "Malformed request", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, HTTPStatus.BAD_REQUEST, "malformed_request", details)


class Unauthorized(APIError):
    """401: no credentials, or credentials that did not verify."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, HTTPStatus.UNAUTHORIZED, "unauthorized")


class Forbidden(APIError):
    """403: authenticated, but not allowed."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, HTTPStatus.FORBIDDEN, "forbidden")


def init_app(app: Flask) -> None:
    """
    Register the error handlers.

    Notes
    -----
    - ``ServiceError`` subclasses go through ``BaseService.translate_exceptions``.
    - marshmallow ``ValidationError`` becomes 400 ``malformed_request``.
    - Anything unhandled becomes an opaque 500, logged with its traceback.
    """
    from vidnest.services._shared.base import BaseService
    from vidnest.services._shared.errors import ServiceError

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        body = err.to_problem()
        _log_problem("APIError", body)
        return problem_response(body)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        translated = BaseService.translate_exceptions(err)
        if isinstance(translated, APIError):
            return handle_api_error(translated)
        raise translated  # pragma: no cover - every ServiceError is translated

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return handle_api_error(
            MalformedRequestError("Request body validation failed", details={"errors": err.messages})
        )

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = STATUS_CODES.get(status, "error")
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or code.replace("_", " ").capitalize()).strip()
        body = build_problem(status, code, message)
        _log_problem("HTTPException", body)
        return problem_response(body)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        body = build_problem(HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error", "Unexpected error")
        _log_problem("Unhandled exception", body, err)
        return problem_response(body)
