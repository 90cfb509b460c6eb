# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Application exception taxonomy and framework error formatting.

Route handlers catch their own exceptions and convert them with
``exception_response``. The handlers registered here only format errors
raised by Flask itself (unknown routes, bad methods, unparseable bodies)
and anything that escaped a handler, using the same JSON envelope.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from typing import Any, List, Optional, Tuple
from opentelemetry import trace
import logging

from ..utils.response import build_error_body

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """Malformed or missing input. Carries every violated rule."""

    def __init__(self, message: str, validation_errors: Optional[List[str]] = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationException":
        """Use the first violation as the headline message."""
        return cls(errors[0] if errors else "Validation failed", errors)


class AuthenticationException(CustomException):
    """No session or an invalid one."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, 401, "authentication-required")


class AuthorizationException(CustomException):
    """Valid session, insufficient role or ownership."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, 403, "insufficient-permissions")


class NotFoundException(CustomException):
    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class ConflictException(CustomException):
    """A state precondition was violated, e.g. a second assignment."""

    def __init__(self, message: str):
        super().__init__(message, 400, "state-conflict")


class InvalidStateException(CustomException):
    def __init__(self, message: str):
        super().__init__(message, 400, "invalid-state")


class AlreadyExistsException(CustomException):
    """A unique resource already exists."""

    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")


class ErrorHandlerMiddleware:
    """Formats framework-level errors into the JSON error envelope."""

    def __init__(self, app: Flask):
        self.app = app
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(CustomException)
        def handle_custom_exception(error: CustomException):
            return self.handle_custom_exception(error)

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            return self.handle_http_exception(error)

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error: Exception):
            return self.handle_unexpected_error(error)

    def handle_custom_exception(self, error: CustomException) -> Tuple[Any, int]:
        logger.warning(
            f"Unhandled application exception: {error.error_type}",
            extra={
                "error_type": error.error_type,
                "status_code": error.status_code,
                "error_message": error.message,
                "path": request.path,
                "method": request.method
            }
        )
        body = build_error_body(error.message, getattr(error, "validation_errors", None))
        return jsonify(body), error.status_code

    def handle_http_exception(self, error: HTTPException) -> Tuple[Any, int]:
        """Handle werkzeug HTTP errors (404 route, 405 method, 400 parsing)."""
        status_code = error.code or 500

        if status_code >= 500:
            logger.error(
                f"Server error: {error.name}",
                extra={"status_code": status_code, "path": request.path, "method": request.method},
                exc_info=True
            )
            return jsonify(build_error_body(INTERNAL_ERROR_MESSAGE)), status_code

        logger.warning(
            f"Client error: {error.name}",
            extra={
                "status_code": status_code,
                "path": request.path,
                "method": request.method,
                "ip_address": request.remote_addr
            }
        )
        return jsonify(build_error_body(error.name)), status_code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Any, int]:
        """Log with stack trace and hide the details from the caller."""
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

        return jsonify(build_error_body(INTERNAL_ERROR_MESSAGE)), 500
