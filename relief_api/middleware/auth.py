# SPDX-License-Identifier: Apache-2.0

"""
Session authentication middleware.

Extracts the signed session token from the ``Authorization`` header or the
session cookie, decodes it into a ``Principal`` and hands it to the
protected route as its first argument.
"""

from functools import wraps
from flask import request, g, current_app
from typing import Optional, Callable
from opentelemetry import trace
import logging

from ..models.entities import Principal
from ..services.auth import TokenValidationError
from .error_handler import AuthenticationException, AuthorizationException

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    Session token middleware for Flask applications.

    Handles token extraction and principal building for protected endpoints.
    """

    def __init__(self, auth_service, cookie_name: str = "relief_session"):
        """
        Initialize the authentication middleware.

        Args:
            auth_service: Session token service
            cookie_name: Name of the session cookie
        """
        self.auth_service = auth_service
        self.cookie_name = cookie_name

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract the session token, preferring the bearer header.

        Returns:
            Token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')
        if auth_header.startswith('Bearer '):
            return auth_header[7:].strip() or None

        return request.cookies.get(self.cookie_name) or None

    def authenticate_request(self) -> Principal:
        """
        Decode the request's session token.

        Raises:
            TokenValidationError: Missing, invalid or expired token
        """
        token = self.extract_token_from_request()
        if not token:
            raise TokenValidationError("Missing session token")
        return self.auth_service.principal_from_token(token)


def require_auth(f: Callable) -> Callable:
    """
    Decorator requiring an approved session for Flask routes.

    The principal is passed as the first positional argument and stored
    on ``g.principal``. Failures raise ``AuthenticationException`` (401) or
    ``AuthorizationException`` (403) for the error handler to render.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            auth_middleware: AuthMiddleware = current_app.auth_middleware

            try:
                principal = auth_middleware.authenticate_request()
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(f"Authentication failed: {str(e)}", extra={"path": request.path})
                raise AuthenticationException() from e

            if not principal.is_approved:
                span.set_attribute("auth.result", "not_approved")
                logger.warning(
                    "Authentication failed: account not approved",
                    extra={"user_id": principal.user_id, "status": principal.status}
                )
                raise AuthorizationException(
                    f"Account status: {principal.status}. Please wait for admin approval."
                )

            g.principal = principal
            span.set_attributes({
                "auth.result": "success",
                "user.id": principal.user_id,
                "user.role": principal.role
            })

        return f(principal, *args, **kwargs)

    return decorated_function


def require_roles(*roles: str) -> Callable:
    """
    Decorator requiring an approved session with one of ``roles``.

    Args:
        roles: Allowed role values

    Returns:
        Decorator function
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        @require_auth
        def decorated_function(principal: Principal, *args, **kwargs):
            if principal.role not in roles:
                logger.warning(
                    "Authorization failed: role not permitted",
                    extra={"user_id": principal.user_id, "role": principal.role, "required_roles": list(roles)}
                )
                raise AuthorizationException("Forbidden")

            return f(principal, *args, **kwargs)

        return decorated_function
    return decorator
