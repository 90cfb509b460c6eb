# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Authentication endpoints for signup, login, logout and session lookup.
"""

from flask import request, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from ..middleware.auth import require_auth
from ..middleware.error_handler import CustomException
from ..models.entities import Principal
from ..models.requests import LoginRequest
from ..services.auth import (
    AccountNotApprovedError,
    AuthenticationError,
)
from ..utils.request import RequestParser
from ..utils.response import success_response, error_response, exception_response

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
auth_tag = Tag(name="Authentication", description="Signup, login and session management")
auth_bp = APIBlueprint(
    'auth',
    __name__,
    url_prefix='/api/auth',
    abp_tags=[auth_tag]
)


@auth_bp.post('/signup')
def signup():
    """
    Register a new account.

    Accounts start pending and cannot log in until an admin approves them.
    """
    with tracer.start_as_current_span(
        "auth.signup",
        attributes={"operation": "signup", "ip_address": request.remote_addr}
    ) as span:
        try:
            data = RequestParser.parse_json_body()
            user = current_app.auth_service.register(data)

            span.set_attribute("user.id", user.id)
            span.set_status(Status(StatusCode.OK))
            return success_response({
                "userId": user.id,
                "status": user.status,
                "message": "Registration successful. Please wait for admin approval."
            }, 201)

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            logger.warning("Signup rejected", extra={"error": e.message, "ip_address": request.remote_addr})
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error("Unexpected error during signup", extra={"error": str(e)}, exc_info=True)
            return error_response("Registration failed. Please try again.", 500)


@auth_bp.post('/login')
def login():
    """
    Authenticate a user and open a session.

    The session token is returned in the body and set as an HttpOnly cookie.
    """
    with tracer.start_as_current_span(
        "auth.login",
        attributes={"operation": "login", "ip_address": request.remote_addr}
    ) as span:
        try:
            credentials = RequestParser.parse_model(LoginRequest)
            if not credentials.email or not credentials.password:
                span.set_status(Status(StatusCode.ERROR, "Missing credentials"))
                return error_response("Email and password are required", 400)

            auth_service = current_app.auth_service
            user = auth_service.authenticate(credentials.email, credentials.password)
            session = auth_service.issue_session_token(user)

            response, status_code = success_response({
                "user": {
                    "id": user.id,
                    "email": user.email,
                    "name": user.name,
                    "role": user.role,
                    "status": user.status
                },
                "token": session["token"],
                "tokenType": session["token_type"],
                "expiresAt": session["expires_at"]
            })
            response.set_cookie(
                current_app.config["SESSION_COOKIE_NAME"],
                session["token"],
                max_age=session["expires_in"],
                httponly=True,
                secure=current_app.config["SESSION_COOKIE_SECURE"],
                samesite="Lax"
            )

            span.set_attribute("user.id", user.id)
            span.set_status(Status(StatusCode.OK))
            return response, status_code

        except AccountNotApprovedError as e:
            span.set_status(Status(StatusCode.ERROR, "Account not approved"))
            logger.warning("Login refused: account not approved", extra={"status": e.status})
            return error_response(str(e), 403)

        except AuthenticationError as e:
            span.set_status(Status(StatusCode.ERROR, "Invalid credentials"))
            logger.warning("Login failed", extra={"reason": str(e), "ip_address": request.remote_addr})
            return error_response(str(e), 401)

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error("Unexpected error during login", extra={"error": str(e)}, exc_info=True)
            return error_response("Login failed", 500)


@auth_bp.post('/logout')
def logout():
    """Clear the session cookie. Tokens are stateless and simply expire."""
    response, status_code = success_response({"message": "Logged out successfully"})
    response.delete_cookie(current_app.config["SESSION_COOKIE_NAME"])
    return response, status_code


@auth_bp.get('/session')
@require_auth
def get_session(principal: Principal):
    """Return the principal of the current session."""
    return success_response({
        "user": {
            "id": principal.user_id,
            "email": principal.email,
            "name": principal.name,
            "role": principal.role,
            "status": principal.status
        }
    })
