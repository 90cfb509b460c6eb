# SPDX-License-Identifier: Apache-2.0

"""
Admin endpoints: user approval, user listing, broadcast and statistics.

All endpoints require an approved session with the ``admin`` role.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from ..middleware.auth import require_roles
from ..middleware.error_handler import CustomException
from ..models.entities import Principal, User
from ..models.enums import UserRole
from ..models.requests import UserPath, RejectUserRequest, BroadcastRequest
from ..utils.request import RequestParser
from ..utils.response import success_response, error_response, exception_response

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

admin_tag = Tag(name="Admin", description="Account approval, broadcast and statistics")
admin_bp = APIBlueprint(
    'admin',
    __name__,
    url_prefix='/api/admin',
    abp_tags=[admin_tag]
)

ADMIN = UserRole.ADMIN.value


def _user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "status": user.status
    }


@admin_bp.get('/users')
@require_roles(ADMIN)
def list_users(principal: Principal):
    """List accounts, newest first, filterable by status and role."""
    with tracer.start_as_current_span("admin.users.list", attributes={"user.id": principal.user_id}) as span:
        try:
            pagination = RequestParser.get_pagination_params(default_limit=20)
            result = current_app.admin_service.list_users(
                status=RequestParser.get_arg('status'),
                role=RequestParser.get_arg('role'),
                page=pagination['page'],
                limit=pagination['limit']
            )

            span.set_status(Status(StatusCode.OK))
            return success_response(result)

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error("Unexpected error listing users", extra={"error": str(e)}, exc_info=True)
            return error_response("Failed to fetch users", 500)


@admin_bp.post('/users/<user_id>/approve')
@require_roles(ADMIN)
def approve_user(principal: Principal, path: UserPath):
    """Approve an account and notify its owner."""
    with tracer.start_as_current_span(
        "admin.users.approve",
        attributes={"user.id": principal.user_id, "target.user_id": path.user_id}
    ) as span:
        try:
            user = current_app.admin_service.approve_user(principal, path.user_id)

            span.set_status(Status(StatusCode.OK))
            return success_response({
                "message": "User approved successfully",
                "user": _user_summary(user)
            })

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error approving user",
                extra={"target_user_id": path.user_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to approve user", 500)


@admin_bp.post('/users/<user_id>/reject')
@require_roles(ADMIN)
def reject_user(principal: Principal, path: UserPath):
    """Reject an account with an optional reason."""
    with tracer.start_as_current_span(
        "admin.users.reject",
        attributes={"user.id": principal.user_id, "target.user_id": path.user_id}
    ) as span:
        try:
            body = RequestParser.parse_model(RejectUserRequest)
            user = current_app.admin_service.reject_user(principal, path.user_id, body.reason)

            span.set_status(Status(StatusCode.OK))
            return success_response({
                "message": "User rejected successfully",
                "user": _user_summary(user)
            })

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error rejecting user",
                extra={"target_user_id": path.user_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to reject user", 500)


@admin_bp.post('/broadcast')
@require_roles(ADMIN)
def broadcast(principal: Principal):
    """
    Send a notification to every approved user in an audience.

    Audiences are ``all``, ``volunteers``, ``users`` and ``region``; the
    latter matches the user's division and needs ``region``.
    """
    with tracer.start_as_current_span("admin.broadcast", attributes={"user.id": principal.user_id}) as span:
        try:
            body = RequestParser.parse_model(BroadcastRequest)
            result = current_app.admin_service.broadcast(
                principal, body.message, body.audience, body.region, body.title
            )

            span.set_attribute("broadcast.count", result["count"])
            span.set_status(Status(StatusCode.OK))
            return success_response(result)

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error("Unexpected error sending broadcast", extra={"error": str(e)}, exc_info=True)
            return error_response("Failed to send broadcast", 500)


@admin_bp.get('/stats')
@require_roles(ADMIN)
def get_stats(principal: Principal):
    """Aggregate counts of users, requests and shelters."""
    with tracer.start_as_current_span("admin.stats", attributes={"user.id": principal.user_id}) as span:
        try:
            stats = current_app.admin_service.get_stats()

            span.set_status(Status(StatusCode.OK))
            return success_response({"stats": stats})

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error("Unexpected error computing stats", extra={"error": str(e)}, exc_info=True)
            return error_response("Failed to fetch statistics", 500)
