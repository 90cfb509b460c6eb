# SPDX-License-Identifier: Apache-2.0

"""
Notification inbox endpoints.

Listing, single and bulk mark-read for the caller, plus admin-issued
notifications to a single recipient.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from ..middleware.auth import require_auth, require_roles
from ..middleware.error_handler import CustomException
from ..models.entities import Principal
from ..models.enums import UserRole
from ..models.requests import NotificationPath, CreateNotificationRequest
from ..utils.request import RequestParser
from ..utils.response import success_response, error_response, exception_response

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
notifications_tag = Tag(name="Notifications", description="In-app notification inbox")
notifications_bp = APIBlueprint(
    'notifications',
    __name__,
    url_prefix='/api/notifications',
    abp_tags=[notifications_tag]
)


@notifications_bp.get('')
@require_auth
def list_notifications(principal: Principal):
    """
    List the caller's notifications, newest first.

    ``unreadOnly`` and ``readOnly`` filter by read state. The response
    includes the caller's total unread count.
    """
    with tracer.start_as_current_span(
        "notifications.list",
        attributes={"user.id": principal.user_id}
    ) as span:
        try:
            pagination = RequestParser.get_pagination_params(default_limit=20)
            result = current_app.notification_inbox.list(
                principal.user_id,
                page=pagination['page'],
                limit=pagination['limit'],
                unread_only=RequestParser.get_bool_arg('unreadOnly'),
                read_only=RequestParser.get_bool_arg('readOnly')
            )

            span.set_attribute("notifications.unread", result["unreadCount"])
            span.set_status(Status(StatusCode.OK))
            return success_response(result)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error listing notifications",
                extra={"user_id": principal.user_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to fetch notifications", 500)


@notifications_bp.post('')
@require_roles(UserRole.ADMIN.value)
def create_notification(principal: Principal):
    """Send a notification to a single user."""
    with tracer.start_as_current_span(
        "notifications.create",
        attributes={"user.id": principal.user_id}
    ) as span:
        try:
            body = RequestParser.parse_model(CreateNotificationRequest)
            notification = current_app.notification_inbox.create(
                body.recipient_id,
                body.title,
                body.message,
                type=body.type,
                link=body.link,
                metadata=body.metadata
            )

            span.set_attribute("notification.id", notification.id)
            span.set_status(Status(StatusCode.OK))
            return success_response({"notification": notification.to_public()}, 201)

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error("Unexpected error creating notification", extra={"error": str(e)}, exc_info=True)
            return error_response("Failed to create notification", 500)


@notifications_bp.patch('/<notification_id>/read')
@require_auth
def mark_notification_read(principal: Principal, path: NotificationPath):
    """Mark one of the caller's notifications as read."""
    with tracer.start_as_current_span(
        "notifications.mark_read",
        attributes={"user.id": principal.user_id, "notification.id": path.notification_id}
    ) as span:
        try:
            notification = current_app.notification_inbox.mark_read(path.notification_id, principal.user_id)

            span.set_status(Status(StatusCode.OK))
            return success_response({"notification": notification.to_public()})

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error marking notification read",
                extra={"user_id": principal.user_id, "notification_id": path.notification_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to update notification", 500)


@notifications_bp.post('/read-all')
@require_auth
def mark_all_notifications_read(principal: Principal):
    """Mark all of the caller's unread notifications as read."""
    with tracer.start_as_current_span(
        "notifications.mark_all_read",
        attributes={"user.id": principal.user_id}
    ) as span:
        try:
            count = current_app.notification_inbox.mark_all_read(principal.user_id)

            span.set_attribute("notifications.modified", count)
            span.set_status(Status(StatusCode.OK))
            return success_response({
                "message": f"Marked {count} notifications as read",
                "count": count
            })

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error marking notifications read",
                extra={"user_id": principal.user_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to update notifications", 500)
