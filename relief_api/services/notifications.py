# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Notification dispatcher and per-recipient inbox.

Persisting the record is the whole delivery; there is no external channel.
"""

import logging
from typing import Any, Dict, List, Optional

from opentelemetry import trace

from ..domain import notifications as notification_domain
from ..middleware.error_handler import NotFoundException, ValidationException
from ..models.entities import HelpRequest, Notification, User
from ..models.enums import NotificationType
from .repositories import NotificationRepository, PaginationResult, UserRepository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class NotificationDispatcher:
    """Creates notifications as side effects of other mutations."""

    def __init__(self, notifications: NotificationRepository, users: UserRepository):
        self.notifications = notifications
        self.users = users

    def dispatch(self, notification: Notification) -> Notification:
        with tracer.start_as_current_span(
            "notification.dispatch",
            attributes={"notification.type": notification.type}
        ):
            self.notifications.insert(notification)
            logger.info(
                "Notification dispatched",
                extra={
                    "notification_id": notification.id,
                    "recipient_id": notification.recipient_id,
                    "type": notification.type
                }
            )
            return notification

    def dispatch_many(self, notifications: List[Notification]) -> int:
        """Persist one record per recipient in a single bulk write."""
        if not notifications:
            return 0

        with tracer.start_as_current_span(
            "notification.dispatch_many",
            attributes={"notification.count": len(notifications)}
        ):
            return self.notifications.insert_many(notifications)

    def notify_request_assigned(self, help_request: HelpRequest, volunteer: User) -> Notification:
        return self.dispatch(notification_domain.build_assignment_notification(
            help_request, volunteer.id, volunteer.name
        ))

    def notify_request_updated(
        self,
        help_request: HelpRequest,
        old_status: str,
        new_status: str,
        notes: Optional[str] = None,
    ) -> Notification:
        return self.dispatch(notification_domain.build_status_notification(
            help_request, old_status, new_status, notes
        ))

    def notify_account_decision(self, user: User, approved: bool, reason: Optional[str] = None) -> Notification:
        return self.dispatch(notification_domain.build_account_notification(user.id, approved, reason))

    def broadcast(
        self,
        message: str,
        audience: str,
        sent_by: str,
        region: Optional[str] = None,
        title: Optional[str] = None,
    ) -> int:
        """
        Fan a message out to every approved user in the audience.

        An empty audience is not an error; the count is zero.

        Raises:
            ValidationException: Missing message or audience, unknown
                audience, or a regional broadcast without a region
        """
        with tracer.start_as_current_span(
            "notification.broadcast",
            attributes={"broadcast.audience": audience or ""}
        ) as span:
            result = notification_domain.validate_broadcast(message, audience, region)
            if not result.is_valid:
                raise ValidationException.from_errors(result.errors)

            region = region.strip() if region else None
            recipient_ids = self.users.find_ids(notification_domain.build_audience_query(audience, region))
            span.set_attribute("broadcast.recipients", len(recipient_ids))

            if not recipient_ids:
                logger.info("Broadcast found no recipients", extra={"audience": audience, "region": region})
                return 0

            count = self.dispatch_many(notification_domain.build_broadcast_notifications(
                recipient_ids, message.strip(), audience, sent_by, region, title
            ))

            logger.info(
                "Broadcast sent",
                extra={"audience": audience, "region": region, "count": count, "sent_by": sent_by}
            )
            return count


class NotificationInbox:
    """Read side of notifications for a single recipient."""

    def __init__(self, notifications: NotificationRepository, dispatcher: NotificationDispatcher):
        self.notifications = notifications
        self.dispatcher = dispatcher

    def list(
        self,
        recipient_id: str,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
        read_only: bool = False,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"recipientId": recipient_id}
        if unread_only:
            query["isRead"] = False
        elif read_only:
            query["isRead"] = True

        result: PaginationResult[Notification] = self.notifications.paginate(query, page, limit)
        unread_count = self.notifications.count({"recipientId": recipient_id, "isRead": False})

        return {
            "notifications": [n.to_public() for n in result.items],
            "pagination": result.to_pagination(),
            "unreadCount": unread_count,
        }

    def mark_read(self, notification_id: str, recipient_id: str) -> Notification:
        """
        Raises:
            NotFoundException: Unknown ID or not addressed to the caller
        """
        notification = self.notifications.mark_read(notification_id, recipient_id)
        if notification is None:
            raise NotFoundException("Notification not found")
        return notification

    def mark_all_read(self, recipient_id: str) -> int:
        count = self.notifications.mark_all_read(recipient_id)
        logger.info("Notifications marked read", extra={"recipient_id": recipient_id, "count": count})
        return count

    def create(
        self,
        recipient_id: Optional[str],
        title: Optional[str],
        message: Optional[str],
        type: Optional[str] = None,
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """Admin-issued notification to a single recipient."""
        if not recipient_id or not (title or "").strip() or not (message or "").strip():
            raise ValidationException("RecipientId, title, and message are required")

        if type is not None and type not in {t.value for t in NotificationType}:
            raise ValidationException("Invalid notification type")

        return self.dispatcher.dispatch(Notification(
            recipient_id=recipient_id,
            type=type or NotificationType.GENERAL.value,
            title=title.strip(),
            message=message.strip(),
            link=link,
            metadata=metadata or {},
        ))
