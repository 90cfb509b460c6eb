# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Admin operations: account approval, user listing, broadcast and statistics.
"""

import logging
from typing import Any, Dict, Optional

from opentelemetry import trace

from ..middleware.error_handler import NotFoundException
from ..models.base import utc_now
from ..models.entities import Principal, User
from ..models.enums import (
    RequestStatus,
    ShelterStatus,
    UserRole,
    UserStatus,
    VOLUNTEER_ROLES,
)
from .notifications import NotificationDispatcher
from .repositories import Repositories

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class AdminService:
    """Administrative operations over users, requests and shelters."""

    def __init__(self, repositories: Repositories, dispatcher: NotificationDispatcher):
        self.users = repositories.users
        self.requests = repositories.requests
        self.shelters = repositories.shelters
        self.dispatcher = dispatcher

    def list_users(
        self,
        status: Optional[str] = None,
        role: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """Newest accounts first; password digests are never returned."""
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if role:
            query["role"] = role

        result = self.users.paginate(query, page, limit)
        return {
            "users": [user.to_public() for user in result.items],
            "pagination": result.to_pagination(),
        }

    def _set_user_status(self, user_id: str, status: str) -> User:
        user = self.users.update_fields(user_id, {"status": status})
        if user is None:
            raise NotFoundException("User not found")
        return user

    def approve_user(self, admin: Principal, user_id: str) -> User:
        """
        Approve an account regardless of its current status.

        Raises:
            NotFoundException: Unknown user
        """
        with tracer.start_as_current_span("admin.approve_user", attributes={"target.user_id": user_id}):
            user = self._set_user_status(user_id, UserStatus.APPROVED.value)
            logger.info("User approved", extra={"user_id": user.id, "approved_by": admin.user_id})

            self.dispatcher.notify_account_decision(user, approved=True)
            return user

    def reject_user(self, admin: Principal, user_id: str, reason: Optional[str] = None) -> User:
        """
        Reject an account regardless of its current status.

        Raises:
            NotFoundException: Unknown user
        """
        with tracer.start_as_current_span("admin.reject_user", attributes={"target.user_id": user_id}):
            user = self._set_user_status(user_id, UserStatus.REJECTED.value)
            logger.info(
                "User rejected",
                extra={"user_id": user.id, "rejected_by": admin.user_id, "reason": reason}
            )

            self.dispatcher.notify_account_decision(user, approved=False, reason=reason)
            return user

    def broadcast(
        self,
        admin: Principal,
        message: Optional[str],
        audience: Optional[str],
        region: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Dict[str, Any]:
        count = self.dispatcher.broadcast(message, audience, admin.user_id, region, title)
        if count == 0:
            return {"message": "No recipients found", "count": 0}

        return {
            "message": "Broadcast sent successfully",
            "count": count,
            "audience": audience,
            "region": region,
            "timestamp": utc_now().isoformat(),
        }

    def get_stats(self) -> Dict[str, Any]:
        """Aggregate counts for the admin dashboard."""
        with tracer.start_as_current_span("admin.get_stats"):
            requests_by_status = self.requests.count_by("status")

            return {
                "users": {
                    "total": self.users.count({"role": UserRole.USER.value}),
                    "volunteers": self.users.count({"role": {"$in": sorted(VOLUNTEER_ROLES)}}),
                    "pendingApprovals": self.users.count({"status": UserStatus.PENDING.value}),
                },
                "requests": {
                    "total": sum(requests_by_status.values()),
                    "pending": requests_by_status.get(RequestStatus.PENDING.value, 0),
                    "assigned": requests_by_status.get(RequestStatus.ASSIGNED.value, 0),
                    "inProgress": requests_by_status.get(RequestStatus.IN_PROGRESS.value, 0),
                    "completed": requests_by_status.get(RequestStatus.COMPLETED.value, 0),
                    "rejected": requests_by_status.get(RequestStatus.REJECTED.value, 0),
                    "byType": self.requests.count_by("type"),
                    "byPriority": self.requests.count_by("priority"),
                },
                "shelters": {
                    "total": self.shelters.count(),
                    "active": self.shelters.count({"status": ShelterStatus.ACTIVE.value}),
                    "capacity": self.shelters.capacity_totals(),
                },
            }
