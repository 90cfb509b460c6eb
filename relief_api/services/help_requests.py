# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Help request lifecycle service.

Create, role-scoped listing, detail, assignment and status updates. Each
mutation that concerns the owner dispatches a notification afterwards; a
failed notification does not roll the mutation back.
"""

import logging
from typing import Any, Dict, List, Optional

from opentelemetry import trace

from ..domain import authorization
from ..domain.help_requests import (
    LIST_SORT,
    UPDATABLE_STATUSES,
    RequestListFilters,
    build_help_request,
    build_visibility_query,
)
from ..domain.validation import validate_request_payload
from ..middleware.error_handler import (
    AuthorizationException,
    ConflictException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from ..models.base import utc_now
from ..models.entities import HelpRequest, Principal, User
from .notifications import NotificationDispatcher
from .repositories import HelpRequestRepository, PaginationResult, UserRepository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

REQUESTER_FIELDS = ("name", "email", "phone", "address")
VOLUNTEER_FIELDS = ("name", "email", "phone", "sector")


class HelpRequestService:
    """Request lifecycle operations."""

    def __init__(
        self,
        requests: HelpRequestRepository,
        users: UserRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.requests = requests
        self.users = users
        self.dispatcher = dispatcher

    def create(self, principal: Principal, data: Dict[str, Any]) -> HelpRequest:
        """
        Raises:
            ValidationException: With every violated rule
        """
        with tracer.start_as_current_span("help_request.create", attributes={"user.id": principal.user_id}) as span:
            result = validate_request_payload(data)
            if not result.is_valid:
                span.set_attribute("validation.errors", len(result.errors))
                raise ValidationException.from_errors(result.errors)

            help_request = self.requests.insert(build_help_request(data, principal.user_id))

            span.set_attribute("request.id", help_request.id)
            logger.info(
                "Help request created",
                extra={
                    "request_id": help_request.id,
                    "user_id": principal.user_id,
                    "type": help_request.type,
                    "priority": help_request.priority
                }
            )
            return help_request

    def list(
        self,
        principal: Principal,
        filters: RequestListFilters,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """Role-scoped listing, highest priority first."""
        with tracer.start_as_current_span(
            "help_request.list",
            attributes={"user.id": principal.user_id, "user.role": principal.role}
        ) as span:
            volunteer = None
            if principal.is_volunteer:
                volunteer = self.users.get(principal.user_id)
                if volunteer is None:
                    # No stored profile means no sector or district to scope by.
                    logger.warning("Volunteer profile missing", extra={"user_id": principal.user_id})
                    empty = PaginationResult([], 0, page, limit)
                    return {"requests": [], "pagination": empty.to_pagination()}

            query = build_visibility_query(principal, filters, volunteer)

            result = self.requests.paginate(query, page, limit, sort=LIST_SORT)
            span.set_attribute("result.total", result.total)

            return {
                "requests": self._with_contacts(result.items),
                "pagination": result.to_pagination(),
            }

    def _with_contacts(self, items: List[HelpRequest]) -> List[Dict[str, Any]]:
        """Embed requester and volunteer contact summaries in each item."""
        requester_ids = [item.user_id for item in items]
        volunteer_ids = [item.assigned_volunteer_id for item in items if item.assigned_volunteer_id]

        requesters = self.users.get_summaries(requester_ids, REQUESTER_FIELDS) if requester_ids else {}
        volunteers = self.users.get_summaries(volunteer_ids, VOLUNTEER_FIELDS) if volunteer_ids else {}

        payload = []
        for item in items:
            data = item.to_public()
            data["requester"] = requesters.get(item.user_id)
            data["assignedVolunteer"] = volunteers.get(item.assigned_volunteer_id) if item.assigned_volunteer_id else None
            payload.append(data)
        return payload

    def get(self, principal: Principal, request_id: str) -> HelpRequest:
        """
        Raises:
            NotFoundException: Unknown request
            AuthorizationException: Citizen reading someone else's request
        """
        help_request = self.requests.get(request_id)
        if help_request is None:
            raise NotFoundException("Request not found")

        access = authorization.can_view_request(principal, help_request)
        if not access.allowed:
            raise AuthorizationException(access.reason)

        return help_request

    def detail(self, principal: Principal, request_id: str) -> Dict[str, Any]:
        """Single request with requester and volunteer contact summaries."""
        return self._with_contacts([self.get(principal, request_id)])[0]

    def _resolve_assignee(self, principal: Principal, volunteer_id: Optional[str]) -> User:
        if principal.is_admin and volunteer_id and volunteer_id != principal.user_id:
            volunteer = self.users.get(volunteer_id)
            if volunteer is None or not volunteer.is_volunteer:
                raise ValidationException("Volunteer not found")
            return volunteer

        actor = self.users.get(principal.user_id)
        if actor is None:
            raise NotFoundException("User not found")
        return actor

    def assign(self, principal: Principal, request_id: str, volunteer_id: Optional[str] = None) -> HelpRequest:
        """
        Assign a volunteer to a pending request.

        The write is conditional on the request still being pending with no
        assignee, so concurrent attempts cannot both succeed.

        Raises:
            AuthorizationException: Caller is not a volunteer or admin
            NotFoundException: Unknown request
            ConflictException: Request already has an assignee
            InvalidStateException: Request is not pending
        """
        with tracer.start_as_current_span(
            "help_request.assign",
            attributes={"request.id": request_id, "user.id": principal.user_id}
        ) as span:
            access = authorization.check_role(principal, authorization.ASSIGNER_ROLES)
            if not access.allowed:
                raise AuthorizationException(access.reason)

            if self.requests.get(request_id) is None:
                raise NotFoundException("Request not found")

            volunteer = self._resolve_assignee(principal, volunteer_id)

            assigned = self.requests.assign_if_unassigned(request_id, volunteer.id, utc_now())
            if assigned is None:
                current = self.requests.get(request_id)
                if current is None:
                    raise NotFoundException("Request not found")
                if current.assigned_volunteer_id:
                    span.set_attribute("assign.result", "conflict")
                    raise ConflictException("Request already assigned")
                span.set_attribute("assign.result", "invalid_state")
                raise InvalidStateException("Request is not pending")

            span.set_attribute("assign.result", "assigned")
            logger.info(
                "Help request assigned",
                extra={"request_id": assigned.id, "volunteer_id": volunteer.id, "assigned_by": principal.user_id}
            )

            self.dispatcher.notify_request_assigned(assigned, volunteer)
            return assigned

    def update_status(
        self,
        principal: Principal,
        request_id: str,
        status: Optional[str],
        notes: Optional[str] = None,
    ) -> HelpRequest:
        """
        Overwrite a request's status and notify the owner.

        Forward-state skipping (pending to completed) is not blocked here.

        Raises:
            AuthorizationException: Wrong role, or not the assignee
            ValidationException: Missing or unsupported status
            NotFoundException: Unknown request
        """
        with tracer.start_as_current_span(
            "help_request.update_status",
            attributes={"request.id": request_id, "user.id": principal.user_id, "request.status": status or ""}
        ):
            access = authorization.check_role(principal, authorization.ASSIGNER_ROLES)
            if not access.allowed:
                raise AuthorizationException(access.reason)

            if not status:
                raise ValidationException("Status is required")
            if status not in UPDATABLE_STATUSES:
                raise ValidationException("Invalid status")

            current = self.requests.get(request_id)
            if current is None:
                raise NotFoundException("Request not found")

            access = authorization.can_update_request_status(principal, current)
            if not access.allowed:
                raise AuthorizationException(access.reason)

            assignee = None if principal.is_admin else principal.user_id
            updated = self.requests.set_status(request_id, status, assignee_id=assignee)
            if updated is None:
                raise AuthorizationException("Forbidden. You can only update requests assigned to you.")

            logger.info(
                "Help request status updated",
                extra={
                    "request_id": request_id,
                    "old_status": current.status,
                    "new_status": status,
                    "updated_by": principal.user_id
                }
            )

            self.dispatcher.notify_request_updated(updated, current.status, status, (notes or "").strip() or None)
            return updated

