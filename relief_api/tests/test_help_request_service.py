# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the help request lifecycle service.
"""

import pytest

from relief_api.domain.help_requests import LIST_SORT, RequestListFilters
from relief_api.middleware.error_handler import (
    AuthorizationException,
    ConflictException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from relief_api.services.help_requests import HelpRequestService
from relief_api.services.notifications import NotificationDispatcher
from relief_api.services.repositories import PaginationResult

from conftest import make_request, make_user, principal_for

VALID_PAYLOAD = {
    "type": "food",
    "title": "Need rice",
    "description": "Family of 4 without food for 2 days",
    "address": {"city": "Chittagong", "district": "Chittagong", "division": "Chittagong"},
}


@pytest.fixture
def service(repositories):
    dispatcher = NotificationDispatcher(repositories.notifications, repositories.users)
    return HelpRequestService(repositories.requests, repositories.users, dispatcher)


class TestCreate:

    def test_create_pending_request(self, service, repositories, citizen):
        repositories.requests.insert.side_effect = lambda entity: entity

        help_request = service.create(principal_for(citizen), dict(VALID_PAYLOAD))

        assert help_request.user_id == citizen.id
        assert help_request.status == "pending"
        repositories.requests.insert.assert_called_once()

    def test_create_reports_all_errors(self, service, repositories, citizen):
        with pytest.raises(ValidationException) as exc_info:
            service.create(principal_for(citizen), {"type": "food"})

        assert exc_info.value.message == 'Title must be at least 3 characters'
        assert len(exc_info.value.validation_errors) == 3
        repositories.requests.insert.assert_not_called()


class TestList:
    """Test role-scoped listings."""

    def test_volunteer_listing_uses_stored_profile(self, service, repositories, volunteer, citizen):
        help_request = make_request(citizen.id)
        repositories.users.get.return_value = volunteer
        repositories.requests.paginate.return_value = PaginationResult([help_request], 1, 1, 20)
        repositories.users.get_summaries.return_value = {citizen.id: {"id": citizen.id, "name": "Karim"}}

        result = service.list(principal_for(volunteer), RequestListFilters(), page=1, limit=20)

        query = repositories.requests.paginate.call_args[0][0]
        assert query["address.district"] == "Chittagong"
        assert repositories.requests.paginate.call_args[1]["sort"] == LIST_SORT
        assert result["requests"][0]["requester"] == {"id": citizen.id, "name": "Karim"}
        assert result["requests"][0]["assignedVolunteer"] is None
        assert result["pagination"]["total"] == 1

    def test_citizen_listing_skips_profile_lookup(self, service, repositories, citizen):
        service.list(principal_for(citizen), RequestListFilters())

        repositories.users.get.assert_not_called()
        assert repositories.requests.paginate.call_args[0][0] == {"userId": citizen.id}

    def test_volunteer_without_profile_sees_nothing(self, service, repositories, volunteer):
        repositories.users.get.return_value = None

        result = service.list(principal_for(volunteer), RequestListFilters(), page=1, limit=20)

        assert result == {"requests": [], "pagination": {"page": 1, "limit": 20, "total": 0, "pages": 0}}
        repositories.requests.paginate.assert_not_called()


class TestGet:

    def test_unknown_request(self, service, repositories, admin):
        repositories.requests.get.return_value = None

        with pytest.raises(NotFoundException, match="Request not found"):
            service.get(principal_for(admin), "missing")

    def test_citizen_reading_other_request(self, service, repositories, citizen):
        repositories.requests.get.return_value = make_request("someone-else")

        with pytest.raises(AuthorizationException):
            service.get(principal_for(citizen), "r1")

    def test_detail_embeds_volunteer(self, service, repositories, citizen, volunteer):
        repositories.requests.get.return_value = make_request(
            citizen.id, status="assigned", assigned_volunteer_id=volunteer.id
        )
        repositories.users.get_summaries.return_value = {volunteer.id: {"id": volunteer.id, "sector": "logistics"}}

        detail = service.detail(principal_for(citizen), "r1")

        assert detail["assignedVolunteer"]["sector"] == "logistics"


class TestAssign:
    """Test volunteer assignment."""

    def test_volunteer_assigns_self(self, service, repositories, citizen, volunteer):
        assigned = make_request(citizen.id, status="assigned", assigned_volunteer_id=volunteer.id)
        repositories.users.get.return_value = volunteer
        repositories.requests.assign_if_unassigned.return_value = assigned

        result = service.assign(principal_for(volunteer), assigned.id)

        assert result is assigned
        args = repositories.requests.assign_if_unassigned.call_args[0]
        assert args[:2] == (assigned.id, volunteer.id)
        notification = repositories.notifications.insert.call_args[0][0]
        assert notification.type == "request_assigned"
        assert notification.recipient_id == citizen.id

    def test_citizen_cannot_assign(self, service, repositories, citizen):
        with pytest.raises(AuthorizationException, match="Insufficient permissions"):
            service.assign(principal_for(citizen), "r1")

        repositories.requests.assign_if_unassigned.assert_not_called()

    def test_second_assignment_conflicts(self, service, repositories, citizen, volunteer):
        repositories.users.get.return_value = volunteer
        repositories.requests.assign_if_unassigned.return_value = None
        repositories.requests.get.return_value = make_request(
            citizen.id, status="assigned", assigned_volunteer_id="first-volunteer"
        )

        with pytest.raises(ConflictException, match="Request already assigned"):
            service.assign(principal_for(volunteer), "r1")

        repositories.notifications.insert.assert_not_called()

    def test_completed_request_is_not_pending(self, service, repositories, citizen, volunteer):
        repositories.users.get.return_value = volunteer
        repositories.requests.assign_if_unassigned.return_value = None
        repositories.requests.get.return_value = make_request(citizen.id, status="completed")

        with pytest.raises(InvalidStateException, match="Request is not pending"):
            service.assign(principal_for(volunteer), "r1")

    def test_unknown_request(self, service, repositories, volunteer):
        repositories.users.get.return_value = volunteer
        repositories.requests.assign_if_unassigned.return_value = None
        repositories.requests.get.return_value = None

        with pytest.raises(NotFoundException):
            service.assign(principal_for(volunteer), "missing")

    def test_admin_assigns_named_volunteer(self, service, repositories, admin, volunteer, citizen):
        repositories.users.get.return_value = volunteer
        repositories.requests.assign_if_unassigned.return_value = make_request(
            citizen.id, status="assigned", assigned_volunteer_id=volunteer.id
        )

        service.assign(principal_for(admin), "r1", volunteer_id=volunteer.id)

        repositories.users.get.assert_called_once_with(volunteer.id)
        assert repositories.requests.assign_if_unassigned.call_args[0][1] == volunteer.id

    def test_admin_cannot_assign_a_citizen(self, service, repositories, admin, citizen):
        repositories.users.get.return_value = citizen

        with pytest.raises(ValidationException, match="Volunteer not found"):
            service.assign(principal_for(admin), "r1", volunteer_id=citizen.id)

    def test_unknown_request_wins_over_bad_volunteer(self, service, repositories, admin):
        repositories.requests.get.return_value = None
        repositories.users.get.return_value = None

        with pytest.raises(NotFoundException, match="Request not found"):
            service.assign(principal_for(admin), "missing", volunteer_id="not-a-volunteer")

        repositories.users.get.assert_not_called()
        repositories.requests.assign_if_unassigned.assert_not_called()

    def test_volunteer_id_is_ignored_for_volunteers(self, service, repositories, volunteer, citizen):
        repositories.users.get.return_value = volunteer
        repositories.requests.assign_if_unassigned.return_value = make_request(
            citizen.id, status="assigned", assigned_volunteer_id=volunteer.id
        )

        service.assign(principal_for(volunteer), "r1", volunteer_id="someone-else")

        repositories.users.get.assert_called_once_with(volunteer.id)


class TestUpdateStatus:
    """Test status transitions."""

    def test_assignee_completes_request(self, service, repositories, citizen, volunteer):
        current = make_request(citizen.id, status="assigned", assigned_volunteer_id=volunteer.id)
        updated = current.model_copy(update={"status": "completed"})
        repositories.requests.get.return_value = current
        repositories.requests.set_status.return_value = updated

        result = service.update_status(principal_for(volunteer), current.id, "completed", " All delivered ")

        assert result.status == "completed"
        repositories.requests.set_status.assert_called_once_with(current.id, "completed", assignee_id=volunteer.id)
        notification = repositories.notifications.insert.call_args[0][0]
        assert notification.type == "request_updated"
        assert notification.metadata["oldStatus"] == "assigned"
        assert notification.metadata["notes"] == "All delivered"

    def test_skipping_in_progress_is_allowed(self, service, repositories, citizen, admin):
        current = make_request(citizen.id, status="pending")
        repositories.requests.get.return_value = current
        repositories.requests.set_status.return_value = current.model_copy(update={"status": "completed"})

        result = service.update_status(principal_for(admin), current.id, "completed")

        assert result.status == "completed"
        repositories.requests.set_status.assert_called_once_with(current.id, "completed", assignee_id=None)

    @pytest.mark.parametrize("status,message", [
        (None, "Status is required"),
        ("", "Status is required"),
        ("assigned", "Invalid status"),
        ("done", "Invalid status"),
    ])
    def test_status_value_checks(self, service, repositories, volunteer, status, message):
        with pytest.raises(ValidationException, match=message):
            service.update_status(principal_for(volunteer), "r1", status)

        repositories.requests.get.assert_not_called()

    def test_other_volunteers_request(self, service, repositories, citizen, volunteer):
        repositories.requests.get.return_value = make_request(
            citizen.id, status="assigned", assigned_volunteer_id="another"
        )

        with pytest.raises(AuthorizationException, match="only update requests assigned to you"):
            service.update_status(principal_for(volunteer), "r1", "in_progress")

        repositories.requests.set_status.assert_not_called()

    def test_reassigned_between_read_and_write(self, service, repositories, citizen, volunteer):
        repositories.requests.get.return_value = make_request(
            citizen.id, status="assigned", assigned_volunteer_id=volunteer.id
        )
        repositories.requests.set_status.return_value = None

        with pytest.raises(AuthorizationException):
            service.update_status(principal_for(volunteer), "r1", "in_progress")

        repositories.notifications.insert.assert_not_called()

    def test_citizen_cannot_update(self, service, repositories, citizen):
        with pytest.raises(AuthorizationException, match="Insufficient permissions"):
            service.update_status(principal_for(citizen), "r1", "completed")

    def test_unknown_request(self, service, repositories, admin):
        repositories.requests.get.return_value = None

        with pytest.raises(NotFoundException, match="Request not found"):
            service.update_status(principal_for(admin), "missing", "completed")
