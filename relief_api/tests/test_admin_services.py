# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for admin account management, statistics and shelter services.
"""

import pytest
from bson import ObjectId

from relief_api.middleware.error_handler import NotFoundException, ValidationException
from relief_api.models.entities import Address, Shelter, ShelterContact
from relief_api.services.admin import AdminService
from relief_api.services.notifications import NotificationDispatcher
from relief_api.services.repositories import PaginationResult
from relief_api.services.shelters import ShelterService

from conftest import make_user, principal_for


@pytest.fixture
def admin_service(repositories):
    dispatcher = NotificationDispatcher(repositories.notifications, repositories.users)
    return AdminService(repositories, dispatcher)


@pytest.fixture
def shelter_service(repositories):
    return ShelterService(repositories.shelters)


def make_shelter(**overrides) -> Shelter:
    data = {
        "name": "Patenga Cyclone Center",
        "capacity": 300,
        "current_occupancy": 120,
        "address": Address(city="Chittagong", district="Chittagong", division="Chittagong"),
        "contact": ShelterContact(phone="01712345678", email="patenga@relief.org"),
        "facilities": ["water", "medical"],
    }
    data.update(overrides)
    return Shelter(**data)


class TestAccountApproval:
    """Test admin approval decisions."""

    def test_approve_user(self, admin_service, repositories, admin):
        pending = make_user(status="approved", email="new@example.com")
        repositories.users.update_fields.return_value = pending

        user = admin_service.approve_user(principal_for(admin), pending.id)

        repositories.users.update_fields.assert_called_once_with(pending.id, {"status": "approved"})
        notification = repositories.notifications.insert.call_args[0][0]
        assert user is pending
        assert notification.type == "account_approved"
        assert notification.recipient_id == pending.id

    def test_reject_user_with_reason(self, admin_service, repositories, admin):
        rejected = make_user(status="rejected")
        repositories.users.update_fields.return_value = rejected

        admin_service.reject_user(principal_for(admin), rejected.id, "NID could not be verified")

        notification = repositories.notifications.insert.call_args[0][0]
        assert notification.type == "account_rejected"
        assert "NID could not be verified" in notification.message

    def test_unknown_user(self, admin_service, repositories, admin):
        repositories.users.update_fields.return_value = None

        with pytest.raises(NotFoundException, match="User not found"):
            admin_service.approve_user(principal_for(admin), "missing")

        repositories.notifications.insert.assert_not_called()

    def test_list_users_hides_password(self, admin_service, repositories):
        repositories.users.paginate.return_value = PaginationResult([make_user(status="pending")], 1, 1, 20)

        result = admin_service.list_users(status="pending")

        assert repositories.users.paginate.call_args[0][0] == {"status": "pending"}
        assert "passwordHash" not in result["users"][0]


class TestBroadcastAndStats:

    def test_broadcast_without_recipients(self, admin_service, repositories, admin):
        repositories.users.find_ids.return_value = []

        result = admin_service.broadcast(principal_for(admin), "Hello", "all")

        assert result == {"message": "No recipients found", "count": 0}

    def test_broadcast(self, admin_service, repositories, admin):
        repositories.users.find_ids.return_value = ["a", "b"]

        result = admin_service.broadcast(principal_for(admin), "Evacuate low areas", "region", "Chittagong")

        assert result["message"] == "Broadcast sent successfully"
        assert result["count"] == 2
        assert result["region"] == "Chittagong"
        assert "timestamp" in result

    def test_stats(self, admin_service, repositories):
        repositories.users.count.side_effect = [10, 4, 2]
        repositories.requests.count_by.side_effect = [
            {"pending": 3, "assigned": 2, "completed": 5},
            {"food": 6, "medical": 4},
            {"high": 7, "low": 3},
        ]
        repositories.shelters.count.side_effect = [3, 2]
        repositories.shelters.capacity_totals.return_value = {"totalCapacity": 600, "totalOccupancy": 250}

        stats = admin_service.get_stats()

        assert stats["users"] == {"total": 10, "volunteers": 4, "pendingApprovals": 2}
        assert stats["requests"]["total"] == 10
        assert stats["requests"]["pending"] == 3
        assert stats["requests"]["inProgress"] == 0
        assert stats["requests"]["byType"] == {"food": 6, "medical": 4}
        assert stats["shelters"] == {
            "total": 3,
            "active": 2,
            "capacity": {"totalCapacity": 600, "totalOccupancy": 250},
        }


class TestShelterService:
    """Test shelter CRUD rules."""

    def payload(self, **overrides):
        data = {
            "name": "Patenga Cyclone Center",
            "capacity": 300,
            "currentOccupancy": 0,
            "address": {"city": "Chittagong", "district": "Chittagong", "division": "Chittagong"},
            "contact": {"phone": "01712345678"},
            "facilities": ["water"],
        }
        data.update(overrides)
        return data

    def test_create(self, shelter_service, repositories):
        repositories.shelters.insert.side_effect = lambda entity: entity

        shelter = shelter_service.create(self.payload(unknownField="ignored"))

        assert shelter.capacity == 300
        assert shelter.status == "active"
        assert not hasattr(shelter, "unknownField")

    def test_create_with_occupancy_over_capacity(self, shelter_service, repositories):
        with pytest.raises(ValidationException, match="Occupancy cannot exceed capacity"):
            shelter_service.create(self.payload(capacity=10, currentOccupancy=11))

        repositories.shelters.insert.assert_not_called()

    def test_create_missing_fields(self, shelter_service):
        with pytest.raises(ValidationException, match="Missing required fields"):
            shelter_service.create({"name": "Camp"})

    def test_update_merges_nested_fields(self, shelter_service, repositories):
        existing = make_shelter()
        repositories.shelters.get.return_value = existing
        repositories.shelters.update_fields.side_effect = lambda shelter_id, fields: existing.model_copy(
            update={"current_occupancy": fields["currentOccupancy"]}
        )

        shelter_service.update(existing.id, {"currentOccupancy": 200, "contact": {"phone": "01812345678"}})

        shelter_id, fields = repositories.shelters.update_fields.call_args[0]
        assert shelter_id == existing.id
        assert fields["currentOccupancy"] == 200
        assert fields["contact"] == {"phone": "01812345678", "email": "patenga@relief.org"}
        assert fields["address"]["city"] == "Chittagong"
        assert "createdAt" not in fields

    def test_update_cannot_overfill(self, shelter_service, repositories):
        repositories.shelters.get.return_value = make_shelter(capacity=300)

        with pytest.raises(ValidationException, match="Occupancy cannot exceed capacity"):
            shelter_service.update("s1", {"currentOccupancy": 301})

        repositories.shelters.update_fields.assert_not_called()

    def test_update_accepts_numeric_strings(self, shelter_service, repositories):
        existing = make_shelter(capacity=300)
        repositories.shelters.get.return_value = existing
        repositories.shelters.update_fields.return_value = existing

        shelter_service.update(existing.id, {"capacity": "400", "currentOccupancy": "350"})

        fields = repositories.shelters.update_fields.call_args[0][1]
        assert fields["capacity"] == 400
        assert fields["currentOccupancy"] == 350

    def test_update_to_zero_capacity(self, shelter_service, repositories):
        repositories.shelters.get.return_value = make_shelter(capacity=300)

        with pytest.raises(ValidationException, match="Missing required fields"):
            shelter_service.update("s1", {"capacity": 0})

    def test_update_unknown_shelter(self, shelter_service, repositories):
        repositories.shelters.get.return_value = None

        with pytest.raises(NotFoundException, match="Shelter not found"):
            shelter_service.update(str(ObjectId()), {"capacity": 10})

    def test_delete(self, shelter_service, repositories):
        repositories.shelters.delete.return_value = False

        with pytest.raises(NotFoundException):
            shelter_service.delete("missing")

    def test_list_by_status(self, shelter_service, repositories):
        repositories.shelters.paginate.return_value = PaginationResult([make_shelter()], 1, 1, 50)

        result = shelter_service.list(status="active")

        repositories.shelters.paginate.assert_called_once_with({"status": "active"}, 1, 50)
        assert result["shelters"][0]["availableCapacity"] == 180
