# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
End-to-end request lifecycle through the HTTP API.

The request repository keeps state in a dict so that creation, assignment
and status updates observe each other's writes.
"""

import pytest

from conftest import auth_headers_for


@pytest.fixture
def request_store(repositories):
    """Stateful request repository behaviour on top of the mock."""
    store = {}

    def insert(entity):
        store[entity.id] = entity
        return entity

    def get(request_id):
        return store.get(request_id)

    def assign_if_unassigned(request_id, volunteer_id, assigned_at):
        current = store.get(request_id)
        if current is None or current.assigned_volunteer_id is not None or current.status != "pending":
            return None
        store[request_id] = current.model_copy(update={
            "assigned_volunteer_id": volunteer_id,
            "status": "assigned",
            "assigned_at": assigned_at,
        })
        return store[request_id]

    def set_status(request_id, status, assignee_id=None):
        current = store.get(request_id)
        if current is None or (assignee_id and current.assigned_volunteer_id != assignee_id):
            return None
        store[request_id] = current.model_copy(update={"status": status})
        return store[request_id]

    repositories.requests.insert.side_effect = insert
    repositories.requests.get.side_effect = get
    repositories.requests.assign_if_unassigned.side_effect = assign_if_unassigned
    repositories.requests.set_status.side_effect = set_status
    return store


@pytest.fixture
def notifications(repositories):
    """Every notification persisted during the test."""
    sent = []

    def insert(entity):
        sent.append(entity)
        return entity

    repositories.notifications.insert.side_effect = insert
    return sent


class TestFoodRequestLifecycle:
    """Citizen asks for food, a logistics volunteer delivers it."""

    def test_create_assign_complete(self, app, client, repositories, request_store, notifications,
                                    citizen, volunteer):
        repositories.users.get.side_effect = {citizen.id: citizen, volunteer.id: volunteer}.get

        created = client.post('/api/requests', headers=auth_headers_for(app, citizen), json={
            "type": "food",
            "title": "Need rice",
            "description": "Family of 4 without food for 2 days",
            "address": {"city": "Chittagong", "district": "Chittagong", "division": "Chittagong"},
        })

        assert created.status_code == 201
        assert created.get_json()["status"] == "pending"
        request_id = created.get_json()["requestId"]

        assigned = client.post(f'/api/requests/{request_id}/assign', headers=auth_headers_for(app, volunteer))

        assert assigned.status_code == 200
        assert assigned.get_json()["request"]["status"] == "assigned"
        assert assigned.get_json()["request"]["assignedVolunteerId"] == volunteer.id
        assert [n.type for n in notifications] == ["request_assigned"]
        assert notifications[0].recipient_id == citizen.id

        completed = client.post(
            f'/api/requests/{request_id}/status',
            headers=auth_headers_for(app, volunteer),
            json={"status": "completed", "notes": "Delivered 10kg rice"}
        )

        assert completed.status_code == 200
        assert completed.get_json()["request"]["status"] == "completed"
        assert request_store[request_id].status == "completed"
        assert notifications[-1].type == "request_updated"
        assert notifications[-1].recipient_id == citizen.id
        assert "completed" in notifications[-1].message

    def test_second_volunteer_loses_the_race(self, app, client, repositories, request_store, notifications,
                                              citizen, volunteer):
        other = volunteer.model_copy(update={"id": "5f0000000000000000000001", "email": "other@example.com"})
        repositories.users.get.side_effect = {citizen.id: citizen, volunteer.id: volunteer, other.id: other}.get

        created = client.post('/api/requests', headers=auth_headers_for(app, citizen), json={
            "type": "clothes",
            "title": "Winter clothes",
            "description": "Children need warm clothes after the flood",
            "address": {"city": "Chittagong", "district": "Chittagong", "division": "Chittagong"},
        })
        request_id = created.get_json()["requestId"]

        first = client.post(f'/api/requests/{request_id}/assign', headers=auth_headers_for(app, volunteer))
        second = client.post(f'/api/requests/{request_id}/assign', headers=auth_headers_for(app, other))

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.get_json()["error"] == "Request already assigned"
        assert request_store[request_id].assigned_volunteer_id == volunteer.id
        assert len(notifications) == 1

        hijack = client.post(
            f'/api/requests/{request_id}/status',
            headers=auth_headers_for(app, other),
            json={"status": "completed"}
        )

        assert hijack.status_code == 403
        assert request_store[request_id].status == "assigned"
