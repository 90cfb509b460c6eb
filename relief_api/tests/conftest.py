# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.

Repositories are MagicMocks specced on the real classes, so the Flask app
runs without a MongoDB server.
"""

import pytest
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

from relief_api.app import create_app
from relief_api.models.entities import Address, HelpRequest, Principal, User
from relief_api.services.auth import AuthService, generate_key_pair
from relief_api.services.repositories import (
    HelpRequestRepository,
    NotificationRepository,
    PaginationResult,
    Repositories,
    ShelterRepository,
    UserRepository,
)

TEST_PASSWORD = "Secret123"


@pytest.fixture(scope="session")
def jwt_keys():
    """One RSA key pair for the whole run; generation is slow."""
    return generate_key_pair()


@pytest.fixture
def test_config(jwt_keys) -> Dict[str, Any]:
    private_key, public_key = jwt_keys
    return {
        "ENVIRONMENT": "test",
        "TESTING": True,
        "JWT_PRIVATE_KEY": private_key,
        "JWT_PUBLIC_KEY": public_key,
        "BCRYPT_ROUNDS": 4,
        "OTEL_ENABLED": False,
        "DOCS_ENABLED": False,
        "SESSION_COOKIE_SECURE": False,
        "CORS_ALLOWED_ORIGINS": ["https://relief.example.org"],
    }


@pytest.fixture
def repositories() -> Repositories:
    """Mock repositories with empty defaults for collection queries."""
    repos = Repositories(
        users=MagicMock(spec=UserRepository),
        requests=MagicMock(spec=HelpRequestRepository),
        shelters=MagicMock(spec=ShelterRepository),
        notifications=MagicMock(spec=NotificationRepository),
    )
    repos.users.get_summaries.return_value = {}
    repos.users.find_ids.return_value = []
    repos.notifications.insert.side_effect = lambda entity: entity
    repos.notifications.insert_many.side_effect = lambda entities: len(entities)
    for repository in (repos.users, repos.requests, repos.shelters, repos.notifications):
        repository.paginate.return_value = PaginationResult([], 0, 1, 20)
    return repos


@pytest.fixture
def app(test_config, repositories):
    application = create_app(test_config, repositories=repositories)
    yield application


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def auth_service(repositories, jwt_keys) -> AuthService:
    private_key, public_key = jwt_keys
    return AuthService(repositories.users, private_key, public_key, bcrypt_rounds=4)


def make_user(
    role: str = "user",
    status: str = "approved",
    sector: Optional[str] = None,
    district: str = "Chittagong",
    email: Optional[str] = None,
    name: str = "Test User",
    **kwargs
) -> User:
    """Build a user entity without touching the database."""
    user = User(
        email=email or f"{role}@example.com",
        password_hash=kwargs.pop("password_hash", "$2b$04$placeholder"),
        name=name,
        role=role,
        status=status,
        sector=sector,
        address=Address(city=district, district=district, division=district),
        **kwargs
    )
    return user


def make_request(
    owner_id: str,
    type: str = "food",
    priority: str = "medium",
    status: str = "pending",
    assigned_volunteer_id: Optional[str] = None,
) -> HelpRequest:
    return HelpRequest(
        user_id=owner_id,
        type=type,
        title="Need rice",
        description="Family of 4 without food for 2 days",
        address=Address(city="Chittagong", district="Chittagong", division="Chittagong"),
        priority=priority,
        status=status,
        assigned_volunteer_id=assigned_volunteer_id,
    )


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, role=user.role, status=user.status, email=user.email, name=user.name)


def auth_headers_for(app, user: User) -> Dict[str, str]:
    """Bearer headers carrying a session token for ``user``."""
    token = app.auth_service.issue_session_token(user)["token"]
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}


@pytest.fixture
def citizen() -> User:
    return make_user(role="user", email="citizen@example.com", name="Karim")


@pytest.fixture
def volunteer() -> User:
    return make_user(role="volunteer", sector="logistics", email="volunteer@example.com", name="Rahim")


@pytest.fixture
def emergency_volunteer() -> User:
    return make_user(role="emergency_volunteer", sector="rescue", email="emergency@example.com", name="Sumi")


@pytest.fixture
def admin() -> User:
    return make_user(role="admin", email="admin@example.com", name="Admin")
