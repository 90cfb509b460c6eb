#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Create or promote the bootstrap admin account.

Reads ``ADMIN_EMAIL``, ``ADMIN_PASSWORD`` and ``ADMIN_NAME`` from the
environment. An existing account with that email is promoted to an
approved admin and its password is reset.

Run with ``python -m relief_api.scripts.seed_admin``.
"""

import os
import sys
import logging
from typing import Optional

from relief_api.config import load_config
from relief_api.domain.validation import validate_email, validate_password
from relief_api.models.entities import Address, User
from relief_api.models.enums import UserRole, UserStatus
from relief_api.services.auth import AuthService
from relief_api.services.mongodb import MongoDBService
from relief_api.services.repositories import UserRepository

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ADDRESS = Address(city="Dhaka", district="Dhaka", division="Dhaka")


def seed_admin(users: UserRepository, auth_service: AuthService, email: str, password: str,
               name: Optional[str] = None) -> User:
    """Insert the admin account or promote the existing one."""
    email = email.strip().lower()
    password_hash = auth_service.hash_password(password)

    existing = users.find_by_email(email)
    if existing is not None:
        updated = users.update_fields(existing.id, {
            "role": UserRole.ADMIN.value,
            "status": UserStatus.APPROVED.value,
            "passwordHash": password_hash,
        })
        logger.info(f"Promoted existing account to admin: {email}")
        return updated

    admin = User(
        email=email,
        password_hash=password_hash,
        name=name or "Administrator",
        role=UserRole.ADMIN.value,
        status=UserStatus.APPROVED.value,
        address=DEFAULT_ADMIN_ADDRESS,
    )
    users.insert(admin)
    logger.info(f"Created admin account: {email}")
    return admin


def main():
    email = os.getenv('ADMIN_EMAIL', '')
    password = os.getenv('ADMIN_PASSWORD', '')

    if not validate_email(email):
        logger.error("ADMIN_EMAIL must be a valid email address")
        sys.exit(1)

    password_check = validate_password(password)
    if not password_check.is_valid:
        logger.error(f"ADMIN_PASSWORD rejected: {'; '.join(password_check.errors)}")
        sys.exit(1)

    config = load_config()
    mongodb_service = MongoDBService.from_config(config)
    try:
        users = UserRepository(mongodb_service)
        auth_service = AuthService(
            users,
            config['JWT_PRIVATE_KEY'],
            config['JWT_PUBLIC_KEY'],
            bcrypt_rounds=config['BCRYPT_ROUNDS']
        )
        seed_admin(users, auth_service, email, password, os.getenv('ADMIN_NAME'))
    except Exception as e:
        logger.error(f"Failed to seed admin account: {e}")
        sys.exit(1)
    finally:
        mongodb_service.close_connection()


if __name__ == "__main__":
    main()
