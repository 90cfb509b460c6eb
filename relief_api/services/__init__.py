# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - persistence and side-effecting operations.
"""

from .mongodb import MongoDBService
from .repositories import (
    HelpRequestRepository,
    NotificationRepository,
    PaginationResult,
    Repositories,
    ShelterRepository,
    UserRepository,
)

__all__ = [
    "MongoDBService",
    "PaginationResult",
    "Repositories",
    "UserRepository",
    "HelpRequestRepository",
    "ShelterRepository",
    "NotificationRepository",
]
