# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the relief platform.
"""

# Base models
from .base import BaseEntity, CamelModel, generate_object_id, utc_now

# Enumerations
from .enums import (
    UserRole,
    UserStatus,
    VolunteerType,
    Sector,
    RequestType,
    RequestPriority,
    RequestStatus,
    ShelterStatus,
    NotificationType,
    BroadcastAudience,
    VOLUNTEER_ROLES,
)

# Core entities
from .entities import (
    Address,
    User,
    GeoPoint,
    HelpRequest,
    ShelterContact,
    Shelter,
    Notification,
    Principal,
    PRIORITY_RANK,
)

# Request models
from .requests import (
    RequestPath,
    UserPath,
    ShelterPath,
    NotificationPath,
    LoginRequest,
    AssignRequest,
    UpdateStatusRequest,
    RejectUserRequest,
    BroadcastRequest,
    CreateNotificationRequest,
)

__all__ = [
    "BaseEntity",
    "CamelModel",
    "generate_object_id",
    "utc_now",
    "UserRole",
    "UserStatus",
    "VolunteerType",
    "Sector",
    "RequestType",
    "RequestPriority",
    "RequestStatus",
    "ShelterStatus",
    "NotificationType",
    "BroadcastAudience",
    "VOLUNTEER_ROLES",
    "Address",
    "User",
    "GeoPoint",
    "HelpRequest",
    "ShelterContact",
    "Shelter",
    "Notification",
    "Principal",
    "PRIORITY_RANK",
    "RequestPath",
    "UserPath",
    "ShelterPath",
    "NotificationPath",
    "LoginRequest",
    "AssignRequest",
    "UpdateStatusRequest",
    "RejectUserRequest",
    "BroadcastRequest",
    "CreateNotificationRequest",
]
