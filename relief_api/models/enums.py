# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the relief coordination platform.
"""

from enum import Enum


class UserRole(str, Enum):
    """Account roles."""
    USER = "user"
    VOLUNTEER = "volunteer"
    EMERGENCY_VOLUNTEER = "emergency_volunteer"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Account approval status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VolunteerType(str, Enum):
    PERMANENT = "permanent"
    EMERGENCY = "emergency"


class Sector(str, Enum):
    """Volunteer specialization. Closed set; unknown values are rejected."""
    MEDICAL = "medical"
    RESCUE = "rescue"
    LOGISTICS = "logistics"
    FOOD = "food"
    SHELTER = "shelter"


class RequestType(str, Enum):
    """Help request categories."""
    RESCUE = "rescue"
    MEDICAL = "medical"
    FOOD = "food"
    CLOTHES = "clothes"
    SHELTER = "shelter"
    OTHER = "other"


class RequestPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RequestStatus(str, Enum):
    """Help request lifecycle status."""
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ShelterStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    FULL = "full"


class NotificationType(str, Enum):
    """Notification categories."""
    BROADCAST = "broadcast"
    REQUEST_ASSIGNED = "request_assigned"
    REQUEST_UPDATED = "request_updated"
    ACCOUNT_APPROVED = "account_approved"
    ACCOUNT_REJECTED = "account_rejected"
    GENERAL = "general"


class BroadcastAudience(str, Enum):
    """Target audiences for admin broadcasts."""
    ALL = "all"
    VOLUNTEERS = "volunteers"
    USERS = "users"
    REGION = "region"


VOLUNTEER_ROLES = frozenset({UserRole.VOLUNTEER.value, UserRole.EMERGENCY_VOLUNTEER.value})
