# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the relief coordination platform.
"""

from datetime import datetime
from typing import List, Optional, Dict, Any
from pydantic import Field, field_validator, model_validator
from .base import BaseEntity, CamelModel
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
    VOLUNTEER_ROLES,
)

PRIORITY_RANK = {
    RequestPriority.LOW.value: 1,
    RequestPriority.MEDIUM.value: 2,
    RequestPriority.HIGH.value: 3,
    RequestPriority.URGENT.value: 4,
}


class Address(CamelModel):
    """Postal address embedded in users, requests and shelters."""

    street: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    division: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    landmark: Optional[str] = Field(None, max_length=200)


class User(BaseEntity):
    """Account record. Only approved users may authenticate."""

    email: str = Field(..., description="Login email, stored lower-case")
    password_hash: str = Field(..., description="bcrypt digest")
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = Field(default=UserRole.USER)
    status: UserStatus = Field(default=UserStatus.PENDING)
    volunteer_type: Optional[VolunteerType] = None
    sector: Optional[Sector] = None
    experience: Optional[str] = Field(None, max_length=1000)
    address: Address = Field(default_factory=Address)
    nid: Optional[str] = None
    phone: Optional[str] = None
    profession: Optional[str] = Field(None, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=150)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Store email trimmed and lower-cased."""
        return v.strip().lower()

    @property
    def is_volunteer(self) -> bool:
        return self.role in VOLUNTEER_ROLES

    def to_public(self) -> Dict[str, Any]:
        """Serialize without the password digest."""
        data = super().to_public()
        data.pop("passwordHash", None)
        return data


class GeoPoint(CamelModel):
    """GeoJSON point, coordinates are ``[longitude, latitude]``."""

    type: str = Field(default="Point")
    coordinates: List[float] = Field(..., min_length=2, max_length=2)

    @field_validator('coordinates')
    @classmethod
    def validate_coordinates(cls, v):
        lon, lat = v
        if not -180 <= lon <= 180:
            raise ValueError('Longitude must be between -180 and 180')
        if not -90 <= lat <= 90:
            raise ValueError('Latitude must be between -90 and 90')
        return v


class HelpRequest(BaseEntity):
    """A citizen-submitted help ticket."""

    user_id: str = Field(..., description="Owner user ID")
    type: RequestType
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    address: Address
    location: Optional[GeoPoint] = None
    priority: RequestPriority = Field(default=RequestPriority.MEDIUM)
    status: RequestStatus = Field(default=RequestStatus.PENDING)
    assigned_volunteer_id: Optional[str] = None
    assigned_at: Optional[datetime] = None

    @property
    def priority_rank(self) -> int:
        return PRIORITY_RANK[self.priority]

    def to_document(self) -> Dict[str, Any]:
        """Stored form carries a numeric priority rank used for ordering."""
        document = super().to_document()
        document["priorityRank"] = self.priority_rank
        return document


class ShelterContact(CamelModel):
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None


class Shelter(BaseEntity):
    """Relief facility with occupancy tracking."""

    name: str = Field(..., min_length=1, max_length=200)
    capacity: int = Field(..., ge=0)
    current_occupancy: int = Field(default=0, ge=0)
    address: Address
    contact: ShelterContact
    facilities: List[str] = Field(default_factory=list)
    status: ShelterStatus = Field(default=ShelterStatus.ACTIVE)

    @model_validator(mode='after')
    def validate_occupancy(self):
        """Occupancy may never exceed capacity."""
        if self.current_occupancy > self.capacity:
            raise ValueError('Occupancy cannot exceed capacity')
        return self

    @property
    def available_capacity(self) -> int:
        return self.capacity - self.current_occupancy

    @property
    def is_full(self) -> bool:
        return self.current_occupancy >= self.capacity

    def to_public(self) -> Dict[str, Any]:
        data = super().to_public()
        data["availableCapacity"] = self.available_capacity
        data["isFull"] = self.is_full
        return data


class Notification(BaseEntity):
    """Persisted in-app message addressed to a single user."""

    recipient_id: str
    type: NotificationType = Field(default=NotificationType.GENERAL)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=1000)
    link: Optional[str] = None
    is_read: bool = Field(default=False)
    read_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class Principal(CamelModel):
    """Authenticated caller as decoded from the session token."""

    user_id: str
    role: UserRole
    status: UserStatus
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_volunteer(self) -> bool:
        return self.role in VOLUNTEER_ROLES

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED.value
