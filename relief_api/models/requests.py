# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.

Body models keep every field optional so that missing values surface
through the service-level validators with their specific messages.
"""

from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
from .base import CamelModel


# Path parameters

class RequestPath(BaseModel):
    request_id: str = Field(..., description="Help request ID")


class UserPath(BaseModel):
    user_id: str = Field(..., description="User ID")


class ShelterPath(BaseModel):
    shelter_id: str = Field(..., description="Shelter ID")


class NotificationPath(BaseModel):
    notification_id: str = Field(..., description="Notification ID")


# Bodies

class LoginRequest(BaseModel):
    """Request model for user login."""

    email: str = Field(default="", description="User email address")
    password: str = Field(default="", description="User password")

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class AssignRequest(CamelModel):
    """Optional explicit assignee, honoured for admins only."""

    volunteer_id: Optional[str] = None


class UpdateStatusRequest(CamelModel):
    status: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)


class RejectUserRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)


class BroadcastRequest(CamelModel):
    """Admin broadcast payload."""

    message: Optional[str] = Field(None, max_length=1000)
    audience: Optional[str] = None
    region: Optional[str] = Field(None, max_length=100)
    title: Optional[str] = Field(None, max_length=200)


class CreateNotificationRequest(CamelModel):
    """Admin-issued notification to a single recipient."""

    recipient_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=200)
    message: Optional[str] = Field(None, max_length=1000)
    type: Optional[str] = None
    link: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
