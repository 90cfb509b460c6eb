# SPDX-License-Identifier: Apache-2.0

"""
Help request lifecycle rules.

Pure functions for building new requests, computing the role-scoped
visibility query used by listings, and rendering status-change messages.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Optional

from ..models.entities import Address, GeoPoint, HelpRequest, Principal, User
from ..models.enums import (
    RequestPriority,
    RequestStatus,
    RequestType,
    Sector,
    UserRole,
)
from .validation import sanitize_string

SECTOR_REQUEST_TYPES: Dict[str, FrozenSet[str]] = {
    Sector.MEDICAL.value: frozenset({RequestType.MEDICAL.value}),
    Sector.RESCUE.value: frozenset({RequestType.RESCUE.value}),
    Sector.LOGISTICS.value: frozenset({
        RequestType.FOOD.value,
        RequestType.CLOTHES.value,
        RequestType.SHELTER.value,
    }),
    Sector.FOOD.value: frozenset({RequestType.FOOD.value}),
    Sector.SHELTER.value: frozenset({RequestType.SHELTER.value}),
}

VOLUNTEER_VISIBLE_STATUSES = frozenset({
    RequestStatus.PENDING.value,
    RequestStatus.ASSIGNED.value,
    RequestStatus.IN_PROGRESS.value,
})

EMERGENCY_PRIORITIES = frozenset({RequestPriority.HIGH.value, RequestPriority.URGENT.value})

UPDATABLE_STATUSES = (
    RequestStatus.IN_PROGRESS.value,
    RequestStatus.COMPLETED.value,
    RequestStatus.REJECTED.value,
)

# Notes longer than this are cut so the rendered message fits a notification.
STATUS_NOTES_MAX_LENGTH = 900

# Highest priority first, newest first within a priority.
LIST_SORT = [("priorityRank", -1), ("createdAt", -1)]


@dataclass
class RequestListFilters:
    """Optional caller-supplied filters for request listings."""
    status: Optional[str] = None
    type: Optional[str] = None
    priority: Optional[str] = None
    area: Optional[str] = None


def build_help_request(data: Dict[str, Any], owner_id: str) -> HelpRequest:
    """
    Build a new pending request from an already validated payload.

    Strings are sanitized; the caller becomes the owner.
    """
    address = data.get('address') or {}
    location = data.get('location')

    return HelpRequest(
        user_id=owner_id,
        type=data['type'],
        title=sanitize_string(data['title'], 200),
        description=sanitize_string(data['description'], 2000),
        address=Address(
            street=sanitize_string(address.get('street'), 200) or None,
            city=sanitize_string(address.get('city'), 100),
            district=sanitize_string(address.get('district'), 100),
            division=sanitize_string(address.get('division'), 100),
            postal_code=sanitize_string(address.get('postalCode'), 20) or None,
            landmark=sanitize_string(address.get('landmark'), 200) or None,
        ),
        location=GeoPoint(coordinates=location['coordinates']) if location else None,
        priority=data.get('priority') or RequestPriority.MEDIUM.value,
        status=RequestStatus.PENDING.value,
    )


def _narrow(query: Dict[str, Any], field: str, allowed: Optional[Iterable[str]], requested: Optional[str]) -> None:
    """
    Apply a field restriction to ``query``.

    ``allowed`` is the role scope (``None`` means unrestricted). A requested
    value outside that scope yields an empty ``$in`` so it can never widen
    what the role may see.
    """
    if allowed is None:
        if requested:
            query[field] = requested
        return

    allowed = frozenset(allowed)
    if requested:
        query[field] = requested if requested in allowed else {"$in": []}
    else:
        query[field] = {"$in": sorted(allowed)}


def build_visibility_query(
    principal: Principal,
    filters: RequestListFilters,
    volunteer: Optional[User] = None,
) -> Dict[str, Any]:
    """
    Build the MongoDB filter for a role-scoped request listing.

    Args:
        principal: Authenticated caller
        filters: Optional caller-supplied filters
        volunteer: Stored user record of the caller, consulted for the
            sector and home district of volunteer roles

    Returns:
        MongoDB query document
    """
    query: Dict[str, Any] = {}

    if principal.role == UserRole.USER.value:
        query["userId"] = principal.user_id
        _narrow(query, "status", None, filters.status)
        _narrow(query, "type", None, filters.type)
        _narrow(query, "priority", None, filters.priority)
        return query

    if principal.is_volunteer:
        sector = volunteer.sector if volunteer else None
        _narrow(query, "type", SECTOR_REQUEST_TYPES.get(sector), filters.type)
        _narrow(query, "status", VOLUNTEER_VISIBLE_STATUSES, filters.status)

        priorities = EMERGENCY_PRIORITIES if principal.role == UserRole.EMERGENCY_VOLUNTEER.value else None
        _narrow(query, "priority", priorities, filters.priority)

        district = filters.area
        if not district and volunteer and volunteer.address:
            district = volunteer.address.district
        if district:
            query["address.district"] = district
        return query

    # Admin
    _narrow(query, "status", None, filters.status)
    _narrow(query, "type", None, filters.type)
    _narrow(query, "priority", None, filters.priority)
    return query


def build_status_message(request_type: str, status: str, notes: Optional[str] = None) -> str:
    """Render the owner-facing message for a status change."""
    notes = sanitize_string(notes, STATUS_NOTES_MAX_LENGTH)

    if status == RequestStatus.IN_PROGRESS.value:
        return f'Your "{request_type}" request is now in progress.'
    if status == RequestStatus.COMPLETED.value:
        return f'Great news! Your "{request_type}" request has been completed. {notes or "Thank you for using our service."}'
    if status == RequestStatus.REJECTED.value:
        detail = f"Reason: {notes}" if notes else "Please contact support for more information."
        return f'Your "{request_type}" request could not be completed. {detail}'
    return f'Your "{request_type}" request status changed to {status}.'
