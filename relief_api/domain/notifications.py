# SPDX-License-Identifier: Apache-2.0

"""
Notification content and audience rules.

Pure builders for the notifications emitted as side effects of request
and account mutations, plus the recipient query used by broadcasts.
"""

from typing import Any, Dict, List, Optional

from ..models.entities import HelpRequest, Notification
from ..models.enums import (
    BroadcastAudience,
    NotificationType,
    UserRole,
    UserStatus,
)
from .help_requests import build_status_message
from .validation import ValidationResult

USER_DASHBOARD_LINK = "/dashboard/user"
DASHBOARD_LINK = "/dashboard"
BROADCAST_TITLE = "System Broadcast"


def build_assignment_notification(help_request: HelpRequest, volunteer_id: str, volunteer_name: str) -> Notification:
    """Notification telling the owner a volunteer accepted the request."""
    return Notification(
        recipient_id=help_request.user_id,
        type=NotificationType.REQUEST_ASSIGNED.value,
        title="Request Assigned",
        message=(
            f'A volunteer ({volunteer_name}) has accepted your "{help_request.type}" request. '
            "They will contact you soon."
        ),
        link=USER_DASHBOARD_LINK,
        metadata={
            "requestId": help_request.id,
            "volunteerId": volunteer_id,
            "requestType": help_request.type,
        },
    )


def build_status_notification(
    help_request: HelpRequest,
    old_status: str,
    new_status: str,
    notes: Optional[str] = None,
) -> Notification:
    return Notification(
        recipient_id=help_request.user_id,
        type=NotificationType.REQUEST_UPDATED.value,
        title="Request Status Update",
        message=build_status_message(help_request.type, new_status, notes),
        link=USER_DASHBOARD_LINK,
        metadata={
            "requestId": help_request.id,
            "oldStatus": old_status,
            "newStatus": new_status,
            "requestType": help_request.type,
            "notes": notes,
        },
    )


def build_account_notification(user_id: str, approved: bool, reason: Optional[str] = None) -> Notification:
    """Notification for an admin approval decision."""
    if approved:
        return Notification(
            recipient_id=user_id,
            type=NotificationType.ACCOUNT_APPROVED.value,
            title="Account Approved!",
            message="Congratulations! Your account has been approved. You can now access all features.",
            link=DASHBOARD_LINK,
        )

    reason = (reason or "").strip()
    detail = f"Reason: {reason}" if reason else "Please contact support for more information."
    return Notification(
        recipient_id=user_id,
        type=NotificationType.ACCOUNT_REJECTED.value,
        title="Account Status",
        message=f"Your account application was not approved. {detail}",
        metadata={"reason": reason or None},
    )


def validate_broadcast(message: Optional[str], audience: Optional[str], region: Optional[str]) -> ValidationResult:
    if not (message or "").strip() or not audience:
        return ValidationResult.from_errors(["Message and audience are required"])

    if audience not in {a.value for a in BroadcastAudience}:
        return ValidationResult.from_errors(["Invalid audience type"])

    if audience == BroadcastAudience.REGION.value and not (region or "").strip():
        return ValidationResult.from_errors(["Region is required for regional broadcasts"])

    return ValidationResult.from_errors([])


def build_audience_query(audience: str, region: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the recipient query for a broadcast.

    Only approved accounts receive broadcasts. The ``region`` audience
    matches the user's division exactly.
    """
    query: Dict[str, Any] = {"status": UserStatus.APPROVED.value}

    if audience == BroadcastAudience.VOLUNTEERS.value:
        query["role"] = {"$in": [UserRole.VOLUNTEER.value, UserRole.EMERGENCY_VOLUNTEER.value]}
    elif audience == BroadcastAudience.USERS.value:
        query["role"] = UserRole.USER.value
    elif audience == BroadcastAudience.REGION.value:
        query["address.division"] = region

    return query


def build_broadcast_notifications(
    recipient_ids: List[str],
    message: str,
    audience: str,
    sent_by: str,
    region: Optional[str] = None,
    title: Optional[str] = None,
) -> List[Notification]:
    metadata = {"audience": audience, "region": region, "sentBy": sent_by}
    return [
        Notification(
            recipient_id=recipient_id,
            type=NotificationType.BROADCAST.value,
            title=title or BROADCAST_TITLE,
            message=message,
            metadata=dict(metadata),
        )
        for recipient_id in recipient_ids
    ]
