# SPDX-License-Identifier: Apache-2.0

"""
Input validation helpers.

Pure functions checking email, phone and national-ID formats, password
strength and address completeness. Composite validators collect every
violation instead of stopping at the first one.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..models.enums import (
    RequestPriority,
    RequestType,
    Sector,
    ShelterStatus,
    UserRole,
    VolunteerType,
)

EMAIL_PATTERN = re.compile(r'^\S+@\S+\.\S+$')
PHONE_PATTERN = re.compile(r'^01[0-9]{9}$')
NID_PATTERN = re.compile(r'^(\d{10}|\d{13}|\d{17})$')
INTEGER_PATTERN = re.compile(r'^\s*-?\d+\s*$')

REQUIRED_ADDRESS_FIELDS = ("city", "district", "division")
SIGNUP_ROLES = (UserRole.USER.value, UserRole.VOLUNTEER.value, UserRole.EMERGENCY_VOLUNTEER.value)


@dataclass
class ValidationResult:
    """Result of a validation pass."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def sanitize_string(value: Any, max_length: int = 1000) -> str:
    """Trim surrounding whitespace and cap the length."""
    if value is None:
        return ""
    return str(value).strip()[:max_length]


def validate_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email.strip()))


def validate_password(password: Any) -> ValidationResult:
    """
    Check password strength.

    Requires at least 6 characters with one upper-case letter, one
    lower-case letter and one digit.
    """
    if not isinstance(password, str) or not password:
        return ValidationResult.from_errors(['Password is required'])

    errors = []
    if len(password) < 6:
        errors.append('Password must be at least 6 characters long')
    if not re.search(r'[A-Z]', password):
        errors.append('Password must contain at least one uppercase letter')
    if not re.search(r'[a-z]', password):
        errors.append('Password must contain at least one lowercase letter')
    if not re.search(r'\d', password):
        errors.append('Password must contain at least one number')
    return ValidationResult.from_errors(errors)


def validate_phone(phone: Any) -> bool:
    """Phone is optional; when given it must be 11 digits starting with 01."""
    if _is_blank(phone):
        return True
    return isinstance(phone, str) and bool(PHONE_PATTERN.match(phone.strip()))


def validate_nid(nid: Any) -> bool:
    """National ID is optional; when given it must be 10, 13 or 17 digits."""
    if _is_blank(nid):
        return True
    return isinstance(nid, str) and bool(NID_PATTERN.match(nid.strip()))


def validate_address(address: Any) -> ValidationResult:
    if not isinstance(address, dict):
        return ValidationResult.from_errors(['Address is required'])

    errors = [
        f'Address {name} is required'
        for name in REQUIRED_ADDRESS_FIELDS
        if _is_blank(address.get(name))
    ]
    return ValidationResult.from_errors(errors)


def validate_location(location: Any) -> List[str]:
    """Check an optional GeoJSON point. Returns a list of errors."""
    if location is None:
        return []
    if not isinstance(location, dict):
        return ['Location must be an object']

    coordinates = location.get('coordinates')
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
        return ['Location coordinates must be [longitude, latitude]']

    lon, lat = coordinates
    if isinstance(lon, bool) or isinstance(lat, bool) or not all(isinstance(c, (int, float)) for c in (lon, lat)):
        return ['Location coordinates must be numbers']

    errors = []
    if not -180 <= lon <= 180:
        errors.append('Longitude must be between -180 and 180')
    if not -90 <= lat <= 90:
        errors.append('Latitude must be between -90 and 90')
    return errors


def validate_request_payload(data: Dict[str, Any]) -> ValidationResult:
    """Validate a help request creation payload."""
    errors = []

    if data.get('type') not in {t.value for t in RequestType}:
        errors.append('Valid request type is required')

    title = data.get('title')
    if not isinstance(title, str) or len(title.strip()) < 3:
        errors.append('Title must be at least 3 characters')

    description = data.get('description')
    if not isinstance(description, str) or len(description.strip()) < 10:
        errors.append('Description must be at least 10 characters')

    errors.extend(validate_address(data.get('address')).errors)

    priority = data.get('priority')
    if priority is not None and priority not in {p.value for p in RequestPriority}:
        errors.append('Invalid priority')

    errors.extend(validate_location(data.get('location')))

    return ValidationResult.from_errors(errors)


def validate_signup_payload(data: Dict[str, Any]) -> ValidationResult:
    """Validate a self-registration payload."""
    missing = [name for name in ('email', 'password', 'name', 'role') if _is_blank(data.get(name))]
    if missing or data.get('address') is None:
        return ValidationResult.from_errors(['Missing required fields'])

    errors = []
    if not validate_email(data['email']):
        errors.append('Invalid email format')

    errors.extend(validate_password(data['password']).errors)

    if not validate_phone(data.get('phone')):
        errors.append('Phone must be 11 digits starting with 01')

    if not validate_nid(data.get('nid')):
        errors.append('NID must be 10, 13, or 17 digits')

    errors.extend(validate_address(data['address']).errors)

    role = data['role']
    if role not in SIGNUP_ROLES:
        errors.append('Invalid role')
    elif role != UserRole.USER.value:
        sector = data.get('sector')
        if _is_blank(sector):
            errors.append('Sector is required for volunteers')
        elif sector not in {s.value for s in Sector}:
            errors.append('Invalid sector')

        volunteer_type = data.get('volunteerType')
        if volunteer_type is not None and volunteer_type not in {v.value for v in VolunteerType}:
            errors.append('Invalid volunteer type')

    age = data.get('age')
    if age is not None and (isinstance(age, bool) or not isinstance(age, int) or not 0 <= age <= 150):
        errors.append('Age must be between 0 and 150')

    return ValidationResult.from_errors(errors)


def _is_non_negative_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def coerce_count(value: Any) -> Any:
    """Turn an integer-valued string such as ``"50"`` into an int; other values pass through."""
    if isinstance(value, str) and INTEGER_PATTERN.match(value):
        return int(value)
    return value


def validate_shelter_payload(data: Dict[str, Any]) -> ValidationResult:
    """
    Validate a complete shelter payload.

    Updates are merged onto the stored shelter before being checked here.
    """
    required = ('name', 'capacity', 'address', 'contact')
    if any(_is_blank(data.get(name)) for name in required) or data.get('capacity') == 0:
        return ValidationResult.from_errors(['Missing required fields'])

    errors = []

    if not _is_non_negative_number(data.get('capacity')):
        errors.append('Capacity must be a non-negative number')

    if 'currentOccupancy' in data and not _is_non_negative_number(data.get('currentOccupancy')):
        errors.append('Current occupancy must be a non-negative number')

    errors.extend(validate_address(data['address']).errors)

    contact = data['contact']
    if not isinstance(contact, dict) or _is_blank(contact.get('phone')):
        errors.append('Contact phone is required')

    if 'facilities' in data and not isinstance(data.get('facilities'), list):
        errors.append('Facilities must be a list')

    status = data.get('status')
    if status is not None and status not in {s.value for s in ShelterStatus}:
        errors.append('Invalid shelter status')

    return ValidationResult.from_errors(errors)
