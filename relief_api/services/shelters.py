# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Shelter administration service.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from opentelemetry import trace

from ..domain.validation import coerce_count, validate_shelter_payload
from ..middleware.error_handler import NotFoundException, ValidationException
from ..models.entities import Shelter
from .repositories import ShelterRepository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

EDITABLE_FIELDS = ("name", "capacity", "currentOccupancy", "address", "contact", "facilities", "status")
MERGED_FIELDS = ("address", "contact")
COUNT_FIELDS = ("capacity", "currentOccupancy")


def _entity_errors(error: ValidationError):
    """Flatten pydantic errors into plain messages."""
    messages = []
    for item in error.errors():
        message = item.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        location = ".".join(str(part) for part in item.get("loc", ()))
        messages.append(f"{location}: {message}" if location else message)
    return messages


class ShelterService:
    """CRUD over shelters with field-level validation."""

    def __init__(self, shelters: ShelterRepository):
        self.shelters = shelters

    def _build(self, data: Dict[str, Any], existing: Optional[Shelter] = None) -> Shelter:
        data = dict(data)
        for name in COUNT_FIELDS:
            if name in data:
                data[name] = coerce_count(data[name])

        result = validate_shelter_payload(data)
        if not result.is_valid:
            raise ValidationException.from_errors(result.errors)

        try:
            if existing is None:
                return Shelter.model_validate(data)
            return Shelter.model_validate({**data, "id": existing.id, "createdAt": existing.created_at})
        except ValidationError as e:
            raise ValidationException.from_errors(_entity_errors(e))

    def list(self, status: Optional[str] = None, page: int = 1, limit: int = 50) -> Dict[str, Any]:
        query = {"status": status} if status else {}
        result = self.shelters.paginate(query, page, limit)
        return {
            "shelters": [shelter.to_public() for shelter in result.items],
            "pagination": result.to_pagination(),
        }

    def get(self, shelter_id: str) -> Shelter:
        shelter = self.shelters.get(shelter_id)
        if shelter is None:
            raise NotFoundException("Shelter not found")
        return shelter

    def create(self, data: Dict[str, Any]) -> Shelter:
        """
        Raises:
            ValidationException: Missing fields, bad address or contact,
                or occupancy above capacity
        """
        with tracer.start_as_current_span("shelter.create"):
            payload = {name: data[name] for name in EDITABLE_FIELDS if name in data}
            shelter = self.shelters.insert(self._build(payload))
            logger.info("Shelter created", extra={"shelter_id": shelter.id, "capacity": shelter.capacity})
            return shelter

    def update(self, shelter_id: str, data: Dict[str, Any]) -> Shelter:
        """Merge the supplied fields onto the stored shelter and re-validate."""
        with tracer.start_as_current_span("shelter.update", attributes={"shelter.id": shelter_id}):
            existing = self.get(shelter_id)

            merged = existing.model_dump(by_alias=True, exclude={"id", "created_at", "updated_at"})
            for name in EDITABLE_FIELDS:
                if name not in data:
                    continue
                if name in MERGED_FIELDS and isinstance(data[name], dict):
                    merged[name] = {**(merged.get(name) or {}), **data[name]}
                else:
                    merged[name] = data[name]

            shelter = self._build(merged, existing)
            fields = shelter.to_document()
            fields.pop("createdAt", None)

            updated = self.shelters.update_fields(shelter_id, fields)
            if updated is None:
                raise NotFoundException("Shelter not found")

            logger.info("Shelter updated", extra={"shelter_id": shelter_id, "fields": sorted(data.keys())})
            return updated

    def delete(self, shelter_id: str) -> None:
        with tracer.start_as_current_span("shelter.delete", attributes={"shelter.id": shelter_id}):
            if not self.shelters.delete(shelter_id):
                raise NotFoundException("Shelter not found")
            logger.info("Shelter deleted", extra={"shelter_id": shelter_id})
