# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and serialization helpers.

Stored documents and API payloads use camelCase keys, Python attributes
stay snake_case. The alias generator bridges the two.
"""

from datetime import datetime, timezone
from typing import Any, Dict
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from bson import ObjectId


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Model whose serialized form uses camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        # Allow population by field name or alias
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )


class BaseEntity(CamelModel):
    """Base entity with common fields for all persisted domain objects."""

    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update timestamp")

    def to_document(self) -> Dict[str, Any]:
        """Serialize to a camelCase document without the ``id`` key."""
        return self.model_dump(by_alias=True, exclude={"id"})

    def to_public(self) -> Dict[str, Any]:
        """Serialize for API responses."""
        return self.model_dump(by_alias=True, mode="json")
