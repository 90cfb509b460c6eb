# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Collection repositories.

Each repository wraps one MongoDB collection and converts between stored
camelCase documents and pydantic entities. Repositories are built once
by the application factory and passed to the services that need them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError
from bson import ObjectId

from ..models.base import BaseEntity, utc_now
from ..models.entities import HelpRequest, Notification, Shelter, User
from ..models.enums import RequestStatus
from .mongodb import (
    MongoDBService,
    NOTIFICATIONS,
    REQUESTS,
    SHELTERS,
    USERS,
    normalize_document,
    to_object_id,
)

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseEntity)

Sort = Sequence[Tuple[str, int]]
NEWEST_FIRST: Sort = [("createdAt", -1)]


class DuplicateRecordError(ValueError):
    """Raised when an insert violates a unique index."""


class PaginationResult(Generic[EntityT]):
    """Result container for paginated queries."""

    def __init__(self, items: List[EntityT], total: int, page: int, page_size: int):
        self.items = items
        self.total = total
        self.page = page
        self.page_size = page_size
        self.total_pages = (total + page_size - 1) // page_size if page_size else 0
        self.has_next = page < self.total_pages
        self.has_prev = page > 1

    def to_pagination(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "limit": self.page_size,
            "total": self.total,
            "pages": self.total_pages,
        }


class MongoRepository(Generic[EntityT]):
    """Generic CRUD over a single collection."""

    collection_name: str = ""
    entity_class: Type[EntityT]

    def __init__(self, mongodb_service: MongoDBService):
        self.mongodb_service = mongodb_service

    @property
    def collection(self) -> Collection:
        return self.mongodb_service.get_collection(self.collection_name)

    def _to_entity(self, document: Optional[Dict[str, Any]]) -> Optional[EntityT]:
        if document is None:
            return None
        return self.entity_class.model_validate(normalize_document(document))

    def insert(self, entity: EntityT) -> EntityT:
        """Insert a new entity and return it."""
        document = entity.to_document()
        document["_id"] = ObjectId(entity.id)

        try:
            self.collection.insert_one(document)
        except DuplicateKeyError as e:
            logger.error(f"Duplicate key error in {self.collection_name}: {e}")
            raise DuplicateRecordError("Document with this identifier already exists")
        except Exception as e:
            logger.error(f"Failed to create document in {self.collection_name}: {e}")
            raise

        logger.info(f"Created document in {self.collection_name}: {entity.id}")
        return entity

    def insert_many(self, entities: List[EntityT]) -> int:
        """Bulk insert; returns the number of inserted documents."""
        if not entities:
            return 0

        documents = []
        for entity in entities:
            document = entity.to_document()
            document["_id"] = ObjectId(entity.id)
            documents.append(document)

        try:
            result = self.collection.insert_many(documents)
        except Exception as e:
            logger.error(f"Failed to bulk insert into {self.collection_name}: {e}")
            raise

        logger.info(f"Created {len(result.inserted_ids)} documents in {self.collection_name}")
        return len(result.inserted_ids)

    def get(self, doc_id: str) -> Optional[EntityT]:
        """Find a single entity by ID. Malformed IDs are treated as unknown."""
        try:
            object_id = to_object_id(doc_id)
        except ValueError as e:
            logger.debug(f"Invalid document ID {doc_id}: {e}")
            return None

        try:
            return self._to_entity(self.collection.find_one({"_id": object_id}))
        except Exception as e:
            logger.error(f"Failed to find document {doc_id} in {self.collection_name}: {e}")
            raise

    def find_one(self, query: Dict[str, Any]) -> Optional[EntityT]:
        try:
            return self._to_entity(self.collection.find_one(query))
        except Exception as e:
            logger.error(f"Failed to query {self.collection_name}: {e}")
            raise

    def paginate(
        self,
        query: Dict[str, Any],
        page: int = 1,
        page_size: int = 20,
        sort: Sort = NEWEST_FIRST,
    ) -> PaginationResult[EntityT]:
        """Paginate documents matching ``query``."""
        try:
            skip = (page - 1) * page_size
            total = self.collection.count_documents(query)
            cursor = self.collection.find(query).sort(list(sort)).skip(skip).limit(page_size)
            items = [self._to_entity(document) for document in cursor]

            logger.debug(f"Paginated {len(items)} documents from {self.collection_name} (page {page})")
            return PaginationResult(items, total, page, page_size)

        except Exception as e:
            logger.error(f"Failed to paginate documents in {self.collection_name}: {e}")
            raise

    def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        try:
            return self.collection.count_documents(query or {})
        except Exception as e:
            logger.error(f"Failed to count documents in {self.collection_name}: {e}")
            raise

    def update_fields(
        self,
        doc_id: str,
        fields: Dict[str, Any],
        conditions: Optional[Dict[str, Any]] = None,
    ) -> Optional[EntityT]:
        """
        Atomically set ``fields`` on one document.

        ``conditions`` are added to the ID match, so the write only happens
        when the stored document still satisfies them. Returns the updated
        entity, or ``None`` when nothing matched.
        """
        try:
            object_id = to_object_id(doc_id)
        except ValueError as e:
            logger.debug(f"Invalid document ID {doc_id}: {e}")
            return None

        query = {"_id": object_id}
        if conditions:
            query.update(conditions)

        updates = dict(fields)
        updates["updatedAt"] = utc_now()

        try:
            document = self.collection.find_one_and_update(
                query,
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            logger.error(f"Failed to update document {doc_id} in {self.collection_name}: {e}")
            raise

        if document is None:
            logger.debug(f"No document updated for {doc_id} in {self.collection_name}")
        return self._to_entity(document)

    def update_many(self, query: Dict[str, Any], fields: Dict[str, Any]) -> int:
        updates = dict(fields)
        updates["updatedAt"] = utc_now()

        try:
            result = self.collection.update_many(query, {"$set": updates})
        except Exception as e:
            logger.error(f"Failed to update documents in {self.collection_name}: {e}")
            raise

        return result.modified_count

    def delete(self, doc_id: str) -> bool:
        """Hard delete a document by ID."""
        try:
            object_id = to_object_id(doc_id)
        except ValueError as e:
            logger.debug(f"Invalid document ID {doc_id}: {e}")
            return False

        try:
            result = self.collection.delete_one({"_id": object_id})
        except Exception as e:
            logger.error(f"Failed to delete document {doc_id} in {self.collection_name}: {e}")
            raise

        if result.deleted_count > 0:
            logger.warning(f"Deleted document {doc_id} in {self.collection_name}")
            return True
        return False

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            return list(self.collection.aggregate(pipeline))
        except Exception as e:
            logger.error(f"Failed to run aggregation in {self.collection_name}: {e}")
            raise

    def count_by(self, field: str) -> Dict[str, int]:
        """Group documents by ``field`` and count each group."""
        results = self.aggregate([
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        ])
        return {str(row["_id"]): row["count"] for row in results if row.get("_id") is not None}


class UserRepository(MongoRepository[User]):
    collection_name = USERS
    entity_class = User

    def find_by_email(self, email: str) -> Optional[User]:
        return self.find_one({"email": email.strip().lower()})

    def find_ids(self, query: Dict[str, Any]) -> List[str]:
        """IDs of all users matching ``query``."""
        try:
            return [str(document["_id"]) for document in self.collection.find(query, {"_id": 1})]
        except Exception as e:
            logger.error(f"Failed to resolve user IDs: {e}")
            raise

    def get_summaries(self, user_ids: List[str], fields: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        """
        Fetch a projection of several users keyed by ID.

        Used to embed owner and volunteer contact details in request
        listings without exposing password digests.
        """
        object_ids = []
        for user_id in set(user_ids):
            try:
                object_ids.append(to_object_id(user_id))
            except ValueError:
                continue

        if not object_ids:
            return {}

        projection = {name: 1 for name in fields}
        try:
            documents = self.collection.find({"_id": {"$in": object_ids}}, projection)
            return {
                document["id"]: document
                for document in (normalize_document(d) for d in documents)
            }
        except Exception as e:
            logger.error(f"Failed to fetch user summaries: {e}")
            raise


class HelpRequestRepository(MongoRepository[HelpRequest]):
    collection_name = REQUESTS
    entity_class = HelpRequest

    def assign_if_unassigned(self, request_id: str, volunteer_id: str, assigned_at: datetime) -> Optional[HelpRequest]:
        """
        Assign a volunteer only if the request is still pending and has no
        assignee, as a single conditional write.
        """
        return self.update_fields(
            request_id,
            {
                "assignedVolunteerId": volunteer_id,
                "status": RequestStatus.ASSIGNED.value,
                "assignedAt": assigned_at,
            },
            conditions={
                "assignedVolunteerId": None,
                "status": RequestStatus.PENDING.value,
            },
        )

    def set_status(self, request_id: str, status: str, assignee_id: Optional[str] = None) -> Optional[HelpRequest]:
        """Overwrite the status, optionally only while ``assignee_id`` holds the request."""
        conditions = {"assignedVolunteerId": assignee_id} if assignee_id else None
        return self.update_fields(request_id, {"status": status}, conditions=conditions)


class ShelterRepository(MongoRepository[Shelter]):
    collection_name = SHELTERS
    entity_class = Shelter

    def capacity_totals(self) -> Dict[str, int]:
        results = self.aggregate([
            {"$group": {
                "_id": None,
                "totalCapacity": {"$sum": "$capacity"},
                "totalOccupancy": {"$sum": "$currentOccupancy"},
            }},
        ])
        if not results:
            return {"totalCapacity": 0, "totalOccupancy": 0}
        return {
            "totalCapacity": results[0].get("totalCapacity", 0),
            "totalOccupancy": results[0].get("totalOccupancy", 0),
        }


class NotificationRepository(MongoRepository[Notification]):
    collection_name = NOTIFICATIONS
    entity_class = Notification

    def mark_read(self, notification_id: str, recipient_id: str) -> Optional[Notification]:
        """Mark one notification read; only matches the recipient's own."""
        return self.update_fields(
            notification_id,
            {"isRead": True, "readAt": utc_now()},
            conditions={"recipientId": recipient_id},
        )

    def mark_all_read(self, recipient_id: str) -> int:
        return self.update_many(
            {"recipientId": recipient_id, "isRead": False},
            {"isRead": True, "readAt": utc_now()},
        )


@dataclass
class Repositories:
    """All repositories used by the services."""
    users: UserRepository
    requests: HelpRequestRepository
    shelters: ShelterRepository
    notifications: NotificationRepository

    @classmethod
    def from_mongodb(cls, mongodb_service: MongoDBService) -> "Repositories":
        return cls(
            users=UserRepository(mongodb_service),
            requests=HelpRequestRepository(mongodb_service),
            shelters=ShelterRepository(mongodb_service),
            notifications=NotificationRepository(mongodb_service),
        )
