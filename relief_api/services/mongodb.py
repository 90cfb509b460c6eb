# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB connection management with connection pooling and index setup.
"""

import logging
from typing import Any, Dict, Optional
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from bson import ObjectId
from bson.errors import InvalidId

logger = logging.getLogger(__name__)

USERS = "users"
REQUESTS = "requests"
SHELTERS = "shelters"
NOTIFICATIONS = "notifications"


def to_object_id(doc_id: str) -> ObjectId:
    """Validate and convert string ID to ObjectId."""
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        raise ValueError(f"Invalid ObjectId format: {doc_id}")


def normalize_document(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Replace ``_id`` with a string ``id`` for JSON serialization."""
    if document is not None and "_id" in document:
        document["id"] = str(document.pop("_id"))
    return document


class MongoDBService:
    """MongoDB client owner with connection pooling."""

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        max_pool_size: int = 10,
        min_pool_size: int = 1,
        max_idle_time_ms: int = 30000,
        server_selection_timeout_ms: int = 5000,
    ):
        """Initialize MongoDB service; the client connects lazily."""
        self.connection_string = connection_string
        self.database_name = database_name
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

        # Connection pool settings
        self.max_pool_size = max_pool_size
        self.min_pool_size = min_pool_size
        self.max_idle_time_ms = max_idle_time_ms
        self.server_selection_timeout_ms = server_selection_timeout_ms

        logger.info(f"MongoDB service initialized for database: {self.database_name}")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MongoDBService":
        return cls(
            connection_string=config["MONGODB_URI"],
            database_name=config["MONGODB_DATABASE"],
            max_pool_size=config.get("MONGODB_MAX_POOL_SIZE", 10),
            min_pool_size=config.get("MONGODB_MIN_POOL_SIZE", 1),
            server_selection_timeout_ms=config.get("MONGODB_SERVER_SELECTION_TIMEOUT_MS", 5000),
        )

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True,
                    tz_aware=True,
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                self._client = None
                raise

        return self._client

    @property
    def database(self) -> Database:
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.client.admin.command('ping')
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
            }
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }

    # Index Management

    def create_indexes(self) -> None:
        """Create uniqueness and query indexes for all collections."""
        try:
            logger.info("Creating MongoDB indexes...")

            users = self.get_collection(USERS)
            users.create_index("email", unique=True)
            users.create_index([("status", ASCENDING), ("role", ASCENDING)])
            users.create_index("address.division")

            requests = self.get_collection(REQUESTS)
            requests.create_index([("priorityRank", DESCENDING), ("createdAt", DESCENDING)])
            requests.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
            requests.create_index([("status", ASCENDING), ("type", ASCENDING), ("address.district", ASCENDING)])
            requests.create_index("assignedVolunteerId")

            shelters = self.get_collection(SHELTERS)
            shelters.create_index([("status", ASCENDING), ("createdAt", DESCENDING)])

            notifications = self.get_collection(NOTIFICATIONS)
            notifications.create_index([("recipientId", ASCENDING), ("createdAt", DESCENDING)])
            notifications.create_index([("recipientId", ASCENDING), ("isRead", ASCENDING)])

            logger.info("MongoDB indexes created successfully")

        except Exception as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise
