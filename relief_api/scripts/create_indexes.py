#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Create the MongoDB indexes used by the relief API.

Run with ``python -m relief_api.scripts.create_indexes``. The resulting
index names are logged per collection so a deploy log shows what exists.
"""

import sys
import logging
from typing import Dict, List

from relief_api.config import load_config
from relief_api.services.mongodb import (
    NOTIFICATIONS,
    REQUESTS,
    SHELTERS,
    USERS,
    MongoDBService,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

RELIEF_COLLECTIONS = (USERS, REQUESTS, SHELTERS, NOTIFICATIONS)


def describe_indexes(mongodb_service: MongoDBService) -> Dict[str, List[str]]:
    """Index names per relief collection, excluding the default ``_id_``."""
    return {
        name: sorted(
            index for index in mongodb_service.get_collection(name).index_information()
            if index != '_id_'
        )
        for name in RELIEF_COLLECTIONS
    }


def main() -> int:
    mongodb_service = MongoDBService.from_config(load_config())
    try:
        health = mongodb_service.health_check()
        if health['status'] != 'healthy':
            logger.error(f"MongoDB unreachable, no indexes created: {health.get('error')}")
            return 1

        logger.info(f"Creating indexes on {health['database']} (MongoDB {health['version']})")
        mongodb_service.create_indexes()

        for collection, indexes in describe_indexes(mongodb_service).items():
            logger.info(f"{collection}: {', '.join(indexes) or 'no secondary indexes'}")
        return 0
    except Exception as e:
        logger.error(f"Index creation failed: {e}")
        return 1
    finally:
        mongodb_service.close_connection()


if __name__ == "__main__":
    sys.exit(main())
