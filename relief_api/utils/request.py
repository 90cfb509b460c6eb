# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request utilities for extracting and processing request data.
"""

from flask import request
from pydantic import BaseModel, ValidationError
from typing import Dict, Any, Optional, Type, TypeVar
import logging

from ..middleware.error_handler import ValidationException

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

TRUE_VALUES = ('true', '1', 'yes', 'on')


class RequestParser:
    """Utility for parsing and extracting request data."""

    @staticmethod
    def get_pagination_params(
        default_page: int = 1,
        default_limit: int = 20,
        max_limit: int = 100
    ) -> Dict[str, int]:
        """
        Extract ``page`` and ``limit`` query parameters.

        Malformed values fall back to the defaults; ``limit`` is clamped
        between 1 and ``max_limit``.
        """
        try:
            page = int(request.args.get('page', default_page))
            page = max(1, page)
        except (ValueError, TypeError):
            page = default_page

        try:
            limit = int(request.args.get('limit', default_limit))
            limit = max(1, min(limit, max_limit))
        except (ValueError, TypeError):
            limit = default_limit

        return {
            'page': page,
            'limit': limit
        }

    @staticmethod
    def get_arg(name: str) -> Optional[str]:
        """Query parameter with blank values treated as absent."""
        value = request.args.get(name, '').strip()
        return value or None

    @staticmethod
    def get_bool_arg(name: str) -> bool:
        return request.args.get(name, '').strip().lower() in TRUE_VALUES

    @staticmethod
    def parse_json_body() -> Dict[str, Any]:
        """
        Parse the JSON request body.

        A missing or unparseable body yields an empty dict so that the
        field-level validators report what is missing.

        Raises:
            ValidationException: If the body is JSON but not an object
        """
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationException("Request body must be a JSON object")
        return data

    @staticmethod
    def parse_model(model: Type[ModelT]) -> ModelT:
        """
        Parse the JSON body into a pydantic model.

        Raises:
            ValidationException: If a field has the wrong type
        """
        data = RequestParser.parse_json_body()
        try:
            return model.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
                for item in e.errors()
            ]
            logger.warning("Request body validation failed", extra={"validation_errors": errors})
            raise ValidationException("Invalid request body", errors)
