# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
JSON response envelope helpers.

Every response body carries a ``success`` flag; errors add an ``error``
message and, for composite validation failures, the ``errors`` list.
"""

from typing import Any, Dict, List, Optional, Tuple
from flask import jsonify, Response


def success_response(payload: Optional[Dict[str, Any]] = None, status_code: int = 200) -> Tuple[Response, int]:
    body = {"success": True}
    if payload:
        body.update(payload)
    return jsonify(body), status_code


def build_error_body(message: str, errors: Optional[List[str]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    if errors:
        body["errors"] = list(errors)
    return body


def error_response(message: str, status_code: int, errors: Optional[List[str]] = None) -> Tuple[Response, int]:
    return jsonify(build_error_body(message, errors)), status_code


def exception_response(error) -> Tuple[Response, int]:
    """Convert an application exception into its error envelope."""
    return error_response(error.message, error.status_code, getattr(error, "validation_errors", None))
