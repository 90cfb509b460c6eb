# SPDX-License-Identifier: Apache-2.0

"""
Shelter administration endpoints.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from ..middleware.auth import require_roles
from ..middleware.error_handler import CustomException
from ..models.entities import Principal
from ..models.enums import UserRole
from ..models.requests import ShelterPath
from ..utils.request import RequestParser
from ..utils.response import success_response, error_response, exception_response

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

shelters_tag = Tag(name="Shelters", description="Relief shelter administration")
shelters_bp = APIBlueprint(
    'shelters',
    __name__,
    url_prefix='/api/admin/shelters',
    abp_tags=[shelters_tag]
)

ADMIN = UserRole.ADMIN.value


@shelters_bp.get('')
@require_roles(ADMIN)
def list_shelters(principal: Principal):
    """List shelters, optionally filtered by status."""
    with tracer.start_as_current_span("shelters.list", attributes={"user.id": principal.user_id}) as span:
        try:
            pagination = RequestParser.get_pagination_params(default_limit=50)
            result = current_app.shelter_service.list(
                status=RequestParser.get_arg('status'),
                page=pagination['page'],
                limit=pagination['limit']
            )

            span.set_status(Status(StatusCode.OK))
            return success_response(result)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error("Unexpected error listing shelters", extra={"error": str(e)}, exc_info=True)
            return error_response("Failed to fetch shelters", 500)


@shelters_bp.post('')
@require_roles(ADMIN)
def create_shelter(principal: Principal):
    """Create a shelter."""
    with tracer.start_as_current_span("shelters.create", attributes={"user.id": principal.user_id}) as span:
        try:
            data = RequestParser.parse_json_body()
            shelter = current_app.shelter_service.create(data)

            span.set_attribute("shelter.id", shelter.id)
            span.set_status(Status(StatusCode.OK))
            return success_response({
                "shelter": shelter.to_public(),
                "message": "Shelter created successfully"
            }, 201)

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error("Unexpected error creating shelter", extra={"error": str(e)}, exc_info=True)
            return error_response("Failed to create shelter", 500)


@shelters_bp.get('/<shelter_id>')
@require_roles(ADMIN)
def get_shelter(principal: Principal, path: ShelterPath):
    with tracer.start_as_current_span("shelters.get", attributes={"shelter.id": path.shelter_id}) as span:
        try:
            shelter = current_app.shelter_service.get(path.shelter_id)

            span.set_status(Status(StatusCode.OK))
            return success_response({"shelter": shelter.to_public()})

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error fetching shelter",
                extra={"shelter_id": path.shelter_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to fetch shelter", 500)


@shelters_bp.put('/<shelter_id>')
@require_roles(ADMIN)
def update_shelter(principal: Principal, path: ShelterPath):
    """Update a shelter; address and contact are merged key by key."""
    with tracer.start_as_current_span("shelters.update", attributes={"shelter.id": path.shelter_id}) as span:
        try:
            data = RequestParser.parse_json_body()
            shelter = current_app.shelter_service.update(path.shelter_id, data)

            span.set_status(Status(StatusCode.OK))
            return success_response({
                "shelter": shelter.to_public(),
                "message": "Shelter updated successfully"
            })

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error updating shelter",
                extra={"shelter_id": path.shelter_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to update shelter", 500)


@shelters_bp.delete('/<shelter_id>')
@require_roles(ADMIN)
def delete_shelter(principal: Principal, path: ShelterPath):
    with tracer.start_as_current_span("shelters.delete", attributes={"shelter.id": path.shelter_id}) as span:
        try:
            current_app.shelter_service.delete(path.shelter_id)

            span.set_status(Status(StatusCode.OK))
            return success_response({"message": "Shelter deleted successfully"})

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error deleting shelter",
                extra={"shelter_id": path.shelter_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to delete shelter", 500)
