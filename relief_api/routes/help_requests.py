# SPDX-License-Identifier: Apache-2.0

"""
Help request endpoints.

Creation, role-scoped listing, detail view, volunteer assignment and
status updates. Every handler converts its own exceptions into the JSON
error envelope.
"""

from flask import current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from ..domain.help_requests import RequestListFilters
from ..middleware.auth import require_auth
from ..middleware.error_handler import CustomException
from ..models.entities import Principal
from ..models.requests import RequestPath, AssignRequest, UpdateStatusRequest
from ..utils.request import RequestParser
from ..utils.response import success_response, error_response, exception_response

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

requests_tag = Tag(name="Requests", description="Help request lifecycle")
requests_bp = APIBlueprint(
    'help_requests',
    __name__,
    url_prefix='/api/requests',
    abp_tags=[requests_tag]
)


@requests_bp.post('')
@require_auth
def create_request(principal: Principal):
    """
    Submit a help request.

    Any authenticated principal may create a request; it starts pending
    with the caller as owner.
    """
    with tracer.start_as_current_span(
        "requests.create",
        attributes={"user.id": principal.user_id, "operation": "create_request"}
    ) as span:
        try:
            data = RequestParser.parse_json_body()
            help_request = current_app.help_request_service.create(principal, data)

            span.set_attribute("request.id", help_request.id)
            span.set_status(Status(StatusCode.OK))
            return success_response({
                "requestId": help_request.id,
                "status": help_request.status,
                "message": "Request submitted successfully. Volunteers in your area will be notified."
            }, 201)

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            logger.warning(
                "Help request creation rejected",
                extra={"user_id": principal.user_id, "error": e.message}
            )
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error creating help request",
                extra={"user_id": principal.user_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to create request", 500)


@requests_bp.get('')
@require_auth
def list_requests(principal: Principal):
    """
    List help requests visible to the caller.

    Citizens see their own requests, volunteers see open requests in their
    sector and district, admins see everything. Ordered by priority then
    creation time.
    """
    with tracer.start_as_current_span(
        "requests.list",
        attributes={"user.id": principal.user_id, "user.role": principal.role}
    ) as span:
        try:
            pagination = RequestParser.get_pagination_params(default_limit=20)
            filters = RequestListFilters(
                status=RequestParser.get_arg('status'),
                type=RequestParser.get_arg('type'),
                priority=RequestParser.get_arg('priority'),
                area=RequestParser.get_arg('area'),
            )

            result = current_app.help_request_service.list(
                principal, filters, pagination['page'], pagination['limit']
            )

            span.set_attribute("result.total", result["pagination"]["total"])
            span.set_status(Status(StatusCode.OK))
            return success_response(result)

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error listing help requests",
                extra={"user_id": principal.user_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to fetch requests", 500)


@requests_bp.get('/<request_id>')
@require_auth
def get_request(principal: Principal, path: RequestPath):
    """Get a single help request."""
    with tracer.start_as_current_span(
        "requests.get",
        attributes={"user.id": principal.user_id, "request.id": path.request_id}
    ) as span:
        try:
            help_request = current_app.help_request_service.detail(principal, path.request_id)

            span.set_status(Status(StatusCode.OK))
            return success_response({"request": help_request})

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error fetching help request",
                extra={"user_id": principal.user_id, "request_id": path.request_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to fetch request", 500)


@requests_bp.post('/<request_id>/assign')
@require_auth
def assign_request(principal: Principal, path: RequestPath):
    """
    Accept a pending request.

    Volunteers assign themselves; admins may name another volunteer with
    ``volunteerId``.
    """
    with tracer.start_as_current_span(
        "requests.assign",
        attributes={"user.id": principal.user_id, "request.id": path.request_id}
    ) as span:
        try:
            body = RequestParser.parse_model(AssignRequest)
            help_request = current_app.help_request_service.assign(
                principal, path.request_id, body.volunteer_id
            )

            span.set_status(Status(StatusCode.OK))
            return success_response({
                "message": "Request assigned successfully",
                "request": {
                    "id": help_request.id,
                    "status": help_request.status,
                    "assignedVolunteerId": help_request.assigned_volunteer_id,
                    "assignedAt": help_request.assigned_at.isoformat() if help_request.assigned_at else None
                }
            })

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            logger.warning(
                "Help request assignment rejected",
                extra={"user_id": principal.user_id, "request_id": path.request_id, "error": e.message}
            )
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error assigning help request",
                extra={"user_id": principal.user_id, "request_id": path.request_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to assign request", 500)


@requests_bp.post('/<request_id>/status')
@require_auth
def update_request_status(principal: Principal, path: RequestPath):
    """Advance a request to in_progress, completed or rejected."""
    with tracer.start_as_current_span(
        "requests.update_status",
        attributes={"user.id": principal.user_id, "request.id": path.request_id}
    ) as span:
        try:
            body = RequestParser.parse_model(UpdateStatusRequest)
            help_request = current_app.help_request_service.update_status(
                principal, path.request_id, body.status, body.notes
            )

            span.set_attribute("request.status", help_request.status)
            span.set_status(Status(StatusCode.OK))
            return success_response({
                "message": "Request status updated successfully",
                "request": {
                    "id": help_request.id,
                    "status": help_request.status,
                    "updatedAt": help_request.updated_at.isoformat()
                }
            })

        except CustomException as e:
            span.set_status(Status(StatusCode.ERROR, e.message))
            logger.warning(
                "Help request status update rejected",
                extra={"user_id": principal.user_id, "request_id": path.request_id, "error": e.message}
            )
            return exception_response(e)

        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.error(
                "Unexpected error updating help request status",
                extra={"user_id": principal.user_id, "request_id": path.request_id, "error": str(e)},
                exc_info=True
            )
            return error_response("Failed to update request status", 500)
