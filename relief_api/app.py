"""
Relief Coordination API - Flask Application Entry Point

This module builds the Flask application with OpenAPI 3.0 support,
configures middleware, and wires the repositories and services used by
the disaster-relief coordination routes.
"""

import logging
from typing import Any, Dict, Optional
from flask import jsonify, make_response
from flask_openapi3 import OpenAPI, Info, Tag
from pydantic import ValidationError

from .config import load_config, validate_environment
from .observability.config import setup_observability
from .observability.middleware import add_observability_middleware

# Import middleware and utilities
from .middleware.auth import AuthMiddleware
from .middleware.cors import configure_cors
from .middleware.error_handler import ErrorHandlerMiddleware
from .models.base import utc_now
from .services.admin import AdminService
from .services.auth import AuthService
from .services.help_requests import HelpRequestService
from .services.mongodb import MongoDBService
from .services.notifications import NotificationDispatcher, NotificationInbox
from .services.repositories import Repositories
from .services.shelters import ShelterService
from .utils.response import build_error_body

logger = logging.getLogger(__name__)

# OpenAPI info
info = Info(
    title="Relief Coordination API",
    version="1.0.0",
    description="Disaster-relief coordination: help requests, volunteer assignment, shelters and notifications"
)

health_tag = Tag(name="Health", description="System health and status")


def _validation_error_callback(error: ValidationError):
    """Format path and query validation failures like every other 400."""
    errors = [
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    ]
    return make_response(jsonify(build_error_body("Invalid request", errors)), 400)


def create_app(
    config: Optional[Dict[str, Any]] = None,
    repositories: Optional[Repositories] = None,
    mongodb_service: Optional[MongoDBService] = None,
) -> OpenAPI:
    """
    Build the Flask application.

    Args:
        config: Overrides applied on top of the environment configuration
        repositories: Pre-built repositories; built from MongoDB when omitted
        mongodb_service: MongoDB connection owner used for repositories and health

    Returns:
        Configured application
    """
    app_config = load_config()
    if config:
        app_config.update(config)

    # Initialize observability first
    setup_observability(app_config)
    validate_environment(app_config)

    # Create Flask app with OpenAPI
    app = OpenAPI(
        __name__,
        info=info,
        doc_ui=app_config['DOCS_ENABLED'],
        validation_error_status=400,
        validation_error_callback=_validation_error_callback
    )
    app.config.update(app_config)

    # Add observability middleware
    add_observability_middleware(app, instrument=app.config['OTEL_ENABLED'])

    # Initialize persistence
    if repositories is None:
        if mongodb_service is None:
            mongodb_service = MongoDBService.from_config(app.config)
        repositories = Repositories.from_mongodb(mongodb_service)

    # Initialize services
    auth_service = AuthService(
        repositories.users,
        app.config['JWT_PRIVATE_KEY'],
        app.config['JWT_PUBLIC_KEY'],
        session_max_age_days=app.config['SESSION_MAX_AGE_DAYS'],
        bcrypt_rounds=app.config['BCRYPT_ROUNDS']
    )
    dispatcher = NotificationDispatcher(repositories.notifications, repositories.users)

    # Make services available to routes
    app.mongodb_service = mongodb_service
    app.repositories = repositories
    app.auth_service = auth_service
    app.auth_middleware = AuthMiddleware(auth_service, app.config['SESSION_COOKIE_NAME'])
    app.notification_dispatcher = dispatcher
    app.notification_inbox = NotificationInbox(repositories.notifications, dispatcher)
    app.help_request_service = HelpRequestService(repositories.requests, repositories.users, dispatcher)
    app.admin_service = AdminService(repositories, dispatcher)
    app.shelter_service = ShelterService(repositories.shelters)

    # Initialize middleware
    ErrorHandlerMiddleware(app)
    configure_cors(app, allow_credentials=True)

    # Register routes
    from .routes.auth import auth_bp
    from .routes.help_requests import requests_bp
    from .routes.admin import admin_bp
    from .routes.shelters import shelters_bp
    from .routes.notifications import notifications_bp

    app.register_api(auth_bp)
    app.register_api(requests_bp)
    app.register_api(admin_bp)
    app.register_api(shelters_bp)
    app.register_api(notifications_bp)

    @app.get('/api/healthz', tags=[health_tag])
    def health_check():
        """Service health with MongoDB connectivity."""
        health = {
            "status": "healthy",
            "service": "relief-api",
            "version": app.config['SERVICE_VERSION'],
            "environment": app.config['ENVIRONMENT'],
            "timestamp": utc_now().isoformat()
        }

        if app.mongodb_service is not None:
            database = app.mongodb_service.health_check()
            health["dependencies"] = {"mongodb": database}
            if database.get("status") != "healthy":
                health["status"] = "unhealthy"

        status_code = 200 if health["status"] == "healthy" else 503
        return jsonify(health), status_code

    logger.info(
        "Application created",
        extra={"environment": app.config['ENVIRONMENT'], "docs_enabled": app.config['DOCS_ENABLED']}
    )
    return app


if __name__ == '__main__':
    # Development server
    application = create_app()
    application.run(
        host='0.0.0.0',
        port=application.config['PORT'],
        debug=application.config['DEBUG']
    )
