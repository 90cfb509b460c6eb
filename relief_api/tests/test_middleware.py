# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for middleware functionality.
"""

import pytest
from flask import Flask, g
from werkzeug.exceptions import NotFound

from relief_api.config import load_config, validate_environment
from relief_api.middleware.auth import require_roles
from relief_api.middleware.cors import CORSMiddleware, configure_cors
from relief_api.middleware.error_handler import (
    AlreadyExistsException,
    AuthenticationException,
    AuthorizationException,
    ConflictException,
    ErrorHandlerMiddleware,
    NotFoundException,
    ValidationException,
)
from relief_api.utils.request import RequestParser

from conftest import auth_headers_for, make_user


class TestErrorHandlerMiddleware:
    """Test error taxonomy and framework error formatting."""

    def setup_method(self):
        self.app = Flask(__name__)
        self.error_handler = ErrorHandlerMiddleware(self.app)

        @self.app.route('/boom')
        def boom():
            raise RuntimeError("database password is hunter2")

        @self.app.route('/conflict')
        def conflict():
            raise ConflictException("Request already assigned")

    def test_status_codes(self):
        assert ValidationException("bad").status_code == 400
        assert AuthenticationException().status_code == 401
        assert AuthorizationException().status_code == 403
        assert NotFoundException("missing").status_code == 404
        assert ConflictException("taken").status_code == 400
        assert AlreadyExistsException("dup").status_code == 409

    def test_validation_exception_from_errors(self):
        error = ValidationException.from_errors(["first", "second"])

        assert error.message == "first"
        assert error.validation_errors == ["first", "second"]

    def test_unexpected_error_hides_details(self):
        response = self.app.test_client().get('/boom')

        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "Internal server error"}

    def test_uncaught_custom_exception(self):
        response = self.app.test_client().get('/conflict')

        assert response.status_code == 400
        assert response.get_json() == {"success": False, "error": "Request already assigned"}

    def test_unknown_route(self):
        with self.app.test_request_context('/nowhere'):
            body, status_code = self.error_handler.handle_http_exception(NotFound())

        assert status_code == 404
        assert body.get_json()["success"] is False


class TestCORSMiddleware:
    """Test CORS middleware functionality."""

    def setup_method(self):
        self.app = Flask(__name__)

        @self.app.route('/ping', methods=['GET', 'POST'])
        def ping():
            return "pong"

    def test_cors_configuration_from_app_config(self):
        self.app.config.update(ENVIRONMENT="development", CORS_ALLOWED_ORIGINS=["https://relief.example.org"])

        cors_middleware = configure_cors(self.app, allow_credentials=True)

        assert isinstance(cors_middleware, CORSMiddleware)
        assert "http://localhost:3000" in cors_middleware.allowed_origins
        assert "https://relief.example.org" in cors_middleware.allowed_origins

    def test_is_origin_allowed(self):
        cors_middleware = CORSMiddleware(
            self.app,
            allowed_origins=["http://localhost:3000", "https://relief-*"]
        )

        assert cors_middleware.is_origin_allowed("http://localhost:3000") is True
        assert cors_middleware.is_origin_allowed("https://relief-preview.vercel.app") is True
        assert cors_middleware.is_origin_allowed("http://malicious.com") is False
        assert cors_middleware.is_origin_allowed(None) is False

    def test_allow_all_origins(self):
        cors_middleware = CORSMiddleware(self.app, allowed_origins=["https://a.org"], allow_all_origins=True)

        assert cors_middleware.is_origin_allowed("https://anything.example") is True

    def test_preflight_request_handling(self):
        CORSMiddleware(self.app, allowed_origins=["http://localhost:3000"])
        client = self.app.test_client()

        allowed = client.options('/ping', headers={'Origin': 'http://localhost:3000'})
        rejected = client.options('/ping', headers={'Origin': 'http://malicious.com'})

        assert allowed.status_code == 204
        assert allowed.headers['Access-Control-Allow-Origin'] == "http://localhost:3000"
        assert allowed.headers['Access-Control-Allow-Credentials'] == 'true'
        assert rejected.status_code == 403

    def test_simple_request_headers(self):
        CORSMiddleware(self.app, allowed_origins=["http://localhost:3000"])
        client = self.app.test_client()

        allowed = client.get('/ping', headers={'Origin': 'http://localhost:3000'})
        other = client.get('/ping', headers={'Origin': 'http://malicious.com'})

        assert allowed.headers['Access-Control-Allow-Origin'] == "http://localhost:3000"
        assert 'Access-Control-Allow-Origin' not in other.headers


class TestRequestParser:
    """Test query and body parsing helpers."""

    def setup_method(self):
        self.app = Flask(__name__)

    def test_pagination_defaults_and_clamping(self):
        with self.app.test_request_context('/?page=0&limit=500'):
            assert RequestParser.get_pagination_params() == {'page': 1, 'limit': 100}

        with self.app.test_request_context('/?page=abc&limit=xyz'):
            assert RequestParser.get_pagination_params(default_limit=50) == {'page': 1, 'limit': 50}

    def test_args(self):
        with self.app.test_request_context('/?status=%20&unreadOnly=true&area=Sylhet'):
            assert RequestParser.get_arg('status') is None
            assert RequestParser.get_arg('area') == 'Sylhet'
            assert RequestParser.get_bool_arg('unreadOnly') is True
            assert RequestParser.get_bool_arg('readOnly') is False

    def test_json_body_must_be_object(self):
        with self.app.test_request_context('/', method='POST', json=[1, 2]):
            with pytest.raises(ValidationException, match="Request body must be a JSON object"):
                RequestParser.parse_json_body()

    def test_missing_body_is_empty(self):
        with self.app.test_request_context('/', method='POST'):
            assert RequestParser.parse_json_body() == {}


class TestAuthDecorators:
    """Test session enforcement through the application."""

    def test_missing_token(self, client):
        response = client.get('/api/auth/session')

        assert response.status_code == 401
        assert response.get_json() == {"success": False, "error": "Unauthorized"}

    def test_invalid_token(self, client):
        response = client.get('/api/auth/session', headers={"Authorization": "Bearer nonsense"})

        assert response.status_code == 401

    def test_pending_principal_is_refused(self, app, client):
        pending = make_user(status="pending")

        response = client.get('/api/auth/session', headers=auth_headers_for(app, pending))

        assert response.status_code == 403
        assert response.get_json()["error"] == "Account status: pending. Please wait for admin approval."

    def test_cookie_session(self, app, client, citizen):
        token = app.auth_service.issue_session_token(citizen)["token"]
        client.set_cookie(app.config["SESSION_COOKIE_NAME"], token)

        response = client.get('/api/auth/session')

        assert response.status_code == 200
        assert response.get_json()["user"]["id"] == citizen.id

    def test_role_gate(self, app, client, citizen):
        response = client.get('/api/admin/stats', headers=auth_headers_for(app, citizen))

        assert response.status_code == 403
        assert response.get_json()["error"] == "Forbidden"

    def test_decorators_raise_for_the_error_handler(self, app, citizen):
        @require_roles("admin")
        def admin_only(principal):
            return principal

        with app.test_request_context('/'):
            with pytest.raises(AuthenticationException):
                admin_only()

        with app.test_request_context('/', headers=auth_headers_for(app, citizen)):
            with pytest.raises(AuthorizationException, match="Forbidden"):
                admin_only()


class TestConfig:
    """Test environment configuration."""

    def test_defaults(self):
        config = load_config({})

        assert config['ENVIRONMENT'] == 'development'
        assert config['SESSION_MAX_AGE_DAYS'] == 30
        assert config['SESSION_COOKIE_NAME'] == 'relief_session'
        assert config['SESSION_COOKIE_SECURE'] is False
        assert config['OTEL_ENABLED'] is False
        assert config['CORS_ALLOWED_ORIGINS'] == []

    def test_parsing(self):
        config = load_config({
            'ENVIRONMENT': 'production',
            'CORS_ALLOWED_ORIGINS': 'https://a.org, https://b.org',
            'SESSION_MAX_AGE_DAYS': 'seven',
            'JWT_PUBLIC_KEY': '-----BEGIN PUBLIC KEY-----\\nabc\\n-----END PUBLIC KEY-----',
        })

        assert config['SESSION_COOKIE_SECURE'] is True
        assert config['CORS_ALLOWED_ORIGINS'] == ['https://a.org', 'https://b.org']
        assert config['SESSION_MAX_AGE_DAYS'] == 30
        assert config['JWT_PUBLIC_KEY'].count('\n') == 2

    def test_development_problems_are_warnings(self):
        assert validate_environment(load_config({})) == ['JWT_PRIVATE_KEY and JWT_PUBLIC_KEY must be set']

    def test_production_problems_are_fatal(self):
        with pytest.raises(RuntimeError, match="Invalid production configuration"):
            validate_environment(load_config({'ENVIRONMENT': 'production'}))
