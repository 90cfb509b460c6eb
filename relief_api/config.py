# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Application configuration read from environment variables.
"""

import os
import logging
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MONGODB_URI = 'mongodb://localhost:27017'
DEFAULT_DATABASE = 'relief_dev'


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() == 'true'


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, default))
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer for {name}, using default", extra={"default": default})
        return default


def _env_list(env: Mapping[str, str], name: str) -> List[str]:
    return [item.strip() for item in env.get(name, '').split(',') if item.strip()]


def _env_pem(env: Mapping[str, str], name: str) -> Optional[str]:
    # Deployment dashboards store PEM keys with escaped newlines
    value = env.get(name)
    return value.replace('\\n', '\n') if value else None


def load_config(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Build the Flask config dictionary from the environment."""
    env = os.environ if env is None else env
    environment = env.get('ENVIRONMENT', 'development')

    return {
        # Environment configuration
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'DOCS_ENABLED': _env_bool(env, 'DOCS_ENABLED', True),
        'LOG_LEVEL': env.get('LOG_LEVEL'),
        'SERVICE_VERSION': env.get('SERVICE_VERSION', '1.0.0'),
        'PORT': _env_int(env, 'PORT', 5000),

        # Database configuration
        'MONGODB_URI': env.get('MONGODB_URI', DEFAULT_MONGODB_URI),
        'MONGODB_DATABASE': env.get('MONGODB_DATABASE', DEFAULT_DATABASE),
        'MONGODB_MAX_POOL_SIZE': _env_int(env, 'MONGODB_MAX_POOL_SIZE', 10),

        # Security configuration
        'JWT_PRIVATE_KEY': _env_pem(env, 'JWT_PRIVATE_KEY'),
        'JWT_PUBLIC_KEY': _env_pem(env, 'JWT_PUBLIC_KEY'),
        'SESSION_MAX_AGE_DAYS': _env_int(env, 'SESSION_MAX_AGE_DAYS', 30),
        'SESSION_COOKIE_NAME': env.get('SESSION_COOKIE_NAME', 'relief_session'),
        'SESSION_COOKIE_SECURE': _env_bool(env, 'SESSION_COOKIE_SECURE', environment == 'production'),
        'BCRYPT_ROUNDS': _env_int(env, 'BCRYPT_ROUNDS', 12),

        # CORS
        'FRONTEND_URL': env.get('FRONTEND_URL'),
        'CORS_ALLOWED_ORIGINS': _env_list(env, 'CORS_ALLOWED_ORIGINS'),
        'CORS_ALLOW_ALL_ORIGINS': _env_bool(env, 'CORS_ALLOW_ALL_ORIGINS', False),

        # Observability
        'OTEL_ENABLED': _env_bool(env, 'OTEL_ENABLED', False),
        'OTEL_EXPORTER_OTLP_ENDPOINT': env.get('OTEL_EXPORTER_OTLP_ENDPOINT'),
        'OTEL_API_KEY': env.get('OTEL_API_KEY'),
    }


def validate_environment(config: Mapping[str, Any]) -> List[str]:
    """
    Report missing or unsafe settings.

    Problems are logged as warnings; in production they are fatal.

    Returns:
        List of problems found

    Raises:
        RuntimeError: Any problem found while running in production
    """
    problems = []
    production = config.get('ENVIRONMENT') == 'production'

    if not config.get('JWT_PRIVATE_KEY') or not config.get('JWT_PUBLIC_KEY'):
        problems.append('JWT_PRIVATE_KEY and JWT_PUBLIC_KEY must be set')

    if production:
        if config.get('MONGODB_URI') == DEFAULT_MONGODB_URI:
            problems.append('MONGODB_URI must point at a production cluster')
        if not config.get('SESSION_COOKIE_SECURE'):
            problems.append('SESSION_COOKIE_SECURE must be enabled in production')
        if config.get('CORS_ALLOW_ALL_ORIGINS'):
            problems.append('CORS_ALLOW_ALL_ORIGINS must be disabled in production')

    for problem in problems:
        logger.warning(f"Configuration problem: {problem}")

    if production and problems:
        raise RuntimeError(f"Invalid production configuration: {'; '.join(problems)}")

    return problems
