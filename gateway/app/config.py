"""Configuration settings and environment variables.

This module loads values from environment variables (including a .env file)
and provides small helpers to safely parse integers and booleans while
stripping inline comments. This avoids crashes when a .env value contains
an inline comment like:

    MAIL_CONNECT_TIMEOUT=35 # seconds

The helpers fall back to defaults and emit warnings when parsing fails.
"""

import os
import logging
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_logger = logging.getLogger(__name__)


def _strip_inline_comment(val: str) -> str:
    """Strip an inline comment from a string and trim whitespace/quotes.

    Example: "636 # LDAPS" -> "636"
    """
    if val is None:
        return ''
    # Split on first '#' to remove inline comments
    val = val.split('#', 1)[0]
    val = val.strip()
    # Remove surrounding single/double quotes if present
    if (val.startswith('"') and val.endswith('"')) or (
        val.startswith("'") and val.endswith("'")
    ):
        val = val[1:-1]
    return val


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    stripped = _strip_inline_comment(raw)
    return stripped if stripped != '' else default


def _get_secret_env(name: str) -> Optional[str]:
    # Secrets may legitimately contain '#', so no comment stripping.
    raw = os.environ.get(name)
    return raw if raw else None


def _get_int_env(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (ValueError, TypeError):
        _logger.warning("Invalid integer for %s: %r, falling back to %s", name, raw, default)
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    raw = _get_env(name)
    if raw is None:
        return default
    return raw.lower() in ['true', '1', 'on', 'yes']


class Config:
    """Base configuration class with default settings."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    LOG_LEVEL = _get_env('LOG_LEVEL', 'INFO')

    # Directory (LDAP) settings
    LDAP_SERVER = _get_env('LDAP_SERVER')
    LDAP_PORT = _get_int_env('LDAP_PORT', 636)
    LDAP_USE_SSL = _get_bool_env('LDAP_USE_SSL', True)
    LDAP_USE_STARTTLS = _get_bool_env('LDAP_USE_STARTTLS', False)
    LDAP_CA_FILE = _get_env('LDAP_CA_FILE')
    LDAP_BIND_DN = _get_env('LDAP_BIND_DN')
    LDAP_BIND_PASSWORD = _get_secret_env('LDAP_BIND_PASSWORD')
    LDAP_BASE_DN = _get_env('LDAP_BASE_DN')
    LDAP_USERNAME_ATTRIBUTE = _get_env('LDAP_USERNAME_ATTRIBUTE', 'cn')
    LDAP_CONNECT_TIMEOUT = _get_int_env('LDAP_CONNECT_TIMEOUT', 10)
    LDAP_RECEIVE_TIMEOUT = _get_int_env('LDAP_RECEIVE_TIMEOUT', 10)
    LDAP_SEARCH_TIME_LIMIT = _get_int_env('LDAP_SEARCH_TIME_LIMIT', 10)

    # Mail settings. SMTP_* and FROM_EMAIL/TO_EMAIL are accepted for
    # deployments that still use the older variable names.
    MAIL_SERVER = _get_env('MAIL_SERVER') or _get_env('SMTP_SERVER')
    MAIL_PORT = _get_int_env('MAIL_PORT', _get_int_env('SMTP_PORT', 587))
    MAIL_USE_TLS = True
    MAIL_USERNAME = _get_env('MAIL_USERNAME') or _get_env('SMTP_USERNAME')
    MAIL_PASSWORD = _get_secret_env('MAIL_PASSWORD') or _get_secret_env('SMTP_PASSWORD')
    MAIL_DEFAULT_SENDER = _get_env('MAIL_DEFAULT_SENDER') or _get_env('FROM_EMAIL')
    MAIL_CA_FILE = _get_env('MAIL_CA_FILE')
    MAIL_CONNECT_TIMEOUT = _get_int_env('MAIL_CONNECT_TIMEOUT', 35)
    MAIL_COMMAND_TIMEOUT = _get_int_env('MAIL_COMMAND_TIMEOUT', 30)
    ACCOUNT_REQUEST_RECIPIENT = _get_env('ACCOUNT_REQUEST_RECIPIENT') or _get_env('TO_EMAIL')

    # Intake endpoint
    ACCOUNT_REQUEST_RATE_LIMIT = _get_env('ACCOUNT_REQUEST_RATE_LIMIT', '10 per hour')
    USERNAME_MAX_LENGTH = _get_int_env('USERNAME_MAX_LENGTH', 64)
    EMAIL_MAX_LENGTH = _get_int_env('EMAIL_MAX_LENGTH', 254)
    # "*" or a comma-separated list of origins, e.g. "https://a.com,https://b.com"
    CORS_ALLOWED_ORIGINS = _get_env('CORS_ALLOWED_ORIGINS', '*')

    # Rate limiting
    RATELIMIT_STORAGE_URI = _get_env('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_ENABLED = _get_bool_env('RATELIMIT_ENABLED', True)


class DevelopmentConfig(Config):
    """Development configuration with debug mode enabled."""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration with security settings."""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration with fixed endpoints and no rate limiting."""
    TESTING = True
    RATELIMIT_ENABLED = False
    LDAP_SERVER = 'ldap.example.com'
    LDAP_BIND_DN = 'cn=gateway,ou=services,dc=example,dc=com'
    LDAP_BIND_PASSWORD = 'bind-secret'
    LDAP_BASE_DN = 'ou=people,dc=example,dc=com'
    MAIL_SERVER = 'smtp.example.com'
    MAIL_PORT = 587
    MAIL_USERNAME = 'gateway@example.com'
    MAIL_PASSWORD = 'smtp-secret'
    MAIL_DEFAULT_SENDER = 'gateway@example.com'
    ACCOUNT_REQUEST_RECIPIENT = 'admin@example.com'


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
