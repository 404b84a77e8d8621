import os
from datetime import timedelta

from decouple import Choices, config

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BASE_MODULE = 'huis'
SRC_DIR = os.path.join(BASE_DIR, BASE_MODULE)

COMPANY_NAME = config('COMPANY_NAME', default='Huis van het Arabisch')

# API Documentation
API_TITLE = config('API_TITLE', default=f'{COMPANY_NAME} API')
API_DESCRIPTION = config('API_DESCRIPTION', default='API Documentation')

HOST = 'http://127.0.0.1'
SECRET_KEY = config('SECRET_KEY', default='secret')
DEBUG = config('DEBUG', default=False, cast=bool)
ENVIRONMENT = config('ENVIRONMENT', default='local', cast=Choices(['local', 'testing', 'staging', 'production']))
IS_LOCAL = ENVIRONMENT == 'local'
IS_PRODUCTION = ENVIRONMENT == 'production'
IS_STAGING = ENVIRONMENT == 'staging'
IS_TESTING = ENVIRONMENT == 'testing'  # Set in conftest
IS_DEPLOYED_ENV = IS_PRODUCTION or IS_STAGING

BACKEND_CORS_ORIGINS = config(
    'BACKEND_CORS_ORIGINS', default='http://localhost:5173', cast=lambda v: list(v.split(','))
)
CORS_ALLOWED_METHODS = config(
    'CORS_ALLOWED_METHODS', default='GET,POST,PUT,PATCH,DELETE,OPTIONS', cast=lambda v: list(v.split(','))
)
CORS_ALLOWED_HEADERS = config(
    'CORS_ALLOWED_HEADERS',
    default='Accept,Accept-Language,Content-Type,Content-Language,Authorization,X-Requested-With',
    cast=lambda v: list(v.split(',')),
)

# Security Headers Configuration
ENABLE_SECURITY_HEADERS = config('ENABLE_SECURITY_HEADERS', default=True, cast=bool)
# Only enable HSTS in deployed environments
ENABLE_HSTS = config('ENABLE_HSTS', default=IS_DEPLOYED_ENV, cast=bool)
CSP_POLICY = config(
    'CSP_POLICY',
    default=(
        "default-src 'self'; "
        "img-src 'self' data: https:; "  # QR codes are served as data URIs
        "style-src 'self' 'unsafe-inline'; "
        "connect-src 'self'; "
        "frame-ancestors 'none'; "
        "base-uri 'self'; "
        "form-action 'self'"
    ),
)

API_PREFIX = ''

ATOMIC_REQUESTS = config('ATOMIC_REQUESTS', default=True, cast=bool)
LOG_LEVEL = config('LOG_LEVEL', 'INFO')

AUTH_SETTINGS = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=15),
}

# Either a full DATABASE_URL (sqlite in tests) or individual postgres vars
DATABASE_URL = config('DATABASE_URL', default=None)
DB_NAME = config('DB_NAME', default='huis')
DB_USER = config('DB_USER', default='huis')
DB_PASSWORD = config('DB_PASSWORD', default='dev1')
DB_HOST = config('DB_HOST', default='127.0.0.1')
DB_PORT = config('DB_PORT', default=5432, cast=int)
DB_CONNECT_TIMEOUT = config('DB_CONNECT_TIMEOUT', default=10, cast=int)
DB_STATEMENT_TIMEOUT_MS = config('DB_STATEMENT_TIMEOUT_MS', default=5000, cast=int)
DB_LOG_STATEMENTS = config('DB_LOG_STATEMENTS', default=False, cast=bool)
DB_ENCRYPTION_KEY = config('DB_ENCRYPTION_KEY', default='default-key')
DB_ENCRYPTION_SALT = config('DB_ENCRYPTION_SALT', default=f'{COMPANY_NAME}-encryption-salt')

# Define boundaries to ensure
BOUNDARIES = [
    'core.role',
    'core.two_factor',
]

# Two factor
TWO_FACTOR_ISSUER = config('TWO_FACTOR_ISSUER', default=COMPANY_NAME)
TWO_FACTOR_VALID_WINDOW = config('TWO_FACTOR_VALID_WINDOW', default=1, cast=int)
TWO_FACTOR_CAS_RETRIES = config('TWO_FACTOR_CAS_RETRIES', default=3, cast=int)

# Sentry
SENTRY_DSN = config('SENTRY_DSN', default=None)
SENTRY_DEFAULT_SAMPLE_RATE = config('SENTRY_DEFAULT_SAMPLE_RATE', default=1.0, cast=float)

# Mocks
USE_MOCK_SENTRY_CLIENT = config('USE_MOCK_SENTRY_CLIENT', default=False, cast=bool)
