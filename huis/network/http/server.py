from contextlib import asynccontextmanager
from typing import Any

import sentry_sdk
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from loguru import logger
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.errors import ServerErrorMiddleware

from huis import settings
from huis.common.exceptions import (
    APIException,
    InternalException,
    api_exception_handler,
    inbound_validation_exception_handler,
    internal_exception_handler,
)
from huis.common.middleware import HTTPAppContextMiddleware
from huis.common.request import RequestResponseMiddleware
from huis.common.security_headers import SecurityHeadersMiddleware
from huis.network.database.middleware import HTTPSessionManagerMiddleware
from huis.network.http.router import api_router

SENTRY_IGNORED_PATHS = {
    # Polled by the load balancer, most of our transaction volume
    '/healthcheck/api',
    '/healthcheck/database',
}

# Request and response fields that carry codes or shared secrets
SCRUBBED_FIELDS = {'code', 'secret', 'backupCodes', 'provisioningUri', 'qrCode'}


def traces_sampler(sampling_context: dict[str, Any]) -> float:
    if 'asgi_scope' in sampling_context:
        if sampling_context['asgi_scope']['path'] in SENTRY_IGNORED_PATHS:
            return 0

    return settings.SENTRY_DEFAULT_SAMPLE_RATE


def scrub_two_factor_data(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
    """
    Sentry before_send hook, TOTP codes and secrets never leave the process
    """
    request = event.get('request') or {}
    data = request.get('data')
    if isinstance(data, dict):
        request['data'] = {key: '[Filtered]' if key in SCRUBBED_FIELDS else value for key, value in data.items()}

    headers = request.get('headers')
    if isinstance(headers, dict):
        request['headers'] = {
            key: '[Filtered]' if key.lower() == 'authorization' else value for key, value in headers.items()
        }
    return event


if not settings.USE_MOCK_SENTRY_CLIENT:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        ignore_errors=[APIException],
        environment=settings.ENVIRONMENT,
        integrations=[
            # Both integrations must be instantiated
            StarletteIntegration(),
            FastApiIntegration(),
        ],
        traces_sampler=traces_sampler,
        before_send=scrub_two_factor_data,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f'{app.title} is ready!')
    logger.info(f'check out API docs here: {settings.HOST}/docs')
    yield
    logger.info('💀 Shutting down!')


server = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    openapi_url=f'{settings.API_PREFIX}/openapi.json' if settings.IS_LOCAL else None,
    generate_unique_id_function=lambda route: route.name,
    lifespan=lifespan,
    redirect_slashes=False,
    version='0.1.0',
    docs_url='/docs' if settings.IS_LOCAL else None,
    redoc_url='/redoc' if settings.IS_LOCAL else None,
    separate_input_output_schemas=False,
)

# Middlewares are inserted(0) last will run first!
server.add_middleware(SecurityHeadersMiddleware)
# Handle database transaction for request lifecycle
server.add_middleware(HTTPSessionManagerMiddleware, commit_on_success=settings.ATOMIC_REQUESTS)
server.add_middleware(RequestResponseMiddleware)
server.add_middleware(HTTPAppContextMiddleware)

if settings.DEBUG:
    # This serves up traceback responses
    server.add_middleware(ServerErrorMiddleware, debug=True)

server.exception_handler(RequestValidationError)(inbound_validation_exception_handler)
server.exception_handler(InternalException)(internal_exception_handler)
server.exception_handler(APIException)(api_exception_handler)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    server.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=settings.CORS_ALLOWED_METHODS,
        allow_headers=settings.CORS_ALLOWED_HEADERS,
    )

server.include_router(api_router, prefix=settings.API_PREFIX)
