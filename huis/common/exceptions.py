import re
from typing import Any

import sentry_sdk
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class InternalException(Exception):
    """
    All internal exceptions should inherit from this. They are surfaced
    vaguely to the public.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal failure.'
    default_code = 'internal_failure'

    def __init__(self, message: str | None = None, context: dict[Any, Any] | Any = None):
        super().__init__(message or self.default_detail)
        self.message = message or self.default_detail
        self.context = context or dict()

    def __str__(self) -> str:
        return f'{self.__class__.__name__}({self.message})'


class APIException(Exception):
    """
    API view layer exceptions
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid Request.'
    default_code = 'invalid_request'

    # Match the internal interface message
    def __init__(self, message: str | None = None, code: int | None = None, error_type: str | None = None):
        super().__init__(message or self.default_detail)
        self.message = message or self.default_detail
        self.code = code or self.status_code
        self.error_type = error_type


async def internal_exception_handler(request: Request, exc: InternalException) -> JSONResponse:
    """
    Registered at the app level. Internal details are logged, never returned.
    """
    logger.exception(exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({'detail': InternalException.default_detail}),
    )


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    content = {'detail': exc.message}
    if exc.error_type:
        content['error_type'] = exc.error_type
    return JSONResponse(
        status_code=exc.code,
        content=jsonable_encoder(content),
    )


async def inbound_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    This catches pydantic validation errors and is registered at the app level
    """
    details = exc.errors()

    # Fingerprint on error locations so list indexes don't split issues
    generalized_errors = set()
    for error in details:
        if 'loc' in error:
            loc_path = '.'.join(str(part) for part in error['loc'])
            clean_path = re.sub(r'\.[0-9]+(?=\.|$)', '', loc_path)
            generalized_errors.add(f"{error['type']}:{clean_path}")

    if generalized_errors:
        scope = sentry_sdk.get_current_scope()
        transaction_name = scope.transaction.name if scope.transaction else 'unknown'
        scope.fingerprint = [transaction_name] + sorted(generalized_errors)

    # We want to know about these:
    sentry_sdk.capture_exception(exc)

    modified_details = []
    for error in details:
        modified_details.append(
            {
                'loc': error['loc'],
                'message': error['msg'],
                'input': error.get('input'),
                'type': error['type'],
            }
        )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({'detail': modified_details}),
    )
