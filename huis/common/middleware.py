from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from huis.common import context


class HTTPAppContextMiddleware(BaseHTTPMiddleware):
    """
    Every request starts with a fresh application context. Guards
    upgrade the user type once the caller is authenticated.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        token = context.initialize(
            user_type=context.AppContextUserType.UNKNOWN,
            breadcrumb=f'{request.method} {request.url.path}',
        )
        try:
            return await call_next(request)
        finally:
            context.reset(token)
