from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from huis import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        if settings.ENABLE_SECURITY_HEADERS:
            response.headers['X-Frame-Options'] = 'DENY'
            response.headers['X-Content-Type-Options'] = 'nosniff'
            response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
            # Setup responses carry the shared secret
            response.headers['Cache-Control'] = 'no-store'
            response.headers['Permissions-Policy'] = 'camera=(), geolocation=(), microphone=(), payment=(), usb=()'

            if settings.CSP_POLICY:
                response.headers['Content-Security-Policy'] = settings.CSP_POLICY

            # Only in deployed environments to avoid local https issues
            if settings.ENABLE_HSTS:
                response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains; preload'

        return response
