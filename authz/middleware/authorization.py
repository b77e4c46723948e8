"""
Authorization middleware.

Authenticates every request with HTTP Basic credentials, asks the decision
engine whether the caller may reach ``METHOD path`` and either rejects the
request or forwards it with the caller's principal on ``request.state``.
"""

import base64
import binascii
import time
from typing import Iterable, Optional, Tuple

from fastapi import Request, status
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from authz.config.logging import app_logger
from authz.core import matcher
from authz.core.decision import AuthorizationDecisionEngine
from authz.core.exceptions import InvalidPrincipal
from authz.core.principal import Principal
from authz.core.roles import ANONYMOUS_USERNAME
from authz.services.auth_service import Authenticator


def get_client_ip(request: Request) -> str:
    """Client address, honouring ``X-Forwarded-For`` when present."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def parse_basic_credentials(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Decode an ``Authorization: Basic`` header.

    Returns:
        ``(username, password)``, or None if the header is absent or uses
        another scheme.

    Raises:
        InvalidPrincipal: If the header claims Basic but cannot be decoded.
    """
    if not header:
        return None

    scheme, _, value = header.partition(" ")
    if scheme.lower() != "basic":
        return None

    try:
        decoded = base64.b64decode(value.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise InvalidPrincipal("Malformed Basic credentials")

    username, separator, password = decoded.partition(":")
    if not separator:
        raise InvalidPrincipal("Malformed Basic credentials")
    return username, password


class AuthorizationMiddleware(BaseHTTPMiddleware):
    """
    Dynamic, rule-driven request authorization.

    Paths listed in ``public_paths`` (Ant patterns) skip the decision
    engine. Every other request is evaluated; denials for anonymous
    callers answer 401 with a Basic challenge, denials for authenticated
    callers answer 403.
    """

    def __init__(
        self,
        app,
        engine: AuthorizationDecisionEngine,
        authenticator: Authenticator,
        public_paths: Iterable[str] = (),
        anonymous_username: str = ANONYMOUS_USERNAME,
        realm: str = "authz",
    ):
        super().__init__(app)
        self.engine = engine
        self.authenticator = authenticator
        self.public_paths = tuple(public_paths)
        self.anonymous_username = anonymous_username
        self.realm = realm

    def is_public(self, path: str) -> bool:
        return any(matcher.match(pattern, path) for pattern in self.public_paths)

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        path = request.url.path
        method = request.method

        principal = Principal.anonymous(self.anonymous_username)
        request.state.principal = principal

        # Public paths never look at credentials
        if not self.is_public(path):
            try:
                credentials = parse_basic_credentials(request.headers.get("Authorization"))
                if credentials is not None:
                    principal = await run_in_threadpool(self.authenticator.authenticate, *credentials)
            except InvalidPrincipal as e:
                app_logger.log_decision(None, method, path, False, e.message, client_ip=get_client_ip(request))
                return self._reject(status.HTTP_401_UNAUTHORIZED, "Error: Unauthorized")

            result = await run_in_threadpool(self.engine.evaluate, principal, path, method)
            app_logger.log_decision(
                principal.username,
                method,
                path,
                result.granted,
                result.reason,
                rule_id=result.matched_rule.id if result.matched_rule else None,
                client_ip=get_client_ip(request),
            )

            if not result.granted:
                if principal.is_anonymous(self.anonymous_username):
                    return self._reject(status.HTTP_401_UNAUTHORIZED, "Error: Unauthorized")
                return self._reject(status.HTTP_403_FORBIDDEN, "Error: Access denied")

        request.state.principal = principal
        response = await call_next(request)
        self._add_security_headers(response)

        app_logger.log_request(
            method,
            path,
            response.status_code,
            round((time.perf_counter() - start_time) * 1000, 2),
            client_ip=get_client_ip(request),
            username=None if principal.is_anonymous(self.anonymous_username) else principal.username,
        )
        return response

    def _reject(self, status_code: int, message: str) -> Response:
        headers = {}
        if status_code == status.HTTP_401_UNAUTHORIZED:
            headers["WWW-Authenticate"] = f'Basic realm="{self.realm}"'
        response = JSONResponse(status_code=status_code, content={"message": message}, headers=headers)
        self._add_security_headers(response)
        return response

    def _add_security_headers(self, response: Response):
        """Add security headers to response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if response.status_code in (401, 403):
            response.headers["Cache-Control"] = "no-store"
