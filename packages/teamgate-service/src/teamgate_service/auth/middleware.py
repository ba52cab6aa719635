"""Gateway-style middleware that pre-populates the request principal.

It never rejects a request: a missing or bad credential is left for the
``get_current_user`` dependency to report with the proper error shape.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from teamgate_service.auth.deps import PRINCIPAL_STATE_KEY, extract_bearer, principal_from_token
from teamgate_service.errors import AuthInvalid, AuthRequired

log = structlog.get_logger(__name__)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, public_paths: Sequence[str] = ()) -> None:
        super().__init__(app)
        self._public_paths = tuple(public_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self._public_paths):
            try:
                principal = principal_from_token(extract_bearer(request))
            except (AuthRequired, AuthInvalid):
                pass
            else:
                setattr(request.state, PRINCIPAL_STATE_KEY, principal)
                log.debug("principal_prepopulated", user_id=str(principal.id))

        return await call_next(request)
