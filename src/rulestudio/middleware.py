"""URLトークン認証ミドルウェア。"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """クエリパラメータまたはBearerヘッダーのトークンを検証するミドルウェア。

    RULESTUDIO_URL_TOKEN が空の場合は検証しない。
    /health は死活監視用のため常に通す。
    """

    SKIP_PATHS = frozenset({"/health"})

    def __init__(self, app: ASGIApp, url_token: str = "") -> None:
        super().__init__(app)
        self.url_token = url_token

    def _extract_token(self, request: Request) -> str:
        header = request.headers.get("authorization", "")
        if header.lower().startswith("bearer "):
            return header[7:].strip()
        return request.query_params.get("token", "")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.url_token or request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        if self._extract_token(request) != self.url_token:
            logger.warning("Rejected request to %s: invalid token", request.url.path)
            return JSONResponse(
                {"error": "Unauthorized", "message": "Invalid or missing token"},
                status_code=401,
            )

        return await call_next(request)
