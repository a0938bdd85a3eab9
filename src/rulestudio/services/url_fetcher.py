"""リモートの .swiftlint.yml をHTTPSで取得するサービス。"""

import logging
from urllib.parse import urlsplit, urlunsplit

import httpx
import yaml

from rulestudio.models.config_import import URLValidation
from rulestudio.models.errors import (
    FetchTimeoutError,
    HTTPStatusError,
    InsecureURLError,
    InvalidURLError,
    InvalidYAMLError,
    NetworkError,
)

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 30.0


def validate_url(url: str) -> URLValidation:
    """URLを検証する。"""
    parts = urlsplit(url.strip())
    if not parts.scheme:
        return "invalid_format"
    scheme = parts.scheme.lower()
    if scheme == "http":
        return "insecure_scheme"
    if scheme != "https":
        return "unsupported_scheme"
    if not parts.hostname:
        return "invalid_format"
    return "valid"


def resolve_to_raw_url(url: str) -> str:
    """GitHub/Gistの閲覧用URLをraw URLに変換する。それ以外はそのまま返す。"""
    parts = urlsplit(url.strip())
    host = (parts.hostname or "").lower()

    if host == "github.com" and "/blob/" in parts.path:
        path = parts.path.replace("/blob/", "/", 1)
        return urlunsplit(("https", "raw.githubusercontent.com", path, parts.query, ""))

    if host == "gist.github.com" and "/raw" not in parts.path:
        path = parts.path.rstrip("/") + "/raw"
        return urlunsplit(("https", "gist.githubusercontent.com", path, parts.query, ""))

    return url.strip()


async def _require_https(request: httpx.Request) -> None:
    # リダイレクト先も含めて全リクエストに適用する
    if request.url.scheme != "https":
        raise InsecureURLError(str(request.url))


class URLConfigFetcher:
    """HTTPSのみを許可してYAMLを取得する。

    ``transport`` を渡すとhttpxのトランスポートを差し替えられる（テスト用）。
    """

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch_config(self, url: str) -> str:
        """URLからYAMLテキストを取得する。

        Args:
            url: https URL（GitHub/Gistの閲覧URLも可）。

        Returns:
            取得したYAMLテキスト。

        Raises:
            InvalidURLError: URLの形式が不正な場合。
            InsecureURLError: http URLの場合（リダイレクト先を含む）。
            HTTPStatusError: 2xx以外が返された場合。
            FetchTimeoutError: タイムアウトした場合。
            NetworkError: 通信に失敗した場合。
            InvalidYAMLError: 内容がYAMLとして不正な場合。
        """
        validation = validate_url(url)
        if validation == "insecure_scheme":
            raise InsecureURLError(url)
        if validation != "valid":
            raise InvalidURLError(url)

        raw_url = resolve_to_raw_url(url)
        logger.info("Fetching configuration from %s", raw_url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
                event_hooks={"request": [_require_https]},
            ) as client:
                response = await client.get(raw_url)
        except httpx.TimeoutException:
            raise FetchTimeoutError(self._timeout) from None
        except httpx.HTTPError as e:
            raise NetworkError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise HTTPStatusError(response.status_code)

        try:
            content = response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidYAMLError("content is not UTF-8 text") from e

        try:
            yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise InvalidYAMLError(str(e)) from e
        return content
