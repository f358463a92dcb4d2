"""
Remote fetching of job index and job detail documents.

Two modes, chosen by URL shape:
- github: a github.com repository URL; index.json is read from the repository
  root through the contents API (base64 payload, optional ?ref= branch/tag)
- direct: anything else; the URL is fetched and its body parsed as JSON

Bodies are always decoded from bytes as UTF-8 explicitly.
"""

import base64
import binascii
import json
from typing import Any, Dict, Optional

import httpx

from .errors import FetchError, JobSyncError, NetworkError, ParseError
from .github import (
    build_contents_api_url,
    convert_api_url_to_raw_url,
    is_github_repo_url,
    parse_repo_url,
)
from .logger import StructuredLogger, get_logger
from .models import JobDetailDocument, JobIndexDocument
from .parsers import parse_job_detail, parse_job_index
from .retry import RetryError, exponential_backoff

PREVIEW_LENGTH = 100
GITHUB_ACCEPT = "application/vnd.github+json"


def preview_text(text: str, limit: int = PREVIEW_LENGTH) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class RemoteFetcher:
    """
    Fetch and parse remote job documents.

    Stateless apart from the HTTP client. Use as an async context manager to
    share one connection pool across many fetches:

        async with RemoteFetcher() as fetcher:
            doc = await fetcher.fetch_index(url)

    Args:
        client: Optional preconfigured httpx.AsyncClient (not closed by us)
        timeout: Request timeout in seconds for clients we create
        max_retries: Retries on transport errors (timeouts, connection drops)
        retry_delay: Initial backoff delay in seconds
        logger: StructuredLogger for messages and fetch metrics
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 20.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        logger: Optional[StructuredLogger] = None,
    ):
        self._client = client
        self._owns_client = False
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = logger or get_logger()

    async def __aenter__(self) -> "RemoteFetcher":
        if self._client is None:
            self._client = self._new_client()
            self._owns_client = True
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)

    async def fetch_index(self, url: str, credential: Optional[str] = None) -> JobIndexDocument:
        """Fetch and parse the job index for a tracked source url."""
        mode = "github" if is_github_repo_url(url) else "direct"
        self.logger.record_fetch_attempt(mode)
        try:
            if mode == "github":
                data = await self._fetch_github_index(url, credential)
            else:
                data = await self._fetch_json(url, credential)
            document = parse_job_index(data)
        except JobSyncError as e:
            self.logger.record_fetch_failure(mode, type(e).__name__)
            raise FetchError(f"Failed to fetch job index: {e}") from e

        self.logger.record_fetch_success(mode)
        self.logger.debug("Fetched job index", url=url, mode=mode)
        return document

    async def fetch_detail(self, url: str, credential: Optional[str] = None) -> JobDetailDocument:
        """
        Fetch and parse a job detail (homework export) document.

        Contents-API URLs are converted to raw URLs first, so the file is
        served as-is instead of as a base64 envelope.
        """
        target = convert_api_url_to_raw_url(url) or url
        self.logger.record_fetch_attempt("direct")
        try:
            data = await self._fetch_json(target, credential)
            document = parse_job_detail(data)
        except JobSyncError as e:
            self.logger.record_fetch_failure("direct", type(e).__name__)
            raise FetchError(f"Failed to fetch job detail: {e}") from e

        self.logger.record_fetch_success("direct")
        return document

    async def _fetch_json(self, url: str, credential: Optional[str]) -> Any:
        resp = await self._get(url, credential)
        body = resp.content
        text = body.decode("utf-8", errors="replace")

        if not resp.is_success:
            raise NetworkError(
                f"Failed to fetch {url}: {resp.status_code} {resp.reason_phrase}. "
                f'Content preview: "{preview_text(text)}"',
                status=resp.status_code,
                status_text=resp.reason_phrase,
                preview=preview_text(text),
            )

        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(
                f"Returned content is not valid JSON. Server returned: "
                f"{resp.status_code} {resp.reason_phrase}. "
                f'Content preview: "{preview_text(text)}". Parse error: {e}',
                preview=preview_text(text),
            ) from e

    async def _fetch_github_index(self, url: str, credential: Optional[str]) -> Any:
        owner, repo, ref = parse_repo_url(url)
        api_url = build_contents_api_url(owner, repo, ref)

        resp = await self._get(api_url, credential, accept=GITHUB_ACCEPT)
        if resp.status_code == 404:
            raise NetworkError(
                "index.json not found in the repository root",
                status=404,
                status_text=resp.reason_phrase,
            )
        if not resp.is_success:
            raise NetworkError(
                f"Failed to fetch {api_url}: {resp.status_code} {resp.reason_phrase}",
                status=resp.status_code,
                status_text=resp.reason_phrase,
                preview=preview_text(resp.content.decode("utf-8", errors="replace")),
            )

        try:
            payload = resp.json()
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(f"GitHub API returned invalid JSON: {e}") from e
        content = payload.get("content") if isinstance(payload, dict) else None
        if not isinstance(content, str):
            raise ParseError("GitHub API response has no file content")

        # base64 -> raw bytes -> UTF-8, so multi-byte characters survive
        try:
            raw = base64.b64decode(content)
        except (binascii.Error, ValueError) as e:
            raise ParseError(f"GitHub file content is not valid base64: {e}") from e
        try:
            text = raw.decode("utf-8")
            return json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            preview = preview_text(raw.decode("utf-8", errors="replace"))
            raise ParseError(
                f'index.json is not valid JSON. Content preview: "{preview}". Parse error: {e}',
                preview=preview,
            ) from e

    async def _get(self, url: str, credential: Optional[str], accept: str = "application/json") -> httpx.Response:
        headers: Dict[str, str] = {"Accept": accept}
        if credential:
            headers["Authorization"] = f"Bearer {credential}"

        send = exponential_backoff(
            max_retries=self.max_retries,
            base_delay=self.retry_delay,
            exceptions=(httpx.TransportError,),
            on_retry=lambda attempt, e, delay: self.logger.warning(
                "Retrying request", url=url, attempt=attempt, delay=delay, error=str(e)
            ),
        )(self._send)

        self.logger.record_api_call()
        try:
            return await send(url, headers)
        except RetryError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

    async def _send(self, url: str, headers: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=headers)
        async with self._new_client() as client:
            return await client.get(url, headers=headers)
