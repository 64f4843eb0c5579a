"""GitHub transport: httpx sessions, GET helpers and status translation.

The read-tree stages never talk to httpx directly. They receive the bound
`GitHubClient.request` / `GitHubClient.stream` callables together with an open
session, which keeps each stage testable against a route table and lets one
session serve a whole tree read.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from core.errors import AuthError, NetworkError, NotFoundError

logger = logging.getLogger(__name__)


def raise_for_response(resp: httpx.Response, *, context: str) -> None:
    """Map a non-2xx response onto the error taxonomy."""
    status = resp.status_code
    if resp.is_success:
        return
    if status == 404:
        raise NotFoundError(f"{context}: not found")
    if status in (401, 403):
        raise AuthError(f"{context}: access denied (HTTP {status})")
    raise NetworkError(f"{context}: unexpected HTTP {status}")


def json_body(resp: httpx.Response, *, context: str) -> Dict[str, Any]:
    try:
        data = resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise NetworkError(f"{context}: response is not JSON") from e
    if not isinstance(data, dict):
        raise NetworkError(f"{context}: expected a JSON object")
    return data


class GitHubClient:
    """Async HTTP access to a GitHub deployment.

    Purpose:
      - create_session() -> httpx.AsyncClient shared by the stages of one read
      - request(session, url) -> httpx.Response (buffered GET)
      - stream(session, url) -> async context manager over a streamed GET
      - read_file(...) -> raw bytes of one file via the Contents API

    No retries happen here; a failed request surfaces as NetworkError.
    """

    JSON_ACCEPT = "application/vnd.github+json"
    RAW_ACCEPT = "application/vnd.github.raw"

    def __init__(
        self,
        *,
        timeout: float = 20.0,
        verify: bool = True,
        token: Optional[str] = None,
    ) -> None:
        self._timeout = float(timeout)
        self._verify = bool(verify)
        self._headers = self._build_headers(token)

    def create_session(self, custom_headers: Optional[Mapping[str, str]] = None) -> httpx.AsyncClient:
        headers = {**self._headers, **dict(custom_headers or {})}
        return httpx.AsyncClient(
            headers=headers,
            timeout=self._timeout,
            verify=self._verify,
            # Archive downloads redirect to a separate download host.
            follow_redirects=True,
        )

    async def request(
        self,
        session: httpx.AsyncClient,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            return await session.get(url, params=dict(params or {}))
        except httpx.HTTPError as e:
            raise NetworkError(f"GET {url} failed: {e}") from e

    @asynccontextmanager
    async def stream(self, session: httpx.AsyncClient, url: str) -> AsyncIterator[httpx.Response]:
        logger.debug("GET %s (streamed)", url)
        try:
            async with session.stream("GET", url) as resp:
                yield resp
        except httpx.HTTPError as e:
            raise NetworkError(f"GET {url} failed: {e}") from e

    async def read_file(
        self,
        *,
        api_base_url: str,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None,
    ) -> bytes:
        """Read one file at `ref` (default branch when None) as raw bytes."""
        # Re-escape the decoded path so '?' and '#' stay part of the file name.
        url = f"{api_base_url.rstrip('/')}/repos/{owner}/{repo}/contents/{quote(path, safe='/')}"
        params = {"ref": ref} if ref else None

        async with self.create_session(custom_headers={"Accept": self.RAW_ACCEPT}) as session:
            resp = await self.request(session, url, params=params)
            raise_for_response(resp, context=f"File {owner}/{repo}/{path}")
            return resp.content

    def _build_headers(self, token: Optional[str]) -> dict[str, str]:
        headers = {
            "Accept": self.JSON_ACCEPT,
            "User-Agent": "github-tree-reader",
        }
        # Fall back to GITHUB_TOKEN so private repositories and higher rate limits work
        token = (token if token is not None else os.environ.get("GITHUB_TOKEN") or "").strip()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers
