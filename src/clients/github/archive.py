"""Streaming download of repository tarballs.

The archive endpoint lives on the code host itself (not the API host), so
enterprise subdomains work by substituting the configured host verbatim.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncContextManager, AsyncIterator, Callable, Optional
from urllib.parse import quote

import httpx

from core.errors import ArchiveError, NetworkError, NotFoundError

logger = logging.getLogger(__name__)

StreamFn = Callable[[httpx.AsyncClient, str], AsyncContextManager[httpx.Response]]

ARCHIVE_CONTENT_TYPES = frozenset(
    {
        "application/x-gzip",
        "application/gzip",
        "application/x-tar",
        "application/x-gtar",
        "application/x-compressed-tar",
        "application/octet-stream",
        "binary/octet-stream",
    }
)


@dataclass(frozen=True)
class ArchiveStream:
    url: str
    etag: Optional[str]
    chunks: AsyncIterator[bytes]


def archive_url(host: str, owner: str, repo: str, ref: str) -> str:
    return f"https://{host}/{owner}/{repo}/archive/{quote(ref, safe='/')}.tar.gz"


def _check_content_type(resp: httpx.Response, url: str) -> None:
    declared = resp.headers.get("Content-Type")
    if not declared:
        return
    media_type = declared.split(";", 1)[0].strip().lower()
    if media_type not in ARCHIVE_CONTENT_TYPES:
        raise ArchiveError(f"Unexpected content type {media_type!r} for archive {url}")


async def _iter_chunks(resp: httpx.Response, url: str) -> AsyncIterator[bytes]:
    try:
        async for chunk in resp.aiter_bytes():
            yield chunk
    except httpx.HTTPError as e:
        raise NetworkError(f"Archive download interrupted ({url}): {e}") from e


@asynccontextmanager
async def open_archive(
    stream: StreamFn,
    client: httpx.AsyncClient,
    *,
    host: str,
    owner: str,
    repo: str,
    ref: str,
) -> AsyncIterator[ArchiveStream]:
    """Open the tarball of `ref`; the body is read as the caller consumes it."""
    url = archive_url(host, owner, repo, ref)

    async with stream(client, url) as resp:
        if resp.status_code == 404:
            raise NotFoundError(f"Archive not found for {owner}/{repo}@{ref}")
        if not resp.is_success:
            raise NetworkError(f"Archive download failed for {owner}/{repo}@{ref}: HTTP {resp.status_code}")
        _check_content_type(resp, url)

        logger.debug("Streaming archive %s", url)
        yield ArchiveStream(url=url, etag=resp.headers.get("ETag"), chunks=_iter_chunks(resp, url))
