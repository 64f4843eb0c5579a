from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from clients.github import GitHubClient
from clients.github.archive import open_archive
from clients.github.inputs import parse_github_url, select_host_config
from clients.github.refs import fetch_repo_metadata, resolve_target_ref
from config import MAX_REF_DEPTH
from core.errors import InvalidUrlError, NotModifiedError, UrlReaderError
from core.models import HostConfig, TreeResponse
from core.tarball import Predicate
from sources.tree_response import ReadTreeResponseFactory


"""GitHub URL reader.

- `read_tree` turns a repository/tree URL into the commit it resolves to and
  the files below the URL's path, taken from one tarball download.
- `read` fetches a single file named by a blob/tree URL.
"""

logger = logging.getLogger(__name__)


class GitHubUrlReader:
    def __init__(
        self,
        host_configs: Union[HostConfig, Sequence[HostConfig]],
        *,
        client: Optional[GitHubClient] = None,
        tree_response_factory: Optional[ReadTreeResponseFactory] = None,
        max_ref_depth: int = MAX_REF_DEPTH,
    ) -> None:
        if isinstance(host_configs, HostConfig):
            host_configs = [host_configs]
        self._host_configs = list(host_configs)
        if not self._host_configs:
            raise ValueError("At least one host config is required")

        self._client = client or GitHubClient()
        self._factory = tree_response_factory or ReadTreeResponseFactory()
        self._max_ref_depth = max(1, int(max_ref_depth))

    @property
    def host_configs(self) -> Sequence[HostConfig]:
        return tuple(self._host_configs)

    async def read_tree(
        self,
        url: str,
        *,
        predicate: Optional[Predicate] = None,
        known_sha: Optional[str] = None,
    ) -> TreeResponse:
        try:
            return await self._read_tree(url, predicate=predicate, known_sha=known_sha)
        except UrlReaderError as e:
            e.url = e.url or url
            raise

    async def read(self, url: str) -> bytes:
        try:
            config = select_host_config(url, self._host_configs)
            target = parse_github_url(url, config)
            if not target.sub_path:
                raise InvalidUrlError("URL does not point at a file")

            return await self._client.read_file(
                api_base_url=config.api_base_url,
                owner=target.owner,
                repo=target.repo,
                path=target.sub_path,
                ref=target.ref,
            )
        except UrlReaderError as e:
            e.url = e.url or url
            raise

    async def _read_tree(
        self,
        url: str,
        *,
        predicate: Optional[Predicate],
        known_sha: Optional[str],
    ) -> TreeResponse:
        # Parsing happens before any session exists: unknown hosts never reach the network
        config = select_host_config(url, self._host_configs)
        target = parse_github_url(url, config)

        request = self._client.request
        async with self._client.create_session() as session:
            metadata = await fetch_repo_metadata(
                request,
                session,
                api_base_url=config.api_base_url,
                owner=target.owner,
                repo=target.repo,
            )
            target, resolved = await resolve_target_ref(
                request,
                session,
                metadata=metadata,
                target=target,
                max_ref_depth=self._max_ref_depth,
            )

            if known_sha and known_sha == resolved.commit_sha:
                raise NotModifiedError(f"{target.full_name}@{resolved.ref} is still at {known_sha}")

            async with open_archive(
                self._client.stream,
                session,
                host=target.host,
                owner=target.owner,
                repo=target.repo,
                ref=resolved.ref,
            ) as archive:
                response = await self._factory.from_tar_archive(
                    chunks=archive.chunks,
                    commit_sha=resolved.commit_sha,
                    etag=archive.etag,
                    sub_path=target.sub_path,
                    predicate=predicate,
                )

        logger.info(
            "Read %s@%s (%s): %d file(s) under %r",
            target.full_name,
            resolved.ref,
            resolved.commit_sha,
            len(response.entries),
            target.sub_path or "/",
        )
        return response
