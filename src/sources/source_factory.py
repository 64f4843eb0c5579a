"""Factory for building the GitHub URL reader from configuration.

Exposes get_url_reader which wires a GitHubClient and a
ReadTreeResponseFactory for the configured GitHub deployments.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from clients.github import GitHubClient
from config import GITHUB_TIMEOUT, HOST_CONFIGS, HTTP_VERIFY, MAX_REF_DEPTH, TREE_WORK_DIR
from core.models import HostConfig, TreeResponse
from sources.github_source import GitHubUrlReader
from sources.tree_response import ReadTreeResponseFactory


def get_url_reader(
    *,
    host_configs: Optional[Sequence[HostConfig]] = None,
    github_timeout: float = GITHUB_TIMEOUT,
    http_verify: bool = HTTP_VERIFY,
    max_ref_depth: int = MAX_REF_DEPTH,
    work_dir: Optional[Path] = TREE_WORK_DIR,
    github_client: Optional[GitHubClient] = None,
) -> GitHubUrlReader:
    """
    Factory that returns a reader for every configured GitHub deployment.

    Explicit `host_configs` replace the environment-derived list; an injected
    `github_client` replaces the default httpx-backed client.
    """
    client = github_client or GitHubClient(timeout=github_timeout, verify=http_verify)
    return GitHubUrlReader(
        list(host_configs) if host_configs else list(HOST_CONFIGS),
        client=client,
        tree_response_factory=ReadTreeResponseFactory(work_dir=work_dir),
        max_ref_depth=max_ref_depth,
    )


async def read_tree(url: str, host_config: HostConfig, **kwargs) -> TreeResponse:
    """One-shot tree read against a single deployment."""
    return await get_url_reader(host_configs=[host_config], **kwargs).read_tree(url)
