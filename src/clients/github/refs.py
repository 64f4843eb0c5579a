from __future__ import annotations

import dataclasses
import logging
from typing import Awaitable, Callable, Optional, Tuple
from urllib.parse import quote

import httpx

from core.errors import NetworkError, NotFoundError
from core.models import ParsedTarget, RepoMetadata, ResolvedRef

from .client import json_body, raise_for_response
from .inputs import ref_candidates

logger = logging.getLogger(__name__)

RequestFn = Callable[..., Awaitable[httpx.Response]]

_BRANCH_PLACEHOLDER = "{/branch}"


async def fetch_repo_metadata(
    request: RequestFn,
    client: httpx.AsyncClient,
    *,
    api_base_url: str,
    owner: str,
    repo: str,
) -> RepoMetadata:
    base = api_base_url.rstrip("/")
    context = f"Repository {owner}/{repo}"

    resp = await request(client, f"{base}/repos/{owner}/{repo}")
    raise_for_response(resp, context=context)
    data = json_body(resp, context=context)

    default_branch = str(data.get("default_branch") or "").strip()
    if not default_branch:
        raise NetworkError(f"{context}: metadata has no default_branch")

    return RepoMetadata(
        full_name=str(data.get("full_name") or f"{owner}/{repo}"),
        default_branch=default_branch,
        branches_url=str(
            data.get("branches_url") or f"{base}/repos/{owner}/{repo}/branches{_BRANCH_PLACEHOLDER}"
        ),
    )


def expand_branches_url(template: str, ref: str) -> str:
    # Branch names may contain '/', which GitHub accepts unescaped in the path.
    segment = "/" + quote(ref, safe="/")
    if _BRANCH_PLACEHOLDER in template:
        return template.replace(_BRANCH_PLACEHOLDER, segment)
    return template.rstrip("/") + segment


async def fetch_branch(
    request: RequestFn,
    client: httpx.AsyncClient,
    *,
    branches_url: str,
    ref: str,
) -> Optional[ResolvedRef]:
    # A missing branch is an expected answer while probing ref candidates
    resp = await request(client, expand_branches_url(branches_url, ref))
    if resp.status_code == 404:
        return None

    context = f"Branch {ref}"
    raise_for_response(resp, context=context)
    data = json_body(resp, context=context)
    try:
        sha = str(data["commit"]["sha"]).strip()
    except (KeyError, TypeError) as e:
        raise NetworkError(f"{context}: response has no commit sha") from e
    if not sha:
        raise NetworkError(f"{context}: response has no commit sha")
    return ResolvedRef(ref=ref, commit_sha=sha)


async def resolve_target_ref(
    request: RequestFn,
    client: httpx.AsyncClient,
    *,
    metadata: RepoMetadata,
    target: ParsedTarget,
    max_ref_depth: int = 1,
) -> Tuple[ParsedTarget, ResolvedRef]:
    """Resolve the target's ref to a commit.

    Returns the target with its ref/sub_path split fixed to the branch that
    exists, together with the resolved commit.
    """
    if target.ref is None:
        candidates = [(metadata.default_branch, target.sub_path)]
    else:
        candidates = ref_candidates(target, max_ref_depth)

    for ref, sub_path in candidates:
        resolved = await fetch_branch(request, client, branches_url=metadata.branches_url, ref=ref)
        if resolved is not None:
            logger.debug("Resolved %s@%s to %s", metadata.full_name, ref, resolved.commit_sha)
            return dataclasses.replace(target, ref=ref, sub_path=sub_path), resolved

    raise NotFoundError(f"Branch not found: {target.ref or metadata.default_branch}")
