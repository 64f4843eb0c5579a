from __future__ import annotations

from typing import List, Sequence, Tuple
from urllib.parse import SplitResult, unquote, urlsplit

from core.errors import InvalidUrlError
from core.models import HostConfig, ParsedTarget
from core.paths import split_posix


_INVALID_URL = "Invalid GitHub URL or file path"


def _split_url(url: str) -> SplitResult:
    raw = (url or "").strip()
    try:
        parts = urlsplit(raw)
    except ValueError as e:
        raise InvalidUrlError(_INVALID_URL, url=raw) from e
    if parts.scheme not in ("http", "https"):
        raise InvalidUrlError(_INVALID_URL, url=raw)
    return parts


def _netloc_host(parts: SplitResult) -> str:
    # Compare host[:port] only; credentials in the URL never take part.
    return parts.netloc.rsplit("@", 1)[-1].lower()


def host_matches(url: str, host: str) -> bool:
    try:
        parts = _split_url(url)
    except InvalidUrlError:
        return False
    return _netloc_host(parts) == (host or "").strip().lower()


def select_host_config(url: str, host_configs: Sequence[HostConfig]) -> HostConfig:
    """Pick the config whose host is exactly the URL's host."""
    for config in host_configs:
        if host_matches(url, config.host):
            return config
    raise InvalidUrlError(_INVALID_URL, url=(url or "").strip())


def parse_github_url(url: str, host_config: HostConfig) -> ParsedTarget:
    """Parse a repository, tree or blob URL for the given host.

    Accepted paths: owner/repo, owner/repo/tree/ref[/sub/path],
    owner/repo/blob/ref/file/path.
    """
    raw = (url or "").strip()
    parts = _split_url(raw)
    if _netloc_host(parts) != host_config.host.lower():
        raise InvalidUrlError(_INVALID_URL, url=raw)

    segments = [unquote(seg) for seg in split_posix(parts.path)]
    if len(segments) < 2:
        raise InvalidUrlError(_INVALID_URL, url=raw)

    owner, repo = segments[0], segments[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        raise InvalidUrlError(_INVALID_URL, url=raw)

    rest = segments[2:]
    if not rest:
        return ParsedTarget(host=host_config.host, owner=owner, repo=repo, ref=None)

    kind = rest[0]
    if kind not in ("tree", "blob") or len(rest) < 2:
        raise InvalidUrlError(_INVALID_URL, url=raw)
    if kind == "blob" and len(rest) < 3:
        raise InvalidUrlError(_INVALID_URL, url=raw)

    return ParsedTarget(
        host=host_config.host,
        owner=owner,
        repo=repo,
        ref=rest[1],
        sub_path="/".join(rest[2:]),
        kind=kind,
    )


def ref_candidates(target: ParsedTarget, max_ref_depth: int) -> List[Tuple[str, str]]:
    """Possible (ref, sub_path) splits of a target, longest ref first.

    'tree/a/b/c' may name branch 'a/b' with path 'c' or branch 'a' with path
    'b/c'. At most `max_ref_depth` segments are taken for the ref, and a
    blob's file name is never part of it.
    """
    if target.ref is None:
        return []

    tail = split_posix(target.sub_path)
    movable = tail[:-1] if target.kind == "blob" else tail
    extra = min(max(1, int(max_ref_depth)) - 1, len(movable))

    out: List[Tuple[str, str]] = []
    for n in range(extra, -1, -1):
        ref = "/".join((target.ref, *movable[:n]))
        out.append((ref, "/".join(tail[n:])))
    return out
