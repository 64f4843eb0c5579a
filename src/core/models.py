"""Immutable dataclasses passed between the stages of a tree read.

HostConfig describes one code-hosting deployment; ParsedTarget, RepoMetadata
and ResolvedRef carry the intermediate results; TreeFile and TreeResponse are
what callers receive.
"""

from __future__ import annotations

import asyncio
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional, Tuple


TargetKind = Literal["tree", "blob"]

PUBLIC_HOST = "github.com"
PUBLIC_API_BASE_URL = "https://api.github.com"


@dataclass(frozen=True)
class HostConfig:
    """One GitHub deployment: the code host and its REST API base."""

    host: str
    api_base_url: str

    @classmethod
    def for_host(cls, host: str, api_base_url: Optional[str] = None) -> "HostConfig":
        host_clean = (host or "").strip().lower()
        if not host_clean:
            raise ValueError("host must be non-empty")

        base = (api_base_url or "").strip().rstrip("/")
        if not base:
            # Enterprise deployments serve the API under /api/v3 on the same host.
            base = PUBLIC_API_BASE_URL if host_clean == PUBLIC_HOST else f"https://{host_clean}/api/v3"
        return cls(host=host_clean, api_base_url=base)


@dataclass(frozen=True)
class ParsedTarget:
    host: str
    owner: str
    repo: str
    ref: Optional[str]  # None -> repository default branch
    sub_path: str = ""
    kind: TargetKind = "tree"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class RepoMetadata:
    full_name: str
    default_branch: str
    branches_url: str


@dataclass(frozen=True)
class ResolvedRef:
    ref: str
    commit_sha: str


@dataclass(frozen=True)
class TreeFile:
    """A file from an extracted archive.

    The bytes were captured while the archive stream was read; `content()`
    only hands them out, so it can be awaited any number of times.
    """

    path: str
    data: bytes = field(repr=False)

    async def content(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class TreeResponse:
    """Result of a tree read: the commit it came from plus its files."""

    commit_sha: str
    etag: Optional[str]
    entries: Tuple[TreeFile, ...] = field(default=(), repr=False)
    work_dir: Optional[Path] = field(default=None, repr=False)

    async def files(self) -> List[TreeFile]:
        """Return the files in archive order."""
        return list(self.entries)

    async def dir(self, *, target_dir: Optional[Path] = None) -> Path:
        """Write the files below `target_dir` (a new temp dir by default)."""

        def _do() -> Path:
            if target_dir is None:
                out = Path(tempfile.mkdtemp(prefix="tree-", dir=self.work_dir))
            else:
                out = Path(target_dir)
                out.mkdir(parents=True, exist_ok=True)

            for entry in self.entries:
                dest = out.joinpath(*entry.path.split("/"))
                dest.parent.mkdir(parents=True, exist_ok=True)
                dest.write_bytes(entry.data)
            return out

        # Offload blocking filesystem IO to a thread to keep the event loop free
        return await asyncio.to_thread(_do)
