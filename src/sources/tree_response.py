"""Assembly of TreeResponse objects from archive streams."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator, Optional

from core.models import TreeResponse
from core.tarball import Predicate, extract_tar_gz


class ReadTreeResponseFactory:
    """Builds tree responses; `work_dir` is where `TreeResponse.dir()` creates temp dirs."""

    def __init__(self, *, work_dir: Optional[Path] = None) -> None:
        self._work_dir = Path(work_dir) if work_dir else None

    async def from_tar_archive(
        self,
        *,
        chunks: AsyncIterator[bytes],
        commit_sha: str,
        etag: Optional[str] = None,
        sub_path: str = "",
        predicate: Optional[Predicate] = None,
    ) -> TreeResponse:
        files = await extract_tar_gz(chunks, sub_path=sub_path, predicate=predicate)
        return TreeResponse(
            commit_sha=commit_sha,
            etag=etag,
            entries=tuple(files),
            work_dir=self._work_dir,
        )
