"""Single-pass extraction of gzipped tar streams.

Archive bodies arrive as an async iterator of chunks and cannot be rewound.
A worker thread runs gzip + tarfile over a blocking reader that pulls chunks
from a bounded queue fed by the event loop, so extraction starts with the
first chunk and only a handful of chunks are buffered at any time.

Hosting providers wrap every entry in one top-level directory
(`{repo}-{ref}/`); that segment is stripped before filtering.
"""

from __future__ import annotations

import asyncio
import contextlib
import gzip
import io
import logging
import tarfile
import zlib
from typing import AsyncIterator, Callable, List, Optional

from core.errors import ArchiveError
from core.models import TreeFile
from core.paths import is_within, normalize_posix_relpath, split_posix, strip_first_segment

logger = logging.getLogger(__name__)

Predicate = Callable[[str], bool]

_MAX_PENDING_CHUNKS = 16
_DRAIN_SIZE = 64 * 1024
# Covers the bytes tarfile's record buffer may have read past the last member.
_TAIL_WINDOW = 4 * tarfile.RECORDSIZE
_EOF = object()


class _ChunkReader(io.RawIOBase):
    """Blocking, forward-only file object over chunks queued on the event loop."""

    def __init__(self, queue: "asyncio.Queue[object]", loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._queue = queue
        self._loop = loop
        self._pending = b""
        self._eof = False
        self._error: Optional[BaseException] = None

    def readable(self) -> bool:
        return True

    def readinto(self, buf) -> int:
        while not self._pending and not self._eof:
            item = asyncio.run_coroutine_threadsafe(self._queue.get(), self._loop).result()
            if item is _EOF:
                self._eof = True
            elif isinstance(item, BaseException):
                self._eof = True
                self._error = item
            else:
                self._pending = item

        if self._error is not None:
            raise self._error

        n = min(len(buf), len(self._pending))
        buf[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n


async def _feed(chunks: AsyncIterator[bytes], queue: "asyncio.Queue[object]") -> None:
    try:
        async for chunk in chunks:
            if chunk:
                await queue.put(chunk)
    except Exception as e:
        # Handed to the reader thread, which re-raises it inside the pass.
        await queue.put(e)
        return
    await queue.put(_EOF)


def _release_reader(queue: "asyncio.Queue[object]") -> None:
    # Unblock a reader still waiting after the feeder was cancelled.
    while True:
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            break
    queue.put_nowait(_EOF)


class _CountingReader(io.RawIOBase):
    """Counts decompressed bytes and keeps a short tail of them."""

    def __init__(self, raw: io.IOBase, *, window: int = _TAIL_WINDOW) -> None:
        super().__init__()
        self._raw = raw
        self._window = window
        self._tail = bytearray()
        self.total = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buf) -> int:
        data = self._raw.read(len(buf))
        n = len(data)
        buf[:n] = data
        self.total += n
        self._tail += data
        if len(self._tail) > self._window:
            del self._tail[: len(self._tail) - self._window]
        return n

    def tail_from(self, start: int, size: int) -> bytes:
        begin = len(self._tail) - (self.total - start)
        if begin < 0:
            return b""
        return bytes(self._tail[begin : begin + size])


def _check_end_marker(counted: _CountingReader, offset: int) -> None:
    size = 2 * tarfile.BLOCKSIZE
    while counted.total < offset + size and counted.read(_DRAIN_SIZE):
        pass
    marker = counted.tail_from(offset, size)
    if len(marker) != size or marker.count(0) != size:
        raise ArchiveError("truncated tar stream")


def _select(member: tarfile.TarInfo, sub_path: str, predicate: Optional[Predicate]) -> Optional[str]:
    """Return the caller-facing path for a kept entry, or None to skip it."""
    if not member.isfile():
        return None

    path = strip_first_segment(member.name)
    if not path:
        return None

    parts = split_posix(path)
    if ".." in parts or member.name.startswith("/"):
        logger.warning("Skipping unsafe archive entry %r", member.name)
        return None

    if not is_within(path, sub_path):
        return None
    if predicate is not None:
        try:
            keep = predicate(path)
        except Exception as e:
            raise ArchiveError(f"Entry filter failed for {path!r}: {e}") from e
        if not keep:
            return None

    if not sub_path:
        return path
    if path == sub_path:
        return parts[-1]
    return path[len(sub_path) + 1 :]


def _untar(fileobj: io.RawIOBase, sub_path: str, predicate: Optional[Predicate]) -> List[TreeFile]:
    files: List[TreeFile] = []
    try:
        with gzip.GzipFile(fileobj=fileobj, mode="rb") as gz:
            counted = _CountingReader(gz)
            with tarfile.open(fileobj=counted, mode="r|") as tar:
                for member in tar:
                    path = _select(member, sub_path, predicate)
                    if path is None:
                        continue
                    # Stream mode: the entry body must be read before advancing.
                    extracted = tar.extractfile(member)
                    data = extracted.read() if extracted is not None else b""
                    files.append(TreeFile(path=path, data=data))

                # Stream mode ends quietly at a header boundary; require the end-of-archive blocks.
                _check_end_marker(counted, tar.offset)

            # Read through the gzip trailer so truncation and CRC errors surface.
            while counted.read(_DRAIN_SIZE):
                pass
    except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
        raise ArchiveError(f"Failed to extract archive: {e}") from e
    return files


async def extract_tar_gz(
    chunks: AsyncIterator[bytes],
    *,
    sub_path: str = "",
    predicate: Optional[Predicate] = None,
) -> List[TreeFile]:
    """Extract regular files under `sub_path` from a .tar.gz chunk stream.

    Returned paths are relative to `sub_path`, in archive order. `predicate`
    sees the repository-relative path and runs on the worker thread.
    """
    prefix = normalize_posix_relpath(sub_path)
    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[object]" = asyncio.Queue(maxsize=_MAX_PENDING_CHUNKS)
    reader = _ChunkReader(queue, loop)

    feeder = asyncio.create_task(_feed(chunks, queue))
    try:
        files = await asyncio.to_thread(_untar, reader, prefix, predicate)
    finally:
        feeder.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await feeder
        _release_reader(queue)

    logger.debug("Extracted %d file(s) under %r", len(files), prefix or "/")
    return files
