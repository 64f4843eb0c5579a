import io
import tarfile

import httpx
import pytest

from clients.github import GitHubClient


def _make_tarball(entries, *, wrapper="mock-main", symlinks=(), comment=None):
    """Build a GitHub-style .tar.gz in memory.

    entries: sequence of (name, data); data None adds a directory entry.
    Every name is placed under the `wrapper` directory.
    """
    buf = io.BytesIO()
    pax_headers = {"comment": comment} if comment else None
    with tarfile.open(fileobj=buf, mode="w:gz", format=tarfile.PAX_FORMAT, pax_headers=pax_headers) as tar:
        root = tarfile.TarInfo(f"{wrapper}/")
        root.type = tarfile.DIRTYPE
        tar.addfile(root)

        for name, data in entries:
            if data is None:
                info = tarfile.TarInfo(f"{wrapper}/{name}")
                info.type = tarfile.DIRTYPE
                tar.addfile(info)
                continue
            info = tarfile.TarInfo(f"{wrapper}/{name}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))

        for name, target in symlinks:
            info = tarfile.TarInfo(f"{wrapper}/{name}")
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)

    return buf.getvalue()


async def _chunked(data: bytes, size: int = 7):
    for i in range(0, len(data), size):
        yield data[i : i + size]


@pytest.fixture
def make_tarball():
    return _make_tarball


@pytest.fixture
def chunked():
    return _chunked


@pytest.fixture
def mock_archive():
    # Same layout as the archive GitHub serves for backstage/mock@main
    return _make_tarball(
        [
            ("mkdocs.yml", b"site_name: Test\n"),
            ("docs/", None),
            ("docs/index.md", b"# Test\n"),
        ],
        comment="123abc",
    )


def _route_response(val) -> httpx.Response:
    if isinstance(val, int):
        return httpx.Response(val)

    status_code, body, headers = (tuple(val) + (None, None))[:3]
    if isinstance(body, (bytes, bytearray)):
        return httpx.Response(status_code, content=bytes(body), headers=headers or {})
    if body is None:
        return httpx.Response(status_code, headers=headers or {})
    return httpx.Response(status_code, json=body, headers=headers or {})


def _patch_github_transport(monkeypatch, client: GitHubClient, routes: dict, calls: list):
    """
    Patch GitHubClient.create_session() to use httpx.MockTransport.

    routes keys: "https://host/path" (no query string)
    routes values: status code, or (status_code, json-or-bytes[, headers])
    Every requested URL (with query) is appended to `calls`.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if key not in routes:
            return httpx.Response(404, json={"message": "Not Found"})
        return _route_response(routes[key])

    transport = httpx.MockTransport(handler)

    def create_session(custom_headers=None):
        headers = {**client._headers, **(custom_headers or {})}
        return httpx.AsyncClient(
            headers=headers,
            timeout=client._timeout,
            verify=client._verify,
            follow_redirects=True,
            transport=transport,
        )

    monkeypatch.setattr(client, "create_session", create_session)


@pytest.fixture
def patch_github_transport(monkeypatch):
    def _patch(client: GitHubClient, routes: dict) -> list:
        calls: list = []
        _patch_github_transport(monkeypatch, client, routes, calls)
        return calls

    return _patch
