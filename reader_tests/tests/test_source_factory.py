import pytest

import config
from core.models import HostConfig
from sources.github_source import GitHubUrlReader
from sources.source_factory import get_url_reader, read_tree


class FakeGitHubClient:
    pass


def test_get_url_reader_defaults_to_configured_hosts():
    reader = get_url_reader(github_client=FakeGitHubClient())
    assert isinstance(reader, GitHubUrlReader)
    assert list(reader.host_configs) == list(config.HOST_CONFIGS)


def test_get_url_reader_uses_injected_client_and_hosts():
    injected = FakeGitHubClient()
    ghe = HostConfig.for_host("ghe.example.com")
    reader = get_url_reader(host_configs=[ghe], github_client=injected, max_ref_depth=2)

    assert reader.host_configs == (ghe,)
    # Access private fields to verify DI in tests.
    assert getattr(reader, "_client") is injected
    assert getattr(reader, "_max_ref_depth") == 2


@pytest.mark.asyncio
async def test_read_tree_helper_rejects_foreign_host():
    from core.errors import InvalidUrlError

    with pytest.raises(InvalidUrlError):
        await read_tree(
            "https://gitlab.com/o/r",
            HostConfig.for_host("github.com"),
            github_client=FakeGitHubClient(),
        )
