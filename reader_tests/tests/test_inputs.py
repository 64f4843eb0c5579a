import pytest

from clients.github.inputs import (
    host_matches,
    parse_github_url,
    ref_candidates,
    select_host_config,
)
from core.errors import InvalidUrlError
from core.models import HostConfig, ParsedTarget


PUBLIC = HostConfig.for_host("github.com")
GHE = HostConfig.for_host("ghe.github.com", "https://ghe.github.com/api/v3")


def test_parse_repo_url_variants():
    expected = ParsedTarget(host="github.com", owner="backstage", repo="mock", ref=None)
    assert parse_github_url("https://github.com/backstage/mock", PUBLIC) == expected
    assert parse_github_url("https://github.com/backstage/mock/", PUBLIC) == expected
    assert parse_github_url("https://github.com/backstage/mock.git", PUBLIC) == expected
    assert parse_github_url("  https://GitHub.com/backstage/mock  ", PUBLIC) == expected


def test_parse_tree_url():
    t = parse_github_url("https://github.com/backstage/mock/tree/main", PUBLIC)
    assert (t.ref, t.sub_path, t.kind) == ("main", "", "tree")

    t = parse_github_url("https://github.com/backstage/mock/tree/main/docs/guides/", PUBLIC)
    assert (t.ref, t.sub_path, t.kind) == ("main", "docs/guides", "tree")


def test_parse_blob_url_and_decoding():
    t = parse_github_url("https://github.com/backstage/mock/blob/v1.0/docs/my%20file.md", PUBLIC)
    assert t.kind == "blob"
    assert t.ref == "v1.0"
    assert t.sub_path == "docs/my file.md"


def test_parse_enterprise_subdomain():
    t = parse_github_url("https://ghe.github.com/backstage/mock/tree/main/docs", GHE)
    assert t.host == "ghe.github.com"
    assert t.full_name == "backstage/mock"
    assert t.sub_path == "docs"


@pytest.mark.parametrize(
    "bad",
    [
        "",
        "not a url",
        "backstage/mock",
        "ftp://github.com/backstage/mock",
        "https://not.github.com/apa",
        "https://github.com.evil.example/backstage/mock",
        "https://ghe.github.com/backstage/mock",
        "https://github.com/backstage",
        "https://github.com/backstage/mock/issues/1",
        "https://github.com/backstage/mock/tree",
        "https://github.com/backstage/mock/blob/main",
        "https://github.com/backstage/.git",
    ],
)
def test_parse_invalid(bad):
    with pytest.raises(InvalidUrlError) as exc:
        parse_github_url(bad, PUBLIC)
    assert "Invalid GitHub URL or file path" in str(exc.value)


def test_invalid_url_message_names_the_url():
    with pytest.raises(InvalidUrlError) as exc:
        parse_github_url("https://not.github.com/apa", PUBLIC)
    assert "https://not.github.com/apa" in str(exc.value)


def test_host_matches_is_exact():
    assert host_matches("https://github.com/a/b", "github.com")
    assert host_matches("https://user:pw@github.com/a/b", "github.com")
    assert not host_matches("https://not.github.com/a/b", "github.com")
    assert not host_matches("https://github.com:8443/a/b", "github.com")
    assert host_matches("https://ghe.local:8443/a/b", "ghe.local:8443")


def test_select_host_config():
    configs = [PUBLIC, GHE]
    assert select_host_config("https://ghe.github.com/o/r", configs) is GHE
    assert select_host_config("https://github.com/o/r", configs) is PUBLIC
    with pytest.raises(InvalidUrlError):
        select_host_config("https://gitlab.com/o/r", configs)


def test_ref_candidates_tree_longest_first():
    t = ParsedTarget(host="github.com", owner="o", repo="r", ref="a", sub_path="b/c")
    assert ref_candidates(t, 3) == [("a/b/c", ""), ("a/b", "c"), ("a", "b/c")]
    assert ref_candidates(t, 2) == [("a/b", "c"), ("a", "b/c")]
    assert ref_candidates(t, 1) == [("a", "b/c")]
    assert ref_candidates(t, 0) == [("a", "b/c")]


def test_ref_candidates_blob_keeps_file_name():
    t = ParsedTarget(host="github.com", owner="o", repo="r", ref="a", sub_path="b/file.md", kind="blob")
    assert ref_candidates(t, 5) == [("a/b", "file.md"), ("a", "b/file.md")]


def test_ref_candidates_default_branch():
    t = ParsedTarget(host="github.com", owner="o", repo="r", ref=None)
    assert ref_candidates(t, 3) == []
