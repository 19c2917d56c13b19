"""Tests for PR URL parsing and the substring pre-filter."""
import pytest

from prapprover.app.services.pr_url import parse_pr_url, looks_like_pr_url, split_pr_urls
from prapprover.utils.errors import InvalidPrUrlError


def test_parse_basic_url():
    ref = parse_pr_url("https://github.com/acme/widgets/pull/42")
    assert (ref.owner, ref.repo, ref.number) == ("acme", "widgets", 42)
    assert ref.slug == "acme/widgets#42"
    assert ref.api_path == "/repos/acme/widgets/pulls/42"


def test_parse_files_suffix():
    ref = parse_pr_url("https://github.com/acme/widgets/pull/7/files")
    assert ref.number == 7


def test_parse_tolerates_surrounding_whitespace():
    ref = parse_pr_url("  https://github.com/o/r/pull/1\r")
    assert ref.number == 1


def test_owner_and_repo_allow_dots_and_dashes():
    ref = parse_pr_url("https://github.com/my-org/repo.name_2/pull/1234")
    assert ref.owner == "my-org"
    assert ref.repo == "repo.name_2"


@pytest.mark.parametrize("url", [
    "https://github.com/acme/widgets/pull/abc",
    "https://github.com/acme/widgets/pull/",
    "https://github.com/acme/pull/42",
    "https://github.com/acme/widgets/issues/42",
    "http://github.com/acme/widgets/pull/42",
    "https://gitlab.com/acme/widgets/pull/42",
    "https://github.com/acme/widgets/pull/42/commits",
    "https://github.com/acme/widgets/pull/0",
    "not-a-url",
    "",
])
def test_rejects_malformed_urls(url):
    with pytest.raises(InvalidPrUrlError):
        parse_pr_url(url)


def test_invalid_url_error_is_value_error():
    with pytest.raises(ValueError):
        parse_pr_url("https://github.com/acme/widgets/pull/x")


def test_prefilter():
    assert looks_like_pr_url("https://github.com/o/r/pull/1")
    assert looks_like_pr_url("github.com something /pull/ else")
    assert not looks_like_pr_url("https://github.com/o/r/issues/1")
    assert not looks_like_pr_url("not-a-url")


def test_split_drops_blank_and_non_pr_lines():
    blob = "https://github.com/o/r/pull/1\r\n\nnot-a-url\nhttps://github.com/o/r/pull/2\n"
    assert split_pr_urls(blob) == [
        "https://github.com/o/r/pull/1",
        "https://github.com/o/r/pull/2",
    ]


def test_split_keeps_prefiltered_but_unparseable_lines():
    # Passes the substring check, so it is kept and will fail strict parsing later.
    assert split_pr_urls("https://github.com/o/r/pull/abc") == ["https://github.com/o/r/pull/abc"]


def test_split_empty():
    assert split_pr_urls("") == []
    assert split_pr_urls(None) == []
