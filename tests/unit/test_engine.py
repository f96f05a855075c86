"""Unit tests for the list engine."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from gfwlist import (
    GfwList,
    GfwListBuildError,
    GfwListConfig,
    GfwListSyntaxError,
    GfwListUrlError,
)

SAMPLE_LIST = "||blocked-site.com\n@@||exception.com\n/regex-pattern/\n"


class TestConstruction:
    """Tests for building an engine from list text."""

    def test_size(self) -> None:
        """Test that size counts block and exception rules."""
        gfw = GfwList(SAMPLE_LIST)
        assert gfw.size() == 3
        assert len(gfw) == 3
        assert repr(gfw) == "GfwList(rules_count=3)"

    def test_size_skips_comments_headers_and_blanks(self) -> None:
        """Test that only rule lines are counted."""
        content = """[AutoProxy 0.2.9]
! Title: test

||a.com

@@|http://a.com/ok
! trailing comment
"""
        assert GfwList(content).size() == 2

    def test_empty_list(self) -> None:
        """Test that an empty list builds and blocks nothing."""
        gfw = GfwList("")
        assert gfw.size() == 0
        assert gfw.evaluate("http://example.com/") is None

    def test_syntax_error_aborts(self) -> None:
        """Test that a malformed line fails the whole construction."""
        with pytest.raises(GfwListSyntaxError):
            GfwList("||ok.com\n/unterminated\n")

    def test_bad_regex_is_build_error(self) -> None:
        """Test that an uncompilable regex fails the construction."""
        with pytest.raises(GfwListBuildError):
            GfwList("||ok.com\n/[unclosed/\n")

    def test_stats(self) -> None:
        """Test that per-matcher counts add up to the rule count."""
        gfw = GfwList(SAMPLE_LIST + "ads\n@@|http://x.com\n")
        stats = gfw.get_stats()

        assert stats["rules"] == 5
        assert stats["domain_block"] == 1
        assert stats["domain_exception"] == 1
        assert stats["regex_block"] == 1
        assert stats["pattern_block"] == 1
        assert stats["pattern_exception"] == 1
        assert stats["regex_exception"] == 0
        assert sum(v for k, v in stats.items() if k != "rules") == stats["rules"]


class TestEvaluate:
    """Tests for URL evaluation."""

    def test_canonical_scenarios(self) -> None:
        """Test the blocked, excepted and unlisted cases of the sample list."""
        gfw = GfwList(SAMPLE_LIST)

        assert gfw.evaluate("http://blocked-site.com/page") == "||blocked-site.com"
        assert gfw.evaluate("http://exception.com/page") is None
        assert gfw.evaluate("http://allowed-site.com/page") is None

    def test_regex_rule(self) -> None:
        """Test that a regex rule matches anywhere in the URL."""
        gfw = GfwList(SAMPLE_LIST)

        assert gfw.evaluate("http://x.com/regex-pattern/1") == "/regex-pattern/"

    def test_subdomain_blocked(self) -> None:
        """Test that subdomains of a domain anchor are blocked."""
        gfw = GfwList(SAMPLE_LIST)

        assert gfw.evaluate("https://www.blocked-site.com/") == "||blocked-site.com"
        assert gfw.evaluate("https://notblocked-site.com/") is None

    def test_scheme_and_host_are_case_insensitive(self) -> None:
        """Test that scheme and host are folded before matching."""
        gfw = GfwList("||blocked-site.com\n|http://Prefix.com/Path\n")

        assert gfw.evaluate("HTTP://WWW.Blocked-Site.COM/") == "||blocked-site.com"
        assert gfw.evaluate("HTTP://PREFIX.COM/Path/x") == "|http://Prefix.com/Path"
        assert gfw.evaluate("http://prefix.com/path/x") is None

    def test_mixed_case_host_rules(self) -> None:
        """Test that wildcard and suffix rules match hosts case-insensitively."""
        gfw = GfwList("Blocked-Site.com\nExample.COM/|\n")

        assert gfw.evaluate("http://blocked-site.com/page") == "Blocked-Site.com"
        assert gfw.evaluate("http://example.com/") == "Example.COM/|"
        assert gfw.evaluate("http://example.com/page") is None

    def test_leading_dot_is_a_substring(self) -> None:
        """Test that a leading-dot rule needs the dot and skips the bare host."""
        gfw = GfwList(".example.com\n")

        assert gfw.evaluate("http://www.example.com/") == ".example.com"
        assert gfw.evaluate("http://example.com/") is None

    def test_url_in_query_is_matched_verbatim(self) -> None:
        """Test that a URL embedded in a rule's query keeps its case."""
        gfw = GfwList("*/Go?to=http://x.com\n")

        assert gfw.evaluate("http://a.com/Go?to=http://x.com") == "*/Go?to=http://x.com"
        assert gfw.evaluate("http://a.com/go?to=http://x.com") is None

    def test_domain_anchor_path_with_port(self) -> None:
        """Test that a port in the URL does not hide the path from a domain rule."""
        gfw = GfwList("||example.com/ads\n")

        assert gfw.evaluate("http://example.com:8080/ads") == "||example.com/ads"
        assert gfw.evaluate("http://example.com:8080/news") is None

    @pytest.mark.parametrize(
        "content",
        [
            "||example.com\n@@||example.com/ok\n",
            "@@||example.com/ok\n||example.com\n",
            "example.com\n@@/\\/ok$/\n",
            "/example/\n@@|https://www.example.com\n",
        ],
    )
    def test_exception_wins_regardless_of_order(self, content: str) -> None:
        """Test that an exception match overrides any block match."""
        gfw = GfwList(content)

        assert gfw.evaluate("https://www.example.com/ok") is None

    def test_exception_only_suppresses_matching_urls(self) -> None:
        """Test that exceptions leave other URLs of a blocked domain blocked."""
        gfw = GfwList("||example.com\n@@||example.com/ok\n")

        assert gfw.evaluate("https://example.com/ads") == "||example.com"
        assert gfw.evaluate("https://example.com/ok") is None

    def test_default_tie_break(self) -> None:
        """Test that domain rules win over pattern and regex rules."""
        gfw = GfwList("/example/\nexample\n||example.com\n")

        assert gfw.evaluate("http://example.com/") == "||example.com"

    def test_pattern_before_regex(self) -> None:
        """Test that pattern rules win over regex rules by default."""
        gfw = GfwList("/example/\nexample\n")

        assert gfw.evaluate("http://example.com/") == "example"

    def test_configured_tie_break(self) -> None:
        """Test that the matcher order can be overridden."""
        config = GfwListConfig(match_order=("regex", "pattern", "domain"))
        gfw = GfwList("||example.com\nexample\n/example/\n", config=config)

        assert gfw.evaluate("http://example.com/") == "/example/"

    def test_within_matcher_list_order(self) -> None:
        """Test that the earliest rule of a matcher is reported."""
        gfw = GfwList("||com\n||example.com\n")

        assert gfw.evaluate("http://www.example.com/") == "||com"

    def test_check_reports_rule(self) -> None:
        """Test the structured result of check()."""
        gfw = GfwList(SAMPLE_LIST)

        result = gfw.check("http://blocked-site.com/")
        assert result.blocked is True
        assert result.rule is not None
        assert result.rule.raw == "||blocked-site.com"
        assert result.rule.is_exception is False

        result = gfw.check("http://exception.com/")
        assert result.blocked is False
        assert result.rule is None

    def test_test_alias_and_contains(self) -> None:
        """Test the test() alias and the in operator."""
        gfw = GfwList(SAMPLE_LIST)

        assert gfw.test("http://blocked-site.com/") == "||blocked-site.com"
        assert "http://blocked-site.com/" in gfw
        assert "http://allowed-site.com/" not in gfw

    @pytest.mark.parametrize("url", ["", "blocked-site.com/page", "http://", "mailto:a@b.c"])
    def test_url_error_keeps_engine_usable(self, url: str) -> None:
        """Test that an unparseable URL raises and leaves the engine usable."""
        gfw = GfwList(SAMPLE_LIST)

        with pytest.raises(GfwListUrlError):
            gfw.evaluate(url)

        assert gfw.evaluate("http://blocked-site.com/page") == "||blocked-site.com"
        assert gfw.size() == 3

    def test_concurrent_evaluate(self) -> None:
        """Test that one engine serves many threads with consistent answers."""
        gfw = GfwList(SAMPLE_LIST + "@@||ok.blocked-site.com\n")
        urls = [
            "http://blocked-site.com/a",
            "http://ok.blocked-site.com/b",
            "http://allowed-site.com/c",
        ] * 200
        expected = ["||blocked-site.com", None, None] * 200

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(gfw.evaluate, urls))

        assert results == expected
