"""
List engine: builds the matchers from list text and answers URL queries.

An engine is built once and never modified afterwards, so a single
instance can serve concurrent evaluate() calls without locking. To pick
up a new list, build a new engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import GfwListConfig
from .domain_matcher import DomainMatcher
from .parser import ParsedList, Rule, RuleKind, parse_rule_list
from .pattern_matcher import PatternMatcher
from .regex_matcher import RegexMatcher
from .urls import NormalizedUrl, normalize_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    """Result of URL matching."""

    blocked: bool
    rule: Rule | None = None  # the block rule; exceptions are never reported


class RuleSet:
    """The domain, pattern and regex matchers for one side (block or exception)."""

    def __init__(self) -> None:
        self.domain = DomainMatcher()
        self.pattern = PatternMatcher()
        self.regex = RegexMatcher()

    def __len__(self) -> int:
        return len(self.domain) + len(self.pattern) + len(self.regex)

    def add(self, rule: Rule) -> None:
        """Route a rule to the matcher for its kind."""
        if rule.kind is RuleKind.DOMAIN_ANCHOR:
            self.domain.add(rule)
        elif rule.kind is RuleKind.REGEX:
            self.regex.add(rule)
        else:
            self.pattern.add(rule)

    def build(self) -> None:
        self.pattern.build()

    def match(self, url: NormalizedUrl, order: tuple[str, ...]) -> Rule | None:
        """Query the matchers in the given order and return the first hit."""
        for name in order:
            if name == "domain":
                rule = self.domain.match(url.host, url.remainder)
            elif name == "pattern":
                rule = self.pattern.match(url.text)
            else:
                rule = self.regex.match(url.text)
            if rule is not None:
                return rule
        return None


class GfwList:
    """A compiled filter list.

    Example::

        gfw = GfwList("||blocked-site.com\\n@@||exception.com\\n")
        gfw.evaluate("http://blocked-site.com/page")  # "||blocked-site.com"
        gfw.evaluate("http://exception.com/page")  # None
    """

    def __init__(self, rules_text: str, config: GfwListConfig | None = None) -> None:
        """Parse and index a filter list.

        Args:
            rules_text: Plain (already decoded) list text.
            config: Engine settings. If None, uses defaults.

        Raises:
            GfwListSyntaxError: If a line is not a valid rule.
            GfwListBuildError: If a rule cannot be compiled (e.g. a bad regex).
        """
        self._config = config or GfwListConfig()
        self._rules = parse_rule_list(rules_text)
        self._block = RuleSet()
        self._exception = RuleSet()

        for rule in self._rules:
            target = self._exception if rule.is_exception else self._block
            target.add(rule)

        self._block.build()
        self._exception.build()

        logger.info(
            "GfwList built: %d rules (%d block, %d exception)",
            len(self._rules),
            len(self._block),
            len(self._exception),
        )

    @property
    def rules(self) -> ParsedList:
        """All parsed rules in list order."""
        return self._rules

    @property
    def config(self) -> GfwListConfig:
        return self._config

    def check(self, url: str) -> MatchResult:
        """Check a URL against the list.

        Exception rules are consulted first; if any matches, the URL is not
        blocked regardless of block rules.

        Raises:
            GfwListUrlError: If the URL has no scheme or host.
        """
        normalized = normalize_url(url)
        order = self._config.match_order

        if self._exception.match(normalized, order) is not None:
            return MatchResult(blocked=False)

        rule = self._block.match(normalized, order)
        if rule is None:
            return MatchResult(blocked=False)

        logger.debug("Blocked: %s by %s", normalized.text[:80], rule.raw)
        return MatchResult(blocked=True, rule=rule)

    def evaluate(self, url: str) -> str | None:
        """Return the raw text of the block rule matching url, or None."""
        result = self.check(url)
        return result.rule.raw if result.rule is not None else None

    test = evaluate

    def size(self) -> int:
        """Total number of parsed rules, block and exception."""
        return len(self._rules)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, url: str) -> bool:
        return self.evaluate(url) is not None

    def __repr__(self) -> str:
        return f"GfwList(rules_count={self.size()})"

    def get_stats(self) -> dict[str, int]:
        """Get rule counts per matcher."""
        return {
            "rules": self.size(),
            "domain_block": len(self._block.domain),
            "domain_exception": len(self._exception.domain),
            "pattern_block": len(self._block.pattern),
            "pattern_exception": len(self._exception.pattern),
            "regex_block": len(self._block.regex),
            "regex_exception": len(self._exception.regex),
        }
