"""
Regular-expression (``/source/``) rules.

Each rule keeps its own compiled pattern and is tested with search
semantics: it matches if the expression is found anywhere in the
normalized URL. Lists carry few such rules, so they are tried one by one.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from .exceptions import GfwListBuildError
from .parser import RuleKind

if TYPE_CHECKING:
    from .parser import Rule

logger = logging.getLogger(__name__)


class RegexMatcher:
    """Matcher for regex rules of one set."""

    def __init__(self) -> None:
        self._patterns: list[tuple[re.Pattern[str], Rule]] = []

    def __len__(self) -> int:
        return len(self._patterns)

    def add(self, rule: Rule) -> None:
        """Compile and add a regex rule.

        Raises:
            GfwListBuildError: If the expression does not compile.
        """
        if rule.kind is not RuleKind.REGEX:
            raise ValueError(f"Not a regex rule: {rule.raw!r}")

        try:
            compiled = re.compile(rule.pattern)
        except re.error as e:
            raise GfwListBuildError(rule, str(e)) from e

        self._patterns.append((compiled, rule))

    def match(self, url: str) -> Rule | None:
        """Return the first rule (in list order) whose expression occurs in url."""
        for compiled, rule in self._patterns:
            if compiled.search(url) is not None:
                return rule
        return None
