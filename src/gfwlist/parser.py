"""
Rule parser for GFWList / AutoProxy filter lists.

Each line of a list is either skipped (blank, comment, header) or turned
into a typed Rule. Parsing is strict: a malformed line raises
GfwListSyntaxError and no partial result is produced.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum, auto

from .exceptions import GfwListSyntaxError

logger = logging.getLogger(__name__)


class RuleKind(Enum):
    """Syntactic form of a rule."""

    DOMAIN_ANCHOR = auto()  # ||host[/trailing]
    PREFIX = auto()  # |literal
    SUFFIX = auto()  # literal|
    WILDCARD = auto()  # literal with * segments
    REGEX = auto()  # /source/


@dataclass(frozen=True)
class Rule:
    """Parsed filter rule."""

    raw: str
    kind: RuleKind
    pattern: str  # literal, regex source, or trailing literal of a domain anchor
    is_exception: bool = False
    host: str | None = None  # DOMAIN_ANCHOR only
    anchored_end: bool = False  # PREFIX only: |literal|
    index: int = 0  # position in list order


@dataclass(frozen=True)
class ParsedList:
    """All rules of a list, in list order."""

    rules: tuple[Rule, ...] = ()

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def by_kind(self, *kinds: RuleKind) -> list[Rule]:
        """Rules of the given kinds, in list order."""
        return [r for r in self.rules if r.kind in kinds]


# Characters that end the host part of a ||host rule
HOST_TERMINATORS = ("/", "^")

# A scheme at the very start of a literal, optionally after a leading *
SCHEME_PREFIX = re.compile(r"^(?:\*|\*?[A-Za-z][A-Za-z0-9+.\-]*)://")


def is_skipped(line: str) -> bool:
    """Check whether a stripped line carries no rule."""
    return not line or line.startswith("!") or line.startswith("[")


def fold_authority(literal: str) -> str:
    """Lower-case the scheme and host part of a URL-like literal.

    Only the text before the first path slash is folded. A leading scheme
    (``http://``, ``*://``) is skipped over first; a ``://`` anywhere
    else belongs to the path or query and is left alone.
    """
    match = SCHEME_PREFIX.match(literal)
    start = match.end() if match else 0
    end = literal.find("/", start)
    if end == -1:
        end = len(literal)
    return literal[:end].lower() + literal[end:]


def _extract_host(body: str) -> tuple[str, str]:
    """Split a ||-stripped body into (host, trailing literal)."""
    end = len(body)
    for i, c in enumerate(body):
        if c in HOST_TERMINATORS:
            end = i
            break

    host = body[:end].lower()
    while host.startswith("*."):
        host = host[2:]
    host = host.rstrip(".")

    trailing = body[end:]
    if trailing == "^":
        # Separator right after the host is implied by the label boundary
        trailing = ""

    return host, trailing


def _parse_body(raw: str, body: str, is_exception: bool, lineno: int | None) -> Rule:
    """Classify a rule body (the line with any @@ prefix removed)."""
    if not body:
        raise GfwListSyntaxError(raw, lineno, "empty pattern")

    if body.startswith("@"):
        raise GfwListSyntaxError(raw, lineno, "unexpected '@'")

    # /regex/
    if body.startswith("/"):
        if len(body) < 2 or not body.endswith("/"):
            raise GfwListSyntaxError(raw, lineno, "unterminated regular expression")
        source = body[1:-1]
        if not source:
            raise GfwListSyntaxError(raw, lineno, "empty regular expression")
        return Rule(raw=raw, kind=RuleKind.REGEX, pattern=source, is_exception=is_exception)

    # ||host
    if body.startswith("||"):
        host, trailing = _extract_host(body[2:])
        if not host:
            raise GfwListSyntaxError(raw, lineno, "empty host")
        return Rule(
            raw=raw,
            kind=RuleKind.DOMAIN_ANCHOR,
            pattern=trailing,
            is_exception=is_exception,
            host=host,
        )

    # |prefix
    if body.startswith("|"):
        literal = body[1:]
        anchored_end = len(literal) > 1 and literal.endswith("|")
        if anchored_end:
            literal = literal[:-1]
        if not literal:
            raise GfwListSyntaxError(raw, lineno, "empty pattern")
        return Rule(
            raw=raw,
            kind=RuleKind.PREFIX,
            pattern=fold_authority(literal),
            is_exception=is_exception,
            anchored_end=anchored_end,
        )

    # suffix|
    if body.endswith("|"):
        literal = body[:-1]
        if not literal:
            raise GfwListSyntaxError(raw, lineno, "empty pattern")
        return Rule(
            raw=raw,
            kind=RuleKind.SUFFIX,
            pattern=fold_authority(literal),
            is_exception=is_exception,
        )

    return Rule(
        raw=raw,
        kind=RuleKind.WILDCARD,
        pattern=fold_authority(body),
        is_exception=is_exception,
    )


def parse_rule(line: str, lineno: int | None = None) -> Rule | None:
    """Parse a single line.

    Args:
        line: One line of list text.
        lineno: 1-based line number, used in error messages.

    Returns:
        The parsed Rule, or None for blank, comment and header lines.

    Raises:
        GfwListSyntaxError: If the line is not a valid rule.
    """
    line = line.strip()
    if is_skipped(line):
        return None

    if line.startswith("@@"):
        return _parse_body(line, line[2:], True, lineno)

    return _parse_body(line, line, False, lineno)


def parse_rule_list(content: str) -> ParsedList:
    """Parse list text into a ParsedList.

    Raises:
        GfwListSyntaxError: On the first malformed line.
    """
    rules: list[Rule] = []

    for lineno, line in enumerate(content.splitlines(), start=1):
        rule = parse_rule(line, lineno)
        if rule is None:
            continue
        rules.append(replace(rule, index=len(rules)))

    logger.debug(
        "Parsed %d rules (%d exceptions)",
        len(rules),
        sum(1 for r in rules if r.is_exception),
    )

    return ParsedList(rules=tuple(rules))
