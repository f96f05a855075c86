"""Domain-anchor (``||host``) matching.

Hosts are split on "." and reversed before insertion so that the TLD
comes first: "ads.example.com" becomes ["com", "example", "ads"]. A query
host is walked the same way, and every rule ending on a node reached
along the walk matches: that node's host is the query host or one of its
parent domains. "example.com" therefore matches "a.b.example.com" but
never "notexample.com", since labels are compared whole.

A "*" label is a wildcard edge matching exactly one label, so
``||google.*`` covers every TLD.

Nodes live in flat lists addressed by index; node 0 is the root.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .parser import RuleKind
from .pattern_matcher import Glob, compile_glob

if TYPE_CHECKING:
    from .parser import Rule

logger = logging.getLogger(__name__)

WILDCARD_LABEL = "*"
# What a "^" separator may stand for right after the host
SEPARATORS = ("/", ":", "?")


def _strip_port(remainder: str) -> str:
    """Drop a leading ``:port`` so trailing literals see the path."""
    if not remainder.startswith(":"):
        return remainder
    for i, c in enumerate(remainder):
        if c in ("/", "?"):
            return remainder[i:]
    return ""


@dataclass(frozen=True)
class _Terminal:
    rule: Rule
    trailing: Glob | None = None
    needs_separator: bool = False

    def accepts(self, remainder: str) -> bool:
        """Check the trailing literal against the URL text after the host."""
        remainder = _strip_port(remainder)
        if self.needs_separator:
            if remainder and not remainder.startswith(SEPARATORS):
                return False
            remainder = remainder[1:]
        return self.trailing is None or self.trailing.match(remainder)


def _compile_terminal(rule: Rule) -> _Terminal:
    trailing = rule.pattern
    needs_separator = trailing.startswith("^")
    if needs_separator:
        trailing = trailing[1:]
    glob = compile_glob(trailing, anchored_start=True) if trailing else None
    return _Terminal(rule=rule, trailing=glob, needs_separator=needs_separator)


class DomainMatcher:
    """Trie over reversed host labels for ``||host`` rules of one set."""

    def __init__(self) -> None:
        self._children: list[dict[str, int]] = [{}]
        self._terminals: list[list[_Terminal]] = [[]]
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def node_count(self) -> int:
        """Number of trie nodes, including the root."""
        return len(self._children)

    def _new_node(self) -> int:
        self._children.append({})
        self._terminals.append([])
        return len(self._children) - 1

    def add(self, rule: Rule) -> None:
        """Insert a domain-anchor rule."""
        if rule.kind is not RuleKind.DOMAIN_ANCHOR or not rule.host:
            raise ValueError(f"Not a domain-anchor rule: {rule.raw!r}")

        node = 0
        for label in reversed(rule.host.split(".")):
            child = self._children[node].get(label)
            if child is None:
                child = self._new_node()
                self._children[node][label] = child
            node = child

        self._terminals[node].append(_compile_terminal(rule))
        self._count += 1

    def match(self, host: str, remainder: str = "/") -> Rule | None:
        """Return the matching rule with the lowest list index.

        Args:
            host: Lower-cased host of the normalized URL.
            remainder: Normalized URL text following the host.
        """
        labels = host.split(".")
        labels.reverse()

        best: Rule | None = None
        stack = [(0, 0)]
        while stack:
            node, depth = stack.pop()

            for terminal in self._terminals[node]:
                if best is not None and terminal.rule.index >= best.index:
                    continue
                if terminal.accepts(remainder):
                    best = terminal.rule

            if depth == len(labels):
                continue

            children = self._children[node]
            child = children.get(labels[depth])
            if child is not None:
                stack.append((child, depth + 1))
            wild = children.get(WILDCARD_LABEL)
            if wild is not None and wild != child:
                stack.append((wild, depth + 1))

        return best
