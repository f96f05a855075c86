"""
Literal and wildcard matching for prefix, suffix and wildcard rules.

A URL is tested against every rule of a set in a single pass:

1. Each rule contributes its longest literal segment (the text between
   ``*`` wildcards) to an Aho-Corasick automaton.
2. One scan of the URL through the automaton yields the rules whose key
   segment occurs somewhere in it.
3. Only those candidates run their full glob check, which also enforces
   the ``|`` anchors.

Rules without any literal segment (``*``) are candidates for every URL.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .parser import RuleKind

if TYPE_CHECKING:
    from .parser import Rule

logger = logging.getLogger(__name__)


class _Node:
    """A single node in the Aho-Corasick automaton."""

    __slots__ = ("children", "keys", "fail", "output")

    def __init__(self) -> None:
        self.children: dict[str, _Node] = {}
        self.keys: list[int] = []  # ids of fragments ending here
        self.fail: _Node | None = None  # failure link
        self.output: _Node | None = None  # nearest node with keys via fail chain


class AhoCorasick:
    """Multi-pattern substring search over literal fragments.

    Example::

        ac = AhoCorasick()
        ads = ac.add("/ads/")
        ac.build()
        ac.search("http://example.com/ads/x.js")  # {ads}
    """

    def __init__(self) -> None:
        self._root = _Node()
        self._ids: dict[str, int] = {}
        self._built = False

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, fragment: str) -> int:
        """Add a fragment and return its id. Identical fragments share an id."""
        if not fragment:
            raise ValueError("Cannot add an empty fragment")
        if self._built:
            raise RuntimeError("Cannot add fragments after build()")

        key = self._ids.get(fragment)
        if key is not None:
            return key

        key = len(self._ids)
        self._ids[fragment] = key

        node = self._root
        for ch in fragment:
            child = node.children.get(ch)
            if child is None:
                child = node.children[ch] = _Node()
            node = child
        node.keys.append(key)
        return key

    def build(self) -> None:
        """Compute failure and output links via BFS."""
        root = self._root
        root.fail = root
        queue: deque[_Node] = deque()

        for child in root.children.values():
            child.fail = root
            queue.append(child)

        while queue:
            node = queue.popleft()
            for ch, child in node.children.items():
                fail = node.fail
                assert fail is not None
                while fail is not root and ch not in fail.children:
                    assert fail.fail is not None
                    fail = fail.fail
                target = fail.children.get(ch)
                child.fail = target if target is not None and target is not child else root

                f = child.fail
                child.output = f if f.keys else f.output
                queue.append(child)

        self._built = True

    def search(self, text: str) -> set[int]:
        """Return the ids of all fragments occurring in text."""
        if not self._built:
            raise RuntimeError("Must call build() before search()")

        found: set[int] = set()
        root = self._root
        node = root

        for ch in text:
            while node is not root and ch not in node.children:
                assert node.fail is not None
                node = node.fail
            node = node.children.get(ch, root)

            hit: _Node | None = node if node.keys else node.output
            while hit is not None:
                found.update(hit.keys)
                hit = hit.output

        return found


@dataclass(frozen=True)
class Glob:
    """A compiled wildcard literal.

    ``*`` matches any run of characters, including none. Segments are
    located left to right at their leftmost occurrence.
    """

    parts: tuple[str, ...]
    anchored_start: bool = False
    anchored_end: bool = False

    @property
    def key(self) -> str:
        """Longest literal segment, empty if the glob is all wildcards."""
        return max(self.parts, key=len)

    def match(self, text: str) -> bool:
        """Check whether text matches the glob."""
        parts = self.parts

        if len(parts) == 1:
            literal = parts[0]
            if self.anchored_start and self.anchored_end:
                return text == literal
            if self.anchored_start:
                return text.startswith(literal)
            if self.anchored_end:
                return text.endswith(literal)
            return literal in text

        first, last = parts[0], parts[-1]

        if self.anchored_start:
            if not text.startswith(first):
                return False
            pos = len(first)
        else:
            found = text.find(first)
            if found == -1:
                return False
            pos = found + len(first)

        limit = len(text)
        if self.anchored_end:
            if not text.endswith(last):
                return False
            limit -= len(last)
            if limit < pos:
                return False

        for segment in parts[1:-1]:
            found = text.find(segment, pos, limit)
            if found == -1:
                return False
            pos = found + len(segment)

        if self.anchored_end:
            return True
        return text.find(last, pos) != -1


def compile_glob(literal: str, anchored_start: bool = False, anchored_end: bool = False) -> Glob:
    """Compile a wildcard literal into a Glob."""
    return Glob(
        parts=tuple(literal.split("*")),
        anchored_start=anchored_start,
        anchored_end=anchored_end,
    )


def glob_for_rule(rule: Rule) -> Glob:
    """Compile the glob of a prefix, suffix or wildcard rule."""
    if rule.kind is RuleKind.PREFIX:
        return compile_glob(rule.pattern, anchored_start=True, anchored_end=rule.anchored_end)
    if rule.kind is RuleKind.SUFFIX:
        return compile_glob(rule.pattern, anchored_end=True)
    if rule.kind is RuleKind.WILDCARD:
        return compile_glob(rule.pattern)
    raise ValueError(f"Rule kind {rule.kind.name} is not handled by PatternMatcher")


@dataclass(frozen=True)
class _Entry:
    rule: Rule
    glob: Glob


class PatternMatcher:
    """Matcher for prefix, suffix and wildcard rules of one set."""

    def __init__(self) -> None:
        self._automaton = AhoCorasick()
        self._keyed: dict[int, list[_Entry]] = {}
        self._unkeyed: list[_Entry] = []
        self._count = 0
        self._built = False

    def __len__(self) -> int:
        return self._count

    def add(self, rule: Rule) -> None:
        """Add a rule. Call build() after adding all rules."""
        glob = glob_for_rule(rule)
        entry = _Entry(rule=rule, glob=glob)

        key = glob.key
        if key:
            self._keyed.setdefault(self._automaton.add(key), []).append(entry)
        else:
            self._unkeyed.append(entry)
        self._count += 1

    def build(self) -> None:
        """Build the automaton over all key segments."""
        self._automaton.build()
        self._built = True

        logger.debug(
            "Pattern matcher built: %d rules, %d distinct keys, %d unkeyed",
            self._count,
            len(self._automaton),
            len(self._unkeyed),
        )

    def match(self, url: str) -> Rule | None:
        """Return the first rule (in list order) matching the normalized URL."""
        if not self._built:
            raise RuntimeError("Must call build() before match()")

        candidates = list(self._unkeyed)
        for key in self._automaton.search(url):
            candidates.extend(self._keyed[key])

        for entry in sorted(candidates, key=lambda e: e.rule.index):
            if entry.glob.match(url):
                return entry.rule

        return None
