"""
Error types raised by gfwlist.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .parser import Rule


class GfwListError(Exception):
    """Base class for all gfwlist errors."""

    pass


class GfwListSyntaxError(GfwListError, ValueError):
    """A rule line could not be parsed."""

    def __init__(self, line: str, lineno: int | None = None, reason: str = "") -> None:
        self.line = line
        self.lineno = lineno
        self.reason = reason
        where = f" (line {lineno})" if lineno is not None else ""
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid rule syntax{where}: {line!r}{detail}")


class GfwListBuildError(GfwListError, RuntimeError):
    """A syntactically valid rule could not be compiled into a matcher."""

    def __init__(self, rule: Rule, reason: str) -> None:
        self.rule = rule
        self.reason = reason
        super().__init__(f"Failed to build matcher for rule {rule.raw!r}: {reason}")


class GfwListUrlError(GfwListError, ValueError):
    """A URL could not be decomposed into at least a scheme and a host."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL {url!r}: {reason}")
