"""
GFWList / AutoProxy filter list matching.

Parses Adblock-style rule lists and classifies URLs against them, with
exception rules overriding block rules.
"""

from .config import GfwListConfig
from .engine import GfwList, MatchResult
from .exceptions import GfwListBuildError, GfwListError, GfwListSyntaxError, GfwListUrlError
from .parser import ParsedList, Rule, RuleKind, parse_rule, parse_rule_list

__all__ = [
    "GfwList",
    "GfwListConfig",
    "MatchResult",
    "GfwListError",
    "GfwListSyntaxError",
    "GfwListBuildError",
    "GfwListUrlError",
    "ParsedList",
    "Rule",
    "RuleKind",
    "parse_rule",
    "parse_rule_list",
]
