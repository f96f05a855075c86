"""
Configuration for gfwlist.
"""

from dataclasses import dataclass

MATCHER_NAMES = ("domain", "pattern", "regex")


@dataclass(frozen=True)
class GfwListConfig:
    """Engine configuration."""

    # Block-phase tie-break: the first matcher in this order that hits wins
    match_order: tuple[str, ...] = MATCHER_NAMES

    def __post_init__(self) -> None:
        order = tuple(self.match_order)
        if sorted(order) != sorted(MATCHER_NAMES):
            raise ValueError(
                f"match_order must be a permutation of {MATCHER_NAMES}, got {order}"
            )
        object.__setattr__(self, "match_order", order)
