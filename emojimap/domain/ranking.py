from typing import List

from ..core.constants import TRENDING_MIN_POSTS, TRENDING_FRACTION, TRENDING_MIN_LIKES
from ..core.models import Pin, PostFilter


def trending_minimum(pins: List[Pin]) -> int:
    """Like count a pin needs to trend: the top ~15% cut, never below one like."""
    ranked = sorted(pins, key=lambda p: p.upvotes, reverse=True)
    k = max(0, int(len(ranked) * TRENDING_FRACTION) - 1)
    threshold = ranked[k].upvotes if k < len(ranked) else 0
    return max(TRENDING_MIN_LIKES, threshold)


def recompute_trending(pins: List[Pin]) -> List[Pin]:
    """Reassign is_trending over the whole collection, in place.

    Collections of TRENDING_MIN_POSTS pins or fewer are left untouched.
    Ties at the cut all trend.
    """
    if len(pins) <= TRENDING_MIN_POSTS:
        return pins
    minimum = trending_minimum(pins)
    for p in pins:
        p.is_trending = p.upvotes >= minimum
    return pins


def apply_filter(pins: List[Pin], post_filter: PostFilter) -> List[Pin]:
    if post_filter == PostFilter.TRENDING:
        return [p for p in pins if p.is_trending]
    # FRIENDS is not implemented yet and shows everything
    return list(pins)
