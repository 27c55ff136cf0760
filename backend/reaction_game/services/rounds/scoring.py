import math
from typing import Optional

DEFAULT_MAX_VALID_MS = 60000

# Upper bounds (exclusive) for each performance band, fastest first
CATEGORY_BANDS = (
    (150, 'amazing', 'Amazing'),
    (200, 'veryGood', 'Very Good'),
    (250, 'good', 'Good'),
    (350, 'average', 'Average'),
)
SLOWEST_CATEGORY = ('belowAverage', 'Below Average')


def is_valid_reaction(ms: Optional[float], ceiling: float = DEFAULT_MAX_VALID_MS) -> bool:
    """A usable sample is finite, positive and no longer than ``ceiling``."""
    if ms is None or not math.isfinite(ms):
        return False
    return 0 < ms <= ceiling


def categorize(ms: Optional[float]) -> dict:
    """Performance band of a reaction time; empty when there is no time."""
    if ms is None or not math.isfinite(ms) or ms <= 0:
        return {'class': '', 'text': ''}
    for upper, css_class, text in CATEGORY_BANDS:
        if ms < upper:
            return {'class': css_class, 'text': text}
    css_class, text = SLOWEST_CATEGORY
    return {'class': css_class, 'text': text}


def build_stats(current: Optional[float], best: Optional[float], history) -> dict:
    """Stats payload sent after a round and on session/best changes.

    ``None`` values serialize as ``null`` ("not set").
    """
    most_recent = history.most_recent()
    return {
        'current': current,
        'best': best,
        'average': history.average(),
        'mostRecent': most_recent,
        'sessionCount': history.count(),
        'currentCategory': categorize(current),
        'mostRecentCategory': categorize(most_recent),
    }


def build_attempts(history) -> dict:
    return {
        'attempts': list(history.snapshot()),
        'capacity': history.capacity,
    }
