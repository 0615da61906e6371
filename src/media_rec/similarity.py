"""Pairwise similarity between two media items."""

import logging
import math

from .models import Media
from .config import (
    SIMILARITY_WEIGHT_GENRE,
    SIMILARITY_WEIGHT_YEAR,
    SIMILARITY_WEIGHT_THEME,
    SIMILARITY_YEAR_SCALE,
)

logger = logging.getLogger(__name__)


def jaccard(a: set, b: set) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def genre_similarity(a: Media, b: Media) -> float | None:
    if not a.genre_ids or not b.genre_ids:
        return None
    return jaccard(set(a.genre_ids), set(b.genre_ids))


def year_similarity(a: Media, b: Media) -> float | None:
    year_a, year_b = a.year, b.year
    if year_a is None or year_b is None:
        return None
    return math.exp(-abs(year_a - year_b) / SIMILARITY_YEAR_SCALE)


def _theme_tokens(overview: str) -> set[str]:
    return set(overview.lower().split())


def theme_similarity(a: Media, b: Media) -> float | None:
    tokens_a = _theme_tokens(a.overview or "")
    tokens_b = _theme_tokens(b.overview or "")
    if not tokens_a or not tokens_b:
        return None
    return jaccard(tokens_a, tokens_b)


def calculate_similarity(a: Media, b: Media) -> float:
    """
    Weighted blend of genre, release year and overview overlap in [0, 1].

    Components that cannot be computed for either item (no genres, no
    resolvable year, empty overview) are left out and the remaining weights
    are renormalized. Returns 0.0 when nothing could be compared.
    """
    components = (
        (genre_similarity(a, b), SIMILARITY_WEIGHT_GENRE),
        (year_similarity(a, b), SIMILARITY_WEIGHT_YEAR),
        (theme_similarity(a, b), SIMILARITY_WEIGHT_THEME),
    )

    total = 0.0
    weights = 0.0
    for value, weight in components:
        if value is None:
            continue
        total += value * weight
        weights += weight

    return total / weights if weights > 0 else 0.0
