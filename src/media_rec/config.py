"""
Configuration constants for the media recommendation engine.

This module centralizes all magic numbers and configurable parameters.
A handful of runtime values can be overridden via environment variables.
"""
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _get_float_env(key: str, default: float, min_val: float = 0) -> float:
    """
    Safely parse float from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated float value
    """
    try:
        val = float(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_int_env(key: str, default: int, min_val: int = 1) -> int:
    """
    Safely parse integer from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated integer value
    """
    try:
        val = int(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


# Snapshot locations (used by the CLI)
DATA_DIR = Path(os.environ.get("MEDIAREC_DATA_DIR", "data"))
CATALOG_PATH = DATA_DIR / "catalog.json"
PROFILES_PATH = DATA_DIR / "profiles.json"

# Parallel scoring
MAX_WORKERS = _get_int_env("MEDIAREC_MAX_WORKERS", 4, min_val=1)
PARALLEL_MIN_POOL = _get_int_env("MEDIAREC_PARALLEL_MIN_POOL", 64, min_val=1)

# Default result sizes
DEFAULT_RECOMMENDATION_COUNT = _get_int_env("MEDIAREC_DEFAULT_COUNT", 10, min_val=1)
DEFAULT_SIMILAR_COUNT = _get_int_env("MEDIAREC_SIMILAR_COUNT", 5, min_val=1)

# Overall score blend
SCORE_WEIGHTS = {
    'content_based': 0.4,
    'collaborative': 0.3,
    'personal_preference': 0.2,
    'recency': 0.1,
}

# Content-based blend (renormalized over the parts that apply)
CONTENT_WEIGHT_GENRE = 0.4
CONTENT_WEIGHT_KEYWORD = 0.3
CONTENT_WEIGHT_YEAR = 0.3

# Item-to-item similarity blend (renormalized over the parts that apply)
SIMILARITY_WEIGHT_GENRE = 0.4
SIMILARITY_WEIGHT_YEAR = 0.2
SIMILARITY_WEIGHT_THEME = 0.4
SIMILARITY_YEAR_SCALE = 10.0  # exp(-|dy| / scale)

# Personal preference levels
PERSONAL_ACCEPTED = 0.8
PERSONAL_REJECTED = 0.1
PERSONAL_SIMILAR_TO_LIKED = 0.7
PERSONAL_DEFAULT = 0.5

# Recency of release
RECENCY_MONTH_DAYS = 30
RECENCY_SCALE_MONTHS = 24.0
RECENCY_UNKNOWN = 0.5

# Ratings (1-5 scale)
RATING_SCALE = 5.0
RATING_MIDPOINT = 3.0
LIKED_RATING = 4     # >= counts as liked / accepted
DISLIKED_RATING = 2  # <= counts as rejected
COLLAB_SIMILARITY_NORMALIZER = 4.0  # max of (r1 - 3) * (r2 - 3)

# Interaction weighting
COMPLETION_BOOST = 1.2
INTERACTION_DECAY_DAYS = 30.0
MAX_INTERACTION_WEIGHT = 1.0
POSITIVE_SENTIMENT_MULTIPLIER = 1.5
NEGATIVE_SENTIMENT_MULTIPLIER = 0.5

# Keyword nudge applied when free-text feedback is analyzed
FEEDBACK_KEYWORD_NUDGE = 0.1

# Diversification: at most ceil(count / DIVERSITY_DIVISOR) results per genre
DIVERSITY_DIVISOR = 3
