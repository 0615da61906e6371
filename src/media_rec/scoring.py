"""
Per-candidate scoring.

The overall score blends four sub-scores (see SCORE_WEIGHTS): content-based
match against the profile's weights, collaborative signal from other users,
the user's own accept/reject history, and recency of release. Every sub-score
has a fallback for missing data, so scoring never raises.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Iterable

from .collaborative import collaborative_score
from .models import Media, RecommendationScore, ScoreFactors, UserProfile
from .config import (
    SCORE_WEIGHTS,
    CONTENT_WEIGHT_GENRE,
    CONTENT_WEIGHT_KEYWORD,
    CONTENT_WEIGHT_YEAR,
    PERSONAL_ACCEPTED,
    PERSONAL_REJECTED,
    PERSONAL_SIMILAR_TO_LIKED,
    PERSONAL_DEFAULT,
    RECENCY_MONTH_DAYS,
    RECENCY_SCALE_MONTHS,
    RECENCY_UNKNOWN,
    LIKED_RATING,
)

logger = logging.getLogger(__name__)


def content_based_score(candidate: Media, profile: UserProfile) -> float:
    """
    Match a candidate against the profile's accumulated weights.

    Genre part: mean genre weight over the candidate's genres.
    Keyword part: sum of weights of stored keywords found in the overview.
    Year part: the year-range weight, only when the release year falls in range.
    Parts that do not apply are dropped and the rest renormalized.
    """
    prefs = profile.preferences
    score = 0.0
    weights = 0.0

    if candidate.genre_ids:
        genre_score = sum(
            prefs.genre_weights.get(str(genre_id), 0.0) for genre_id in candidate.genre_ids
        ) / len(candidate.genre_ids)
        score += genre_score * CONTENT_WEIGHT_GENRE
        weights += CONTENT_WEIGHT_GENRE

    if candidate.overview:
        overview = candidate.overview.lower()
        keyword_score = sum(
            weight for keyword, weight in prefs.keyword_weights.items()
            if keyword.lower() in overview
        )
        score += keyword_score * CONTENT_WEIGHT_KEYWORD
        weights += CONTENT_WEIGHT_KEYWORD

    year = candidate.year
    if year is not None and prefs.year_range.contains(year):
        score += prefs.year_range.weight * CONTENT_WEIGHT_YEAR
        weights += CONTENT_WEIGHT_YEAR

    return score / weights if weights > 0 else 0.0


def personalized_score(candidate: Media, profile: UserProfile) -> float:
    """
    Display-time match of a candidate against the profile.

    Same parts and weights as content_based_score, except the year part is
    counted whenever the release year is known: an out-of-range year scores 0
    and still pulls the blend down.
    """
    prefs = profile.preferences
    score = 0.0
    weights = 0.0

    if candidate.genre_ids:
        genre_score = sum(
            prefs.genre_weights.get(str(genre_id), 0.0) for genre_id in candidate.genre_ids
        ) / len(candidate.genre_ids)
        score += genre_score * CONTENT_WEIGHT_GENRE
        weights += CONTENT_WEIGHT_GENRE

    year = candidate.year
    if year is not None:
        year_score = prefs.year_range.weight if prefs.year_range.contains(year) else 0.0
        score += year_score * CONTENT_WEIGHT_YEAR
        weights += CONTENT_WEIGHT_YEAR

    if candidate.overview:
        overview = candidate.overview.lower()
        keyword_score = sum(
            weight for keyword, weight in prefs.keyword_weights.items()
            if keyword.lower() in overview
        )
        score += keyword_score * CONTENT_WEIGHT_KEYWORD
        weights += CONTENT_WEIGHT_KEYWORD

    return score / weights if weights > 0 else 0.0


def personal_preference_score(candidate: Media, profile: UserProfile) -> float:
    feedback = profile.recommendation_feedback
    if candidate.id in feedback.accepted:
        return PERSONAL_ACCEPTED
    if candidate.id in feedback.rejected:
        return PERSONAL_REJECTED

    candidate_genres = set(candidate.genre_ids)
    if candidate_genres:
        for interaction in profile.interactions:
            if interaction.rating < LIKED_RATING:
                continue
            liked = profile.find_watched(interaction.media_id)
            if liked and candidate_genres.intersection(liked.genre_ids):
                return PERSONAL_SIMILAR_TO_LIKED

    return PERSONAL_DEFAULT


def recency_score(candidate: Media, now: datetime | None = None) -> float:
    """exp(-months_since_release / 24), with 30-day months. 0.5 if the date is unknown."""
    released = candidate.release
    if released is None:
        return RECENCY_UNKNOWN

    if now is None:
        now = datetime.now()

    months_old = (now - released).total_seconds() / 86400 / RECENCY_MONTH_DAYS
    return math.exp(-months_old / RECENCY_SCALE_MONTHS)


def score_candidate(
    candidate: Media,
    profile: UserProfile,
    other_profiles: Iterable[UserProfile] = (),
    now: datetime | None = None,
) -> RecommendationScore:
    """Score one candidate for a user."""
    factors = ScoreFactors(
        content_based=content_based_score(candidate, profile),
        collaborative=collaborative_score(candidate, profile, other_profiles),
        personal_preference=personal_preference_score(candidate, profile),
        recency=recency_score(candidate, now=now),
    )
    overall = sum(getattr(factors, name) * weight for name, weight in SCORE_WEIGHTS.items())
    return RecommendationScore(media_id=candidate.id, score=overall, factors=factors)
