"""
Lightweight collaborative filtering across user profiles.

Other users who rated a candidate highly vote for it, each vote weighted by
how closely that user's ratings agree with the requesting user's on the items
they have both interacted with.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Protocol, runtime_checkable

import numpy as np

from .models import Media, UserProfile
from .config import (
    RATING_SCALE,
    RATING_MIDPOINT,
    LIKED_RATING,
    COLLAB_SIMILARITY_NORMALIZER,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class ProfileRepository(Protocol):
    """
    Read access to other users' profiles for collaborative scoring.

    Implementations may pre-index profiles by media id so that scoring does
    not have to scan every stored profile per candidate.
    """

    def list_profiles_interacting_with(self, media_id: int) -> list[UserProfile]: ...


class InMemoryProfileRepository:
    """Profiles held in memory, indexed by the media ids they interacted with."""

    def __init__(self, profiles: Iterable[UserProfile] = ()):
        self._profiles: dict[str, UserProfile] = {}
        self._by_media: dict[int, list[str]] = defaultdict(list)
        for profile in profiles:
            self.add(profile)

    def add(self, profile: UserProfile) -> None:
        if profile.id in self._profiles:
            self.remove(profile.id)
        self._profiles[profile.id] = profile
        for media_id in {i.media_id for i in profile.interactions}:
            self._by_media[media_id].append(profile.id)

    def remove(self, profile_id: str) -> None:
        profile = self._profiles.pop(profile_id, None)
        if profile is None:
            return
        for media_id in {i.media_id for i in profile.interactions}:
            ids = self._by_media.get(media_id, [])
            if profile_id in ids:
                ids.remove(profile_id)

    def get(self, profile_id: str) -> UserProfile | None:
        return self._profiles.get(profile_id)

    def all(self) -> list[UserProfile]:
        return list(self._profiles.values())

    def list_profiles_interacting_with(self, media_id: int) -> list[UserProfile]:
        return [self._profiles[pid] for pid in self._by_media.get(media_id, [])]

    def __len__(self) -> int:
        return len(self._profiles)


def _first_ratings(profile: UserProfile) -> dict[int, float]:
    """media id -> rating of the first interaction recorded for it."""
    ratings: dict[int, float] = {}
    for interaction in profile.interactions:
        ratings.setdefault(interaction.media_id, interaction.rating)
    return ratings


def user_similarity(profile: UserProfile, other: UserProfile) -> float:
    """
    Rating agreement between two users in [0, 1].

    Mean of (r1 - 3) * (r2 - 3) over the first user's interactions on media
    the other user also interacted with, floored at 0 and divided by 4.
    Returns 0.0 with no common items.
    """
    other_ratings = _first_ratings(other)
    products = [
        (interaction.rating - RATING_MIDPOINT) * (other_ratings[interaction.media_id] - RATING_MIDPOINT)
        for interaction in profile.interactions
        if interaction.media_id in other_ratings
    ]
    if not products:
        return 0.0

    correlation = float(np.mean(products))
    return max(0.0, correlation) / COLLAB_SIMILARITY_NORMALIZER


def _liked_rating(profile: UserProfile, media_id: int) -> float | None:
    for interaction in profile.interactions:
        if interaction.media_id == media_id and interaction.rating >= LIKED_RATING:
            return interaction.rating
    return None


def collaborative_score(
    candidate: Media,
    profile: UserProfile,
    other_profiles: Iterable[UserProfile],
) -> float:
    """
    Similarity-weighted mean of (rating / 5) from other users who rated the
    candidate 4 or higher. 0.0 when nobody qualifies or all similarities are 0.
    """
    similarities = []
    ratings = []
    for other in other_profiles:
        if other.id == profile.id:
            continue
        rating = _liked_rating(other, candidate.id)
        if rating is None:
            continue
        similarities.append(user_similarity(profile, other))
        ratings.append(rating / RATING_SCALE)

    if not similarities:
        return 0.0

    weights = np.asarray(similarities, dtype=np.float64)
    total = weights.sum()
    if total <= 0:
        return 0.0

    return float(np.dot(weights, np.asarray(ratings, dtype=np.float64)) / total)
