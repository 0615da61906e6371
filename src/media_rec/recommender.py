"""
Ranking, diversification and similar-content lookup.

Candidates are scored independently (optionally in a thread pool), then the
full set of scores is sorted and passed through a per-genre cap. Each call is
a pure function of its arguments; the engine keeps no per-user state.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Iterable, Sequence

from tqdm import tqdm

from .collaborative import ProfileRepository
from .models import Media, RecommendationScore, UserProfile
from .scoring import score_candidate, personalized_score
from .similarity import calculate_similarity
from .config import (
    MAX_WORKERS,
    PARALLEL_MIN_POOL,
    DIVERSITY_DIVISOR,
)

logger = logging.getLogger(__name__)


def diversify(ranked: Sequence[Media], count: int, divisor: int = DIVERSITY_DIVISOR) -> list[Media]:
    """
    Cap genre concentration within the top `count` of an already ranked list.

    Repeated media ids are dropped, the list is cut to its first `count`
    items, and an item is then kept only if none of its genres has already
    reached ceil(count / divisor) kept items. Items below the cut never
    replace skipped ones, so the result can be shorter than `count`.
    """
    if count <= 0:
        return []

    top: list[Media] = []
    seen_ids: set[int] = set()
    for media in ranked:
        if media.id in seen_ids:
            continue
        seen_ids.add(media.id)
        top.append(media)
        if len(top) >= count:
            break

    max_per_genre = math.ceil(count / divisor)
    genre_counts: dict[int, int] = defaultdict(int)
    selected: list[Media] = []

    for media in top:
        if any(genre_counts[g] >= max_per_genre for g in set(media.genre_ids)):
            continue

        selected.append(media)
        for g in set(media.genre_ids):
            genre_counts[g] += 1

    if len(selected) < len(top):
        logger.warning(
            f"Diversity cap (max {max_per_genre} per genre) kept only "
            f"{len(selected)}/{count} recommendations"
        )

    return selected


class RecommendationEngine:
    """
    Scores, ranks and diversifies candidate media for a user.

    Collaborative scoring needs other users' profiles. They can be passed per
    call as `other_profiles`, or looked up per candidate through an injected
    ProfileRepository. Without either, the collaborative sub-score is 0.
    """

    def __init__(
        self,
        profile_repository: ProfileRepository | None = None,
        max_workers: int = MAX_WORKERS,
        parallel_min_pool: int = PARALLEL_MIN_POOL,
    ):
        self.profile_repository = profile_repository
        self.max_workers = max(1, max_workers)
        self.parallel_min_pool = parallel_min_pool

    def _others_for(
        self,
        candidate: Media,
        other_profiles: list[UserProfile] | None,
    ) -> list[UserProfile]:
        if other_profiles is not None:
            return other_profiles
        if self.profile_repository is not None:
            return self.profile_repository.list_profiles_interacting_with(candidate.id)
        return []

    def score_candidates(
        self,
        profile: UserProfile,
        pool: Sequence[Media],
        other_profiles: Iterable[UserProfile] | None = None,
        now: datetime | None = None,
        show_progress: bool = False,
    ) -> list[RecommendationScore]:
        """
        Score every candidate in `pool`, returning scores in pool order.

        Large pools are fanned out over a thread pool; `executor.map` waits for
        every candidate and keeps input order, so the result does not depend on
        completion order.
        """
        if now is None:
            now = datetime.now()
        others = list(other_profiles) if other_profiles is not None else None

        def _score(candidate: Media) -> RecommendationScore:
            return score_candidate(candidate, profile, self._others_for(candidate, others), now=now)

        if self.max_workers == 1 or len(pool) < self.parallel_min_pool:
            return [
                _score(candidate)
                for candidate in tqdm(pool, desc="Scoring", disable=not show_progress)
            ]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(tqdm(
                executor.map(_score, pool),
                total=len(pool),
                desc="Scoring",
                disable=not show_progress,
            ))

    def get_recommendations(
        self,
        profile: UserProfile,
        count: int,
        pool: Sequence[Media],
        other_profiles: Iterable[UserProfile] | None = None,
        now: datetime | None = None,
        show_progress: bool = False,
    ) -> list[Media]:
        """
        Top `count` candidates by overall score, subject to the genre cap.

        Returns [] for an empty pool or non-positive count.
        """
        if count <= 0 or not pool:
            return []

        scores = self.score_candidates(
            profile, pool, other_profiles=other_profiles, now=now, show_progress=show_progress
        )
        # Stable sort: ties keep pool order
        ranked = sorted(zip(pool, scores), key=lambda pair: -pair[1].score)
        logger.debug(
            "Scored %d candidates for %s (top score %.3f)",
            len(ranked), profile.id, ranked[0][1].score,
        )
        return diversify([media for media, _ in ranked], count)

    def get_similar_content(
        self,
        reference: Media,
        count: int,
        pool: Sequence[Media],
    ) -> list[Media]:
        """Top `count` items by similarity to `reference`, excluding the reference itself."""
        if count <= 0:
            return []

        similarities = [
            (media, calculate_similarity(reference, media))
            for media in pool
            if media.id != reference.id
        ]
        similarities.sort(key=lambda pair: -pair[1])
        return [media for media, _ in similarities[:count]]

    def get_personalized_score(self, media: Media, profile: UserProfile) -> float:
        return personalized_score(media, profile)


def get_recommendations(
    profile: UserProfile,
    count: int,
    pool: Sequence[Media],
    other_profiles: Iterable[UserProfile] | None = None,
) -> list[Media]:
    return RecommendationEngine().get_recommendations(
        profile, count, pool, other_profiles=other_profiles
    )


def get_similar_content(reference: Media, count: int, pool: Sequence[Media]) -> list[Media]:
    return RecommendationEngine().get_similar_content(reference, count, pool)
