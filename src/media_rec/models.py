"""
Record types shared by the engine.

Media items come from the catalog and are treated as immutable. User profiles
are snapshots handed in by the profile store; the engine reads them and, for
the explicit feedback helpers, mutates the in-memory object it was given.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

_BARE_YEAR = re.compile(r"^\d{4}$")

PREFERENCE_TYPES = ("genre", "actor", "director", "keyword", "year")


def parse_timestamp_naive(value: Any) -> datetime | None:
    """
    Parse an ISO timestamp (or datetime) to a naive local datetime.

    Aware values are converted to local time before dropping tzinfo so that
    naive and aware inputs can be compared safely. Returns None for anything
    unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            if _BARE_YEAR.match(text):
                return datetime(int(text), 1, 1)
            return None
    else:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class Media:
    """A catalog item (movie or TV show)."""
    id: int
    title: str | None = None
    name: str | None = None
    genre_ids: tuple[int, ...] = ()
    release_date: str | None = None
    first_air_date: str | None = None
    overview: str = ""
    vote_average: float = 0.0
    media_type: str = "movie"

    @property
    def display_title(self) -> str:
        return self.title or self.name or f"Media {self.id}"

    @property
    def release(self) -> datetime | None:
        """Release (or first air) date; None when missing or unparseable."""
        return parse_timestamp_naive(self.release_date or self.first_air_date)

    @property
    def year(self) -> int | None:
        released = self.release
        return released.year if released else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "name": self.name,
            "genre_ids": list(self.genre_ids),
            "release_date": self.release_date,
            "first_air_date": self.first_air_date,
            "overview": self.overview,
            "vote_average": self.vote_average,
            "media_type": self.media_type,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Media":
        return cls(
            id=int(payload["id"]),
            title=payload.get("title"),
            name=payload.get("name"),
            genre_ids=tuple(int(g) for g in (_pick(payload, "genre_ids", "genreIds", default=[]))),
            release_date=_pick(payload, "release_date", "releaseDate"),
            first_air_date=_pick(payload, "first_air_date", "firstAirDate"),
            overview=payload.get("overview") or "",
            vote_average=float(_pick(payload, "vote_average", "voteAverage", default=0.0)),
            media_type=_pick(payload, "media_type", "mediaType", default="movie"),
        )


@dataclass
class Sentiment:
    score: float = 0.0
    keywords: list[str] = field(default_factory=list)


@dataclass
class UserInteraction:
    """One rating/watch event on a media item."""
    media_id: int
    rating: float
    timestamp: datetime
    completed: bool = False
    watch_duration: float | None = None  # seconds
    sentiment: Sentiment = field(default_factory=Sentiment)

    def to_dict(self) -> dict[str, Any]:
        return {
            "media_id": self.media_id,
            "rating": self.rating,
            "timestamp": self.timestamp.isoformat(),
            "completed": self.completed,
            "watch_duration": self.watch_duration,
            "sentiment": {"score": self.sentiment.score, "keywords": list(self.sentiment.keywords)},
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "UserInteraction":
        sentiment = payload.get("sentiment") or {}
        timestamp = parse_timestamp_naive(payload.get("timestamp"))
        if timestamp is None:
            raise ValueError(f"Interaction for media {payload.get('media_id', payload.get('mediaId'))} has no valid timestamp")
        return cls(
            media_id=int(_pick(payload, "media_id", "mediaId")),
            rating=float(payload.get("rating", 0)),
            timestamp=timestamp,
            completed=bool(payload.get("completed", False)),
            watch_duration=_pick(payload, "watch_duration", "watchDuration"),
            sentiment=Sentiment(
                score=float(sentiment.get("score", 0.0)),
                keywords=list(sentiment.get("keywords", [])),
            ),
        )


@dataclass
class YearRange:
    start: int = 1900
    end: int = 2100
    weight: float = 0.0

    def contains(self, year: int | None) -> bool:
        return year is not None and self.start <= year <= self.end


@dataclass
class Preferences:
    """Accumulated weight maps. Weights are unbounded and only ever added to."""
    genre_weights: dict[str, float] = field(default_factory=dict)
    actor_weights: dict[str, float] = field(default_factory=dict)
    director_weights: dict[str, float] = field(default_factory=dict)
    keyword_weights: dict[str, float] = field(default_factory=dict)
    year_range: YearRange = field(default_factory=YearRange)

    def to_dict(self) -> dict[str, Any]:
        return {
            "genre_weights": dict(self.genre_weights),
            "actor_weights": dict(self.actor_weights),
            "director_weights": dict(self.director_weights),
            "keywords": dict(self.keyword_weights),
            "year_range": {
                "start": self.year_range.start,
                "end": self.year_range.end,
                "weight": self.year_range.weight,
            },
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Preferences":
        def _weights(*keys: str) -> dict[str, float]:
            return {str(k): float(v) for k, v in (_pick(payload, *keys, default={})).items()}

        year_range = _pick(payload, "year_range", "yearRange", default={})
        return cls(
            genre_weights=_weights("genre_weights", "genreWeights"),
            actor_weights=_weights("actor_weights", "actorWeights"),
            director_weights=_weights("director_weights", "directorWeights"),
            keyword_weights=_weights("keywords", "keyword_weights", "keywordWeights"),
            year_range=YearRange(
                start=int(year_range.get("start", 1900)),
                end=int(year_range.get("end", 2100)),
                weight=float(year_range.get("weight", 0.0)),
            ),
        )


@dataclass
class RecommendationFeedback:
    # Append-only logs; the same id may appear more than once.
    accepted: list[int] = field(default_factory=list)
    rejected: list[int] = field(default_factory=list)


@dataclass
class UserProfile:
    """Preference weights plus interaction/feedback history for one user."""
    id: str
    preferences: Preferences = field(default_factory=Preferences)
    interactions: list[UserInteraction] = field(default_factory=list)
    watch_history: list[Media] = field(default_factory=list)
    recommendation_feedback: RecommendationFeedback = field(default_factory=RecommendationFeedback)
    recent_searches: list[str] = field(default_factory=list)
    streaming_services: list[str] = field(default_factory=list)

    def find_watched(self, media_id: int) -> Media | None:
        for media in self.watch_history:
            if media.id == media_id:
                return media
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "preferences": self.preferences.to_dict(),
            "interactions": [i.to_dict() for i in self.interactions],
            "watch_history": [m.to_dict() for m in self.watch_history],
            "recommendation_feedback": {
                "accepted": list(self.recommendation_feedback.accepted),
                "rejected": list(self.recommendation_feedback.rejected),
            },
            "recent_searches": list(self.recent_searches),
            "streaming_services": list(self.streaming_services),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "UserProfile":
        feedback = _pick(payload, "recommendation_feedback", "recommendationFeedback", default={})
        return cls(
            id=str(payload["id"]),
            preferences=Preferences.from_dict(payload.get("preferences") or {}),
            interactions=[UserInteraction.from_dict(i) for i in payload.get("interactions", [])],
            watch_history=[Media.from_dict(m) for m in _pick(payload, "watch_history", "watchHistory", default=[])],
            recommendation_feedback=RecommendationFeedback(
                accepted=[int(x) for x in feedback.get("accepted", [])],
                rejected=[int(x) for x in feedback.get("rejected", [])],
            ),
            recent_searches=list(_pick(payload, "recent_searches", "recentSearches", default=[])),
            streaming_services=list(_pick(payload, "streaming_services", "streamingServices", default=[])),
        )


@dataclass
class EntityExtraction:
    genres: list[str] = field(default_factory=list)
    actors: list[str] = field(default_factory=list)
    directors: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    time_references: list[str] = field(default_factory=list)
    sentiment: float = 0.0


@dataclass(frozen=True)
class PreferenceUpdate:
    """An instruction to add `weight` to one preference dimension."""
    type: str  # one of PREFERENCE_TYPES
    value: str
    weight: float


@dataclass
class ScoreFactors:
    content_based: float = 0.0
    collaborative: float = 0.0
    personal_preference: float = 0.0
    recency: float = 0.0


@dataclass
class RecommendationScore:
    media_id: int
    score: float
    factors: ScoreFactors
