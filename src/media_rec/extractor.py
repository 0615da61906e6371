"""
Keyword and regex based entity/sentiment extraction for free text.

This is a lightweight heuristic, not an NLP model: genres and moods are
matched by substring against fixed vocabularies, and actor/director detection
only reports the connector phrase it found ("starring", "directed by", ...),
never an actual name.
"""

import logging
import re

from .models import EntityExtraction

logger = logging.getLogger(__name__)

GENRE_VOCABULARY = (
    'action', 'adventure', 'comedy', 'drama', 'horror', 'thriller',
    'sci-fi', 'science fiction', 'romance', 'documentary', 'animation',
    'fantasy', 'mystery', 'crime', 'family', 'western',
)

MOOD_VOCABULARY = (
    'inspiring', 'thought-provoking', 'funny', 'scary', 'emotional',
    'intense', 'relaxing', 'classic', 'innovative', 'artistic',
    'nostalgic', 'mind-bending', 'controversial', 'uplifting',
)

POSITIVE_WORDS = frozenset({
    'love', 'great', 'awesome', 'excellent', 'amazing',
    'good', 'favorite', 'best', 'enjoyed', 'fantastic',
})

NEGATIVE_WORDS = frozenset({
    'hate', 'terrible', 'awful', 'bad', 'worst',
    'boring', 'waste', 'disappointed', 'poor', 'dislike',
})

ACTOR_PATTERN = re.compile(r"starring|featuring|with|actor[s]?|actress[es]?", re.IGNORECASE)
DIRECTOR_PATTERN = re.compile(r"directed by|director[s]?", re.IGNORECASE)

# Each pattern contributes at most its first match
TIME_PATTERNS = (
    re.compile(r"\d{4}s?"),
    re.compile(r"recent|new|latest|old|classic", re.IGNORECASE),
    re.compile(r"(19|20)\d{2}"),
)

_TOKEN_SPLIT = re.compile(r"\W+")


def extract_genres(text: str) -> list[str]:
    return [genre for genre in GENRE_VOCABULARY if genre in text]


def extract_keywords(text: str) -> list[str]:
    return [keyword for keyword in MOOD_VOCABULARY if keyword in text]


def _first_match(pattern: re.Pattern, text: str) -> list[str]:
    match = pattern.search(text)
    return [match.group(0)] if match else []


def extract_actors(text: str) -> list[str]:
    return _first_match(ACTOR_PATTERN, text)


def extract_directors(text: str) -> list[str]:
    return _first_match(DIRECTOR_PATTERN, text)


def extract_time_references(text: str) -> list[str]:
    references = []
    for pattern in TIME_PATTERNS:
        match = pattern.search(text)
        if match:
            references.append(match.group(0))
    return references


def analyze_sentiment(text: str) -> float:
    """
    Sign of (positive hits - negative hits): always -1.0, 0.0 or 1.0.

    Magnitude is deliberately discarded; "great great great" scores the same
    as "good".
    """
    score = 0
    for word in _TOKEN_SPLIT.split(text.lower()):
        if word in POSITIVE_WORDS:
            score += 1
        if word in NEGATIVE_WORDS:
            score -= 1
    return score / max(1, abs(score))


def analyze_input(text: str) -> EntityExtraction:
    """Extract genres, moods, time references, people markers and sentiment from text."""
    processed = (text or "").lower()

    extraction = EntityExtraction(
        genres=extract_genres(processed),
        actors=extract_actors(processed),
        directors=extract_directors(processed),
        keywords=extract_keywords(processed),
        time_references=extract_time_references(processed),
        sentiment=analyze_sentiment(processed),
    )
    logger.debug(f"Extracted entities: {extraction}")
    return extraction
