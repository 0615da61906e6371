"""
Turn interactions into preference updates, and apply them to a profile.

`process_user_feedback` is pure: it only describes the weight changes an
interaction implies. The remaining helpers are the caller-side half of the
contract (adding update weights into the profile's maps and appending to the
accepted/rejected logs) for callers that keep profiles in memory.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime

from .extractor import analyze_input
from .models import (
    Media,
    PreferenceUpdate,
    Sentiment,
    UserInteraction,
    UserProfile,
)
from .config import (
    RATING_SCALE,
    COMPLETION_BOOST,
    INTERACTION_DECAY_DAYS,
    MAX_INTERACTION_WEIGHT,
    POSITIVE_SENTIMENT_MULTIPLIER,
    NEGATIVE_SENTIMENT_MULTIPLIER,
    LIKED_RATING,
    DISLIKED_RATING,
    FEEDBACK_KEYWORD_NUDGE,
)

logger = logging.getLogger(__name__)

_WEIGHT_MAPS = {
    'genre': 'genre_weights',
    'actor': 'actor_weights',
    'director': 'director_weights',
    'keyword': 'keyword_weights',
}


def interaction_weight(interaction: UserInteraction, now: datetime | None = None) -> float:
    """
    Base weight of one interaction, capped at 1.0.

    rating / 5, boosted by 1.2 for a completed watch with a recorded duration,
    then decayed as exp(-days_since / 30).
    """
    if now is None:
        now = datetime.now()

    weight = interaction.rating / RATING_SCALE

    if interaction.watch_duration and interaction.completed:
        weight *= COMPLETION_BOOST

    days_since = (now - interaction.timestamp).total_seconds() / 86400
    weight *= math.exp(-days_since / INTERACTION_DECAY_DAYS)

    return min(weight, MAX_INTERACTION_WEIGHT)


def process_user_feedback(
    interaction: UserInteraction,
    media: Media,
    now: datetime | None = None,
) -> list[PreferenceUpdate]:
    """
    Describe the preference changes implied by one interaction.

    Emits one genre update per genre on the media item, and one keyword update
    per keyword attached to the interaction's sentiment (scaled by 1.5 for
    positive sentiment, 0.5 otherwise).
    """
    weight = interaction_weight(interaction, now=now)

    updates = [
        PreferenceUpdate(type='genre', value=str(genre_id), weight=weight)
        for genre_id in media.genre_ids
    ]

    multiplier = (
        POSITIVE_SENTIMENT_MULTIPLIER
        if interaction.sentiment.score > 0
        else NEGATIVE_SENTIMENT_MULTIPLIER
    )
    for keyword in interaction.sentiment.keywords:
        updates.append(PreferenceUpdate(type='keyword', value=keyword, weight=weight * multiplier))

    logger.debug(
        "Interaction on media %s (rating %s) -> weight %.3f, %d updates",
        interaction.media_id, interaction.rating, weight, len(updates),
    )
    return updates


def apply_preference_updates(profile: UserProfile, updates: list[PreferenceUpdate]) -> None:
    """Add each update's weight onto the profile. Existing weights are never replaced."""
    prefs = profile.preferences
    for update in updates:
        if update.type == 'year':
            prefs.year_range.weight += update.weight
            continue
        attr = _WEIGHT_MAPS.get(update.type)
        if attr is None:
            logger.warning(f"Ignoring preference update of unknown type '{update.type}'")
            continue
        table = getattr(prefs, attr)
        table[update.value] = table.get(update.value, 0.0) + update.weight


def record_feedback(profile: UserProfile, interaction: UserInteraction) -> None:
    """Append the media id to accepted (rating >= 4) or rejected (rating <= 2)."""
    if interaction.rating >= LIKED_RATING:
        profile.recommendation_feedback.accepted.append(interaction.media_id)
    elif interaction.rating <= DISLIKED_RATING:
        profile.recommendation_feedback.rejected.append(interaction.media_id)


def process_interaction(
    profile: UserProfile,
    interaction: UserInteraction,
    media: Media,
    now: datetime | None = None,
) -> list[PreferenceUpdate]:
    """Compute updates for an interaction, apply them and log the feedback."""
    updates = process_user_feedback(interaction, media, now=now)
    apply_preference_updates(profile, updates)
    record_feedback(profile, interaction)
    return updates


def add_interaction(
    profile: UserProfile,
    interaction: UserInteraction,
    now: datetime | None = None,
) -> bool:
    """
    Record an interaction on a media item from the profile's watch history.

    Interactions on media the user has not watched are ignored (returns False).
    """
    media = profile.find_watched(interaction.media_id)
    if media is None:
        logger.debug(f"Media {interaction.media_id} not in watch history of {profile.id}; ignoring")
        return False

    process_interaction(profile, interaction, media, now=now)
    profile.interactions.append(interaction)
    return True


def analyze_user_feedback(
    profile: UserProfile,
    text: str,
    media_id: int,
    rating: float,
    now: datetime | None = None,
) -> UserInteraction:
    """
    Record free-text feedback with a rating.

    The text is analyzed for mood keywords and sentiment, stored as a completed
    interaction, and each extracted keyword is nudged by +/-0.1 depending on
    the sentiment sign.
    """
    if now is None:
        now = datetime.now()

    analysis = analyze_input(text)
    interaction = UserInteraction(
        media_id=media_id,
        rating=rating,
        timestamp=now,
        completed=True,
        sentiment=Sentiment(score=analysis.sentiment, keywords=list(analysis.keywords)),
    )
    add_interaction(profile, interaction, now=now)

    nudge = FEEDBACK_KEYWORD_NUDGE if analysis.sentiment > 0 else -FEEDBACK_KEYWORD_NUDGE
    keywords = profile.preferences.keyword_weights
    for keyword in analysis.keywords:
        keywords[keyword] = keywords.get(keyword, 0.0) + nudge

    return interaction


def process_watch_event(
    profile: UserProfile,
    media_id: int,
    duration: float,
    completed: bool,
    now: datetime | None = None,
) -> UserInteraction:
    """Record an unrated watch event (rating 0) for a watched media item."""
    if now is None:
        now = datetime.now()

    interaction = UserInteraction(
        media_id=media_id,
        rating=0,
        timestamp=now,
        completed=completed,
        watch_duration=duration,
    )
    add_interaction(profile, interaction, now=now)
    return interaction
