import math
from datetime import datetime, timedelta

import pytest

from media_rec.feedback import (
    add_interaction,
    analyze_user_feedback,
    apply_preference_updates,
    interaction_weight,
    process_interaction,
    process_user_feedback,
    process_watch_event,
    record_feedback,
)
from media_rec.models import Media, PreferenceUpdate, Sentiment, UserInteraction, UserProfile

NOW = datetime(2024, 6, 1, 12, 0, 0)


def _interaction(rating, *, completed=False, duration=None, days_ago=0.0, sentiment=0.0, keywords=()):
    return UserInteraction(
        media_id=7,
        rating=rating,
        timestamp=NOW - timedelta(days=days_ago),
        completed=completed,
        watch_duration=duration,
        sentiment=Sentiment(score=sentiment, keywords=list(keywords)),
    )


MEDIA = Media(id=7, title="Seven", genre_ids=(28, 12), overview="heist")


def test_completed_five_star_watch_is_clamped_to_one():
    updates = process_user_feedback(_interaction(5, completed=True, duration=100), MEDIA, now=NOW)

    genre_updates = [u for u in updates if u.type == "genre"]
    assert [u.value for u in genre_updates] == ["28", "12"]
    assert all(u.weight == 1.0 for u in genre_updates)


def test_completion_boost_requires_duration():
    assert interaction_weight(_interaction(4, completed=True, duration=None), now=NOW) == pytest.approx(0.8)
    assert interaction_weight(_interaction(4, completed=True, duration=0), now=NOW) == pytest.approx(0.8)
    assert interaction_weight(_interaction(4, completed=True, duration=60), now=NOW) == pytest.approx(0.96)
    assert interaction_weight(_interaction(4, completed=False, duration=60), now=NOW) == pytest.approx(0.8)


def test_recency_decay_over_thirty_days():
    weight = interaction_weight(_interaction(5, days_ago=30), now=NOW)
    assert weight == pytest.approx(math.exp(-1))


def test_neutral_rating_still_updates_genres_but_not_feedback_lists():
    profile = UserProfile(id="u")
    interaction = _interaction(3)

    updates = process_interaction(profile, interaction, MEDIA, now=NOW)

    assert all(u.weight == pytest.approx(0.6) for u in updates if u.type == "genre")
    assert profile.recommendation_feedback.accepted == []
    assert profile.recommendation_feedback.rejected == []
    assert profile.preferences.genre_weights["28"] == pytest.approx(0.6)


def test_keyword_updates_scaled_by_sentiment():
    positive = process_user_feedback(
        _interaction(5, sentiment=1, keywords=["funny"]), MEDIA, now=NOW
    )
    negative = process_user_feedback(
        _interaction(5, sentiment=-1, keywords=["funny"]), MEDIA, now=NOW
    )

    assert [u for u in positive if u.type == "keyword"] == [PreferenceUpdate("keyword", "funny", 1.5)]
    assert [u for u in negative if u.type == "keyword"] == [PreferenceUpdate("keyword", "funny", 0.5)]


def test_media_without_genres_yields_no_genre_updates():
    updates = process_user_feedback(_interaction(5), Media(id=7), now=NOW)
    assert updates == []


def test_updates_accumulate_and_never_overwrite():
    profile = UserProfile(id="u")
    profile.preferences.genre_weights["28"] = 2.0

    apply_preference_updates(profile, [
        PreferenceUpdate("genre", "28", 0.5),
        PreferenceUpdate("genre", "28", 0.5),
        PreferenceUpdate("actor", "someone", 0.3),
        PreferenceUpdate("director", "auteur", 0.2),
        PreferenceUpdate("keyword", "scary", 0.1),
        PreferenceUpdate("year", "2020", 0.4),
    ])

    prefs = profile.preferences
    assert prefs.genre_weights["28"] == pytest.approx(3.0)
    assert prefs.actor_weights == {"someone": 0.3}
    assert prefs.director_weights == {"auteur": 0.2}
    assert prefs.keyword_weights == {"scary": 0.1}
    assert prefs.year_range.weight == pytest.approx(0.4)


def test_feedback_lists_are_append_only_without_dedup():
    profile = UserProfile(id="u")
    record_feedback(profile, _interaction(5))
    record_feedback(profile, _interaction(4))
    record_feedback(profile, _interaction(2))
    record_feedback(profile, _interaction(1))

    assert profile.recommendation_feedback.accepted == [7, 7]
    assert profile.recommendation_feedback.rejected == [7, 7]


def test_add_interaction_requires_watched_media():
    profile = UserProfile(id="u")
    assert add_interaction(profile, _interaction(5), now=NOW) is False
    assert profile.interactions == []

    profile.watch_history.append(MEDIA)
    assert add_interaction(profile, _interaction(5), now=NOW) is True
    assert len(profile.interactions) == 1
    assert profile.recommendation_feedback.accepted == [7]


def test_analyze_user_feedback_records_sentiment_and_nudges_keywords():
    profile = UserProfile(id="u", watch_history=[MEDIA])

    interaction = analyze_user_feedback(profile, "Loved it, so funny! The best", 7, 5, now=NOW)

    assert interaction.sentiment.score == 1
    assert interaction.sentiment.keywords == ["funny"]
    assert interaction.completed is True
    assert profile.interactions == [interaction]
    # 1.0 weight * 1.5 positive multiplier, then +0.1 nudge
    assert profile.preferences.keyword_weights["funny"] == pytest.approx(1.6)
    assert profile.recommendation_feedback.accepted == [7]


def test_negative_feedback_nudges_keywords_down():
    profile = UserProfile(id="u", watch_history=[MEDIA])

    analyze_user_feedback(profile, "scary but boring", 7, 2, now=NOW)

    # 0.4 weight * 0.5 negative multiplier, then -0.1 nudge
    assert profile.preferences.keyword_weights["scary"] == pytest.approx(0.1)
    assert profile.recommendation_feedback.rejected == [7]


def test_watch_event_records_unrated_interaction():
    profile = UserProfile(id="u", watch_history=[MEDIA])

    interaction = process_watch_event(profile, 7, duration=3600, completed=True, now=NOW)

    assert interaction.rating == 0
    assert profile.interactions == [interaction]
    assert profile.preferences.genre_weights["28"] == 0.0
