import argparse
import logging
from datetime import datetime
from pathlib import Path

from .config import (
    CATALOG_PATH,
    PROFILES_PATH,
    DEFAULT_RECOMMENDATION_COUNT,
    DEFAULT_SIMILAR_COUNT,
)
from .extractor import analyze_input
from .feedback import analyze_user_feedback, process_interaction
from .models import Media, Sentiment, UserInteraction, UserProfile
from .recommender import RecommendationEngine
from .snapshots import load_catalog, load_profiles, save_profiles

logger = logging.getLogger(__name__)


def _parse_media_id(value: str) -> int:
    """
    argparse type for media ids.
    Raises ArgumentTypeError unless the value is a positive integer.
    """
    cleaned = value.strip()
    if not cleaned.isdigit() or int(cleaned) <= 0:
        raise argparse.ArgumentTypeError(f"invalid media id: {value!r}")
    return int(cleaned)


def _parse_rating(value: str) -> float:
    try:
        rating = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid rating: {value!r}")
    if not 1 <= rating <= 5:
        raise argparse.ArgumentTypeError(f"rating must be between 1 and 5, got {value}")
    return rating


def _catalog_path(args: argparse.Namespace) -> Path:
    return Path(args.catalog) if getattr(args, "catalog", None) else CATALOG_PATH


def _profiles_path(args: argparse.Namespace) -> Path:
    return Path(args.profiles) if getattr(args, "profiles", None) else PROFILES_PATH


def _find_profile(profiles: list[UserProfile], user_id: str) -> UserProfile | None:
    for profile in profiles:
        if profile.id == user_id:
            return profile
    return None


def _find_media(catalog: list[Media], media_id: int) -> Media | None:
    for media in catalog:
        if media.id == media_id:
            return media
    return None


def cmd_analyze(args: argparse.Namespace) -> None:
    """Show entities and sentiment extracted from free text."""
    extraction = analyze_input(args.text)

    logger.info(f"Genres:          {', '.join(extraction.genres) or '-'}")
    logger.info(f"Keywords:        {', '.join(extraction.keywords) or '-'}")
    logger.info(f"Time references: {', '.join(extraction.time_references) or '-'}")
    logger.info(f"Actor markers:   {', '.join(extraction.actors) or '-'}")
    logger.info(f"Director markers: {', '.join(extraction.directors) or '-'}")
    logger.info(f"Sentiment:       {extraction.sentiment:+.0f}")


def cmd_similar(args: argparse.Namespace) -> None:
    """Find catalog items similar to a specific media item."""
    media_id = args.media_id
    catalog = load_catalog(_catalog_path(args))

    reference = _find_media(catalog, media_id)
    if reference is None:
        logger.error(f"No media with id {media_id} in catalog")
        return

    results = RecommendationEngine().get_similar_content(reference, args.limit, catalog)
    if not results:
        logger.info("No similar content found")
        return

    logger.info(f"\nSimilar to {reference.display_title}:")
    for i, media in enumerate(results, 1):
        logger.info(f"{i}. {media.display_title} ({media.year or '?'})")


def cmd_recommend(args: argparse.Namespace) -> None:
    """Generate recommendations for a user."""
    catalog = load_catalog(_catalog_path(args))
    profiles = load_profiles(_profiles_path(args))

    profile = _find_profile(profiles, args.user_id)
    if profile is None:
        logger.error(f"No profile for '{args.user_id}'")
        return

    others = [p for p in profiles if p.id != profile.id]
    engine = RecommendationEngine()
    results = engine.get_recommendations(
        profile, args.limit, catalog, other_profiles=others, show_progress=args.progress
    )
    if not results:
        logger.info("No recommendations available")
        return

    scores = {}
    if args.explain:
        scores = {s.media_id: s for s in engine.score_candidates(profile, results, other_profiles=others)}

    logger.info(f"\nRecommendations for {profile.id}:")
    for i, media in enumerate(results, 1):
        logger.info(f"{i}. {media.display_title} ({media.year or '?'})")
        score = scores.get(media.id)
        if score:
            f = score.factors
            logger.info(
                f"   score {score.score:.3f} = content {f.content_based:.2f}, "
                f"collab {f.collaborative:.2f}, personal {f.personal_preference:.2f}, "
                f"recency {f.recency:.2f}"
            )


def cmd_feedback(args: argparse.Namespace) -> None:
    """Apply a rating (and optional comment) to a user's profile."""
    media_id = args.media_id
    rating = args.rating
    catalog = load_catalog(_catalog_path(args))
    profiles_path = _profiles_path(args)
    profiles = load_profiles(profiles_path)

    profile = _find_profile(profiles, args.user_id)
    if profile is None:
        logger.error(f"No profile for '{args.user_id}'")
        return

    media = profile.find_watched(media_id) or _find_media(catalog, media_id)
    if media is None:
        logger.error(f"No media with id {media_id} in catalog or watch history")
        return

    if profile.find_watched(media_id) is None:
        profile.watch_history.append(media)

    if args.text:
        interaction = analyze_user_feedback(profile, args.text, media_id, rating)
        logger.info(
            f"Recorded feedback on {media.display_title}: sentiment "
            f"{interaction.sentiment.score:+.0f}, keywords {interaction.sentiment.keywords or '-'}"
        )
    else:
        interaction = UserInteraction(
            media_id=media_id,
            rating=rating,
            timestamp=datetime.now(),
            completed=True,
            sentiment=Sentiment(),
        )
        updates = process_interaction(profile, interaction, media)
        profile.interactions.append(interaction)
        for update in updates:
            logger.info(f"  {update.type}:{update.value} {update.weight:+.3f}")

    if args.save:
        path = save_profiles(profiles, profiles_path)
        logger.info(f"Saved profiles to {path}")


def cmd_profile(args: argparse.Namespace) -> None:
    """Show a user's preference profile."""
    profiles = load_profiles(_profiles_path(args))
    profile = _find_profile(profiles, args.user_id)
    if profile is None:
        logger.error(f"No profile for '{args.user_id}'")
        return

    prefs = profile.preferences
    feedback = profile.recommendation_feedback
    logger.info(f"\nProfile for {profile.id}")
    logger.info(f"  Interactions: {len(profile.interactions)}, watched: {len(profile.watch_history)}")
    logger.info(f"  Feedback: {len(feedback.accepted)} accepted, {len(feedback.rejected)} rejected")

    for label, table in (
        ("genres", prefs.genre_weights),
        ("keywords", prefs.keyword_weights),
        ("actors", prefs.actor_weights),
        ("directors", prefs.director_weights),
    ):
        if not table:
            continue
        logger.info(f"\nTop {label}:")
        for key, weight in sorted(table.items(), key=lambda x: -x[1])[:10]:
            logger.info(f"  {key}: {weight:+.2f}")

    yr = prefs.year_range
    logger.info(f"\nYear range: {yr.start}-{yr.end} (weight {yr.weight:+.2f})")


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Media Recommender")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--catalog", help=f"Catalog JSON snapshot (default: {CATALOG_PATH})")
    parser.add_argument("--profiles", help=f"Profiles JSON snapshot (default: {PROFILES_PATH})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Extract entities and sentiment from text")
    analyze_parser.add_argument("text", help="Free text, e.g. a chat message or review")
    analyze_parser.set_defaults(func=cmd_analyze)

    similar_parser = subparsers.add_parser("similar", help="Find media similar to a specific item")
    similar_parser.add_argument("media_id", type=_parse_media_id, help="Reference media id")
    similar_parser.add_argument("--limit", type=int, default=DEFAULT_SIMILAR_COUNT, help="Number of results")
    similar_parser.set_defaults(func=cmd_similar)

    rec_parser = subparsers.add_parser("recommend", help="Generate recommendations")
    rec_parser.add_argument("user_id", help="Profile id")
    rec_parser.add_argument("--limit", type=int, default=DEFAULT_RECOMMENDATION_COUNT, help="Number of results")
    rec_parser.add_argument("--explain", action="store_true", help="Show score breakdown per result")
    rec_parser.add_argument("--progress", action="store_true", help="Show a progress bar while scoring")
    rec_parser.set_defaults(func=cmd_recommend)

    feedback_parser = subparsers.add_parser("feedback", help="Record a rating for a user")
    feedback_parser.add_argument("user_id", help="Profile id")
    feedback_parser.add_argument("media_id", type=_parse_media_id, help="Rated media id")
    feedback_parser.add_argument("rating", type=_parse_rating, help="Rating from 1 to 5")
    feedback_parser.add_argument("--text", help="Optional free-text comment to analyze")
    feedback_parser.add_argument("--save", action="store_true", help="Write updated profiles back to disk")
    feedback_parser.set_defaults(func=cmd_feedback)

    profile_parser = subparsers.add_parser("profile", help="Show a user's preference profile")
    profile_parser.add_argument("user_id", help="Profile id")
    profile_parser.set_defaults(func=cmd_profile)

    args = parser.parse_args(argv)

    # Configure logging based on verbosity
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    args.func(args)


if __name__ == "__main__":
    main()
