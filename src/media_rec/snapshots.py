"""
JSON snapshots of the catalog and user profiles.

The engine itself never does I/O; these helpers stand in for the media catalog
and profile store when running from the command line or in scripts.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

from .models import Media, UserProfile
from .config import CATALOG_PATH, PROFILES_PATH

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _read_records(path: Path, list_key: str) -> list[Any]:
    try:
        payload = json.loads(path.read_text())
    except FileNotFoundError:
        raise ValueError(f"Snapshot not found: {path}")
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}")

    # Accept a bare list or a TMDB-style {"results": [...]} envelope
    if isinstance(payload, dict):
        payload = payload.get(list_key, payload.get("results"))
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of records in {path}")
    return payload


def _parse_records(records: list[Any], parse: Callable[[dict], T], kind: str) -> list[T]:
    parsed = []
    for idx, record in enumerate(records):
        try:
            parsed.append(parse(record))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning(f"Skipping malformed {kind} record #{idx}: {exc}")
    return parsed


def load_catalog(path: str | Path | None = None) -> list[Media]:
    """Load media records; malformed entries are skipped with a warning."""
    catalog_path = Path(path) if path else CATALOG_PATH
    media = _parse_records(_read_records(catalog_path, "media"), Media.from_dict, "media")
    logger.debug("Loaded %d media from %s", len(media), catalog_path)
    return media


def load_profiles(path: str | Path | None = None) -> list[UserProfile]:
    """Load user profiles; malformed entries are skipped with a warning."""
    profiles_path = Path(path) if path else PROFILES_PATH
    profiles = _parse_records(_read_records(profiles_path, "profiles"), UserProfile.from_dict, "profile")
    logger.debug("Loaded %d profiles from %s", len(profiles), profiles_path)
    return profiles


def save_profiles(profiles: list[UserProfile], path: str | Path | None = None) -> Path:
    """Write profiles back to disk."""
    profiles_path = Path(path) if path else PROFILES_PATH
    profiles_path.parent.mkdir(parents=True, exist_ok=True)
    profiles_path.write_text(json.dumps([p.to_dict() for p in profiles], indent=2))
    return profiles_path
