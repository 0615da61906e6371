import importlib
import sys
from pathlib import Path

import pytest

# Ensure the package under test is importable without installation
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def fresh_config(monkeypatch, tmp_path):
    """
    Reload config with a temporary data directory to keep tests isolated.
    """
    monkeypatch.setenv("MEDIAREC_DATA_DIR", str(tmp_path))
    import media_rec.config as config

    importlib.reload(config)
    yield config

    monkeypatch.undo()
    importlib.reload(config)


@pytest.fixture
def snapshot_dir(tmp_path):
    """Write small catalog/profile snapshots and return their paths."""
    import json

    catalog = [
        {"id": 1, "title": "Space Raid", "genre_ids": [28, 878], "release_date": "2021-03-01",
         "overview": "a crew of pilots defends the station from raiders"},
        {"id": 2, "title": "Station Siege", "genre_ids": [28, 878], "release_date": "2020-06-01",
         "overview": "pilots defend a station under siege"},
        {"id": 3, "title": "Quiet Hearts", "genre_ids": [18, 10749], "release_date": "2015-02-14",
         "overview": "two strangers fall in love in a small town"},
        {"id": 4, "name": "Laugh Track", "genre_ids": [35], "first_air_date": "2019-09-01",
         "overview": "a funny sitcom about roommates"},
    ]
    profiles = [
        {
            "id": "alice",
            "preferences": {"genreWeights": {"28": 1.0}, "keywords": {"pilots": 0.5},
                            "yearRange": {"start": 2015, "end": 2025, "weight": 0.5}},
            "interactions": [{"mediaId": 2, "rating": 5, "timestamp": "2024-01-01T00:00:00",
                              "completed": True, "sentiment": {"score": 1, "keywords": []}}],
            "watchHistory": [catalog[1]],
            "recommendationFeedback": {"accepted": [2], "rejected": []},
        },
        {
            "id": "bob",
            "interactions": [
                {"mediaId": 2, "rating": 5, "timestamp": "2024-01-01T00:00:00",
                 "completed": True, "sentiment": {"score": 0, "keywords": []}},
                {"mediaId": 1, "rating": 5, "timestamp": "2024-01-02T00:00:00",
                 "completed": True, "sentiment": {"score": 0, "keywords": []}},
            ],
        },
    ]
    catalog_path = tmp_path / "catalog.json"
    profiles_path = tmp_path / "profiles.json"
    catalog_path.write_text(json.dumps(catalog))
    profiles_path.write_text(json.dumps(profiles))
    return catalog_path, profiles_path
