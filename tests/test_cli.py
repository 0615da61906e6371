import argparse
import json
import logging
import sys

import pytest

from media_rec import cli


def test_parse_media_id_validation():
    assert cli._parse_media_id(" 42 ") == 42
    assert cli._parse_rating("4.5") == 4.5
    with pytest.raises(argparse.ArgumentTypeError):
        cli._parse_media_id("abc")
    with pytest.raises(argparse.ArgumentTypeError):
        cli._parse_media_id("0")
    with pytest.raises(argparse.ArgumentTypeError):
        cli._parse_rating("6")
    with pytest.raises(argparse.ArgumentTypeError):
        cli._parse_rating("great")


@pytest.mark.parametrize("argv, message", [
    (["similar", "abc"], "invalid media id"),
    (["feedback", "alice", "x1", "5"], "invalid media id"),
    (["feedback", "alice", "4", "9"], "rating must be between 1 and 5"),
])
def test_bad_arguments_exit_with_usage_error(argv, message, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 2
    assert message in capsys.readouterr().err


def test_main_dispatches_to_subcommand(monkeypatch):
    called = {}

    def fake_analyze(args):
        called["command"] = args.command
        called["text"] = args.text

    monkeypatch.setattr(cli, "cmd_analyze", fake_analyze)
    monkeypatch.setattr(sys, "argv", ["prog", "analyze", "a scary movie"])

    cli.main()

    assert called == {"command": "analyze", "text": "a scary movie"}


def test_analyze_command_logs_extraction(caplog):
    with caplog.at_level(logging.INFO, logger="media_rec.cli"):
        cli.main(["analyze", "I love funny comedy from the 1980s"])

    assert "comedy" in caplog.text
    assert "funny" in caplog.text
    assert "1980s" in caplog.text
    assert "Sentiment:" in caplog.text and "+1" in caplog.text


def test_similar_command(snapshot_dir, caplog):
    catalog_path, _ = snapshot_dir

    with caplog.at_level(logging.INFO, logger="media_rec.cli"):
        cli.main(["--catalog", str(catalog_path), "similar", "1", "--limit", "1"])

    assert "Similar to Space Raid" in caplog.text
    assert "1. Station Siege (2020)" in caplog.text


def test_similar_command_unknown_media(snapshot_dir, caplog):
    catalog_path, _ = snapshot_dir

    cli.main(["--catalog", str(catalog_path), "similar", "999"])

    assert "No media with id 999" in caplog.text


def test_recommend_command_uses_other_profiles(snapshot_dir, caplog):
    catalog_path, profiles_path = snapshot_dir

    with caplog.at_level(logging.INFO, logger="media_rec.cli"):
        cli.main([
            "--catalog", str(catalog_path), "--profiles", str(profiles_path),
            "recommend", "alice", "--limit", "3", "--explain",
        ])

    assert "Recommendations for alice" in caplog.text
    assert "score" in caplog.text and "collab" in caplog.text


def test_feedback_command_saves_profile(snapshot_dir, caplog):
    catalog_path, profiles_path = snapshot_dir

    with caplog.at_level(logging.INFO, logger="media_rec.cli"):
        cli.main([
            "--catalog", str(catalog_path), "--profiles", str(profiles_path),
            "feedback", "alice", "4", "5", "--text", "so funny, loved the best jokes", "--save",
        ])

    saved = {p["id"]: p for p in json.loads(profiles_path.read_text())}
    alice = saved["alice"]
    assert alice["recommendation_feedback"]["accepted"] == [2, 4]
    assert alice["preferences"]["keywords"]["funny"] > 0
    assert any(m["id"] == 4 for m in alice["watch_history"])
    assert "Saved profiles" in caplog.text


def test_feedback_without_text_reports_updates(snapshot_dir, caplog):
    catalog_path, profiles_path = snapshot_dir

    with caplog.at_level(logging.INFO, logger="media_rec.cli"):
        cli.main([
            "--catalog", str(catalog_path), "--profiles", str(profiles_path),
            "feedback", "bob", "3", "2",
        ])

    assert "genre:18" in caplog.text
    # Not saved without --save
    saved = {p["id"]: p for p in json.loads(profiles_path.read_text())}
    assert "preferences" not in saved["bob"]


def test_profile_command(snapshot_dir, caplog):
    _, profiles_path = snapshot_dir

    with caplog.at_level(logging.INFO, logger="media_rec.cli"):
        cli.main(["--profiles", str(profiles_path), "profile", "alice"])

    assert "Profile for alice" in caplog.text
    assert "28: +1.00" in caplog.text
    assert "1 accepted" in caplog.text
