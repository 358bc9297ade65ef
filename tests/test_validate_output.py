# tests/test_validate_output.py

"""Tests for the song points validator."""

import json

import pytest

from lyricmind_pipeline.scripts.validate_output import (
    load_points,
    validate_point,
    main as validate_main,
)


def make_valid_point(idx: int = 0, vector_dim: int = 4):
    """Minimal valid song point."""
    song_id = f"song-{idx}"
    return {
        "id": song_id,
        "vector": [float(i) for i in range(vector_dim)],
        "payload": {
            "text": f"Title: Song {idx}\nArtist: Artist\nLyrics: words\n",
            "songId": song_id,
            "title": f"Song {idx}",
            "artist": "Artist",
            "album": "Album",
            "genre": "Pop",
            "description": "N/A",
            "releaseYear": 2001,
        },
    }


# --- validate_point ---------------------------------------------------------------


def test_valid_point_has_no_errors_or_warnings():
    errors, warnings = validate_point(make_valid_point(vector_dim=3), idx=0, expected_dim=3)

    assert errors == []
    assert warnings == []


def test_wrong_dimension_is_error():
    errors, _ = validate_point(make_valid_point(vector_dim=3), idx=0, expected_dim=4)

    assert any("expected_dim 4" in e for e in errors)


def test_non_finite_vector_value_is_error():
    point = make_valid_point()
    point["vector"][1] = float("nan")

    errors, _ = validate_point(point, idx=0, expected_dim=None)

    assert any("non-finite" in e for e in errors)


def test_missing_vector_and_id_are_errors():
    point = make_valid_point()
    del point["vector"]
    point["id"] = None

    errors, _ = validate_point(point, idx=5, expected_dim=None)

    assert any("'vector'" in e for e in errors)
    assert any("'id'" in e for e in errors)
    assert all(e.startswith("[idx=5]") for e in errors)


def test_missing_required_payload_field_is_error():
    point = make_valid_point()
    del point["payload"]["artist"]

    errors, _ = validate_point(point, idx=0, expected_dim=None)

    assert any("'artist'" in e for e in errors)


def test_payload_song_id_must_match_point_id():
    point = make_valid_point()
    point["payload"]["songId"] = "other"

    errors, _ = validate_point(point, idx=0, expected_dim=None)

    assert any("!= point id" in e for e in errors)


def test_string_release_year_is_error_and_missing_is_warning():
    point = make_valid_point()
    point["payload"]["releaseYear"] = "2001"
    errors, _ = validate_point(point, idx=0, expected_dim=None)
    assert any("releaseYear" in e for e in errors)

    del point["payload"]["releaseYear"]
    errors, warnings = validate_point(point, idx=0, expected_dim=None)
    assert errors == []
    assert any("releaseYear" in w for w in warnings)


def test_non_dict_payload_is_error():
    point = make_valid_point()
    point["payload"] = "oops"

    errors, _ = validate_point(point, idx=0, expected_dim=None)

    assert any("'payload'" in e for e in errors)


# --- load_points / main ---------------------------------------------------------------


def test_load_points_rejects_non_list(tmp_path):
    path = tmp_path / "points.json"
    path.write_text(json.dumps({"id": "x"}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_points(path)


def test_main_passes_on_valid_file(tmp_path, capsys):
    path = tmp_path / "points.json"
    path.write_text(json.dumps([make_valid_point(0), make_valid_point(1)]), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(path), "--expected-dim", "4"])

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "VALIDATION PASSED" in out
    assert "Total points: 2" in out


def test_main_fails_on_invalid_file(tmp_path, capsys):
    bad = make_valid_point()
    bad["vector"] = []
    path = tmp_path / "points.json"
    path.write_text(json.dumps([bad]), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(path)])

    assert excinfo.value.code == 1
    assert "VALIDATION FAILED" in capsys.readouterr().out


def test_main_fails_on_unreadable_file(tmp_path, capsys):
    path = tmp_path / "points.json"
    path.write_text("not json", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        validate_main(["--path", str(path)])

    assert excinfo.value.code == 1
    assert "FAILED TO LOAD FILE" in capsys.readouterr().out
