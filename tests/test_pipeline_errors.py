# tests/test_pipeline_errors.py

import logging
from pathlib import Path

import pytest

from lyricmind_pipeline import run_pipeline
from lyricmind_pipeline import pipeline as pipeline_mod
from lyricmind_pipeline import vector_store as vector_store_mod
from lyricmind_pipeline.errors import EmptySourceError, MissingColumnError

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    # CLI writes logs/ relative to the working directory
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_missing_input_file_exits_nonzero(tmp_path: Path):
    output_dir = tmp_path / "output"

    exit_code = run_pipeline.main([
        "--input", str(tmp_path / "does_not_exist.csv"),
        "--output-dir", str(output_dir),
    ])

    assert exit_code != 0
    if output_dir.exists():
        assert list(output_dir.iterdir()) == []


def test_missing_column_fails_whole_load(tmp_path: Path):
    input_path = tmp_path / "no_date.csv"
    input_path.write_text(
        "Artist,Title,Album,Year,Lyric\nA,B,C,2001,words\n", encoding="utf-8"
    )

    with pytest.raises(MissingColumnError):
        pipeline_mod.run_pipeline(input_path=input_path, output_dir=tmp_path / "output")

    assert not (tmp_path / "output").exists()


def test_empty_file_fails(tmp_path: Path):
    input_path = tmp_path / "empty.csv"
    input_path.write_text("", encoding="utf-8")

    with pytest.raises(EmptySourceError):
        pipeline_mod.run_pipeline(input_path=input_path, output_dir=tmp_path / "output")

    exit_code = run_pipeline.main([
        "--input", str(input_path),
        "--output-dir", str(tmp_path / "output"),
    ])
    assert exit_code == 1


def test_embedding_error_fails_and_leaves_no_points_file(tmp_path: Path, monkeypatch):
    """
    An embedding backend failure aborts the run with a non-zero exit code
    and no points file.
    """
    def failing_embed_texts(*args, **kwargs):
        raise RuntimeError("Simulated OpenAI API error")

    monkeypatch.setattr(vector_store_mod, "embed_texts", failing_embed_texts)
    output_dir = tmp_path / "output"

    exit_code = run_pipeline.main([
        "--input", str(FIXTURES / "songs_small.csv"),
        "--output-dir", str(output_dir),
    ])

    assert exit_code != 0
    assert list(output_dir.glob("song_points*.json")) == []
    assert list(output_dir.glob("run_metadata*.json")) == []


def test_unwritable_output_dir_returns_error(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(
        vector_store_mod, "embed_texts", lambda texts, **kw: [[1.0] for _ in texts]
    )
    # a regular file where the output directory should be
    output_dir = tmp_path / "not_a_dir"
    output_dir.write_text("occupied", encoding="utf-8")

    exit_code = run_pipeline.main([
        "--input", str(FIXTURES / "songs_small.csv"),
        "--output-dir", str(output_dir),
    ])

    assert exit_code != 0
