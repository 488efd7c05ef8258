import json

import pytest

from vo_markov.chain import SequenceModel
from vo_markov.cli import main
from vo_markov.codec import JsonCodec
from vo_markov.demos import (
    WORD_END,
    WORD_START,
    default_tilemap,
    generate_tilemap,
    generate_with_backoff,
    generate_words,
    train_tilemap,
    train_words,
)
from vo_markov.elements import UNKNOWN
from vo_markov.presets import ModelConfig, load_presets
from vo_markov.random_source import PythonRandomSource


def test_generated_words_follow_training_paths():
    model = SequenceModel(2, rng=PythonRandomSource(seed=9))
    train_words(model, ["banana", "bandana", "cabana"])
    words = generate_words(model, 10, min_length=3, max_length=12)
    assert len(words) == 10
    for word in words:
        assert 3 <= len(word) <= 12
        assert WORD_END not in word
        assert set(word) <= set("bandc")


def test_deterministic_words():
    model = SequenceModel(1)
    train_words(model, ["abc"])
    assert generate_words(model, 2, min_length=1, values=[0]) == ["abc", "abc"]


def test_words_validate_arguments():
    model = SequenceModel(1)
    with pytest.raises(ValueError):
        generate_words(model, -1)
    with pytest.raises(ValueError):
        generate_words(model, 1, min_length=5, max_length=2)
    with pytest.raises(ValueError):
        generate_words(model, 1, values=[])


def test_backoff_blanks_oldest_positions_first():
    model = SequenceModel(2, [0, 1])
    model.train(["a", "b"], "c")
    assert generate_with_backoff(model, ["q", "b"], 0) == "c"
    assert generate_with_backoff(model, ["q", "r"], 0) == "c"
    assert generate_with_backoff(SequenceModel(2, [0]), ["q", "r"], 0) is None


def test_tilemap_edges_use_unknown_neighbours():
    model = SequenceModel(3, [0, 1, 2], rng=PythonRandomSource(seed=1))
    sample = default_tilemap()
    assert train_tilemap(model, sample) == (len(sample) - 1) * (max(map(len, sample)) - 1)
    assert model.probability_of([UNKNOWN, UNKNOWN, UNKNOWN], " ") > 0.0
    rows = generate_tilemap(model, 4, 12)
    assert len(rows) == 4
    assert all(len(row) == 12 for row in rows)
    allowed = set("".join(sample))
    assert all(set(row) <= allowed for row in rows)


def test_tilemap_requires_order_three_and_training():
    with pytest.raises(ValueError):
        train_tilemap(SequenceModel(2), ["ab", "cd"])
    with pytest.raises(ValueError):
        generate_tilemap(SequenceModel(3, [0, 1, 2]), 1, 1, values=[0])


def test_preset_loading(tmp_path):
    (tmp_path / "models.json").write_text(
        json.dumps({"models": {"p": {"order": 2, "optional_positions": [0, 4], "seed": 3}}}),
        encoding="utf-8",
    )
    presets = load_presets(tmp_path)
    assert presets["p"] == ModelConfig(name="p", order=2, optional_positions=[0, 4], seed=3)
    with pytest.warns(RuntimeWarning):
        model = presets["p"].build()
    assert model.optional_positions == (0,)
    assert load_presets(tmp_path / "missing") == {}


def test_bad_preset_rejected(tmp_path):
    (tmp_path / "models.json").write_text(
        json.dumps({"models": {"p": {"order": -2}}}), encoding="utf-8"
    )
    with pytest.raises(ValueError):
        load_presets(tmp_path)


def test_cli_names_and_save(tmp_path, capsys):
    words = tmp_path / "words.txt"
    words.write_text("alpha\nalpine\nalps\n", encoding="utf-8")
    out = tmp_path / "model.json"
    code = main(
        [
            "names",
            "--config-dir", str(tmp_path),
            "--words", str(words),
            "--order", "2",
            "--seed", "1",
            "--count", "3",
            "--min-length", "3",
            "--save", str(out),
        ]
    )
    assert code == 0
    printed = capsys.readouterr().out.split()
    assert len(printed) == 3
    assert all(word.startswith("alp") for word in printed)
    saved = JsonCodec().decode(out.read_text(encoding="utf-8"))
    assert saved.order == 2


def test_cli_tiles(tmp_path, capsys):
    code = main(["tiles", "--config-dir", str(tmp_path), "--rows", "3", "--cols", "5", "--seed", "2"])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3


def test_cli_unknown_preset(tmp_path, capsys):
    assert main(["names", "--config-dir", str(tmp_path), "--preset", "nope"]) == 2
    assert "Unknown model preset" in capsys.readouterr().err


def test_cli_missing_words_file(tmp_path, capsys):
    code = main(["names", "--config-dir", str(tmp_path), "--words", str(tmp_path / "none.txt")])
    assert code == 2
    assert "[ERROR]" in capsys.readouterr().err


def test_cli_list_presets(tmp_path, capsys):
    (tmp_path / "models.json").write_text(
        json.dumps({"models": {"b": {"order": 1}, "a": {"order": 3, "seed": 5}}}),
        encoding="utf-8",
    )
    assert main(["list-presets", "--config-dir", str(tmp_path)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "Models:"
    assert out[1].startswith("  a: order=3")
    assert out[2].startswith("  b: order=1")


def test_words_are_generated_from_start_markers():
    model = SequenceModel(2, rng=PythonRandomSource(seed=3))
    train_words(model, ["kilo", "kite"])
    assert model.probability_of([WORD_START, WORD_START], "k") == 1.0
    assert model.probability_of([UNKNOWN, UNKNOWN], "k") == 0.0
    words = generate_words(model, 5, min_length=4, max_length=4)
    assert words
    assert all(word.startswith("ki") for word in words)
