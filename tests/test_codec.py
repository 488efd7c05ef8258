import json
import string

import pytest

from vo_markov.chain import SequenceModel
from vo_markov.codec import CodecError, JsonCodec
from vo_markov.elements import UNKNOWN
from vo_markov.random_source import PythonRandomSource


def _trained_model():
    m = SequenceModel(2, [0, 7])
    words = ["spring", "string", "sprint"]
    for word in words:
        m.train_sequence(word)
    m.train(["s", "t"], "x", 4)
    m.train(["s", "t"], "x", -4)
    return m


def test_round_trip_preserves_content():
    codec = JsonCodec()
    model = _trained_model()
    decoded = codec.decode(codec.encode(model))
    assert decoded == model
    assert decoded.order == 2
    assert decoded.optional_positions == (0,)
    assert decoded.probability_of([UNKNOWN, "r"], "i") == model.probability_of([UNKNOWN, "r"], "i")


def test_round_trip_of_equal_models_trained_in_different_order():
    alpha = string.ascii_lowercase
    forward = SequenceModel(1)
    backward = SequenceModel(1)
    for i in range(1, len(alpha)):
        forward.train([alpha[i - 1]], alpha[i])
        rev = len(alpha) - i
        backward.train([alpha[rev - 1]], alpha[rev])
    codec = JsonCodec(indent=2, sort_keys=True)
    assert codec.decode(codec.encode(forward)) == codec.decode(codec.encode(backward))


def test_tuple_and_integer_elements_survive():
    m = SequenceModel(1, [0])
    m.train([(0, 1)], (1, 1), 2)
    m.train([(1, 1)], (2, 1))
    codec = JsonCodec()
    decoded = codec.decode(codec.encode(m))
    assert decoded == m
    assert decoded.generate_deterministic_partial([UNKNOWN], 2) == (2, 1)


def test_decoded_model_uses_given_rng():
    m = SequenceModel(1)
    m.train(["a"], "b")
    decoded = JsonCodec().decode(JsonCodec().encode(m), rng=PythonRandomSource(seed=0))
    assert decoded.generate(["a"]) == "b"


def test_payload_accepts_dict():
    codec = JsonCodec()
    payload = codec.to_payload(_trained_model())
    assert codec.decode(payload) == _trained_model()
    assert json.loads(codec.encode(_trained_model()))["format"] == "vo_markov"


def test_unencodable_element_rejected():
    m = SequenceModel(1)
    m.train([frozenset({1})], "x")
    with pytest.raises(CodecError):
        JsonCodec().encode(m)


@pytest.mark.parametrize(
    "payload, fragment",
    [
        ("not json", "invalid JSON"),
        ("[]", "JSON object"),
        ({"format": "other", "version": 1, "order": 1}, "format"),
        ({"format": "vo_markov", "version": 9, "order": 1}, "version"),
        ({"format": "vo_markov", "version": 1, "order": -1}, "order"),
        (
            {"format": "vo_markov", "version": 1, "order": 1, "contexts": [{"key": ["a", "b"], "items": []}]},
            "key_len=2",
        ),
        (
            {"format": "vo_markov", "version": 1, "order": 1, "contexts": [{"key": ["a"], "items": [["b", -1]]}]},
            "non-negative",
        ),
        (
            {"format": "vo_markov", "version": 1, "order": 1, "contexts": [{"key": ["a"], "items": [["b", 2**64]]}]},
            "exceeds",
        ),
    ],
)
def test_bad_payloads(payload, fragment):
    with pytest.raises(CodecError) as exc:
        JsonCodec().decode(payload)
    assert fragment in str(exc.value)
