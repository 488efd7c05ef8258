import random

import pytest

from vo_markov.random_source import PythonRandomSource, RandomSource, as_random_source
from vo_markov.sampler import WeightedSampler


def test_python_source_is_reproducible():
    a = PythonRandomSource(seed=4)
    b = PythonRandomSource(seed=4)
    assert [a.randbelow(10) for _ in range(20)] == [b.randbelow(10) for _ in range(20)]
    assert all(0 <= a.randbelow(3) < 3 for _ in range(100))


def test_python_source_rejects_bad_bound():
    with pytest.raises(ValueError):
        PythonRandomSource(seed=0).randbelow(0)


def test_seed_and_rng_are_exclusive():
    with pytest.raises(ValueError):
        PythonRandomSource(seed=1, rng=random.Random(1))


def test_as_random_source():
    source = PythonRandomSource(seed=0)
    assert as_random_source(source) is source
    assert as_random_source(None) is None
    assert isinstance(as_random_source(random.Random(0)), PythonRandomSource)
    with pytest.raises(TypeError):
        as_random_source(42)


def test_base_source_is_abstract():
    with pytest.raises(NotImplementedError):
        RandomSource().randbelow(3)


def test_out_of_range_source_value_is_reported():
    class Broken(RandomSource):
        def randbelow(self, n):
            return n

    s = WeightedSampler([("a", 1)], rng=Broken())
    with pytest.raises(ValueError):
        s.draw()


def test_torch_source_matches_distribution():
    pytest.importorskip("torch")
    from vo_markov.torch_random import TorchRandomSource

    a = TorchRandomSource(seed=3)
    b = TorchRandomSource(seed=3)
    assert [a.randbelow(100) for _ in range(10)] == [b.randbelow(100) for _ in range(10)]

    s = WeightedSampler([("a", 3), ("b", 1)], rng=TorchRandomSource(seed=0))
    trials = 8000
    hits = sum(1 for _ in range(trials) if s.draw() == "a")
    assert abs(hits / trials - 0.75) < 0.03
    with pytest.raises(ValueError):
        a.randbelow(2**64)
