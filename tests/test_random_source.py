import pytest

from src.modules import random_source
from src.modules.random_source import SequenceRandom, reset_shared_random, seeded, shared_random
from src.modules.sampler_settings import SEED_ENV_VAR, SettingsError


@pytest.fixture(autouse=True)
def fresh_shared_random():
    reset_shared_random()
    yield
    reset_shared_random()


def test_shared_random_is_created_once():
    assert shared_random() is shared_random()


def test_shared_random_seed_from_env(monkeypatch):
    monkeypatch.setenv(SEED_ENV_VAR, "1234")
    first = [shared_random().random() for _ in range(3)]
    reset_shared_random()
    second = [shared_random().random() for _ in range(3)]
    assert first == second


def test_shared_random_bad_seed_raises(monkeypatch):
    monkeypatch.setenv(SEED_ENV_VAR, "not-a-number")
    with pytest.raises(SettingsError):
        shared_random()
    assert random_source._shared is None


def test_seeded_generators_are_independent():
    a = seeded(8)
    b = seeded(8)
    assert a is not b
    assert a.random() == b.random()


def test_sequence_random_cycles():
    rng = SequenceRandom([0.1, 0.9])
    assert [rng.random() for _ in range(5)] == [0.1, 0.9, 0.1, 0.9, 0.1]


@pytest.mark.parametrize("values", [[], [1.0], [-0.1], [0.5, 2.0]])
def test_sequence_random_rejects_out_of_range(values):
    with pytest.raises(ValueError):
        SequenceRandom(values)
