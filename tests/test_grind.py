import pytest

from xvuser.grind import RAND_RANGE, Rand, do_rand


def test_first_value_from_default_seed():
    assert Rand().rand() == 33613


def test_do_rand_zero_state():
    assert do_rand(0) == 16806


@pytest.mark.parametrize("ctx", [0, 1, 2, 127773, 0x7FFFFFFD, 2**40, 2**64 - 1])
def test_do_rand_in_range(ctx):
    assert 0 <= do_rand(ctx) < RAND_RANGE


@pytest.mark.parametrize("ctx", [0, 5, 123456789])
def test_do_rand_periodic_in_state(ctx):
    assert do_rand(ctx) == do_rand(ctx + 0x7FFFFFFE)


def test_rand_follows_do_rand():
    r = Rand(5)
    first = r.rand()
    assert first == do_rand(5)
    assert r.rand() == do_rand(first)


def test_same_seed_same_stream():
    first = list(Rand().sequence(2))
    assert first == [33613, 564950497]
    assert list(Rand().sequence(2)) == first


def test_different_seeds_differ():
    assert list(Rand(1 ^ 31).sequence(10)) != list(Rand(1 ^ 7177).sequence(10))


def test_sequence_with_modulus():
    raw = list(Rand(9).sequence(100))
    reduced = list(Rand(9).sequence(100, 23))
    assert reduced == [v % 23 for v in raw]
    assert all(0 <= v < 23 for v in reduced)


def test_sequence_length_and_state():
    r = Rand(3)
    values = list(r.sequence(7))
    assert len(values) == 7
    assert r.state == values[-1]


def test_seed_masked_to_64_bits():
    assert Rand(-1).rand() == do_rand(2**64 - 1)