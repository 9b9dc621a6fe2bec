import pytest

from payload.cycles import is_cyclic_chain


@pytest.mark.parametrize("chain, depth, expected", [
    ("a#b#a", 2, True),
    ("a#b#c", 3, False),
    ("a#A#c", 2, True),
    ("pet#owner#pets#owner", 4, True),
    ("a#b#a", 4, False),
    ("a", 1, False),
    ("a#b", 0, False),
    ("a#a", 2, True),
])
def test_is_cyclic_chain(chain, depth, expected):
    assert is_cyclic_chain(chain, depth) is expected


def test_short_chains_are_never_cyclic():
    assert not is_cyclic_chain("x#x#x", 4)


def test_empty_segments_are_compared_too():
    assert is_cyclic_chain("a##b#", 2)
