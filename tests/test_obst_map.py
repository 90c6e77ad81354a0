"""Tests for the immutable tree map."""

import dataclasses

import pytest

from obst_map import EMPTY, Empty, Internal, OBSTMap


@pytest.fixture
def small_map() -> OBSTMap:
    """   d
         / \\
        b   e
       / \\
      a   c
    """
    left = Internal(Internal(EMPTY, "a", 1, EMPTY), "b", 2, Internal(EMPTY, "c", 3, EMPTY))
    return OBSTMap(Internal(left, "d", 4, Internal(EMPTY, "e", 5, EMPTY)), cost=2.0)


class TestEmpty:
    """Tests for the empty-subtree marker."""

    def test_all_empties_are_equal(self):
        assert Empty() == EMPTY
        assert hash(Empty()) == hash(EMPTY)

    def test_nodes_are_immutable(self):
        node = Internal(EMPTY, "a", 1, EMPTY)
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.key = "b"


class TestLookup:
    """Tests for get, [] and membership."""

    def test_get_every_key(self, small_map):
        for key, value in zip("abcde", range(1, 6)):
            assert small_map.get(key) == value
            assert small_map[key] == value
            assert key in small_map

    def test_missing_key(self, small_map):
        assert small_map.get("z") is None
        assert small_map.get("bb", "none") == "none"
        assert "0" not in small_map
        with pytest.raises(KeyError):
            small_map["z"]

    def test_empty_map(self):
        tree = OBSTMap()
        assert tree.get("a") is None
        assert "a" not in tree
        assert len(tree) == 0
        assert list(tree) == []
        assert tree.height() == 0

    def test_search_counts_comparisons(self, small_map):
        assert small_map.search("d") == (4, 1)
        assert small_map.search("c") == (3, 3)
        assert small_map.search("e") == (5, 2)
        # b, then c, then falls off
        assert small_map.search("bb") == (None, 3)

    def test_depth_of(self, small_map):
        assert small_map.depth_of("d") == 1
        assert small_map.depth_of("a") == 3
        assert small_map.depth_of("x") is None


class TestTraversal:
    """Tests for in-order iteration."""

    def test_in_order(self, small_map):
        assert list(small_map) == [("a", 1), ("b", 2), ("c", 3), ("d", 4), ("e", 5)]
        assert small_map.keys() == ["a", "b", "c", "d", "e"]
        assert small_map.values() == [1, 2, 3, 4, 5]

    def test_restartable(self, small_map):
        assert list(small_map.items()) == list(small_map.items())

    def test_lazy(self, small_map):
        it = iter(small_map)
        assert next(it) == ("a", 1)
        assert next(it) == ("b", 2)

    def test_size_and_height(self, small_map):
        assert len(small_map) == 5
        assert small_map.height() == 3

    def test_deep_chain(self):
        root = EMPTY
        for k in range(3000):
            root = Internal(root, k, str(k), EMPTY)
        tree = OBSTMap(root)
        assert tree.get(0) == "0"
        assert tree.height() == 3000
        assert len(tree) == 3000


class TestEquality:
    """Maps compare by tree shape and contents."""

    def test_same_shape_equal(self, small_map):
        other = OBSTMap(small_map.root)
        assert other == small_map

    def test_different_shape_not_equal(self):
        right_leaning = OBSTMap(Internal(EMPTY, "a", 1, Internal(EMPTY, "b", 2, EMPTY)))
        left_leaning = OBSTMap(Internal(Internal(EMPTY, "a", 1, EMPTY), "b", 2, EMPTY))
        assert right_leaning != left_leaning
        assert right_leaning.keys() == left_leaning.keys()

    def test_deep_chains_compare(self):
        def chain(size):
            root = EMPTY
            for k in range(size):
                root = Internal(root, k, str(k), EMPTY)
            return OBSTMap(root)

        assert chain(3000) == chain(3000)
        assert hash(chain(3000)) == hash(chain(3000))
        assert chain(3000) != chain(2999)
