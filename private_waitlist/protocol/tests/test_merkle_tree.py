"""Unit tests for the flat-array Merkle tree and authentication paths."""

import pytest

from private_waitlist.protocol.exceptions import (
    IndexOutOfBoundsError,
    InvalidInputError,
    MerkleTreeShapeError,
)
from private_waitlist.protocol.hashing import commit
from private_waitlist.protocol.merkle import (
    build_tree,
    compute_root,
    extract_auth_path,
    hash_node,
    is_power_of_two,
    verify_auth_path,
)


def _leaves(n: int) -> list:
    return [commit(i + 1) for i in range(n)]


def test_single_leaf_tree_is_its_own_root():
    leaf = commit(5)
    tree = build_tree([leaf])
    assert tree.nodes == (leaf,)
    assert tree.root == leaf
    assert tree.depth == 0
    assert extract_auth_path(tree, 0) == ()
    assert verify_auth_path(leaf, (), leaf) is True


def test_two_leaf_tree():
    a, b = _leaves(2)
    tree = build_tree([a, b])
    assert tree.root == hash_node(a, b)
    assert extract_auth_path(tree, 0) == ((b, True),)
    assert extract_auth_path(tree, 1) == ((a, False),)


def test_four_leaf_layout():
    a, b, c, d = _leaves(4)
    tree = build_tree([a, b, c, d])
    ab = hash_node(a, b)
    cd = hash_node(c, d)
    assert tree.nodes == (a, b, c, d, ab, cd, hash_node(ab, cd))
    assert tree.level(0) == (a, b, c, d)
    assert tree.level(1) == (ab, cd)
    assert tree.level(2) == (tree.root,)


def test_eight_leaf_paths_use_cumulative_level_offsets():
    leaves = _leaves(8)
    tree = build_tree(leaves)
    level1 = tree.level(1)
    level2 = tree.level(2)

    path = extract_auth_path(tree, 5)
    assert path == (
        (leaves[4], False),
        (level1[3], True),
        (level2[0], False),
    )


@pytest.mark.parametrize("n", [1, 2, 4, 8, 16])
def test_every_leaf_path_recombines_to_root(n):
    leaves = _leaves(n)
    tree = build_tree(leaves)
    assert len(tree.nodes) == 2 * n - 1
    for index, leaf in enumerate(leaves):
        path = extract_auth_path(tree, index)
        assert len(path) == tree.depth
        assert compute_root(leaf, path) == tree.root
        assert verify_auth_path(leaf, path, tree.root) is True


def test_wrong_leaf_does_not_verify():
    leaves = _leaves(4)
    tree = build_tree(leaves)
    path = extract_auth_path(tree, 2)
    assert verify_auth_path(leaves[3], path, tree.root) is False


def test_flipped_flag_does_not_verify():
    leaves = _leaves(4)
    tree = build_tree(leaves)
    path = list(extract_auth_path(tree, 1))
    sibling, is_left = path[0]
    path[0] = (sibling, not is_left)
    assert verify_auth_path(leaves[1], path, tree.root) is False


def test_build_tree_is_deterministic():
    assert build_tree(_leaves(8)) == build_tree(_leaves(8))


def test_leaf_order_changes_root():
    leaves = _leaves(4)
    assert build_tree(leaves).root != build_tree(list(reversed(leaves))).root


@pytest.mark.parametrize("n", [0, 3, 5, 6, 7, 12])
def test_non_power_of_two_rejected(n):
    with pytest.raises(MerkleTreeShapeError, match="power of two"):
        build_tree(_leaves(n))


def test_non_field_leaf_rejected():
    with pytest.raises(InvalidInputError):
        build_tree([1, -1])


@pytest.mark.parametrize("index", [-1, 4, 100, True])
def test_index_out_of_bounds(index):
    tree = build_tree(_leaves(4))
    with pytest.raises(IndexOutOfBoundsError):
        extract_auth_path(tree, index)


def test_level_out_of_range():
    tree = build_tree(_leaves(4))
    with pytest.raises(IndexOutOfBoundsError):
        tree.level(3)


def test_is_power_of_two():
    assert [n for n in range(17) if is_power_of_two(n)] == [1, 2, 4, 8, 16]
    assert is_power_of_two(True) is False
