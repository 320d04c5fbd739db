"""
Flat-array Merkle tree over waitlist commitments.

Layout for N leaves (N a power of two), 2N - 1 nodes in total:

    [ leaves (N) | level 1 (N/2) | level 2 (N/4) | ... | root (1) ]

Parent nodes are H2(left, right) with fixed left||right ordering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .exceptions import IndexOutOfBoundsError, MerkleTreeShapeError
from .hashing import hash_pair
from .parsing import require_field_element

log = logging.getLogger(__name__)

# (sibling, is_left): is_left is True when the path node is the left child
AuthPathEntry = Tuple[int, bool]
AuthPath = Tuple[AuthPathEntry, ...]


def hash_node(left: int, right: int) -> int:
    """Combine two child nodes into their parent."""
    return hash_pair(left, right)


def is_power_of_two(n: int) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and n > 0 and n & (n - 1) == 0


@dataclass(frozen=True)
class MerkleTree:
    """
    Immutable flat-array Merkle tree.

    Attributes:
        nodes: All node values, leaves first and root last
    """

    nodes: Tuple[int, ...]

    @property
    def leaf_count(self) -> int:
        return (len(self.nodes) + 1) // 2

    @property
    def depth(self) -> int:
        return self.leaf_count.bit_length() - 1

    @property
    def leaves(self) -> Tuple[int, ...]:
        return self.nodes[: self.leaf_count]

    @property
    def root(self) -> int:
        return self.nodes[-1]

    def level(self, height: int) -> Tuple[int, ...]:
        """
        Nodes at a given height (0 = leaves, depth = root).

        Raises:
            IndexOutOfBoundsError: If height is outside [0, depth]
        """
        if not 0 <= height <= self.depth:
            raise IndexOutOfBoundsError(
                f"level {height} outside tree of depth {self.depth}"
            )
        start, size = 0, self.leaf_count
        for _ in range(height):
            start += size
            size //= 2
        return self.nodes[start : start + size]


def build_tree(leaves: Sequence[int]) -> MerkleTree:
    """
    Build a flat-array Merkle tree.

    Args:
        leaves: Ordered commitments; the count must be a power of two

    Returns:
        MerkleTree with 2N - 1 nodes

    Raises:
        MerkleTreeShapeError: If the leaf count is not a power of two
        InvalidInputError: If a leaf is not a field element

    Example:
        tree = build_tree([c0, c1, c2, c3])
        published_root = tree.root
    """
    leaves = list(leaves)
    if not is_power_of_two(len(leaves)):
        raise MerkleTreeShapeError(
            f"leaf count must be a power of two, got {len(leaves)}"
        )
    for i, leaf in enumerate(leaves):
        require_field_element(leaf, f"leaves[{i}]")

    nodes: List[int] = list(leaves)
    level_start, level_size = 0, len(leaves)
    while level_size > 1:
        for i in range(level_start, level_start + level_size, 2):
            nodes.append(hash_node(nodes[i], nodes[i + 1]))
        level_start += level_size
        level_size //= 2

    log.debug("built merkle tree: leaves=%d nodes=%d", len(leaves), len(nodes))
    return MerkleTree(nodes=tuple(nodes))


def extract_auth_path(tree: MerkleTree, index: int) -> AuthPath:
    """
    Extract the authentication path for one leaf.

    Args:
        tree: Tree built by build_tree
        index: Leaf index in [0, N)

    Returns:
        ((sibling, is_left), ...) ordered leaf to root, one entry per level

    Raises:
        IndexOutOfBoundsError: If index is outside [0, N)
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise IndexOutOfBoundsError(f"index must be an int, got {type(index).__name__}")
    if not 0 <= index < tree.leaf_count:
        raise IndexOutOfBoundsError(
            f"index {index} outside [0, {tree.leaf_count})"
        )

    path: List[AuthPathEntry] = []
    level_start, level_size = 0, tree.leaf_count
    position = index
    while level_size > 1:
        if position % 2 == 0:
            path.append((tree.nodes[level_start + position + 1], True))
        else:
            path.append((tree.nodes[level_start + position - 1], False))
        # Next level starts after every node of the levels below it
        level_start += level_size
        level_size //= 2
        position //= 2

    return tuple(path)


def compute_root(leaf: int, path: Iterable[AuthPathEntry]) -> int:
    """Recombine a leaf with its authentication path."""
    current = leaf
    for sibling, is_left in path:
        if is_left:
            current = hash_node(current, sibling)
        else:
            current = hash_node(sibling, current)
    return current


def verify_auth_path(leaf: int, path: Iterable[AuthPathEntry], root: int) -> bool:
    """
    Check that a leaf and its path recombine to root.

    Example:
        if verify_auth_path(commitment, path, published_root):
            print("slot is in the waitlist")
    """
    return compute_root(leaf, path) == root
