"""
Semaphore groups backed by a lean incremental Merkle tree.

Tree state is a list of per-level node lists; ``nodes[0]`` holds the leaves
in insertion order. When a level has an odd number of nodes, the right-most
node is promoted to the next level unchanged instead of being hashed with a
filler value, so a tree of ``n`` leaves has depth ``ceil(log2(n))``.

Removed members are overwritten with ``ZERO_VALUE`` so that indices stay
stable. The zero sentinel is never accepted as a member and never verifies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import ZERO_VALUE
from .exceptions import (
    AlreadyRemovedMemberError,
    DuplicateMemberError,
    EmptyMemberError,
    IndexOutOfRangeError,
    RemovedMemberError,
)
from .hashing import FieldHasher, default_hasher, to_field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MerkleProof:
    """
    Membership path for one leaf.

    Attributes:
        root: Tree root the path hashes to
        leaf: Leaf value
        index: Packed direction bits, one per sibling (bit ``i`` set means
            the node is the right child at step ``i``). Equals the leaf
            position whenever every level has a sibling.
        siblings: Sibling hashes from leaf to root; levels where the node was
            promoted have no entry.
    """

    root: int
    leaf: int
    index: int
    siblings: Tuple[int, ...]

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple.
        object.__setattr__(self, "siblings", tuple(self.siblings))

    def to_dict(self) -> Dict[str, object]:
        return {
            "root": str(self.root),
            "leaf": str(self.leaf),
            "index": self.index,
            "siblings": [str(s) for s in self.siblings],
        }


def _ceil_log2(n: int) -> int:
    return (n - 1).bit_length() if n > 1 else 0


class Group:
    """
    A set of identity commitments organized as a lean incremental Merkle tree.

    Mutations (``add_member``, ``add_members``, ``update_member``,
    ``remove_member``) must be serialized by the caller; read accessors may
    run concurrently with each other.

    Example:
        >>> group = Group([1, 2, 3])
        >>> group.depth
        2
        >>> proof = group.generate_merkle_proof(1)
        >>> Group.verify_merkle_proof(proof)
        True
    """

    def __init__(
        self,
        members: Iterable[int] = (),
        hasher: Optional[FieldHasher] = None,
    ) -> None:
        self._hasher = hasher or default_hasher()
        self._nodes: List[List[int]] = [[]]
        self._index: Dict[int, int] = {}

        members = list(members)
        if members:
            self.add_members(members)

    # ========================================================================
    # ACCESSORS
    # ========================================================================

    @property
    def hasher(self) -> FieldHasher:
        return self._hasher

    @property
    def root(self) -> Optional[int]:
        """Tree root, or None for an empty group."""
        top = self._nodes[-1]
        return top[0] if top else None

    @property
    def depth(self) -> int:
        return len(self._nodes) - 1

    @property
    def size(self) -> int:
        """Number of leaves, including removed slots."""
        return len(self._nodes[0])

    @property
    def members(self) -> List[int]:
        """Leaves in insertion order; removed slots read as ``ZERO_VALUE``."""
        return list(self._nodes[0])

    def __len__(self) -> int:
        return self.size

    def __contains__(self, member: object) -> bool:
        return isinstance(member, int) and self.index_of(member) is not None

    def leaf(self, index: int) -> int:
        self._check_index(index)
        return self._nodes[0][index]

    def index_of(self, member: int) -> Optional[int]:
        """Index of ``member``, or None. The zero sentinel is never found."""
        if member == ZERO_VALUE:
            return None
        return self._index.get(member)

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def add_member(self, member: int) -> None:
        """
        Append one leaf, hashing only the path from it to the root.

        Raises:
            EmptyMemberError: If member is the zero sentinel
            DuplicateMemberError: If member is already in the group
        """
        member = self._validate_new_member(member)

        index = self.size
        depth = self.depth
        if (1 << depth) < index + 1:
            depth += 1
            self._nodes.append([])

        node = member
        level_index = index
        for level in range(depth):
            self._set_node(level, level_index, node)
            if level_index & 1:
                sibling = self._nodes[level][level_index - 1]
                node = self._hasher.hash(sibling, node)
            level_index >>= 1

        self._nodes[depth] = [node]
        self._index[member] = index
        logger.debug("Added member at index %d (depth=%d)", index, depth)

    insert = add_member

    def add_members(self, members: Sequence[int]) -> None:
        """
        Append many leaves at once.

        The whole batch is validated before anything is inserted, so a
        duplicate leaves the group untouched.

        Raises:
            EmptyMemberError: If any member is the zero sentinel
            DuplicateMemberError: If a member repeats or is already present
        """
        members = list(members)
        seen = set()
        for member in members:
            self._validate_new_member(member)
            if member in seen:
                raise DuplicateMemberError(f"member {member} appears twice")
            seen.add(member)

        if not members:
            return

        start = self.size
        for offset, member in enumerate(members):
            self._index[member] = start + offset
        self._nodes[0].extend(members)

        new_depth = _ceil_log2(self.size)
        while len(self._nodes) < new_depth + 1:
            self._nodes.append([])

        for level in range(new_depth):
            current = self._nodes[level]
            parent_count = (len(current) + 1) // 2
            start_parent = start >> 1
            for parent_index in range(start_parent, parent_count):
                left = current[2 * parent_index]
                right_index = 2 * parent_index + 1
                if right_index < len(current):
                    parent = self._hasher.hash(left, current[right_index])
                else:
                    parent = left
                self._set_node(level + 1, parent_index, parent)
            start = start_parent

        logger.debug(
            "Added %d members (size=%d, depth=%d)", len(members), self.size, self.depth
        )

    def update_member(self, index: int, member: int) -> None:
        """
        Replace the leaf at ``index`` and recompute its path.

        Raises:
            IndexOutOfRangeError: If index is not a leaf position
            RemovedMemberError: If the slot was removed
            EmptyMemberError: If member is the zero sentinel (use remove_member)
            DuplicateMemberError: If member is present at another index
        """
        self._check_index(index)
        if self._nodes[0][index] == ZERO_VALUE:
            raise RemovedMemberError(f"member at index {index} has been removed")
        member = to_field(member, "member")
        if member == ZERO_VALUE:
            raise EmptyMemberError("member value is empty; use remove_member")
        existing = self._index.get(member)
        if existing is not None and existing != index:
            raise DuplicateMemberError(f"member {member} is already at index {existing}")

        self._write_leaf(index, member)
        logger.debug("Updated member at index %d", index)

    update = update_member

    def remove_member(self, index: int) -> None:
        """
        Replace the leaf at ``index`` with the zero sentinel.

        Raises:
            IndexOutOfRangeError: If index is not a leaf position
            AlreadyRemovedMemberError: If the slot was already removed
        """
        self._check_index(index)
        if self._nodes[0][index] == ZERO_VALUE:
            raise AlreadyRemovedMemberError(f"member at index {index} already removed")

        self._write_leaf(index, ZERO_VALUE)
        logger.debug("Removed member at index %d", index)

    remove = remove_member

    # ========================================================================
    # MERKLE PROOFS
    # ========================================================================

    def generate_merkle_proof(self, index: int) -> MerkleProof:
        """
        Build the membership path for the leaf at ``index``.

        Raises:
            IndexOutOfRangeError: If index is out of range or removed
        """
        self._check_index(index)
        leaf = self._nodes[0][index]
        if leaf == ZERO_VALUE:
            raise IndexOutOfRangeError(f"member at index {index} has been removed")

        siblings: List[int] = []
        path_bits: List[int] = []
        level_index = index
        for level in range(self.depth):
            is_right = level_index & 1
            sibling_index = level_index - 1 if is_right else level_index + 1
            if sibling_index < len(self._nodes[level]):
                path_bits.append(is_right)
                siblings.append(self._nodes[level][sibling_index])
            level_index >>= 1

        packed_index = 0
        for bit_position, bit in enumerate(path_bits):
            packed_index |= bit << bit_position

        return MerkleProof(
            root=self.root,
            leaf=leaf,
            index=packed_index,
            siblings=tuple(siblings),
        )

    @staticmethod
    def verify_merkle_proof(
        proof: MerkleProof,
        leaf: Optional[int] = None,
        hasher: Optional[FieldHasher] = None,
    ) -> bool:
        """
        Replay ``proof`` from ``leaf`` (default ``proof.leaf``) and compare
        with ``proof.root``.

        Returns:
            False for the zero sentinel, malformed proofs or root mismatch
        """
        hasher = hasher or default_hasher()
        node = proof.leaf if leaf is None else leaf
        try:
            node = to_field(node, "leaf")
            if node == ZERO_VALUE:
                return False
            if not isinstance(proof.index, int) or proof.index < 0:
                return False
            if proof.index >> len(proof.siblings):
                return False
            for level, sibling in enumerate(proof.siblings):
                if (proof.index >> level) & 1:
                    node = hasher.hash(sibling, node)
                else:
                    node = hasher.hash(node, sibling)
        except (TypeError, ValueError):
            return False

        return node == proof.root

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _validate_new_member(self, member: int) -> int:
        member = to_field(member, "member")
        if member == ZERO_VALUE:
            raise EmptyMemberError("member value is empty")
        if member in self._index:
            raise DuplicateMemberError(f"member {member} is already in the group")
        return member

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"index must be int, got {type(index).__name__}")
        if index < 0 or index >= self.size:
            raise IndexOutOfRangeError(
                f"index {index} out of range for group of size {self.size}"
            )

    def _set_node(self, level: int, index: int, value: int) -> None:
        row = self._nodes[level]
        if index < len(row):
            row[index] = value
        else:
            row.append(value)

    def _write_leaf(self, index: int, value: int) -> None:
        previous = self._nodes[0][index]
        self._index.pop(previous, None)
        if value != ZERO_VALUE:
            self._index[value] = index

        node = value
        level_index = index
        for level in range(self.depth):
            row = self._nodes[level]
            row[level_index] = node
            if level_index & 1:
                node = self._hasher.hash(row[level_index - 1], node)
            elif level_index + 1 < len(row):
                node = self._hasher.hash(node, row[level_index + 1])
            level_index >>= 1

        self._nodes[self.depth][0] = node

    def __repr__(self) -> str:
        return f"Group(size={self.size}, depth={self.depth}, root={self.root})"
