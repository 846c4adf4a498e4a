"""
Proof Registry Merkle Tree

Commits the event log to a single root hash. Publishing the root lets an
auditor check that one event belongs to the log with a logarithmic proof,
without downloading the rest of the log.

Hashing follows RFC 6962 domain separation:
    - Leaf hash: SHA256(0x00 || leaf_data)
    - Internal hash: SHA256(0x01 || left || right)

An odd node at the end of a level is promoted unchanged to the next level.
"""

import hashlib
import json
from dataclasses import dataclass, asdict
from typing import List, Optional


LEAF_PREFIX = b'\x00'
NODE_PREFIX = b'\x01'


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _strip_prefix(leaf_hash: str) -> bytes:
    if not isinstance(leaf_hash, str):
        raise TypeError(f"leaf hash must be a hex string, got {type(leaf_hash).__name__}")
    return bytes.fromhex(leaf_hash.replace('sha256:', ''))


@dataclass
class InclusionProof:
    """
    Proof that a leaf is included in the tree.

    Attributes:
        leaf_index: Position of the leaf
        leaf_hash: Prefixed leaf node hash (hex)
        proof_hashes: Sibling hashes from leaf level up to the root
        proof_directions: 0 if the sibling sits on the left, 1 if on the right
        tree_size: Number of leaves when the proof was made
        root_hash: Root at that size (hex)
    """
    leaf_index: int
    leaf_hash: str
    proof_hashes: List[str]
    proof_directions: List[int]
    tree_size: int
    root_hash: str

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> 'InclusionProof':
        return cls(**data)


class MerkleTree:
    """Append-only Merkle tree over event hashes."""

    def __init__(self):
        self._leaves: List[bytes] = []
        self._levels: Optional[List[List[bytes]]] = None

    @property
    def size(self) -> int:
        return len(self._leaves)

    @property
    def root(self) -> Optional[str]:
        """Current root as hex, or None for an empty tree."""
        if not self._leaves:
            return None
        return self._build_levels()[-1][0].hex()

    @staticmethod
    def hash_leaf(data: bytes) -> bytes:
        return sha256(LEAF_PREFIX + data)

    @staticmethod
    def hash_children(left: bytes, right: bytes) -> bytes:
        return sha256(NODE_PREFIX + left + right)

    def add_leaf(self, leaf_hash: str) -> int:
        """
        Append a leaf.

        Args:
            leaf_hash: Event hash as hex, with or without 'sha256:' prefix

        Returns:
            int: Index of the new leaf
        """
        self._leaves.append(self.hash_leaf(_strip_prefix(leaf_hash)))
        self._levels = None
        return len(self._leaves) - 1

    def _build_levels(self) -> List[List[bytes]]:
        if self._levels is not None:
            return self._levels

        levels = [list(self._leaves)]
        while len(levels[-1]) > 1:
            current = levels[-1]
            parents = [
                self.hash_children(current[i], current[i + 1])
                for i in range(0, len(current) - 1, 2)
            ]
            if len(current) % 2:
                parents.append(current[-1])
            levels.append(parents)

        self._levels = levels
        return levels

    def get_inclusion_proof(self, index: int) -> InclusionProof:
        """
        Build an inclusion proof for the leaf at ``index``.

        Raises:
            IndexError: If index is out of range
        """
        if index < 0 or index >= len(self._leaves):
            raise IndexError(f"Leaf index {index} out of range [0, {len(self._leaves) - 1}]")

        levels = self._build_levels()
        proof_hashes = []
        proof_directions = []

        position = index
        for nodes in levels[:-1]:
            sibling = position ^ 1
            if sibling < len(nodes):
                proof_hashes.append(nodes[sibling].hex())
                proof_directions.append(0 if sibling < position else 1)
            position //= 2

        return InclusionProof(
            leaf_index=index,
            leaf_hash=self._leaves[index].hex(),
            proof_hashes=proof_hashes,
            proof_directions=proof_directions,
            tree_size=len(self._leaves),
            root_hash=levels[-1][0].hex(),
        )

    @staticmethod
    def verify_inclusion_proof(
        leaf_hash: str,
        proof: InclusionProof,
        expected_root: str
    ) -> bool:
        """
        Check an inclusion proof.

        Args:
            leaf_hash: Event hash the proof is claimed for
            proof: The inclusion proof
            expected_root: Root the proof must reach (hex)

        Returns:
            bool: True if the leaf matches the proof and the path reaches the root
        """
        try:
            node = MerkleTree.hash_leaf(_strip_prefix(leaf_hash))
        except (TypeError, ValueError):
            return False
        if node.hex() != proof.leaf_hash:
            return False

        try:
            siblings = [bytes.fromhex(sibling_hex) for sibling_hex in proof.proof_hashes]
        except (TypeError, ValueError):
            return False

        for sibling, direction in zip(siblings, proof.proof_directions):
            if direction == 0:
                node = MerkleTree.hash_children(sibling, node)
            else:
                node = MerkleTree.hash_children(node, sibling)

        return node.hex() == expected_root

    @classmethod
    def from_leaves(cls, leaf_hashes: List[str]) -> 'MerkleTree':
        tree = cls()
        for leaf_hash in leaf_hashes:
            tree.add_leaf(leaf_hash)
        return tree
