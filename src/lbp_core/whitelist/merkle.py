"""
Merkle whitelist for pools that restrict who may trade.

Leaves are sha256(0x00 || identity) and internal nodes sha256(0x01 || left || right),
so no leaf can pass as an internal node. Children are hashed in sorted order,
so proofs carry only siblings and no left/right flags. An all-zero root
disables the whitelist.
"""
import hashlib
from typing import List, Optional, Sequence

from lbp_core.common.errors import WhitelistProof
from lbp_core.common.model import ZERO_ROOT


HASH_SIZE = 32
LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"


def _hash_pair(a: bytes, b: bytes) -> bytes:
    if a <= b:
        return hashlib.sha256(NODE_PREFIX + a + b).digest()
    return hashlib.sha256(NODE_PREFIX + b + a).digest()


class WhitelistVerifier:

    @staticmethod
    def leaf_for(identity: str) -> bytes:
        return hashlib.sha256(LEAF_PREFIX + identity.encode("utf-8")).digest()

    @staticmethod
    def verify(root: bytes, leaf: bytes, proof: Optional[Sequence[bytes]]) -> bool:
        """
        True when 'leaf' folds up to 'root' through 'proof', or when 'root' is the zero root.
        """
        if root == ZERO_ROOT:
            return True
        if proof is None:
            return False

        computed = leaf
        for sibling in proof:
            if len(sibling) != HASH_SIZE:
                return False
            computed = _hash_pair(computed, sibling)
        return computed == root

    @staticmethod
    def require_whitelisted(root: bytes, identity: str, proof: Optional[Sequence[bytes]]) -> None:
        if root == ZERO_ROOT:
            return
        if proof is None:
            raise WhitelistProof("A whitelist proof is required for this pool")
        if not WhitelistVerifier.verify(root, WhitelistVerifier.leaf_for(identity), proof):
            raise WhitelistProof()

    @staticmethod
    def _levels(leaves: List[bytes]) -> List[List[bytes]]:
        if not leaves:
            raise ValueError("Cannot build a Merkle tree without leaves.")
        levels = [sorted(leaves)]
        while len(levels[-1]) > 1:
            current = levels[-1]
            parents = []
            for i in range(0, len(current), 2):
                if i + 1 < len(current):
                    parents.append(_hash_pair(current[i], current[i + 1]))
                else:
                    # odd node is promoted unchanged
                    parents.append(current[i])
            levels.append(parents)
        return levels

    @staticmethod
    def build_root(identities: Sequence[str]) -> bytes:
        leaves = [WhitelistVerifier.leaf_for(i) for i in identities]
        return WhitelistVerifier._levels(leaves)[-1][0]

    @staticmethod
    def build_proof(identities: Sequence[str], identity: str) -> List[bytes]:
        """
        Sibling path for 'identity' in the tree built from 'identities'.
        """
        leaves = [WhitelistVerifier.leaf_for(i) for i in identities]
        target = WhitelistVerifier.leaf_for(identity)
        levels = WhitelistVerifier._levels(leaves)
        if target not in levels[0]:
            raise ValueError(f"{identity} is not part of the whitelist.")

        proof = []
        index = levels[0].index(target)
        for level in levels[:-1]:
            sibling = index ^ 1
            if sibling < len(level):
                proof.append(level[sibling])
            index //= 2
        return proof
