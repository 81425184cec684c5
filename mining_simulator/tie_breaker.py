from __future__ import annotations
from typing import Optional, TYPE_CHECKING
import random

from mining_simulator.blueprint import TieBreakerBase

if TYPE_CHECKING:
    from mining_simulator.block import BlockId, MinerId
    from mining_simulator.blockchain import Blockchain

# ============================
# HELPERS
# ============================

def earliest_by(chain: 'Blockchain', block_ids, miner_id: 'MinerId') -> Optional['BlockId']:
    """Returns the first of ``block_ids`` authored by ``miner_id``."""
    for block_id in block_ids:
        if chain[block_id].block.miner_id == miner_id:
            return block_id
    return None


def earliest_not_by(chain: 'Blockchain', block_ids, miner_id: 'MinerId') -> Optional['BlockId']:
    """Returns the first of ``block_ids`` not authored by ``miner_id``."""
    for block_id in block_ids:
        if chain[block_id].block.miner_id != miner_id:
            return block_id
    return None

# ============================
# TIE BREAKER IMPLEMENTATIONS
# ============================

class EarliestPublished(TieBreakerBase):
    """Uses the block published in the earliest round."""

    def choose(self, chain: 'Blockchain', rng: random.Random = None) -> 'BlockId':
        return chain.tip()[0]


class FavorMiner(TieBreakerBase):
    """Uses the earliest tip block published by the given miner, if one exists.
    Otherwise, uses the earliest tip block published by any miner."""

    def __init__(self, miner_id: 'MinerId'):
        self.miner_id = miner_id

    def choose(self, chain: 'Blockchain', rng: random.Random = None) -> 'BlockId':
        tip = chain.tip()
        favored = earliest_by(chain, tip, self.miner_id)
        return favored if favored is not None else tip[0]


class FavorMinerFork(TieBreakerBase):
    """Uses the earliest block published by the given miner, searching heights from the
    maximum height down to ``depth`` levels below it. Falls back to the earliest tip block."""

    def __init__(self, miner_id: 'MinerId', depth: int):
        if depth < 0:
            raise ValueError(f"search depth must not be negative, got {depth}")
        self.miner_id = miner_id
        self.depth = depth

    def choose(self, chain: 'Blockchain', rng: random.Random = None) -> 'BlockId':
        lowest = max(chain.max_height - self.depth, 0)
        for height in range(chain.max_height, lowest - 1, -1):
            favored = earliest_by(chain, chain.at_height(height), self.miner_id)
            if favored is not None:
                return favored
        return chain.tip()[0]


class FavorMinerProb(TieBreakerBase):
    """With probability ``prob``, uses the earliest tip block published by the given
    miner. Otherwise, uses the earliest tip block published by any other miner. When the
    tip only holds one of the two kinds of block, that block is used without a draw."""

    def __init__(self, miner_id: 'MinerId', prob: float):
        if not 0.0 <= prob <= 1.0:
            raise ValueError("tie breaker probability must be between 0 and 1")
        self.miner_id = miner_id
        self.prob = prob

    def choose(self, chain: 'Blockchain', rng: random.Random) -> 'BlockId':
        tip = chain.tip()
        favored = earliest_by(chain, tip, self.miner_id)
        not_favored = earliest_not_by(chain, tip, self.miner_id)

        if favored is None:
            return not_favored
        if not_favored is None:
            return favored
        return favored if rng.random() < self.prob else not_favored


class RandomTip(TieBreakerBase):
    """Uses a tip block picked uniformly at random."""

    def choose(self, chain: 'Blockchain', rng: random.Random) -> 'BlockId':
        return rng.choice(chain.tip())
