from __future__ import annotations
from typing import List, Optional, Sequence, TYPE_CHECKING

from mining_simulator.block import Block
from mining_simulator.blueprint import ActionBase, MinerBase, TieBreakerBase
from mining_simulator.tie_breaker import EarliestPublished

if TYPE_CHECKING:
    from mining_simulator.block import BlockId
    from mining_simulator.blockchain import Blockchain

# ============================
# ACTIONS
# ============================

class Wait(ActionBase):
    """Don't publish anything this round."""

    def blocks(self) -> List[Block]:
        return []

    def __eq__(self, other) -> bool:
        return isinstance(other, Wait)

    def __hash__(self) -> int:
        return hash(Wait)

    def __repr__(self):
        return "Wait()"


WAIT = Wait()


class Publish(ActionBase):
    """Publish a single block."""

    def __init__(self, block: Block):
        self.block = block

    def blocks(self) -> List[Block]:
        return [self.block]

    def __eq__(self, other) -> bool:
        return isinstance(other, Publish) and self.block == other.block

    def __hash__(self) -> int:
        return hash(self.block)

    def __repr__(self):
        return f"Publish({self.block!r})"


class PublishSet(ActionBase):
    """Publish the given blocks in order. Parents are used exactly as given."""

    def __init__(self, blocks: Sequence[Block]):
        self._blocks: List[Block] = list(blocks)

    def blocks(self) -> List[Block]:
        return list(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def __eq__(self, other) -> bool:
        return isinstance(other, PublishSet) and self._blocks == other._blocks

    def __hash__(self) -> int:
        return hash(tuple(self._blocks))

    def __repr__(self):
        return f"PublishSet({self._blocks!r})"

# ============================
# HONEST MINER FAMILY
# ============================

class Honest(MinerBase):
    """Publishes every block as soon as it is mined, at the tip of the longest chain."""

    def __init__(self, tie_breaker: Optional[TieBreakerBase] = None):
        super().__init__()
        self.tie_breaker: TieBreakerBase = tie_breaker if tie_breaker is not None else EarliestPublished()

    def name(self) -> str:
        return "Honest"

    def get_action(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> ActionBase:
        if block_mined is None:
            return WAIT
        parent_id = self.tie_breaker.choose(chain, self.rng)
        return Publish(Block(block_mined, parent_id, self.miner_id))


class HonestForking(MinerBase):
    """An honest miner which mines one block behind the longest chain with probability ``p``,
    modelling forks caused by network delay."""

    def __init__(self, p: float, tie_breaker: Optional[TieBreakerBase] = None):
        super().__init__()
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"forking probability must be between 0 and 1, got {p}")
        self.p = p
        self.tie_breaker: TieBreakerBase = tie_breaker if tie_breaker is not None else EarliestPublished()

    def name(self) -> str:
        return f"Honest Forking, p={self.p}"

    def get_action(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> ActionBase:
        if block_mined is None:
            return WAIT

        parent_id = self.tie_breaker.choose(chain, self.rng)
        if self.rng.random() < self.p:
            grandparent = chain.get_parent(parent_id)
            if grandparent is not None:
                parent_id = grandparent
        return Publish(Block(block_mined, parent_id, self.miner_id))


class Noop(MinerBase):
    """Never publishes a block."""

    def name(self) -> str:
        return "No-op"

    def get_action(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> ActionBase:
        return WAIT


class Noise(MinerBase):
    """Publishes blocks immediately, choosing the parent uniformly at random among all
    published blocks with a smaller ID."""

    def name(self) -> str:
        return "Noise"

    def get_action(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> ActionBase:
        if block_mined is None:
            return WAIT

        parent_id = block_mined
        while parent_id not in chain:
            parent_id = self.rng.randrange(0, block_mined)
        return Publish(Block(block_mined, parent_id, self.miner_id))
