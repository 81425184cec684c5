from __future__ import annotations
from collections import deque
from typing import Deque, Optional, TYPE_CHECKING

from mining_simulator.block import Block
from mining_simulator.blueprint import ActionBase, MinerBase, TieBreakerBase
from mining_simulator.miner import WAIT, Publish, PublishSet
from mining_simulator.tie_breaker import EarliestPublished, FavorMiner, earliest_by, earliest_not_by

if TYPE_CHECKING:
    from mining_simulator.block import BlockId, MinerId
    from mining_simulator.blockchain import Blockchain


class Selfish(MinerBase):
    """Follows the selfish mining strategy of Eyal and Sirer
    (https://doi.org/10.48550/arXiv.1311.0243).

    Mined blocks are withheld in a private queue. The queue is only meaningful while the
    private chain is at least as high as the public one; it is discarded as soon as the
    public chain overtakes it.
    """

    def __init__(self):
        super().__init__()
        self.hidden_blocks: Deque[Block] = deque()
        self.private_height: int = 0
        self.tie_breaker: TieBreakerBase = EarliestPublished()

    def name(self) -> str:
        return "Selfish"

    def _on_id_assigned(self, miner_id: 'MinerId') -> None:
        self.tie_breaker = FavorMiner(miner_id)

    def _fork_at_tip(self, chain: 'Blockchain') -> bool:
        """True if both this miner and some other miner have a block at the tip."""
        tip = chain.tip()
        return (earliest_by(chain, tip, self.miner_id) is not None
                and earliest_not_by(chain, tip, self.miner_id) is not None)

    def get_action(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> ActionBase:
        if self.private_height < chain.max_height:
            self.hidden_blocks.clear()

        if block_mined is not None:
            return self._on_block_mined(chain, block_mined)

        if not self.hidden_blocks:
            return WAIT
        if len(self.hidden_blocks) == 2:
            blocks = list(self.hidden_blocks)
            self.hidden_blocks.clear()
            return PublishSet(blocks)
        return Publish(self.hidden_blocks.popleft())

    def _on_block_mined(self, chain: 'Blockchain', block_mined: 'BlockId') -> ActionBase:
        if not self.hidden_blocks:
            parent_id = self.tie_breaker.choose(chain, self.rng)
            self.private_height = chain[parent_id].height + 1
        else:
            parent_id = self.hidden_blocks[-1].id
            self.private_height += 1

        block = Block(block_mined, parent_id, self.miner_id)

        # Win the race on a visible fork by extending our own branch straight away
        if not self.hidden_blocks and self._fork_at_tip(chain):
            return Publish(block)

        self.hidden_blocks.append(block)
        return WAIT
