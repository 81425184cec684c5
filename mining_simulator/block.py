from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

# Type aliases for identifiers
BlockId = int
MinerId = int

GENESIS_ID: BlockId = 0
GENESIS_MINER: MinerId = 0

# ============================
# TRANSACTION
# ============================

@dataclass(frozen=True)
class Transaction:
    """Opaque payload carried by a block. Has no effect on mining dynamics."""
    sender: int
    recipient: int
    amount: float = 0.0

# ============================
# BLOCK
# ============================

@dataclass(frozen=True, order=True)
class Block:
    """A mined block. Blocks compare, sort and hash by ``id`` only.

    :args:
    id: Unique identifier, equal to the round in which the block was mined.
    parent_id: ID of the parent block. ``None`` only for the genesis block.
    miner_id: ID of the miner that authored the block.
    txns: Transactions included in the block.
    """
    id: BlockId
    parent_id: Optional[BlockId] = field(default=None, compare=False)
    miner_id: MinerId = field(default=GENESIS_MINER, compare=False)
    txns: Tuple[Any, ...] = field(default=(), compare=False)

    @staticmethod
    def create_genesis_block() -> Block:
        """Creates the genesis block shared by every blockchain."""
        return Block(GENESIS_ID, None, GENESIS_MINER)

    def is_genesis(self) -> bool:
        return self.parent_id is None

    def __repr__(self):
        return f"Block(id={self.id}, parent={self.parent_id}, miner={self.miner_id})"
