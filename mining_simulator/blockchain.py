from __future__ import annotations
from typing import Dict, Iterator, List, Optional
import logging

from mining_simulator.block import Block, BlockId, GENESIS_ID, GENESIS_MINER
from mining_simulator.errors import (
    DuplicateBlockIdError,
    InvalidParentError,
    NoParentGivenError,
    ParentNotFoundError,
)

# ============================
# BLOCK METADATA
# ============================

class BlockData:
    """A block together with the metadata the blockchain keeps about it."""

    __slots__ = ("block", "height", "children")

    def __init__(self, block: Block, height: int, children: Optional[List[BlockId]] = None):
        self.block: Block = block
        self.height: int = height  # Path length from the block to genesis
        self.children: List[BlockId] = children if children is not None else []

    def copy(self) -> BlockData:
        return BlockData(self.block, self.height, list(self.children))

    def __repr__(self):
        return f"BlockData(block={self.block!r}, height={self.height}, children={self.children})"

# ============================
# BLOCKCHAIN
# ============================

class Blockchain:
    """Public blockchain that miners publish to.

    The genesis block always has ID 0 and is authored by the genesis miner (ID 0).
    Blocks are never removed; forks are kept side by side and indexed by height.
    """

    GENESIS_ID: BlockId = GENESIS_ID
    GENESIS_MINER: int = GENESIS_MINER

    def __init__(self):
        genesis = Block.create_genesis_block()
        self.genesis: BlockId = genesis.id
        self.blocks: Dict[BlockId, BlockData] = {genesis.id: BlockData(genesis, 0)}
        self.blocks_by_height: List[List[BlockId]] = [[genesis.id]]

    @property
    def max_height(self) -> int:
        """Maximum height of any block on the blockchain."""
        return len(self.blocks_by_height) - 1

    def publish(self, block: Block) -> None:
        """Adds a block to the blockchain.

        Raises a ``BlockPublishingError`` subclass if the block id is taken, the
        parent is missing or unknown, or the block id does not exceed its parent's.
        """
        if block.id in self.blocks:
            raise DuplicateBlockIdError(block.id)

        parent_id = block.parent_id
        if parent_id is None:
            raise NoParentGivenError(block.id)

        parent = self.blocks.get(parent_id)
        if parent is None:
            raise ParentNotFoundError(block.id, parent_id)

        if block.id <= parent.block.id:
            raise InvalidParentError(block.id, parent_id)

        parent.children.append(block.id)

        height = parent.height + 1
        if height > self.max_height:
            self.blocks_by_height.append([block.id])
        else:
            self.blocks_by_height[height].append(block.id)

        self.blocks[block.id] = BlockData(block, height)

    def tip(self) -> List[BlockId]:
        """Returns the IDs of all blocks at the maximum height, in publication order."""
        return self.blocks_by_height[-1]

    def at_height(self, height: int) -> Optional[List[BlockId]]:
        """Returns the IDs of all blocks at ``height``, or None above the maximum height."""
        if height < 0 or height > self.max_height:
            return None
        return self.blocks_by_height[height]

    def ancestors_of(self, block_id: BlockId, ascending: bool = False) -> Iterator[BlockId]:
        """Yields the IDs on the path from ``block_id`` to genesis, including both ends.

        Blocks are produced from ``block_id`` towards genesis, or from genesis up to
        ``block_id`` when ``ascending`` is set. Each call starts a fresh traversal.
        """
        if block_id not in self.blocks:
            raise KeyError(f"blockchain does not contain a block with ID: {block_id}")
        if ascending:
            return iter(list(self._walk_to_genesis(block_id))[::-1])
        return self._walk_to_genesis(block_id)

    def _walk_to_genesis(self, block_id: BlockId) -> Iterator[BlockId]:
        curr: Optional[BlockId] = block_id
        while curr is not None:
            yield curr
            curr = self.blocks[curr].block.parent_id

    def longest_chain(self, ascending: bool = False) -> List[BlockId]:
        """Returns the IDs on the longest chain, whose tip is the earliest published block
        at the maximum height."""
        return list(self.ancestors_of(self.tip()[0], ascending=ascending))

    def contains(self, block_id: BlockId) -> bool:
        return block_id in self.blocks

    def get(self, block_id: BlockId) -> Optional[BlockData]:
        return self.blocks.get(block_id)

    def get_block(self, block_id: BlockId) -> Optional[Block]:
        data = self.blocks.get(block_id)
        return data.block if data is not None else None

    def get_parent(self, block_id: BlockId) -> Optional[BlockId]:
        data = self.blocks.get(block_id)
        return data.block.parent_id if data is not None else None

    def height_of(self, block_id: BlockId) -> int:
        return self.blocks[block_id].height

    def num_blocks(self) -> int:
        return len(self.blocks)

    def clone(self) -> Blockchain:
        """Returns an independent copy. Blocks are immutable and shared."""
        chain = Blockchain.__new__(Blockchain)
        chain.genesis = self.genesis
        chain.blocks = {block_id: data.copy() for block_id, data in self.blocks.items()}
        chain.blocks_by_height = [list(ids) for ids in self.blocks_by_height]
        logging.debug("Cloned blockchain with %d blocks", len(chain.blocks))
        return chain

    def __contains__(self, block_id: BlockId) -> bool:
        return block_id in self.blocks

    def __getitem__(self, block_id: BlockId) -> BlockData:
        return self.blocks[block_id]

    def __len__(self) -> int:
        return len(self.blocks)

    def __repr__(self) -> str:
        return f"Blockchain(blocks={len(self.blocks)}, max_height={self.max_height}, tip={self.tip()})"
