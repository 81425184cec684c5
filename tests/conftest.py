import random

import matplotlib
import pytest

from mining_simulator.block import Block
from mining_simulator.blockchain import Blockchain

matplotlib.use("Agg")


@pytest.fixture
def chain():
    return Blockchain()


@pytest.fixture
def build_chain():
    """Returns a factory publishing ``(block_id, parent_id, miner_id)`` triples in order."""
    def _build(*blocks):
        chain = Blockchain()
        for block_id, parent_id, miner_id in blocks:
            chain.publish(Block(block_id, parent_id, miner_id))
        return chain
    return _build


@pytest.fixture
def rng():
    return random.Random(1234)
