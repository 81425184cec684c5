from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING
import copy
import random

from mining_simulator.errors import MinerIdNotSetError

if TYPE_CHECKING:
    from mining_simulator.block import Block, BlockId, MinerId
    from mining_simulator.blockchain import Blockchain


class TieBreakerBase(ABC):
    @abstractmethod
    def choose(self, chain: 'Blockchain', rng: random.Random) -> 'BlockId':
        """Selects the block a miner should build on among the tip of the longest chain.
        :args:
        chain: The blockchain to choose from.
        rng: Random source of the miner doing the choosing. Deterministic rules ignore it.
        """
        pass

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(sorted(vars(self).items()))))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({params})"


class ActionBase(ABC):
    @abstractmethod
    def blocks(self) -> List['Block']:
        """Returns the blocks to publish, in publishing order."""
        pass


class MinerBase(ABC):
    def __init__(self):
        """ Abstract class for defining a mining strategy.
        Every miner keeps its own random source so that simulation runs are reproducible
        from a seed. The miner ID is assigned by the simulation builder before any call
        to get_action.
        """
        self._miner_id: Optional['MinerId'] = None
        self.rng: random.Random = random.Random()

    @property
    def miner_id(self) -> 'MinerId':
        """Returns the ID assigned to this miner."""
        if self._miner_id is None:
            raise MinerIdNotSetError(self.name())
        return self._miner_id

    def has_id(self) -> bool:
        return self._miner_id is not None

    def set_id(self, miner_id: 'MinerId') -> None:
        """Assigns this miner's ID. Must be called exactly once, with an ID greater than 0."""
        if miner_id <= 0:
            raise ValueError(f"MinerId must be greater than 0, got {miner_id}")
        if self._miner_id is not None:
            raise ValueError(f"{self.name()} already has MinerId {self._miner_id}")
        self._miner_id = miner_id
        self._on_id_assigned(miner_id)

    def _on_id_assigned(self, miner_id: 'MinerId') -> None:
        """Hook for strategies whose configuration depends on their own ID."""
        pass

    def seed(self, seed: int) -> None:
        """Reseeds this miner's random source."""
        self.rng.seed(seed)

    def clone(self) -> 'MinerBase':
        """Returns an independent deep copy of this miner and its internal state."""
        return copy.deepcopy(self)

    @abstractmethod
    def name(self) -> str:
        """Returns the human-readable name of the strategy."""
        pass

    @abstractmethod
    def get_action(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> ActionBase:
        """Returns the action taken by this miner in the current round.
        :args:
        chain: The public blockchain. Miners never mutate it.
        block_mined: The ID of the block this miner mined this round, if it was selected
        as the proposer, and None otherwise.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._miner_id}, name={self.name()!r})"
