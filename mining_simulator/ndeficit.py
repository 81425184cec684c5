from __future__ import annotations
from abc import abstractmethod
from collections import deque
from typing import Deque, List, Optional, Set, TYPE_CHECKING
import logging

from mining_simulator.block import Block
from mining_simulator.blueprint import ActionBase, MinerBase, TieBreakerBase
from mining_simulator.errors import IllegalStateError
from mining_simulator.miner import WAIT, Publish, PublishSet
from mining_simulator.tie_breaker import EarliestPublished, FavorMiner, earliest_by, earliest_not_by

if TYPE_CHECKING:
    from mining_simulator.block import BlockId, MinerId
    from mining_simulator.blockchain import Blockchain

ATTACKER = "A"
HONEST = "H"


class StateEntry:
    """A run of consecutive attacker (``A``) or honest (``H``) blocks."""

    __slots__ = ("kind", "count")

    def __init__(self, kind: str, count: int = 1):
        self.kind = kind
        self.count = count

    def __eq__(self, other) -> bool:
        return isinstance(other, StateEntry) and (self.kind, self.count) == (other.kind, other.count)

    def __hash__(self) -> int:
        return hash((self.kind, self.count))

    def __repr__(self):
        return f"{self.kind}({self.count})"


def A(count: int) -> StateEntry:
    return StateEntry(ATTACKER, count)


def H(count: int) -> StateEntry:
    return StateEntry(HONEST, count)

# ============================
# N-DEFICIT BASE
# ============================

class DeficitMinerBase(MinerBase):
    """Shared bookkeeping of the N-Deficit family of strategies
    (Hein, http://arks.princeton.edu/ark:/88435/dsp01n583xz19p).

    The race since the last capitulation is kept as a run-length stack of attacker and
    honest blocks, e.g. ``[A(1), H(2), A(1)]``, alongside the hidden attacker blocks and the
    honest blocks seen since the capitulation block.
    """

    def __init__(self, i: int):
        super().__init__()
        if i < 0:
            raise ValueError(f"deficit tolerance must not be negative, got {i}")
        self.i = i
        self.tie_breaker: TieBreakerBase = EarliestPublished()

        self.capitulation: 'BlockId' = 0
        self.state: List[StateEntry] = []
        self.seen: Set['BlockId'] = set()
        self.our_blocks: Deque['BlockId'] = deque()
        self.honest_blocks: List['BlockId'] = []

    def _on_id_assigned(self, miner_id: 'MinerId') -> None:
        self.tie_breaker = FavorMiner(miner_id)

    def clear_state(self) -> None:
        self.state.clear()
        self.seen.clear()
        self.our_blocks.clear()
        self.honest_blocks.clear()

    def capitulate(self, block_id: 'BlockId') -> None:
        """Restarts the race from the empty state with ``block_id`` as its base."""
        logging.debug("%s (miner %s) capitulating to block %s from state %s",
                      self.name(), self._miner_id, block_id, self.state)
        self.capitulation = block_id
        self.clear_state()

    def _push_run(self, kind: str, count: int) -> None:
        if self.state and self.state[-1].kind == kind:
            self.state[-1].count += count
        else:
            self.state.append(StateEntry(kind, count))

    def update_state(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> None:
        """Folds the blocks published since the last call, and the block mined this round,
        into the state."""
        tip = self.tie_breaker.choose(chain, self.rng)
        cap_height = chain[self.capitulation].height

        # States of the form [H(x), ..] are never tracked
        if self.our_blocks:
            unseen: List['BlockId'] = []
            for curr in chain.ancestors_of(tip):
                if curr == self.capitulation or curr in self.seen:
                    break
                # The public chain moved off our branch
                if chain[curr].height <= cap_height:
                    self.capitulate(tip)
                    return
                unseen.append(curr)
                self.seen.add(curr)

            if unseen:
                self._push_run(HONEST, len(unseen))
                self.honest_blocks.extend(reversed(unseen))
        else:
            self.capitulation = tip

        if block_mined is not None:
            self.seen.add(block_mined)
            self.our_blocks.append(block_mined)
            self._push_run(ATTACKER, 1)

    def block_path_to(self, parent_id: 'BlockId') -> List[Block]:
        """Returns the hidden blocks chained on top of ``parent_id``. Empties the hidden queue."""
        miner_id = self.miner_id
        blocks = []
        while self.our_blocks:
            block_id = self.our_blocks.popleft()
            blocks.append(Block(block_id, parent_id, miner_id))
            parent_id = block_id
        return blocks

    def publish_all(self) -> ActionBase:
        path = self.block_path_to(self.capitulation)
        self.capitulate(path[-1].id)
        return PublishSet(path)

    def _publish_after_first(self, x: int) -> ActionBase:
        """Drops the first hidden block and publishes the rest on the end of the first
        honest run."""
        self.our_blocks.popleft()
        path = self.block_path_to(self.honest_blocks[x - 1])
        self.capitulate(path[-1].id)
        return PublishSet(path)

    def _tolerate_deficit(self, x: int) -> ActionBase:
        if x > self.i:
            self.capitulate(self.honest_blocks[x - 1])
        return WAIT

    def _partial_capitulation(self, x: int) -> ActionBase:
        """Collapses [A(1), H(x), A(1), H(1)] into [A(1), H(1)] based on the last block of
        the first honest run."""
        self._check_tolerance(x)
        self.state = [A(1), H(1)]
        self.capitulation = self.honest_blocks[x - 1]
        self.our_blocks.popleft()
        del self.honest_blocks[:x]
        self.seen = {self.our_blocks[0], self.honest_blocks[0]}
        return WAIT

    def _check_tolerance(self, x: int) -> None:
        if x > self.i:
            raise IllegalStateError(self.name(), self.state)

    def _fork_at_tip(self, chain: 'Blockchain') -> Optional['BlockId']:
        """Returns our earliest tip block if the tip also holds another miner's block."""
        tip = chain.tip()
        ours = earliest_by(chain, tip, self.miner_id)
        if ours is None or earliest_not_by(chain, tip, self.miner_id) is None:
            return None
        return ours

    def map_state(self) -> ActionBase:
        """Maps the current state to an action."""
        state = self.state
        if not state:
            return WAIT

        # All non-empty states are of the form [A(x), ..]
        if state[0].kind != ATTACKER:
            raise IllegalStateError(self.name(), state)

        lead = state[0].count
        if len(state) == 1 and lead == 1:
            return WAIT
        if lead >= 2:
            return self._map_lead()

        x = state[1].count
        if len(state) == 2:
            return self._tolerate_deficit(x)

        third = state[2].count
        if len(state) == 3 and third == 1:
            if x == 1:
                return self.publish_all()
            return self._tolerate_deficit(x)
        if third >= 2:
            return self._map_catch_up(x)
        if len(state) == 4 and state[3].count == 1:
            return self._partial_capitulation(x)

        raise IllegalStateError(self.name(), state)

    @abstractmethod
    def _map_lead(self) -> ActionBase:
        """State [A(k >= 2), ..]."""
        pass

    @abstractmethod
    def _map_catch_up(self, x: int) -> ActionBase:
        """State [A(1), H(x), A(k >= 2), ..]."""
        pass

# ============================
# N-DEFICIT STRATEGIES
# ============================

class NDeficit(DeficitMinerBase):
    """An ``i``-Deficit miner: tolerates honest runs of up to ``i`` blocks after its first
    hidden block before abandoning the attempt."""

    def name(self) -> str:
        return f"{self.i}-Deficit"

    def get_action(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> ActionBase:
        self.update_state(chain, block_mined)

        # Selfish mining fork case
        if len(self.our_blocks) == 1:
            parent_id = self._fork_at_tip(chain)
            if parent_id is not None:
                block_id = self.our_blocks[0]
                self.capitulate(block_id)
                return Publish(Block(block_id, parent_id, self.miner_id))

        return self.map_state()

    def _map_lead(self) -> ActionBase:
        if len(self.our_blocks) == len(self.honest_blocks) + 1:
            return self.publish_all()
        return WAIT

    def _map_catch_up(self, x: int) -> ActionBase:
        self._check_tolerance(x)
        ours = len(self.our_blocks)
        honest = len(self.honest_blocks)

        if ours == honest + 1:
            return self.publish_all()
        if ours - 1 == honest - x + 1:
            return self._publish_after_first(x)
        return WAIT


class NDeficitEager(DeficitMinerBase):
    """An ``i``-Deficit miner which publishes whenever it can win or tie a race, trading
    some revenue for faster publication."""

    def name(self) -> str:
        return f"{self.i}-Deficit Eager"

    def get_action(self, chain: 'Blockchain', block_mined: Optional['BlockId']) -> ActionBase:
        # Selfish mining fork case: extend our side of a fresh fork immediately
        if not self.our_blocks and block_mined is not None:
            parent_id = self._fork_at_tip(chain)
            if parent_id is not None:
                logging.debug("%s (miner %s) extending fork at block %s",
                              self.name(), self._miner_id, parent_id)
                self.capitulate(block_mined)
                return Publish(Block(block_mined, parent_id, self.miner_id))

        self.update_state(chain, block_mined)
        return self.map_state()

    def _map_lead(self) -> ActionBase:
        ours = len(self.our_blocks)
        honest = len(self.honest_blocks)

        if ours == honest + 1 or honest > 0:
            return self.publish_all()
        # Nothing to race against yet
        return WAIT

    def _map_catch_up(self, x: int) -> ActionBase:
        self._check_tolerance(x)
        ours = len(self.our_blocks)
        honest = len(self.honest_blocks)

        if ours == honest + 1:
            return self.publish_all()
        if ours - 1 == honest - x + 1 or ours - 1 == honest - x:
            return self._publish_after_first(x)
        return WAIT
